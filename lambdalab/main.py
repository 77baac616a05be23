"""Runs lambdalab on a file, or in command-line mode. Also uses error handling context manager. Called from the
lambdalab console script.

Python version must be >=3.9, because macro dependencies are sorted with graphlib.
"""

import argparse
import sys

from lambdalab.lang.error import ErrorHandler
from lambdalab.lang.lexical import ExecStmt
from lambdalab.lang.session import Session
from lambdalab.lang.shell import Shell
from lambdalab.pure.lexical import pretty
from lambdalab.pure.reduce import Strategy


def main(argv=None):
    """Runs lambdalab. Called from the lambdalab console script."""
    assert sys.version_info >= (3, 9), "lambdalab cannot be run with python < 3.9"

    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(description="Step-by-step lambda calculus evaluator.")
        parser.add_argument("file", help="file to run (if empty, goes to command-line mode)", nargs="?")
        parser.add_argument("-s", "--strategy", default=str(Session.STRATEGY),
                            help=f"evaluation strategy: {', '.join(str(s) for s in Strategy)}")
        parser.add_argument("-t", "--timeout", type=int, default=Session.TIMEOUT,
                            help="number of steps before a reduction gives up")
        parser.add_argument("--no-prelude", action="store_true", help="do not load the default macros")
        parser.add_argument("--no-resugar", action="store_true", help="do not replace results by macro names")
        args = parser.parse_args(argv)

        options = dict(strategy=args.strategy, timeout=args.timeout, prelude=not args.no_prelude,
                       resugar=not args.no_resugar)

        if args.file is not None:
            sess = Session(error_handler, args.file, **options)
            sess.run()

            for stmt, trace, resugared in sess.results:
                if not isinstance(stmt, ExecStmt):
                    continue
                label, term, __ = trace[-1]
                print(pretty(resugared if resugared is not None else term))

        else:
            Shell(Session(error_handler, Session.SH_FILE, **options)).cmdloop()


if __name__ == "__main__":
    main()
