"""Session control for lambdalab. Owns the macro table, the current evaluation strategy, and the step budget, and runs
lines either from a file or from the command line.
"""

import os

from lambdalab.lang.error import GenericException
from lambdalab.lang.lexical import ExecStmt, Grammar, ImportStmt, MacroStmt
from lambdalab.lang.macro import MacroTable, resugar
from lambdalab.pure.lexical import StepInfo, matches, pretty
from lambdalab.pure.parser import parse
from lambdalab.pure.reduce import Strategy, TIMEOUT, normal_form, reducer_for, run, timed_out


class Session:
    """Governs a lambdalab session, with control over the macros defined in it."""
    SH_FILE = "<in>"  # command-line interpreter filename
    PRELUDE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "prelude.lc")

    TIMEOUT = TIMEOUT
    STRATEGY = Strategy.CBV

    def __init__(self, error_handler, path=SH_FILE, strategy=None, timeout=None, prelude=True, resugar=True):
        self.error_handler = error_handler
        self.error_handler.register_file(path)

        self.path = path                         # used for error messages
        self.cmd_line = path == Session.SH_FILE  # whether or not in command-line mode
        self.timeout = Session.TIMEOUT
        self.strategy = Session.STRATEGY
        self.resugar = resugar

        self.macros = MacroTable(self.timeout)
        self.to_exec = {}   # dict of line num: ExecStmts to execute
        self.results = []   # list of (stmt, trace, resugared term or None), oldest first
        self.current = None  # term that guesses are checked against
        self.loading = []   # absolute paths of the files currently being loaded, outermost first

        if strategy is not None:
            self.set_strategy(strategy)
        if timeout is not None:
            self.set_timeout(timeout)
        if self.cmd_line:
            self.error_handler.fatal = False

        if prelude:
            self.load(Session.PRELUDE, imported=True)
        if not self.cmd_line:
            self.load(path)

    @staticmethod
    def preprocess_line(line, line_num, add_to_prev, exprs=None):
        """Preprocesses a line from a file or command-line. add_to_prev is whether or not line continues the previous
        line. If exprs is given, it collects (line, line_num) of complete statements. Returns the updated line and
        whether or not the next line continues this one (more '(' than ')').
        """
        if ";;" in line:
            line = line[:line.index(";;")]  # get rid of comments

        line = Grammar.preprocess(line)
        if exprs is not None:
            if add_to_prev and exprs:
                prev, prev_num = exprs.pop()
                line = f"{prev} {line}".strip()
                exprs.append((line, prev_num))
            elif line:
                exprs.append((line, line_num))

        return line, line.count("(") > line.count(")")

    def load(self, path, imported=False):
        """Adds every statement in the file at path. Statements other than macro definitions are ignored if
        imported.
        """
        if os.path.abspath(path) in self.loading:
            raise GenericException("circular import of '{}'", path, diagnosis=False)

        exprs = []
        add_to_prev = False

        try:
            with open(path, "r", encoding="utf-8") as file:
                for line_num, line in enumerate(file):
                    __, add_to_prev = Session.preprocess_line(line, line_num + 1, add_to_prev, exprs)
        except OSError:
            raise GenericException("'{}' could not be opened", path, diagnosis=False)

        self.error_handler.register_file(path)
        self.loading.append(os.path.abspath(path))
        try:
            for expr, line_num in exprs:
                self.add(expr, line_num, path, imported)
        finally:
            self.loading.pop()
        del self.error_handler.traceback[path]

    def add(self, expr, line_num, path=None, imported=False):
        """Adds a statement to the current session. Macros are defined immediately, while reduction is lazy and is
        delayed until run is called.
        """
        path = path if path is not None else self.path
        self.error_handler.register_line(path, expr, line_num)  # in case error is raised

        stmt = Grammar.infer(expr)

        if isinstance(stmt, ImportStmt):
            self.load(os.path.join(os.path.dirname(os.path.abspath(path)), stmt.path), imported=True)

        elif isinstance(stmt, MacroStmt):
            __, trace = self.define(stmt.expr)
            if not imported:
                self.results.append((stmt, trace, None))

        elif isinstance(stmt, ExecStmt) and not imported:
            self.to_exec[line_num] = stmt

        self.error_handler.remove_line(path)  # error was not raised

    def run(self):
        """Runs this session's executable statements. Timeouts are reported as warnings, and any other errors are
        raised.
        """
        for line_num, exec_stmt in list(self.to_exec.items()):
            self.error_handler.register_line(self.path, exec_stmt.expr, line_num)

            try:
                trace = self.evaluate(exec_stmt.expr)
            finally:
                del self.to_exec[line_num]

            resugared = None
            if timed_out(trace):
                msg = "'{}' has no normal form within {} steps"
                self.error_handler.warn(msg, (exec_stmt.expr, self.timeout), diagnosis=False)
            elif self.resugar and trace:
                term, changed = resugar(normal_form(trace), self.macros, self.strategy)
                resugared = term if changed else None

            self.results.append((exec_stmt, trace, resugared))
            self.error_handler.remove_line(self.path)

    def pop(self):
        """Removes and returns the oldest result."""
        return self.results.pop(0)

    def parse(self, text):
        """Parses text with this session's macros and strategy."""
        return parse(text, self.macros, self.strategy)

    def define(self, text):
        """Defines the macro in text. Returns (name, trace of the reduction that computed its value)."""
        return self.macros.define(text)

    def evaluate(self, text):
        """Parses text and reduces it with the current strategy. Returns the trace of the run."""
        term = self.parse(text)
        self.current = term
        return run(term, self.timeout, reducer_for(self.strategy))

    def step(self):
        """Takes a single step from the current term. Returns (next term, StepInfo), or (None, None)."""
        if self.current is None:
            raise GenericException("nothing to step: evaluate a term first", diagnosis=False)
        return reducer_for(self.strategy).step(self.current)

    def check_guess(self, text):
        """Checks whether text is the next step of the current term, up to renaming of bound variables and where '...'
        in text matches anything. Advances the current term if it is. Returns (whether or not the guess was right, the
        actual next term or None).
        """
        guess = self.parse(text)
        actual, __ = self.step()
        if actual is None:
            return False, None

        correct = matches(actual, guess)
        if correct:
            self.current = actual
        return correct, actual

    def macro_list(self):
        """Every macro, recompiled, each one after the macros it depends on."""
        self.macros.recompile()
        return self.macros.dependency_order()

    def set_strategy(self, strategy):
        if not isinstance(strategy, Strategy):
            try:
                strategy = Strategy.parse(strategy)
            except ValueError:
                raise GenericException("unknown evaluation strategy '{}'", strategy, diagnosis=False)
        self.strategy = strategy

    def set_timeout(self, timeout):
        try:
            timeout = int(timeout)
            assert timeout > 0
        except (AssertionError, ValueError):
            raise GenericException("timeout must be a positive number of steps, got '{}'", str(timeout),
                                   diagnosis=False)
        self.timeout = timeout
        self.macros.timeout = timeout

    @staticmethod
    def format_trace(trace, mark=None):
        """Lines displaying trace, one per entry. Each term is highlighted with the step taken from it, and the last
        one with the step that produced it.
        """
        lines = []
        previous = None
        for label, term, info in trace:
            step = info if isinstance(info, StepInfo) else previous
            lines.append(f"{label or ' '} {pretty(term, step, mark)}")
            previous = info
        return lines
