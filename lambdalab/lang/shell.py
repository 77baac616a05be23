"""Handles interactive/command-line mode for lambdalab. Uses cmd as backend."""

import cmd

from termcolor import colored

from lambdalab.lang.lexical import MacroStmt
from lambdalab.pure.lexical import pretty
from lambdalab.pure.reduce import Strategy


def highlight(kind, text):
    """Colors the parts of a term involved in a reduction step."""
    if kind == "target":
        return colored(text, attrs=["underline"])
    elif kind == "substituted":
        return colored(text, "green")
    return colored(text, "blue", attrs=["bold"])


class Shell(cmd.Cmd):
    """Lambda calculus evaluator shell."""
    intro = "lambdalab :: lambda calculus evaluator\nType '?' or 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for line continutations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess

        self._tmp_line = ""
        self.line_num = 0

    def default(self, line):
        """Defines a macro or reduces a λ-term."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.line_num += 1
            line, add_to_prev = self.sess.preprocess_line(f"{self._tmp_line} {line}", self.line_num, False)

            if add_to_prev:
                self._tmp_line = line
                self.prompt = self.secondary_prompt
                return

            self._tmp_line = ""
            self.prompt = self._tmp_prompt
            if not line:
                return

            self.sess.add(line, self.line_num)
            self.sess.run()

            while self.sess.results:
                self.display(*self.sess.pop())

    def display(self, stmt, trace, resugared):
        """Prints the result of a statement."""
        if isinstance(stmt, MacroStmt):
            definition = self.sess.macros[stmt.name]
            value = definition.value_for(self.sess.strategy)
            print(f"{definition.name} ≜ {pretty(value if value is not None else definition.unreduced)}")
            return

        for line in self.sess.format_trace(trace, highlight):
            print(line)
        if resugared is not None:
            print(f"= {pretty(resugared)}")

    def do_strategy(self, arg):
        """strategy [cbv|cbn|normal|applicative]: shows or sets the evaluation strategy."""
        with self.sess.error_handler:
            if arg:
                self.sess.set_strategy(arg)
            print(f"strategy: {self.sess.strategy} (one of {', '.join(str(s) for s in Strategy)})")

    def do_timeout(self, arg):
        """timeout [steps]: shows or sets how many steps a reduction may take."""
        with self.sess.error_handler:
            if arg:
                self.sess.set_timeout(arg)
            print(f"timeout: {self.sess.timeout} steps")

    def do_macros(self, arg):
        """macros: lists the defined macros, each one after the macros it depends on."""
        with self.sess.error_handler:
            for definition in self.sess.macro_list():
                print(f"{definition.name} ≜ {definition.source}")

    def do_guess(self, arg):
        """guess <λ-term>: checks a guess of the next step of the last reduced term ('...' matches anything)."""
        with self.sess.error_handler:
            correct, actual = self.sess.check_guess(arg)
            if actual is None:
                print("no step: the term is already a value")
            elif correct:
                print(colored("correct", "green", attrs=["bold"]) + f": {pretty(actual)}")
            else:
                print(colored("incorrect", "red", attrs=["bold"]) + f": the next step is {pretty(actual)}")

    def do_tree(self, arg):
        """tree <λ-term>: displays the syntax tree of a λ-term."""
        with self.sess.error_handler:
            print(self.sess.parse(arg).display())

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        if arg:
            return super().do_help(arg)
        print("Welcome to lambdalab!\n\n"
              "Type a λ-term to watch it reduce step by step, e.g. '(λx. x) (λy. y)'. Type '\\' \n"
              "instead of 'λ' if you like. Uppercase names are macros: define one with \n"
              "'I ≜ λx. x' (or 'I := λx. x') and use it as 'I y'. Try 'PLUS ONE ONE'.\n\n"
              "Commands: strategy, timeout, macros, guess, tree, exit. Type 'help <command>' \n"
              "for more. A line starting with a command name runs that command, so write a term \n"
              "like 'exit y' with parentheses: '(exit y)'.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits evaluator."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits evaluator."""
        return True
