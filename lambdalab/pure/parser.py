"""A recursive-descent parser for the lambda calculus with macros.

```
<expr>  ::= <term>+                                 ; application, associating by left: a b c = (a b) c
<term>  ::= "..."                                  ; placeholder for an elided subterm
          | [a-z0-9]+                              ; variable
          | [A-Z]+                                 ; macro, resolved against the macro table
          | ("\\" | "λ") [a-z0-9]+ "." <expr>      ; abstraction, the body extends as far right as possible
          | "(" <expr> ")"
```

Whitespace may appear between any two tokens. Alternatives are tried in order, PEG-style.

Macro names are resolved as soon as they are parsed. A macro's normal form works under every strategy, so it is
preferred; otherwise the value precomputed for the current strategy is used, and failing that the macro's unreduced
definition. The same source can therefore parse to different terms under different strategies.
"""

from lambdalab.pure.lexical import Abstraction, Application, DOTS, MacroRef, Variable
from lambdalab.pure.reduce import Strategy
from lambdalab.pure.scanner import Scanner

VAR_NAME = r"[a-z0-9]+"
MACRO_NAME = r"[A-Z]+"
LAMBDA = r"\\|λ"


class Parser:
    """Parses terms from a Scanner. macros maps macro names to MacroDefinitions."""

    def __init__(self, scanner, macros=None, strategy=Strategy.CBV):
        self.scanner = scanner
        self.macros = macros if macros is not None else {}
        self.strategy = strategy

    def parse(self):
        """Parses a whole expression from the scanner's offset up to the end of its input."""
        expr = self.parse_expr()
        if not self.scanner.done():
            raise self.scanner.error("unexpected token")
        return expr

    def parse_expr(self):
        """Parses a sequence of terms separated by whitespace: in other words, a nested hierarchy of applications."""
        self.scanner.skip_whitespace()
        out_term = None
        while True:
            term = self.parse_term()
            if term is None:
                if out_term is None:
                    raise self.scanner.error("expected term")
                return out_term

            self.scanner.skip_whitespace()
            out_term = term if out_term is None else Application(out_term, term)

    def parse_term(self):
        """Parses a non-application: dots, a variable, a macro, an abstraction, or a parenthesized expression.
        Returns None if there is no term here.
        """
        for parse_alternative in (self.parse_dots, self.parse_var, self.parse_macro, self.parse_abs):
            term = parse_alternative()
            if term is not None:
                return term

        if self.scanner.scan(r"\("):
            expr = self.parse_expr()
            if not self.scanner.scan(r"\)"):
                raise self.scanner.error("unbalanced parentheses")
            return expr

        return None

    def parse_dots(self):
        if self.scanner.scan(r"\.\.\."):
            return DOTS.copy()
        return None

    def parse_var(self):
        name = self.scanner.scan(VAR_NAME)
        return Variable(name) if name else None

    def parse_macro(self):
        start = self.scanner.offset
        name = self.scanner.scan(MACRO_NAME)
        if not name:
            return None

        definition = self.macros.get(name)
        if definition is None:
            self.scanner.offset = start
            raise self.scanner.error("macro undefined")
        return MacroRef(name, definition.expansion_for(self.strategy))

    def parse_abs(self):
        if not self.scanner.scan(LAMBDA):
            return None
        self.scanner.skip_whitespace()

        name = self.scanner.scan(VAR_NAME)
        if not name:
            raise self.scanner.error("expected variable name after lambda")
        self.scanner.skip_whitespace()

        if not self.scanner.scan(r"\."):
            raise self.scanner.error("expected dot after variable name")

        return Abstraction(name, self.parse_expr())


def parse(source, macros=None, strategy=Strategy.CBV):
    """Parses source into a λ-term. Raises ParseError if source is not a single valid expression."""
    return Parser(Scanner(source), macros, strategy).parse()
