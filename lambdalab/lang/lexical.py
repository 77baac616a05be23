"""Lexical analysis for lambdalab session lines, a shallow wrapper around pure lambda calculus. Note that this module
does not parse λ-terms itself, but classifies lines so that Session knows what to do with them.

All grammar can be loosely defined as follows:

```
<import_stmt> ::= "#import " <filepath>     ; loads the macros defined in another file
<macro_stmt>  ::= <MACRO> "≜" <λ-term>      ; ":=" may be used instead of "≜"
<exec_stmt>   ::= <λ-term>                  ; reduced and displayed when the session is run

<comment>     ::= ";;" <char>*
```

Comments are handled in session.py: there is no dedicated Grammar class for comments.
"""

from abc import abstractmethod, ABC

from lambdalab.lang.error import GenericException


class Grammar(ABC):
    """Superclass representing any kind of line in a lambdalab session."""

    def __init__(self, expr, original_expr=None):
        """Assumes check_grammar has been run."""
        if original_expr is None:
            original_expr = Grammar.preprocess(expr)

        self.expr = Grammar.preprocess(expr)
        self.original_expr = original_expr  # used for errors messages
        self._cls = type(self).__name__

    @staticmethod
    @abstractmethod
    def check_grammar(expr, original_expr):
        """This method should check expr's top-level grammar and return whether or not it is valid. It should also
        raise a GenericException if expr's top-level grammar is similar to the accepted grammar but invalid.
        """

    @staticmethod
    def preprocess(expr):
        """Removes surrounding whitespace."""
        return expr.strip()

    @classmethod
    def infer(cls, expr, original_expr=None):
        """Infers the type of expr and returns an object of the matching Grammar subclass. Subclasses are tried in
        the order they are defined.
        """
        if original_expr is None:
            original_expr = expr

        for subclass in cls.__subclasses__():
            if subclass.check_grammar(expr, original_expr):
                return subclass(expr, original_expr)

        raise GenericException("'{}' is not valid lambdalab grammar", original_expr)

    def __repr__(self):
        return f"{self._cls}('{self.expr}')"

    def __str__(self):
        return self.expr

    def __eq__(self, other):
        return isinstance(other, type(self)) and other.expr == self.expr

    def __hash__(self):
        return hash(self.expr)


class ImportStmt(Grammar):
    """Import statement. See docstrings for grammar."""

    def __init__(self, expr, original_expr=None):
        super().__init__(expr, original_expr)

        __, *path = self.expr.split(" ")
        self.path = Grammar.preprocess(" ".join(path))[1:-1]  # get rid of surrounding " "

    @staticmethod
    def check_grammar(expr, original_expr):
        expr = Grammar.preprocess(expr)

        if not expr.startswith("#import"):
            return False

        hash_import, *path = expr.split(" ")
        path = Grammar.preprocess(" ".join(path))
        if hash_import != "#import" or len(path) < 2 or not (path.startswith("\"") and path.endswith("\"")):
            raise GenericException("#import expects \"FILENAME\"", original_expr)

        return True


class MacroStmt(Grammar):
    """Macro definition: <NAME> ≜ <λ-term>. The header is checked when the macro is defined."""
    DECLARATORS = ("≜", ":=")

    @staticmethod
    def check_grammar(expr, original_expr):
        return any(declarator in expr for declarator in MacroStmt.DECLARATORS)

    @property
    def name(self):
        for declarator in MacroStmt.DECLARATORS:
            if declarator in self.expr:
                return Grammar.preprocess(self.expr.split(declarator)[0])


class ExecStmt(Grammar):
    """Any other non-empty line: a λ-term to reduce."""

    @staticmethod
    def check_grammar(expr, original_expr):
        return bool(Grammar.preprocess(expr))
