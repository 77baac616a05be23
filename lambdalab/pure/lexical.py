"""Pure lambda calculus syntax tree: terms, substitution, and alpha-equivalence.

The `pure` directory contains pure lambda calculus parsing and reduction- no sessions, files, or shells.

Formally, the terms represented here can be defined as

```
<λ-term> ::= <var>                      ; "variable"
                                        ; - lowercase letters and digits, free or bound
           | "λ" <var> "." <λ-term>     ; "abstraction"
                                        ; - binds <var> in the body, inner binders shadow outer ones
           | <λ-term> <λ-term>          ; "application"
                                        ; - associating by left: a b c d = (((a b) c) d)
           | <MACRO>                    ; "macro reference"
                                        ; - uppercase letters, carries its own (closed) expansion
```

Terms are treated as immutable once built: reduction builds new nodes and shares unchanged children. This matters
for StepInfo, which remembers *which* node was involved in a step by identity, never by structural equality.
"""

from abc import abstractmethod, ABC


class LambdaTerm(ABC):
    """Superclass for every λ-term. Subclasses must implement every abstract method, so a new kind of term cannot be
    instantiated until substitution, alpha-equivalence, etc. know how to handle it.
    """

    @abstractmethod
    def copy(self):
        """Returns a new node equal to self. Children are shared, not copied."""

    @property
    @abstractmethod
    def children(self):
        """Tuple of direct subterms."""

    @abstractmethod
    def free_vars(self):
        """Set of variable names that occur free in self."""

    @abstractmethod
    def sub(self, var, value):
        """Capture-avoiding substitution self[value/var]. Returns (new term, list of the freshly inserted copies of
        value). Nodes that are unaffected may be returned as-is.
        """

    @abstractmethod
    def alpha_equals(self, other, bound=(), other_bound=()):
        """Whether or not self and other have the same shape and binding structure. bound and other_bound are the
        binder names in scope (outermost first) for self and other respectively. Variables are compared by the
        distance to their binder, so names do not matter. Free variables never match.
        """

    @abstractmethod
    def strip(self):
        """Returns self with every macro reference replaced by its (stripped) expansion."""

    def display(self, indents=0):
        """Recursively displays the syntax tree in a readable format.

        Format:
        <LambdaTerm>(expr='<expr>', nodes=[
            <LambdaTerm>(expr='<expr>', nodes=[
                ...
                <LambdaTerm>(expr='<expr>')  # <-- if there are no children
            ])
        ])
        """
        result = f"{'    ' * indents}{type(self).__name__}(expr='{pretty(self)}'"
        if self.children:
            result += ", nodes=["
            for node in self.children:
                result += "\n" + node.display(indents + 1) + ","
            result = result[:-1] + f"\n{'    ' * indents}]"
        return result + ")"

    def __repr__(self):
        return f"{type(self).__name__}('{pretty(self)}')"

    def __str__(self):
        return pretty(self)


class Variable(LambdaTerm):
    """Variable in lambda calculus: a free or bound identifier."""

    def __init__(self, name):
        self.name = name

    def copy(self):
        return Variable(self.name)

    @property
    def children(self):
        return ()

    def free_vars(self):
        return {self.name}

    def sub(self, var, value):
        if self.name == var:
            inserted = value.copy()
            return inserted, [inserted]
        return self, []

    def alpha_equals(self, other, bound=(), other_bound=()):
        if isinstance(other, MacroRef):
            return self.alpha_equals(other.body, bound, other_bound)
        if not isinstance(other, Variable):
            return False

        depth = _binder_depth(bound, self.name)
        return depth is not None and depth == _binder_depth(other_bound, other.name)

    def strip(self):
        return self

    def __eq__(self, other):
        return isinstance(other, Variable) and self.name == other.name

    def __hash__(self):
        return hash(("var", self.name))


class Application(LambdaTerm):
    """Application: juxtaposition of a function term and an argument term."""

    def __init__(self, left, right):
        self.left = left
        self.right = right

    def copy(self):
        return Application(self.left, self.right)

    @property
    def children(self):
        return self.left, self.right

    def free_vars(self):
        return self.left.free_vars() | self.right.free_vars()

    def sub(self, var, value):
        left, left_inserted = self.left.sub(var, value)
        right, right_inserted = self.right.sub(var, value)
        return Application(left, right), left_inserted + right_inserted

    def alpha_equals(self, other, bound=(), other_bound=()):
        if isinstance(other, MacroRef):
            return self.alpha_equals(other.body, bound, other_bound)
        if not isinstance(other, Application):
            return False
        return (self.left.alpha_equals(other.left, bound, other_bound)
                and self.right.alpha_equals(other.right, bound, other_bound))

    def strip(self):
        return Application(self.left.strip(), self.right.strip())

    def __eq__(self, other):
        return isinstance(other, Application) and self.left == other.left and self.right == other.right

    def __hash__(self):
        return hash(("app", self.left, self.right))


class Abstraction(LambdaTerm):
    """Abstraction: binds name in body."""

    def __init__(self, name, body):
        self.name = name
        self.body = body

    def copy(self):
        return Abstraction(self.name, self.body)

    @property
    def children(self):
        return self.body,

    def free_vars(self):
        return self.body.free_vars() - {self.name}

    def sub(self, var, value):
        if self.name == var:
            return self, []  # var is shadowed here

        name, body = self.name, self.body
        taken = value.free_vars()
        if name in taken:
            # rename the binder first so that the free occurrences of name in value stay free
            name = fresh(self.name, taken)
            body, __ = body.sub(self.name, Variable(name))

        body, inserted = body.sub(var, value)
        return Abstraction(name, body), inserted

    def alpha_equals(self, other, bound=(), other_bound=()):
        if isinstance(other, MacroRef):
            return self.alpha_equals(other.body, bound, other_bound)
        if not isinstance(other, Abstraction):
            return False
        return self.body.alpha_equals(other.body, bound + (self.name,), other_bound + (other.name,))

    def strip(self):
        return Abstraction(self.name, self.body.strip())

    def __eq__(self, other):
        return isinstance(other, Abstraction) and self.name == other.name and self.body == other.body

    def __hash__(self):
        return hash(("abs", self.name, self.body))


class MacroRef(LambdaTerm):
    """Reference to a named, closed term. body is the cached expansion used when the macro is unfolded, so reduction
    never needs to consult a macro table. Closedness is checked once, when the macro is defined.
    """

    def __init__(self, name, body):
        self.name = name
        self.body = body

    def copy(self):
        return MacroRef(self.name, self.body)

    @property
    def children(self):
        return ()

    def free_vars(self):
        return set()

    def sub(self, var, value):
        return self, []  # closed

    def alpha_equals(self, other, bound=(), other_bound=()):
        return self.body.alpha_equals(other, bound, other_bound)

    def strip(self):
        return self.body.strip()

    def __eq__(self, other):
        return isinstance(other, MacroRef) and self.name == other.name

    def __hash__(self):
        return hash(("macro", self.name))


class StepInfo:
    """Describes the most recent reduction step, for printing purposes.

    beta:        whether the step was a beta reduction (True) or a macro expansion (False)
    abstraction: the abstraction being substituted into
    target:      the argument being substituted
    variable:    the variable being replaced
    macro:       the macro being expanded
    substituted: the freshly inserted copies of target in the resulting term
    """

    def __init__(self, beta, abstraction=None, target=None, variable=None, macro=None, substituted=()):
        self.beta = beta
        self.abstraction = abstraction
        self.target = target
        self.variable = variable
        self.macro = macro
        self.substituted = list(substituted)

    @classmethod
    def expansion(cls, macro):
        return cls(False, macro=macro)

    def __repr__(self):
        if self.beta:
            return f"StepInfo(beta, variable='{self.variable}', substituted={len(self.substituted)})"
        return f"StepInfo(macro='{self.macro.name}')"


class _TimedOut:
    """Type of TIMED_OUT."""

    def __repr__(self):
        return "TIMED_OUT"

    def __bool__(self):
        return False


TIMED_OUT = _TimedOut()  # step info of the last trace entry when a run exhausts its budget
DOTS = Variable("...")   # placeholder for an elided subterm


def _binder_depth(bound, name):
    """Number of binders between an occurrence of name and the binder it refers to, None if name is free."""
    for depth, bound_name in enumerate(reversed(bound)):
        if bound_name == name:
            return depth
    return None


def fresh(name, taken):
    """Returns name with the smallest numeric suffix (starting at 0) that is not in taken."""
    # only taken is avoided, so a name already free in the body can still be captured
    suffix = 0
    while f"{name}{suffix}" in taken:
        suffix += 1
    return f"{name}{suffix}"


def free_vars(term):
    return term.free_vars()


def is_closed(term):
    """Whether or not term contains no free variables. Macro references are closed by construction."""
    return not term.free_vars()


def substitute(body, value, var):
    """Capture-avoiding substitution body[value/var]. Returns (result, inserted copies of value)."""
    return body.sub(var, value)


def strip_macros(term):
    return term.strip()


def alpha_equivalent(term, other):
    """Whether or not two closed terms are equal up to renaming of bound variables. Macros are unfolded on both sides
    before comparison. Open terms are never alpha-equivalent to anything.
    """
    term, other = term.strip(), other.strip()
    if not is_closed(term) or not is_closed(other):
        return False
    return term.alpha_equals(other)


def flatten_to_match(source, target):
    """Collapses every part of source that is elided (written as '...') in target, so that a partially written
    target can be compared with a complete source. Parts where the shapes differ are left as in source.
    """
    if target == DOTS:
        return DOTS
    elif isinstance(source, Application) and isinstance(target, Application):
        return Application(flatten_to_match(source.left, target.left), flatten_to_match(source.right, target.right))
    elif isinstance(source, Abstraction) and isinstance(target, Abstraction):
        return Abstraction(source.name, flatten_to_match(source.body, target.body))
    return source


def matches(term, pattern):
    """Whether or not term is pattern up to renaming of bound variables, where '...' in pattern matches anything.
    Unlike alpha_equivalent, open terms match if their free variables have the same names.
    """
    return _matches(flatten_to_match(term, pattern), pattern, (), ())


def _matches(term, pattern, bound, pattern_bound):
    if isinstance(term, MacroRef) and isinstance(pattern, MacroRef):
        return term.name == pattern.name
    elif isinstance(term, MacroRef):
        return _matches(term.body, pattern, bound, pattern_bound)
    elif isinstance(pattern, MacroRef):
        return _matches(term, pattern.body, bound, pattern_bound)

    elif isinstance(term, Variable) and isinstance(pattern, Variable):
        depth = _binder_depth(bound, term.name)
        if depth is None:
            return term.name == pattern.name and _binder_depth(pattern_bound, pattern.name) is None
        return depth == _binder_depth(pattern_bound, pattern.name)

    elif isinstance(term, Application) and isinstance(pattern, Application):
        return (_matches(term.left, pattern.left, bound, pattern_bound)
                and _matches(term.right, pattern.right, bound, pattern_bound))

    elif isinstance(term, Abstraction) and isinstance(pattern, Abstraction):
        return _matches(term.body, pattern.body, bound + (term.name,), pattern_bound + (pattern.name,))

    return False


def _unmarked(kind, text):
    return text


def pretty(term, step=None, mark=None):
    """Pretty-prints term. Abstractions are parenthesized on the left of an application, and applications and
    abstractions are parenthesized on the right.

    If step is a StepInfo, mark(kind, text) is called to decorate the parts of the term involved in the step, where
    kind is one of "abstraction", "variable", "target", "macro", or "substituted".
    """
    if not isinstance(step, StepInfo):
        step = None
    return _pretty(term, step, mark or _unmarked, False, False)


def _pretty(term, step, mark, active, shadowed):
    """active: inside the abstraction of the current redex. shadowed: the redex variable has been rebound since."""
    beta = step is not None and step.beta

    if isinstance(term, Variable):
        text = term.name
        if beta and active and not shadowed and term.name == step.variable:
            text = mark("variable", text)

    elif isinstance(term, Abstraction):
        binder = f"λ{term.name}"
        if beta and term is step.abstraction:
            binder = mark("abstraction", binder)
            active, shadowed = True, False
        elif beta and active and term.name == step.variable:
            shadowed = True
        text = f"{binder}. {_pretty(term.body, step, mark, active, shadowed)}"

    elif isinstance(term, MacroRef):
        text = term.name
        if step is not None and not beta and term is step.macro:
            text = mark("macro", text)

    elif isinstance(term, Application):
        lhs = _pretty(term.left, step, mark, active, shadowed)
        if isinstance(term.left, Abstraction):
            lhs = f"({lhs})"

        rhs = _pretty(term.right, step, mark, active, shadowed)
        if isinstance(term.right, (Application, Abstraction)):
            rhs = f"({rhs})"
        if beta and term.right is step.target:
            rhs = mark("target", rhs)

        text = f"{lhs} {rhs}"

    else:
        raise TypeError(f"unknown λ-term: {term!r}")

    if step is not None and any(term is inserted for inserted in step.substituted):
        text = mark("substituted", text)
    return text
