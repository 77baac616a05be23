"""Single-step reduction of λ-terms under four evaluation strategies, and the bounded driver that runs them.

A Reducer's step returns (next term, StepInfo), or (None, None) when the term cannot take a step. Running out of
steps is normal: the term is a value (or a normal form) for that strategy. None of the strategies terminate on every
term, so run is the only place where reduction is bounded.

Macro references are unfolded only where a strategy needs to look inside them:
- at the head of an application, before the macro can be applied (all strategies)
- on the right of an application, when the macro's expansion is itself an application, i.e. the macro has no value
  for this strategy and still needs to be reduced (all strategies but call-by-name, which never reduces arguments)
"""

from enum import Enum

from lambdalab.pure.lexical import Abstraction, Application, MacroRef, StepInfo, TIMED_OUT, substitute

ARROW = "→"   # label of a trace entry reached by beta reduction
EQUALS = "="  # label of a trace entry reached by macro expansion

TIMEOUT = 32  # default number of steps before a run gives up

STRATEGY_ALIASES = {"value": "cbv", "name": "cbn", "full": "normal", "appl": "applicative"}


class Strategy(Enum):
    """Evaluation strategies. Values are the names used on the command line and in the shell."""
    CBV = "cbv"
    CBN = "cbn"
    NORMAL = "normal"
    APPLICATIVE = "applicative"

    @classmethod
    def parse(cls, name):
        """Returns the Strategy called name (or one of its aliases). Raises ValueError for unknown names."""
        name = name.strip().lower()
        return cls(STRATEGY_ALIASES.get(name, name))

    def __str__(self):
        return self.value


class Reducer:
    """Superclass for single-step reducers. Subclasses implement step."""
    strategy = None

    def step(self, term):
        """Returns (next term, StepInfo) if term can take a step, (None, None) otherwise."""
        raise NotImplementedError()

    def __call__(self, term):
        return self.step(term)

    @staticmethod
    def beta(redex):
        """Contracts redex, an Application whose left side is an Abstraction."""
        abstraction, target = redex.left, redex.right
        result, substituted = substitute(abstraction.body, target, abstraction.name)
        return result, StepInfo(True, abstraction, target, abstraction.name, None, substituted)

    @staticmethod
    def expand(macro):
        """Unfolds macro into its cached expansion."""
        return macro.body, StepInfo.expansion(macro)

    @staticmethod
    def needs_expansion(term):
        """Whether or not term is a macro on the right of an application that must be unfolded to be reduced."""
        return isinstance(term, MacroRef) and isinstance(term.body, Application)

    def __repr__(self):
        return f"{type(self).__name__}()"


class CallByValueReducer(Reducer):
    """Call-by-value: never reduces under λ. Reduces the function, then the argument, then substitutes."""
    strategy = Strategy.CBV

    def step(self, term):
        if not isinstance(term, Application):
            return None, None

        # Try a step on the left.
        left, info = self.step(term.left)
        if left is not None:
            return Application(left, term.right), info

        if isinstance(term.left, MacroRef):
            body, info = self.expand(term.left)
            return Application(body, term.right), info

        # Try a step on the right.
        if self.needs_expansion(term.right):
            body, info = self.expand(term.right)
            return Application(term.left, body), info

        right, info = self.step(term.right)
        if right is not None:
            return Application(term.left, right), info

        if isinstance(term.left, Abstraction):
            return self.beta(term)

        return None, None


class CallByNameReducer(Reducer):
    """Call-by-name: never reduces under λ, and substitutes arguments unreduced."""
    strategy = Strategy.CBN

    def step(self, term):
        if not isinstance(term, Application):
            return None, None

        left, info = self.step(term.left)
        if left is not None:
            return Application(left, term.right), info

        if isinstance(term.left, MacroRef):
            body, info = self.expand(term.left)
            return Application(body, term.right), info

        if isinstance(term.left, Abstraction):
            return self.beta(term)

        return None, None


class ApplicativeOrderReducer(Reducer):
    """Applicative order: reduces under λ. A function is reduced (including its body) before it is applied, and an
    argument is only reduced once the function cannot do anything with it.
    """
    strategy = Strategy.APPLICATIVE

    def step(self, term):
        if isinstance(term, Abstraction):
            body, info = self.step(term.body)
            if body is not None:
                return Abstraction(term.name, body), info
            return None, None

        if not isinstance(term, Application):
            return None, None

        if isinstance(term.left, MacroRef):
            body, info = self.expand(term.left)
            return Application(body, term.right), info

        left, info = self.step(term.left)
        if left is not None:
            return Application(left, term.right), info

        if isinstance(term.left, Abstraction):
            return self.beta(term)

        return self.step_right(term)

    def step_right(self, term):
        if self.needs_expansion(term.right):
            body, info = self.expand(term.right)
            return Application(term.left, body), info

        right, info = self.step(term.right)
        if right is not None:
            return Application(term.left, right), info
        return None, None


class NormalOrderReducer(ApplicativeOrderReducer):
    """Normal order: contracts the leftmost outermost redex first, including under λ. Finds the normal form of every
    term that has one.
    """
    strategy = Strategy.NORMAL

    def step(self, term):
        if isinstance(term, Abstraction):
            body, info = self.step(term.body)
            if body is not None:
                return Abstraction(term.name, body), info
            return None, None

        if not isinstance(term, Application):
            return None, None

        if isinstance(term.left, MacroRef):
            body, info = self.expand(term.left)
            return Application(body, term.right), info

        if isinstance(term.left, Abstraction):
            return self.beta(term)

        left, info = self.step(term.left)
        if left is not None:
            return Application(left, term.right), info

        return self.step_right(term)


REDUCERS = {
    Strategy.CBV: CallByValueReducer,
    Strategy.CBN: CallByNameReducer,
    Strategy.NORMAL: NormalOrderReducer,
    Strategy.APPLICATIVE: ApplicativeOrderReducer,
}


def reducer_for(strategy):
    """Returns a Reducer for strategy (a Strategy or its name)."""
    if not isinstance(strategy, Strategy):
        strategy = Strategy.parse(strategy)
    return REDUCERS[strategy]()


def run(term, timeout, reducer):
    """Reduces term with reducer until it cannot take a step, or until timeout steps have been taken.

    Returns a trace: a list of (label, term, info) triples. The first entry holds the initial term, and each later
    entry the result of one step, labeled ARROW for a beta reduction or EQUALS for a macro expansion. info is the
    StepInfo of the step taken from that entry's term: None on the last entry if a normal form was reached, TIMED_OUT
    if the budget ran out first. An empty trace is returned if term is None.
    """
    trace = []
    if term is None:
        return trace

    label = ""
    for __ in range(timeout):
        next_term, info = reducer(term)
        if next_term is None:
            trace.append((label, term, None))
            return trace

        trace.append((label, term, info))
        label = ARROW if info.beta else EQUALS
        term = next_term

    next_term, __ = reducer(term)
    trace.append((label, term, None if next_term is None else TIMED_OUT))
    return trace


def timed_out(trace):
    """Whether or not trace ended because its run exhausted its budget."""
    return bool(trace) and trace[-1][2] is TIMED_OUT


def normal_form(trace):
    """The last term of trace if it is a normal form, None if the trace is empty or timed out."""
    if not trace or timed_out(trace):
        return None
    return trace[-1][1]
