"""Macros: named, closed λ-terms, precomputed under each evaluation strategy.

A definition `NAME ≜ expr` (or `NAME := expr`) is compiled by reducing expr in normal order. If a normal form is
found, it is stored as the macro's full value, which is valid under every strategy. Otherwise the call-by-value and
call-by-name values are looked for separately, and if neither exists only the unreduced definition is kept.

Macros embed the expansions of the macros they reference, so whenever the table changes every macro is recompiled
from its source text in dependency order. A definition that cannot be compiled leaves the table as it was.
"""

from graphlib import CycleError, TopologicalSorter

from lambdalab.lang.error import MacroError
from lambdalab.pure.lexical import Application, Abstraction, MacroRef, alpha_equivalent, is_closed, pretty
from lambdalab.pure.parser import MACRO_NAME, Parser
from lambdalab.pure.reduce import CallByNameReducer, CallByValueReducer, NormalOrderReducer, Strategy, TIMEOUT
from lambdalab.pure.reduce import normal_form, run
from lambdalab.pure.scanner import Scanner

DECLARE = r"≜|:="


class MacroDefinition:
    """A compiled macro. Each of cbv_val, cbn_val and full_val is None if no value was found for it."""

    def __init__(self, name, cbv_val, cbn_val, full_val, unreduced):
        self.name = name
        self.cbv_val = cbv_val
        self.cbn_val = cbn_val
        self.full_val = full_val
        self.unreduced = unreduced

    @property
    def source(self):
        """Source text the macro is recompiled from."""
        return pretty(self.unreduced)

    def value_for(self, strategy):
        """The macro's value under strategy, or None if it has none."""
        if self.full_val is not None:
            return self.full_val
        elif strategy is Strategy.CBV:
            return self.cbv_val
        elif strategy is Strategy.CBN:
            return self.cbn_val
        return None

    def expansion_for(self, strategy):
        """What a reference to this macro expands to under strategy: its value, or else its unreduced definition."""
        value = self.value_for(strategy)
        return value if value is not None else self.unreduced

    def depends_on(self):
        """Names of the macros referenced by the unreduced definition, in order of first appearance."""
        names = []

        def collect(term):
            if isinstance(term, MacroRef):
                if term.name not in names:
                    names.append(term.name)
            else:
                for child in term.children:
                    collect(child)

        collect(self.unreduced)
        return names

    def copy(self):
        return MacroDefinition(self.name, self.cbv_val, self.cbn_val, self.full_val, self.unreduced)

    def __repr__(self):
        values = ", ".join(f"{kind}='{pretty(value)}'" for kind, value in
                           (("cbv", self.cbv_val), ("cbn", self.cbn_val), ("full", self.full_val)) if value)
        return f"MacroDefinition({self.name} ≜ '{self.source}'" + (f", {values})" if values else ")")


class MacroTable:
    """Mapping of macro names to MacroDefinitions, owned by a session."""

    def __init__(self, timeout=TIMEOUT):
        self.timeout = timeout
        self.definitions = {}

    @staticmethod
    def parse_header(scanner):
        """Scans 'NAME ≜' and returns NAME. Raises ParseError if the header is malformed."""
        scanner.skip_whitespace()
        name = scanner.scan(MACRO_NAME)
        if not name:
            raise scanner.error("improperly formatted macro definition")
        scanner.skip_whitespace()

        if not scanner.scan(DECLARE):
            raise scanner.error("improperly formatted macro definition")
        return name

    def define(self, source):
        """Parses and compiles a macro definition, then recompiles every macro that may depend on it. Returns the
        macro's name and the trace of the reduction that produced its value. On failure the table is restored to its
        state before the call and the error is re-raised.
        """
        snapshot = self.copy()
        try:
            scanner = Scanner(source)
            name = MacroTable.parse_header(scanner)
            trace = self.compile(name, source, scanner.offset)
            self.recompile()
        except BaseException:
            self.restore(snapshot)  # recompile empties the table before rebuilding it
            raise
        return name, trace

    def compile(self, name, source, start=0):
        """Compiles source[start:] as the definition of name and stores it, replacing any previous definition.
        Returns the trace of the reduction that found its value (or of the normal order attempt, if none did).
        """
        scanner = Scanner(source)

        def parse_under(strategy):
            scanner.reset(source)
            scanner.offset = start
            return Parser(scanner, self, strategy).parse()

        full_expr = parse_under(Strategy.NORMAL)
        if not is_closed(full_expr):
            scanner.offset = start
            raise scanner.error("macros must be closed terms")

        # normal order finds the normal form if there is one
        full_trace = run(full_expr, self.timeout, NormalOrderReducer())
        full_val = normal_form(full_trace)
        if full_val is not None:
            self.definitions[name] = MacroDefinition(name, None, None, full_val, full_expr)
            return full_trace

        cbn_trace = run(parse_under(Strategy.CBN), self.timeout, CallByNameReducer())
        cbv_trace = run(parse_under(Strategy.CBV), self.timeout, CallByValueReducer())
        cbn_val, cbv_val = normal_form(cbn_trace), normal_form(cbv_trace)
        self.definitions[name] = MacroDefinition(name, cbv_val, cbn_val, None, full_expr)

        # call-by-name finds a value whenever call-by-value does
        if cbn_val is not None:
            return cbn_trace
        elif cbv_val is not None:
            return cbv_trace
        return full_trace

    def dependency_order(self):
        """Every definition, each one after the macros it depends on. Raises MacroError on circular dependencies."""
        graph = {name: [dep for dep in definition.depends_on() if dep in self.definitions]
                 for name, definition in self.definitions.items()}
        try:
            order = list(TopologicalSorter(graph).static_order())
        except CycleError as exc:
            cycle = exc.args[1]
            raise MacroError("cannot define circularly dependent macro: {}", " -> ".join(cycle), diagnosis=False)
        return [self.definitions[name] for name in order]

    def recompile(self):
        """Recompiles every macro from its source, dependencies first, so that each embeds current expansions."""
        ordered = self.dependency_order()
        self.definitions = {}
        for definition in ordered:
            self.compile(definition.name, definition.source)

    def copy(self):
        """Snapshot of the table, for restore."""
        snapshot = MacroTable(self.timeout)
        snapshot.definitions = {name: definition.copy() for name, definition in self.definitions.items()}
        return snapshot

    def restore(self, snapshot):
        self.definitions = snapshot.definitions

    def get(self, name, default=None):
        return self.definitions.get(name, default)

    def __getitem__(self, name):
        return self.definitions[name]

    def __contains__(self, name):
        return name in self.definitions

    def __iter__(self):
        return iter(self.definitions)

    def __len__(self):
        return len(self.definitions)

    def __repr__(self):
        return f"MacroTable({', '.join(self.definitions)})"


def resugar(term, macros, strategy=Strategy.NORMAL):
    """Replaces subterms of term by references to macros whose value they are alpha-equivalent to. Subterms are
    searched outside-in, so the outermost match wins and its inside is left alone. Returns (term, whether or not
    anything was replaced).
    """
    candidates = [(definition, definition.value_for(strategy)) for definition in macros.dependency_order()]
    candidates = [(definition, value) for definition, value in candidates if value is not None]

    def _resugar(node):
        if not isinstance(node, MacroRef) and is_closed(node):
            for definition, value in candidates:
                if alpha_equivalent(node, value):
                    return MacroRef(definition.name, definition.expansion_for(strategy)), True

        if isinstance(node, Application):
            left, left_changed = _resugar(node.left)
            right, right_changed = _resugar(node.right)
            if left_changed or right_changed:
                return Application(left, right), True
        elif isinstance(node, Abstraction):
            body, changed = _resugar(node.body)
            if changed:
                return Abstraction(node.name, body), True
        return node, False

    return _resugar(term)
