# -*- coding: utf-8 -*-
"""
Per-statement definitions, uses and flow edges for one block of cell code.

The analysis is a reaching-definitions pass over statements in source
order. Its state maps each name to the indices of the statements whose
definition of that name may reach the current point; a missing name, or
the ENTRY marker in a set, means "whatever the namespace held before this
block ran". Killing definitions (plain assignment, import, def, ...)
replace a name's set, while non-killing ones (mutations through an
attribute / subscript / opaque call, star imports, global declarations)
add to it. Branches are analyzed on copies of the state and unioned
afterwards, so a name is only considered redefined when every path
redefines it.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Set,
)

from cellgather.analysis.mixins import SaveOffAttributesMixin
from cellgather.analysis.scopes import (
    dotted_path,
    iter_expression_bindings,
    iter_free_names,
    param_names,
    root_name,
    target_names,
    target_path,
)
from cellgather.analysis.syntax_tree import (
    COMPOUND_KINDS,
    DEFINITION_KINDS,
    Location,
    Module,
    Name,
    NodeKind,
    SyntaxNode,
)
from cellgather.analysis.walker import clause_blocks, iter_statements, walk
from cellgather.config import DataflowSettings
from cellgather.types import (
    ALL_NAMES,
    ENTRY,
    ENTRY_ONLY,
    LineSpan,
    ReachingState,
    StmtIndex,
)

logger = logging.getLogger(__name__)
logger.setLevel(logging.WARNING)


# marks function parameters when analyzing a function body
_PARAM: StmtIndex = -2
_PARAM_ONLY = frozenset({_PARAM})


class DefinitionKind(Enum):
    ASSIGNMENT = "assignment"
    MUTATION = "mutation"
    IMPORT = "import"
    STAR_IMPORT = "star_import"
    FUNCTION = "function"
    CLASS = "class"
    LOOP_TARGET = "loop_target"
    WITH_TARGET = "with_target"
    EXCEPT_TARGET = "except_target"
    DELETION = "deletion"
    GLOBAL_ALIAS = "global_alias"
    UNKNOWN = "unknown"

    @property
    def kills(self) -> bool:
        return self not in _NON_KILLING_KINDS


_NON_KILLING_KINDS = frozenset(
    {
        DefinitionKind.MUTATION,
        DefinitionKind.STAR_IMPORT,
        DefinitionKind.GLOBAL_ALIAS,
        DefinitionKind.UNKNOWN,
    }
)


class UseKind(Enum):
    DIRECT = "direct"
    UNKNOWN_EFFECT = "unknown_effect"
    OPAQUE = "opaque"


class FlowKind(Enum):
    DATA = "data"
    CONTROL = "control"


class Definition(NamedTuple):
    name: str
    path: str
    kind: DefinitionKind
    location: Location


class Use(NamedTuple):
    name: str
    path: str
    kind: UseKind
    location: Location


class FlowEdge(NamedTuple):
    """``sink`` depends on ``source``; ``name`` is set for data edges."""

    kind: FlowKind
    source: Location
    sink: Location
    name: Optional[str] = None


def statement_spans(node: SyntaxNode) -> List[LineSpan]:
    """
    The source lines a statement contributes to a slice on its own. Compound
    statements contribute only their clause headers; their bodies are
    statements of their own.
    """
    if node.kind in COMPOUND_KINDS:
        return [(header.first_line, header.last_line) for header, _ in clause_blocks(node)]
    return [(node.location.first_line, node.location.last_line)]


@dataclass(eq=False)
class StatementFacts:
    index: StmtIndex
    node: SyntaxNode
    parent: Optional[StmtIndex]
    spans: List[LineSpan]
    definitions: List[Definition] = field(default_factory=list)
    uses: List[Use] = field(default_factory=list)
    inbound: List[FlowEdge] = field(default_factory=list)
    # names whose pre-block value may be read by this statement
    external_uses: Set[str] = field(default_factory=set)
    entry_state: ReachingState = field(default_factory=dict)
    # names a def / class body reads when it eventually runs
    free_names: FrozenSet[str] = frozenset()
    global_writes: FrozenSet[str] = frozenset()
    is_opaque: bool = False

    @property
    def location(self) -> Location:
        return self.node.location

    @property
    def defined_names(self) -> Set[str]:
        return {definition.name for definition in self.definitions}

    def covers_line(self, line: int) -> bool:
        return any(first <= line <= last for first, last in self.spans)

    def reaching(self, name: str) -> FrozenSet[StmtIndex]:
        return self.entry_state.get(name, ENTRY_ONLY)


def merge_states(*states: ReachingState) -> ReachingState:
    names: Set[str] = set()
    for state in states:
        names |= state.keys()
    merged: ReachingState = {}
    for name in names:
        reaching: FrozenSet[StmtIndex] = frozenset()
        for state in states:
            reaching |= state.get(name, ENTRY_ONLY)
        merged[name] = reaching
    return merged


def same_state(a: ReachingState, b: ReachingState) -> bool:
    return all(
        a.get(name, ENTRY_ONLY) == b.get(name, ENTRY_ONLY) for name in a.keys() | b.keys()
    )


class DataflowResult(Mapping[Location, StatementFacts]):
    """Statement facts keyed by statement location, plus the block's exit state."""

    def __init__(
        self, statements: List[StatementFacts], exit_state: ReachingState
    ) -> None:
        self.statements = statements
        self.exit_state = exit_state
        self._by_location = {facts.location: facts for facts in statements}

    def __getitem__(self, location: Location) -> StatementFacts:
        return self._by_location[location]

    def __iter__(self) -> Iterator[Location]:
        return iter(self._by_location)

    def __len__(self) -> int:
        return len(self._by_location)

    def source_of(self, edge: FlowEdge) -> StatementFacts:
        return self._by_location[edge.source]

    def reaching_at_exit(self, name: str) -> FrozenSet[StmtIndex]:
        return self.exit_state.get(name, ENTRY_ONLY)

    @property
    def defined_names(self) -> Set[str]:
        return {
            name for name, reaching in self.exit_state.items() if reaching != ENTRY_ONLY
        }

    def definitely_defines(self, name: str) -> bool:
        return ENTRY not in self.reaching_at_exit(name)

    def statements_on_lines(self, lines: Iterable[int]) -> List[StatementFacts]:
        lines = set(lines)
        return [
            facts
            for facts in self.statements
            if any(facts.covers_line(line) for line in lines)
        ]


def _body_statements(code: Sequence[SyntaxNode]) -> Iterator[SyntaxNode]:
    for stmt in code:
        yield stmt
        yield from iter_statements(stmt)


def _root_name_node(node: SyntaxNode) -> Optional[Name]:
    while node.kind == NodeKind.DOT:
        node = node.value  # type: ignore[attr-defined]
    return node if node.kind == NodeKind.NAME else None  # type: ignore[return-value]


class _StatementAnalysis(SaveOffAttributesMixin):
    _VISITORS = {
        NodeKind.IMPORT: "_visit_import",
        NodeKind.FROM: "_visit_from",
        NodeKind.DECORATE: "_visit_decorate",
        NodeKind.DEF: "_visit_def",
        NodeKind.CLASS: "_visit_class",
        NodeKind.ASSIGN: "_visit_assign",
        NodeKind.ASSERT: "_visit_simple",
        NodeKind.RETURN: "_visit_simple",
        NodeKind.RAISE: "_visit_simple",
        NodeKind.EXPR: "_visit_simple",
        NodeKind.BREAK: "_visit_break",
        NodeKind.CONTINUE: "_visit_continue",
        NodeKind.PASS: "_visit_pass",
        NodeKind.GLOBAL: "_visit_global",
        NodeKind.NONLOCAL: "_visit_global",
        NodeKind.DELETE: "_visit_delete",
        NodeKind.IF: "_visit_if",
        NodeKind.WHILE: "_visit_while",
        NodeKind.FOR: "_visit_for",
        NodeKind.TRY: "_visit_try",
        NodeKind.WITH: "_visit_with",
        NodeKind.OPAQUE: "_visit_opaque",
    }

    def __init__(
        self,
        settings: DataflowSettings,
        effect_table: Mapping[str, bool],
        earlier_global_writes: Mapping[str, FrozenSet[str]],
    ) -> None:
        self.settings = settings
        self.effect_table = effect_table
        # globals that functions defined by earlier executions assign
        self.earlier_global_writes = earlier_global_writes
        self.statements: List[StatementFacts] = []
        self._index_by_node: Dict[SyntaxNode, StmtIndex] = {}
        self._pending: List[Definition] = []
        self._parent: Optional[StmtIndex] = None
        self._break_states: Optional[List[ReachingState]] = None
        self._continue_states: Optional[List[ReachingState]] = None
        self._loop_heads: Dict[SyntaxNode, ReachingState] = {}

    def run(
        self, code: Sequence[SyntaxNode], initial_state: Optional[ReachingState] = None
    ) -> DataflowResult:
        exit_state = self._block(code, dict(initial_state or {}))
        return DataflowResult(self.statements, exit_state)

    # bookkeeping

    def _facts_for(self, node: SyntaxNode, state: ReachingState) -> StatementFacts:
        index = self._index_by_node.get(node)
        if index is not None:
            # another pass over a loop body
            facts = self.statements[index]
            facts.entry_state = merge_states(facts.entry_state, state)
            return facts
        facts = StatementFacts(
            index=len(self.statements),
            node=node,
            parent=self._parent,
            spans=statement_spans(node),
            entry_state=dict(state),
        )
        self.statements.append(facts)
        self._index_by_node[node] = facts.index
        if self._parent is not None:
            self._edge(facts, FlowKind.CONTROL, self.statements[self._parent])
        return facts

    @staticmethod
    def _edge(
        facts: StatementFacts,
        kind: FlowKind,
        source: StatementFacts,
        name: Optional[str] = None,
    ) -> None:
        if source is facts:
            return
        edge = FlowEdge(kind, source.location, facts.location, name)
        if edge not in facts.inbound:
            facts.inbound.append(edge)

    def _use(
        self,
        facts: StatementFacts,
        name: str,
        path: str,
        kind: UseKind,
        location: Location,
        state: ReachingState,
    ) -> None:
        if name == ALL_NAMES:
            self._use_everything(facts, state)
            return
        use = Use(name, path, kind, location)
        if use not in facts.uses:
            facts.uses.append(use)
        reaching = state.get(name, ENTRY_ONLY)
        wildcard = state.get(ALL_NAMES)
        if wildcard is not None:
            # star imports and opaque statements may have bound the name
            reaching = reaching | (wildcard - ENTRY_ONLY)
        for index in reaching:
            if index == ENTRY:
                facts.external_uses.add(name)
            elif index >= 0:
                self._edge(facts, FlowKind.DATA, self.statements[index], name)

    def _use_everything(self, facts: StatementFacts, state: ReachingState) -> None:
        use = Use(ALL_NAMES, ALL_NAMES, UseKind.OPAQUE, facts.location)
        if use not in facts.uses:
            facts.uses.append(use)
        for name, reaching in state.items():
            for index in reaching:
                if index >= 0:
                    self._edge(facts, FlowKind.DATA, self.statements[index], name)
        facts.external_uses.add(ALL_NAMES)

    def _define(
        self,
        facts: StatementFacts,
        name: str,
        path: str,
        kind: DefinitionKind,
        location: Location,
        state: ReachingState,
    ) -> None:
        definition = Definition(name, path, kind, location)
        if definition not in facts.definitions:
            facts.definitions.append(definition)
        if kind.kills:
            state[name] = frozenset({facts.index})
        else:
            state[name] = state.get(name, ENTRY_ONLY) | {facts.index}

    def _flush(self, facts: StatementFacts, state: ReachingState) -> None:
        pending, self._pending = self._pending, []
        for definition in pending:
            self._define(
                facts,
                definition.name,
                definition.path,
                definition.kind,
                definition.location,
                state,
            )

    # expressions

    def _read(
        self, facts: StatementFacts, expr: Optional[SyntaxNode], state: ReachingState
    ) -> None:
        """
        Record the uses of an evaluated expression. Definitions it causes
        (mutations through calls, ``:=`` targets) are queued until the
        statement flushes them, so a statement never depends on itself.
        """
        if expr is None:
            return
        through_calls: Set[SyntaxNode] = set()
        paths: Dict[SyntaxNode, str] = {}
        for node in walk(expr, prune=lambda n: n.kind == NodeKind.LAMBDA):
            kind = node.kind
            if kind == NodeKind.CALL:
                self._call_effects(facts, node, through_calls, state)
            elif kind == NodeKind.DOT:
                root = _root_name_node(node)
                path = dotted_path(node)
                if root is not None and path is not None:
                    paths.setdefault(root, path)
            elif kind == NodeKind.OPAQUE:
                facts.is_opaque = True
        for name in iter_free_names(expr):
            self._use(
                facts,
                name.id,
                paths.get(name, name.id),
                UseKind.UNKNOWN_EFFECT if name in through_calls else UseKind.DIRECT,
                name.location,
                state,
            )
        for name in iter_expression_bindings(expr):
            self._pending.append(
                Definition(name.id, name.id, DefinitionKind.ASSIGNMENT, name.location)
            )

    def _call_effects(
        self,
        facts: StatementFacts,
        call,
        through_calls: Set[SyntaxNode],
        state: ReachingState,
    ) -> None:
        func = call.func
        path = dotted_path(func)
        if func.kind == NodeKind.NAME:
            if func.id in self.settings.dynamic_code_names:
                facts.is_opaque = True
            written: Set[str] = set()
            for index in state.get(func.id, ENTRY_ONLY):
                if index == ENTRY:
                    written |= self.earlier_global_writes.get(func.id, frozenset())
                elif index >= 0:
                    written |= self.statements[index].global_writes
            for name in sorted(written):
                self._pending.append(
                    Definition(name, name, DefinitionKind.MUTATION, call.location)
                )
        attr = func.attr if func.kind == NodeKind.DOT else None
        if DataflowSettings.is_pure(self.effect_table, path, attr):
            return
        affected = list(call.args) + [kw.value for kw in call.keywords]
        if func.kind == NodeKind.DOT:
            affected.insert(0, func.value)
        for expr in affected:
            for node in walk(expr):
                if node.kind == NodeKind.NAME:
                    through_calls.add(node)
            root = root_name(expr)
            if root is not None:
                logger.debug("call at %s may mutate %s", call.location, root)
                self._pending.append(
                    Definition(root, target_path(expr), DefinitionKind.MUTATION, call.location)
                )

    def _bind(
        self,
        facts: StatementFacts,
        target: SyntaxNode,
        kind: DefinitionKind,
        state: ReachingState,
    ) -> None:
        target_kind = target.kind
        if target_kind == NodeKind.NAME:
            self._define(facts, target.id, target.id, kind, target.location, state)  # type: ignore[attr-defined]
        elif target_kind in (NodeKind.TUPLE, NodeKind.LIST):
            for item in target.items:  # type: ignore[attr-defined]
                self._bind(facts, item, kind, state)
        elif target_kind == NodeKind.STARRED:
            self._bind(facts, target.value, kind, state)  # type: ignore[attr-defined]
        elif target_kind in (NodeKind.DOT, NodeKind.INDEX):
            # the base (and index) are evaluated, then the base object changes
            self._read(facts, target.value, state)  # type: ignore[attr-defined]
            if target_kind == NodeKind.INDEX:
                self._read(facts, target.index, state)  # type: ignore[attr-defined]
            self._flush(facts, state)
            root = root_name(target)
            if root is not None:
                self._define(
                    facts,
                    root,
                    target_path(target),
                    DefinitionKind.MUTATION,
                    target.location,
                    state,
                )
        else:
            self._read(facts, target, state)
            self._flush(facts, state)

    # blocks and statements

    def _block(
        self, code: Sequence[SyntaxNode], state: ReachingState
    ) -> ReachingState:
        for stmt in code:
            state = self._stmt(stmt, state)
        return state

    def _stmt(self, node: SyntaxNode, state: ReachingState) -> ReachingState:
        facts = self._facts_for(node, state)
        entry = dict(state)
        visitor = getattr(self, self._VISITORS[node.kind])
        state = visitor(facts, node, state)
        if facts.is_opaque:
            self._use_everything(facts, entry)
            if node.kind not in COMPOUND_KINDS and node.kind not in DEFINITION_KINDS:
                # whatever it binds is unknown: any name may now come from here
                del facts.definitions[:]
                state = entry
                self._define(
                    facts,
                    ALL_NAMES,
                    ALL_NAMES,
                    DefinitionKind.UNKNOWN,
                    node.location,
                    state,
                )
        return state

    def _visit_simple(self, facts, node, state):
        for child in _simple_children(node):
            self._read(facts, child, state)
        self._flush(facts, state)
        return state

    def _visit_pass(self, facts, node, state):
        return state

    def _visit_opaque(self, facts, node, state):
        facts.is_opaque = True
        return state

    def _visit_break(self, facts, node, state):
        if self._break_states is not None:
            self._break_states.append(dict(state))
        return state

    def _visit_continue(self, facts, node, state):
        if self._continue_states is not None:
            self._continue_states.append(dict(state))
        return state

    def _visit_assign(self, facts, node, state):
        self._read(facts, node.value, state)
        self._read(facts, node.annotation, state)
        if node.op is not None:
            # augmented assignment reads its target first
            for target in node.targets:
                self._read(facts, target, state)
        self._flush(facts, state)
        if node.value is None:
            return state
        for target in node.targets:
            self._bind(facts, target, DefinitionKind.ASSIGNMENT, state)
        return state

    def _visit_delete(self, facts, node, state):
        for target in node.targets:
            names = target_names(target)
            if len(names) == 0:
                self._bind(facts, target, DefinitionKind.MUTATION, state)
                continue
            for name in names:
                self._use(facts, name.id, name.id, UseKind.DIRECT, name.location, state)
                self._define(
                    facts, name.id, name.id, DefinitionKind.DELETION, name.location, state
                )
        return state

    def _visit_import(self, facts, node, state):
        for alias in node.names:
            self._define(
                facts,
                alias.bound_name,
                alias.path,
                DefinitionKind.IMPORT,
                node.location,
                state,
            )
        return state

    def _visit_from(self, facts, node, state):
        base = "." * node.level + node.base
        if node.is_star:
            self._define(
                facts, ALL_NAMES, base, DefinitionKind.STAR_IMPORT, node.location, state
            )
            return state
        for alias in node.names:
            self._define(
                facts,
                alias.bound_name,
                f"{base}.{alias.path}",
                DefinitionKind.IMPORT,
                node.location,
                state,
            )
        return state

    def _visit_global(self, facts, node, state):
        for name in node.names:
            self._define(
                facts, name, name, DefinitionKind.GLOBAL_ALIAS, node.location, state
            )
        return state

    def _visit_decorate(self, facts, node, state):
        for decorator in node.decorators:
            self._read(facts, decorator.expression, state)
        definition = node.definition
        if definition.kind == NodeKind.CLASS:
            return self._visit_class(facts, definition, state)
        return self._visit_def(facts, definition, state)

    def _visit_def(self, facts, node, state):
        for param in node.params:
            self._read(facts, param.default, state)
            self._read(facts, param.annotation, state)
        self._read(facts, node.returns, state)
        self._flush(facts, state)
        free_names, global_writes = self._function_scope(node)
        facts.free_names = facts.free_names | free_names
        facts.global_writes = facts.global_writes | global_writes
        self._define(
            facts, node.name, node.name, DefinitionKind.FUNCTION, node.location, state
        )
        return state

    def _visit_class(self, facts, node, state):
        for base in node.bases:
            self._read(facts, base, state)
        for keyword in node.keywords:
            self._read(facts, keyword.value, state)
        self._flush(facts, state)
        body = _StatementAnalysis(
            self.settings, self.effect_table, self.earlier_global_writes
        ).run(node.code)
        # the class body runs now; method bodies run later
        for stmt in body.statements:
            for name in stmt.external_uses:
                self._use(facts, name, name, UseKind.DIRECT, stmt.location, state)
            facts.free_names = facts.free_names | stmt.free_names
        self._define(
            facts, node.name, node.name, DefinitionKind.CLASS, node.location, state
        )
        return state

    def _function_scope(self, node):
        params = param_names(node.params)
        body = _StatementAnalysis(
            self.settings, self.effect_table, self.earlier_global_writes
        ).run(node.code, {param: _PARAM_ONLY for param in params})
        declared_global: Set[str] = set()
        for stmt in _body_statements(node.code):
            if stmt.kind in (NodeKind.GLOBAL, NodeKind.NONLOCAL):
                declared_global |= set(stmt.names)  # type: ignore[attr-defined]
        local_names = set(params)
        global_writes: Set[str] = set()
        for stmt in body.statements:
            for definition in stmt.definitions:
                if not definition.kind.kills:
                    continue
                if definition.name in declared_global:
                    global_writes.add(definition.name)
                else:
                    local_names.add(definition.name)
        free_names: Set[str] = set()
        for stmt in body.statements:
            free_names |= stmt.external_uses
            free_names |= stmt.free_names - local_names
        return frozenset(free_names), frozenset(global_writes)

    def _visit_if(self, facts, node, state):
        self._read(facts, node.test, state)
        self._flush(facts, state)
        exits = []
        with self.push_attributes(_parent=facts.index):
            exits.append(self._block(node.code, dict(state)))
            for clause in node.elifs:
                self._read(facts, clause.test, state)
                self._flush(facts, state)
                exits.append(self._block(clause.body, dict(state)))
            if node.orelse is None:
                exits.append(state)
            else:
                exits.append(self._block(node.orelse.body, dict(state)))
        return merge_states(*exits)

    def _loop(self, facts, node, head, bind_target):
        """
        Analyze a loop body until the state at its head stops growing, so that
        loop-carried definitions reach. The head a loop settled on is kept:
        when an enclosing loop goes round again, a nested loop whose entry
        brings nothing new settles after a single pass.
        """
        if node in self._loop_heads:
            head = merge_states(self._loop_heads[node], head)
        with self.push_attributes(
            _parent=facts.index, _break_states=[], _continue_states=[]
        ):
            while True:
                body_entry = dict(head)
                bind_target(body_entry)
                body_exit = self._block(node.code, body_entry)
                merged = merge_states(head, body_exit, *self._continue_states)
                if same_state(merged, head):
                    break
                head = merged
            breaks = self._break_states
        self._loop_heads[node] = head
        with self.push_attributes(_parent=facts.index):
            if node.orelse is not None:
                head = self._block(node.orelse.body, dict(head))
        return merge_states(head, *breaks)

    def _visit_while(self, facts, node, state):
        def read_test(body_entry):
            self._read(facts, node.test, body_entry)
            self._flush(facts, body_entry)

        self._read(facts, node.test, state)
        self._flush(facts, state)
        return self._loop(facts, node, state, read_test)

    def _visit_for(self, facts, node, state):
        self._read(facts, node.iter, state)
        self._flush(facts, state)
        return self._loop(
            facts,
            node,
            state,
            lambda body_entry: self._bind(
                facts, node.target, DefinitionKind.LOOP_TARGET, body_entry
            ),
        )

    def _visit_try(self, facts, node, state):
        with self.push_attributes(_parent=facts.index):
            intermediates = [dict(state)]
            current = dict(state)
            for stmt in node.code:
                current = self._stmt(stmt, current)
                intermediates.append(dict(current))
            # an exception may leave the body after any of its statements
            handler_entry = merge_states(*intermediates)
            exits = []
            for handler in node.excepts:
                handler_state = dict(handler_entry)
                self._read(facts, handler.type, handler_state)
                self._flush(facts, handler_state)
                if handler.name is not None:
                    self._define(
                        facts,
                        handler.name,
                        handler.name,
                        DefinitionKind.EXCEPT_TARGET,
                        handler.header,
                        handler_state,
                    )
                exits.append(self._block(handler.body, handler_state))
            if node.orelse is not None:
                current = self._block(node.orelse.body, current)
            merged = merge_states(current, *exits)
            if node.finalbody is not None:
                merged = self._block(
                    node.finalbody.body, merge_states(merged, handler_entry)
                )
        return merged

    def _visit_with(self, facts, node, state):
        for item in node.items:
            self._read(facts, item.context, state)
            self._flush(facts, state)
            if item.target is not None:
                self._bind(facts, item.target, DefinitionKind.WITH_TARGET, state)
        with self.push_attributes(_parent=facts.index):
            return self._block(node.code, state)


def _simple_children(node: SyntaxNode) -> List[Optional[SyntaxNode]]:
    kind = node.kind
    if kind == NodeKind.ASSERT:
        return [node.condition, node.message]  # type: ignore[attr-defined]
    elif kind == NodeKind.RAISE:
        return [node.exception, node.cause]  # type: ignore[attr-defined]
    return [node.value]  # type: ignore[attr-defined]


class DataflowAnalyzer:
    """
    Computes :class:`DataflowResult` facts for a parsed tree. The analysis is
    a pure function of the tree, the effect table and ``global_writes``; the
    table defaults to the one in this analyzer's settings.

    ``global_writes`` maps names the tree may call, and that earlier code
    bound to functions, to the globals those functions assign. Calling such
    a name may then (re)define those globals.
    """

    def __init__(self, settings: Optional[DataflowSettings] = None) -> None:
        self.settings = settings or DataflowSettings()

    def analyze(
        self,
        tree: SyntaxNode,
        effect_table: Optional[Mapping[str, bool]] = None,
        global_writes: Optional[Mapping[str, FrozenSet[str]]] = None,
    ) -> DataflowResult:
        if effect_table is None:
            effect_table = self.settings.effect_table
        code = tree.code if isinstance(tree, Module) else [tree]
        return _StatementAnalysis(
            self.settings, effect_table, global_writes or {}
        ).run(code)
