# -*- coding: utf-8 -*-
import builtins
import logging
from collections import defaultdict
from typing import (
    Dict,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Set,
    Tuple,
    Union,
)

from traitlets import Bool
from traitlets.config.configurable import Configurable

from cellgather.analysis.dataflow import DataflowAnalyzer, FlowKind
from cellgather.analysis.syntax_tree import NodeKind
from cellgather.analysis.walker import clause_blocks, loop_jumps
from cellgather.data_model.cell import Cell
from cellgather.data_model.cell_execution import CellExecution
from cellgather.data_model.execution_log import ExecutionLog
from cellgather.data_model.timestamp import Timestamp
from cellgather.slicing.slice import CellSlice, LineRange, Slice
from cellgather.types import ALL_NAMES, ENTRY, ENTRY_ONLY, ReachingState

logger = logging.getLogger(__name__)
logger.setLevel(logging.WARNING)


CellOrId = Union[Cell, str]

# names an interactive namespace provides without any cell defining them
_IMPLICIT_NAMES = frozenset({"get_ipython", "display", "In", "Out", "_", "__", "___"})


def _is_implicit(name: str) -> bool:
    return name in _IMPLICIT_NAMES or hasattr(builtins, name)


class _CallSite(NamedTuple):
    """The point at which a function or class reached by a use may run."""

    execution: CellExecution
    state: ReachingState
    key: Timestamp


class _SliceClosure:
    """Backward reachability over (execution ordinal, statement index) pairs."""

    def __init__(self, log: ExecutionLog, resolve_call_time_free_names: bool) -> None:
        self.log = log
        self.resolve_call_time_free_names = resolve_call_time_free_names
        self.visited: Set[Timestamp] = set()
        self.frontier: List[Timestamp] = []
        self.unresolved: Set[str] = set()
        self._seen_calls: Set[Tuple[Timestamp, Timestamp]] = set()

    def add(self, ts: Timestamp, site: Optional[_CallSite] = None) -> None:
        execution = self.log.at_ordinal(ts.cell_num)
        stmt = execution.statement_at(ts)
        if len(stmt.free_names) > 0:
            if site is None or not self.resolve_call_time_free_names:
                # resolve against whatever the defining execution left behind
                site = _CallSite(
                    execution,
                    execution.facts.exit_state,  # type: ignore[union-attr]
                    Timestamp(execution.ordinal, len(execution.statements)),
                )
            if (site.key, ts) not in self._seen_calls:
                self._seen_calls.add((site.key, ts))
                for name in sorted(stmt.free_names):
                    self.resolve(site, name)
        if ts in self.visited:
            return
        self.visited.add(ts)
        self.frontier.append(ts)

    def resolve(self, site: _CallSite, name: str) -> None:
        """Resolve a name as read at ``site``: locally first, then across the log."""
        ordinal = site.execution.ordinal
        if name == ALL_NAMES:
            for reaching in site.state.values():
                for index in reaching:
                    if index >= 0:
                        self.add(Timestamp(ordinal, index), site)
            self.resolve_external(ALL_NAMES, ordinal, site)
            return
        reaching = site.state.get(name, ENTRY_ONLY)
        wildcard = site.state.get(ALL_NAMES)
        if wildcard is not None:
            reaching = reaching | (wildcard - ENTRY_ONLY)
        for index in reaching:
            if index >= 0:
                self.add(Timestamp(ordinal, index), site)
        if ENTRY in reaching:
            self.resolve_external(name, ordinal, site)

    def resolve_external(self, name: str, before: int, site: _CallSite) -> None:
        """
        Walk the log backward from ``before``, collecting every definition of
        ``name`` that may still be live, and stop at the first execution that
        definitely (re)defines it.
        """
        if name == ALL_NAMES:
            for other in sorted(self.log.names_defined_before(before)):
                self.resolve_external(other, before, site)
            for ordinal in self.log.definers_before(ALL_NAMES, before):
                self._add_wildcard_definers(ordinal, site)
            return
        found = False
        for ordinal in self.log.definers_before(name, before):
            execution = self.log.at_ordinal(ordinal)
            exit_state = execution.facts.exit_state  # type: ignore[union-attr]
            if self._add_wildcard_definers(ordinal, site):
                found = True
            reaching = exit_state.get(name)
            if reaching is None:
                continue
            found = True
            for index in reaching:
                if index >= 0:
                    self.add(Timestamp(ordinal, index), site)
            if ENTRY not in reaching:
                break
        if not found and not _is_implicit(name):
            logger.debug("no definition of %s before execution %d", name, before)
            self.unresolved.add(name)

    def _add_wildcard_definers(self, ordinal: int, site: _CallSite) -> bool:
        exit_state = self.log.at_ordinal(ordinal).facts.exit_state  # type: ignore[union-attr]
        definers = exit_state.get(ALL_NAMES, ENTRY_ONLY) - ENTRY_ONLY
        for index in definers:
            self.add(Timestamp(ordinal, index), site)
        return len(definers) > 0

    def run(self) -> None:
        while len(self.frontier) > 0:
            ts = self.frontier.pop()
            execution = self.log.at_ordinal(ts.cell_num)
            stmt = execution.statement_at(ts)
            site = _CallSite(execution, stmt.entry_state, ts)
            for edge in stmt.inbound:
                source = execution.facts.source_of(edge)  # type: ignore[union-attr]
                self.add(
                    execution.timestamp(source),
                    site if edge.kind == FlowKind.DATA else None,
                )
            for name in sorted(stmt.external_uses):
                self.resolve_external(name, execution.ordinal, site)

    def completion(self) -> List[Timestamp]:
        """
        Statements that must join the slice for its text to run: one statement
        from every block of an included compound statement that has none yet,
        every `break` / `continue` of an included loop (they decide which
        definitions leave it), and every statement sharing a source line with
        an included one.
        """
        by_ordinal: Dict[int, Set[int]] = defaultdict(set)
        for ts in self.visited:
            by_ordinal[ts.cell_num].add(ts.stmt_num)
        extra: List[Timestamp] = []
        for ordinal, indices in sorted(by_ordinal.items()):
            execution = self.log.at_ordinal(ordinal)
            facts = execution.facts
            lines: Set[int] = set()
            for index in indices:
                stmt = facts.statements[index]  # type: ignore[union-attr]
                for first, last in stmt.spans:
                    lines.update(range(first, last + 1))
                for _, block in clause_blocks(stmt.node):
                    block_indices = [facts[child.location].index for child in block]  # type: ignore[index]
                    if len(block_indices) > 0 and indices.isdisjoint(block_indices):
                        extra.append(Timestamp(ordinal, block_indices[0]))
                if stmt.node.kind in (NodeKind.FOR, NodeKind.WHILE):
                    for jump in loop_jumps(stmt.node):
                        jump_index = facts[jump.location].index  # type: ignore[index]
                        if jump_index not in indices:
                            extra.append(Timestamp(ordinal, jump_index))
            for stmt in facts.statements:  # type: ignore[union-attr]
                if stmt.index not in indices and any(
                    stmt.covers_line(line) for line in lines
                ):
                    extra.append(Timestamp(ordinal, stmt.index))
        return extra


class ExecutionLogSlicer(Configurable):
    """
    Computes backward slices over one session's execution log: for a logged
    execution, the statements of it and of earlier executions (of any cell)
    needed to reproduce what it did.
    """

    blacken = Bool(
        False, help="Format gathered code with black when rendering slices."
    ).tag(config=True)
    include_cell_headers = Bool(
        True, help="Prefix each cell's code with a '# Cell N' comment."
    ).tag(config=True)
    sanitize_magics = Bool(
        True, help="Rewrite IPython syntax into plain Python before analysis."
    ).tag(config=True)
    resolve_call_time_free_names = Bool(
        True,
        help="Resolve names a function body reads where the function is used, "
        "rather than only where it is defined.",
    ).tag(config=True)

    def __init__(
        self,
        execution_log: Optional[ExecutionLog] = None,
        analyzer: Optional[DataflowAnalyzer] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        if execution_log is None:
            execution_log = ExecutionLog(
                analyzer=analyzer, sanitize_magics=self.sanitize_magics
            )
        self.execution_log = execution_log

    def log_execution(self, cell: Cell) -> CellExecution:
        return self.execution_log.record_execution(cell)

    def reset(self) -> None:
        self.execution_log.reset()

    @staticmethod
    def _persistent_id(cell_or_id: CellOrId) -> str:
        if isinstance(cell_or_id, str):
            return cell_or_id
        return cell_or_id.persistent_id

    def slice_latest_execution(
        self, cell_or_id: CellOrId, seed_lines: Optional[Iterable[int]] = None
    ) -> Optional[Slice]:
        latest = self.execution_log.latest_execution(self._persistent_id(cell_or_id))
        if latest is None:
            return None
        return self.slice_execution(latest, seed_lines=seed_lines)

    def slice_all_executions(self, cell_or_id: CellOrId) -> List[Slice]:
        return [
            self.slice_execution(execution)
            for execution in self.execution_log.executions_of(
                self._persistent_id(cell_or_id)
            )
        ]

    def slice_execution(
        self, execution: CellExecution, seed_lines: Optional[Iterable[int]] = None
    ) -> Slice:
        """
        Backward slice of one logged execution. With ``seed_lines``, only the
        statements of ``execution`` on those lines seed the slice.
        """
        if execution not in self.execution_log:
            raise ValueError("%r does not belong to this slicer's log" % execution)
        facts = execution.facts
        if facts is None:
            # never ran: nothing to analyze, so the text is kept as-is
            last_line = max(len(execution.display_lines), 1)
            return Slice(execution, [CellSlice(execution, [LineRange(1, last_line)])])
        if seed_lines is None:
            seeds = facts.statements
        else:
            seeds = facts.statements_on_lines(seed_lines)
        closure = _SliceClosure(
            self.execution_log, self.resolve_call_time_free_names
        )
        # definitions in the target may be called by later code, so their
        # bodies read whatever the names they use hold once it finishes
        exit_site = _CallSite(
            execution, facts.exit_state, Timestamp(execution.ordinal, len(facts.statements))
        )
        for stmt in seeds:
            closure.add(execution.timestamp(stmt), exit_site)
        while True:
            closure.run()
            extra = [ts for ts in closure.completion() if ts not in closure.visited]
            if len(extra) == 0:
                break
            for ts in extra:
                closure.add(ts)
        ranges: Dict[int, List[LineRange]] = defaultdict(list)
        for ts in closure.visited:
            stmt = self.execution_log.at_ordinal(ts.cell_num).statement_at(ts)
            ranges[ts.cell_num].extend(LineRange(first, last) for first, last in stmt.spans)
        return Slice(
            execution,
            [
                CellSlice(self.execution_log.at_ordinal(ordinal), line_ranges)
                for ordinal, line_ranges in ranges.items()
            ],
            closure.unresolved,
        )

    def get_dependent_executions(self, execution: CellExecution) -> List[CellExecution]:
        """Later executions whose slices include ``execution``."""
        return [
            later
            for later in self.execution_log
            if later.ordinal > execution.ordinal
            and execution.ordinal in self.slice_execution(later).ordinals
        ]

    def format_slice(self, slc: Slice) -> str:
        return slc.to_text(
            blacken=self.blacken, include_cell_headers=self.include_cell_headers
        )
