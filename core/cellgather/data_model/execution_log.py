# -*- coding: utf-8 -*-
import logging
from bisect import bisect_left
from collections import defaultdict
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Set

from cellgather.analysis.dataflow import DataflowAnalyzer
from cellgather.analysis.parser import ParseError, parse
from cellgather.analysis.syntax_tree import NodeKind, SyntaxNode
from cellgather.analysis.walker import walk
from cellgather.data_model.cell import Cell, LogCell, OutputRecord
from cellgather.data_model.cell_execution import CellExecution
from cellgather.types import ALL_NAMES, ENTRY
from cellgather.utils.ipython_utils import sanitize_cell_text

logger = logging.getLogger(__name__)
logger.setLevel(logging.WARNING)


class ExecutionLog:
    """
    Append-only history of cell executions for one session. Re-running a
    cell appends a new execution; earlier ones are never touched, and
    ordinals strictly increase in the order executions were recorded.
    """

    def __init__(
        self,
        analyzer: Optional[DataflowAnalyzer] = None,
        sanitize_magics: bool = True,
    ) -> None:
        self.analyzer = analyzer or DataflowAnalyzer()
        self.sanitize_magics = sanitize_magics
        self._executions: List[CellExecution] = []
        self._by_ordinal: Dict[int, CellExecution] = {}
        self._by_persistent_id: Dict[str, List[CellExecution]] = defaultdict(list)
        # name -> ordinals (ascending) of executions that may leave it defined
        self._ordinals_by_name: Dict[str, List[int]] = defaultdict(list)

    def __len__(self) -> int:
        return len(self._executions)

    def __iter__(self) -> Iterator[CellExecution]:
        return iter(self._executions)

    def __contains__(self, execution: object) -> bool:
        return (
            isinstance(execution, CellExecution)
            and self._by_ordinal.get(execution.ordinal) is execution
        )

    @property
    def last_ordinal(self) -> int:
        if len(self._executions) == 0:
            return 0
        return self._executions[-1].ordinal

    def record_execution(self, cell: Cell) -> CellExecution:
        execution = self._make_execution(
            persistent_id=cell.persistent_id,
            text=cell.text,
            execution_count=cell.execution_count,
            outputs=cell.outputs,
            has_error=cell.has_error,
            ordinal=self.last_ordinal + 1,
        )
        self._append(execution)
        return execution

    def _make_execution(
        self,
        persistent_id: str,
        text: str,
        execution_count: Optional[int],
        outputs: Iterable[OutputRecord],
        has_error: bool,
        ordinal: int,
    ) -> CellExecution:
        source = sanitize_cell_text(text) if self.sanitize_magics else text
        tree = None
        facts = None
        parse_error = None
        try:
            tree = parse(source)
        except ParseError as e:
            logger.info(
                "execution %d of cell %s failed to parse: %s", ordinal, persistent_id, e
            )
            parse_error = e
        else:
            facts = self.analyzer.analyze(
                tree, global_writes=self._called_global_writes(tree, ordinal)
            )
        prev = self.latest_execution(persistent_id)
        return CellExecution(
            persistent_id=persistent_id,
            ordinal=ordinal,
            execution_count=execution_count,
            text=text,
            source=source,
            tree=tree,
            facts=facts,
            outputs=tuple(outputs),
            has_error=has_error,
            parse_error=parse_error,
            prev_ordinal=None if prev is None else prev.ordinal,
        )

    def _called_global_writes(
        self, tree: SyntaxNode, ordinal: int
    ) -> Dict[str, FrozenSet[str]]:
        called = {
            node.func.id  # type: ignore[attr-defined]
            for node in walk(tree)
            if node.kind == NodeKind.CALL
            and node.func.kind == NodeKind.NAME  # type: ignore[attr-defined]
        }
        writes = {}
        for name in called:
            written = self.global_writes_before(name, ordinal)
            if len(written) > 0:
                writes[name] = written
        return writes

    def global_writes_before(self, name: str, ordinal: int) -> FrozenSet[str]:
        """
        Globals assigned by any function that ``name`` may be bound to once
        every execution before ``ordinal`` has run.
        """
        written: Set[str] = set()
        for definer in self.definers_before(name, ordinal):
            facts = self.at_ordinal(definer).facts
            reaching = facts.exit_state.get(name)  # type: ignore[union-attr]
            if reaching is None:
                continue
            for index in reaching:
                if index >= 0:
                    written |= facts.statements[index].global_writes  # type: ignore[union-attr]
            if ENTRY not in reaching:
                break
        return frozenset(written)

    def _append(self, execution: CellExecution) -> None:
        if execution.ordinal <= self.last_ordinal:
            raise ValueError(
                "execution ordinals must strictly increase: got %d after %d"
                % (execution.ordinal, self.last_ordinal)
            )
        self._executions.append(execution)
        self._by_ordinal[execution.ordinal] = execution
        self._by_persistent_id[execution.persistent_id].append(execution)
        if execution.facts is None:
            return
        for name in execution.facts.exit_state:
            self._ordinals_by_name[name].append(execution.ordinal)

    def executions_of(self, persistent_id: str) -> List[CellExecution]:
        return list(self._by_persistent_id.get(persistent_id, []))

    def latest_execution(self, persistent_id: str) -> Optional[CellExecution]:
        executions = self._by_persistent_id.get(persistent_id)
        if not executions:
            return None
        return executions[-1]

    def at_ordinal(self, ordinal: int) -> CellExecution:
        return self._by_ordinal[ordinal]

    @staticmethod
    def _before(ordinals: List[int], ordinal: int) -> List[int]:
        return ordinals[: bisect_left(ordinals, ordinal)]

    def definers_before(self, name: str, ordinal: int) -> List[int]:
        """
        Ordinals of executions recorded before ``ordinal`` that may leave
        ``name`` defined, newest first. Executions with a star import or an
        opaque statement may define any name and are always included.
        """
        candidates = set(self._before(self._ordinals_by_name.get(name, []), ordinal))
        if name != ALL_NAMES:
            candidates |= set(
                self._before(self._ordinals_by_name.get(ALL_NAMES, []), ordinal)
            )
        return sorted(candidates, reverse=True)

    def names_defined_before(self, ordinal: int) -> Set[str]:
        return {
            name
            for name, ordinals in self._ordinals_by_name.items()
            if name != ALL_NAMES and len(ordinals) > 0 and ordinals[0] < ordinal
        }

    def reset(self) -> None:
        self._executions.clear()
        self._by_ordinal.clear()
        self._by_persistent_id.clear()
        self._ordinals_by_name.clear()

    def to_json(self) -> List[Dict[str, Any]]:
        return [
            {
                "persistent_id": execution.persistent_id,
                "ordinal": execution.ordinal,
                "execution_count": execution.execution_count,
                "text": execution.text,
                "outputs": [output.to_json() for output in execution.outputs],
            }
            for execution in self._executions
        ]

    @classmethod
    def from_json(
        cls,
        records: Iterable[Dict[str, Any]],
        analyzer: Optional[DataflowAnalyzer] = None,
        sanitize_magics: bool = True,
    ) -> "ExecutionLog":
        """
        Rebuild a log from :meth:`to_json` records. Trees and facts are
        recomputed; ordinals and persistent ids are kept exactly.
        """
        log = cls(analyzer=analyzer, sanitize_magics=sanitize_magics)
        for record in records:
            cell = LogCell(
                text=record["text"],
                execution_count=record.get("execution_count"),
                outputs=[OutputRecord.from_json(output) for output in record.get("outputs", [])],
                persistent_id=record["persistent_id"],
            )
            log._append(
                log._make_execution(
                    persistent_id=cell.persistent_id,
                    text=cell.text,
                    execution_count=cell.execution_count,
                    outputs=cell.outputs,
                    has_error=cell.has_error,
                    ordinal=int(record["ordinal"]),
                )
            )
        return log
