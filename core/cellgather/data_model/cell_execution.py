# -*- coding: utf-8 -*-
from dataclasses import dataclass
from typing import List, Optional, Tuple

from cellgather.analysis.dataflow import DataflowResult, StatementFacts
from cellgather.analysis.parser import ParseError
from cellgather.analysis.syntax_tree import Module
from cellgather.data_model.cell import OutputRecord
from cellgather.data_model.timestamp import Timestamp


@dataclass(frozen=True, eq=False)
class CellExecution:
    """
    One run of one cell. ``text`` is what the user ran; ``source`` is the
    Python it was analyzed as (identical unless IPython syntax had to be
    rewritten). A run whose source failed to parse has ``parse_error`` set
    and neither tree nor facts.
    """

    persistent_id: str
    ordinal: int
    execution_count: Optional[int]
    text: str
    source: str
    tree: Optional[Module]
    facts: Optional[DataflowResult]
    outputs: Tuple[OutputRecord, ...] = ()
    has_error: bool = False
    parse_error: Optional[ParseError] = None
    prev_ordinal: Optional[int] = None

    @property
    def parsed(self) -> bool:
        return self.facts is not None

    @property
    def statements(self) -> List[StatementFacts]:
        if self.facts is None:
            return []
        return self.facts.statements

    def statement_at(self, ts: Timestamp) -> StatementFacts:
        assert ts.cell_num == self.ordinal
        return self.statements[ts.stmt_num]

    def timestamp(self, stmt: StatementFacts) -> Timestamp:
        return Timestamp(self.ordinal, stmt.index)

    @property
    def display_lines(self) -> List[str]:
        """
        Lines that slice ranges index into: the original text when rewriting
        preserved its line structure (e.g. line magics), else the rewritten
        source, which is what the analyzed line numbers refer to.
        """
        text_lines = self.text.splitlines()
        source_lines = self.source.splitlines()
        if len(text_lines) == len(source_lines):
            return text_lines
        return source_lines

    def __repr__(self) -> str:
        return "<CellExecution %d of %s (count=%s)>" % (
            self.ordinal,
            self.persistent_id,
            self.execution_count,
        )
