# -*- coding: utf-8 -*-
import logging
from collections import defaultdict
from typing import Dict, FrozenSet, Iterable, List, NamedTuple, Optional, Set

import black

from cellgather.data_model.cell_execution import CellExecution

logger = logging.getLogger(__name__)
logger.setLevel(logging.WARNING)


class LineRange(NamedTuple):
    """Inclusive, 1-based range of source lines."""

    first_line: int
    last_line: int

    def touches(self, other: "LineRange") -> bool:
        return (
            other.first_line <= self.last_line + 1
            and self.first_line <= other.last_line + 1
        )


def merge_line_ranges(ranges: Iterable[LineRange]) -> List[LineRange]:
    """Minimal set of ranges covering the input; overlapping or abutting ranges merge."""
    merged: List[LineRange] = []
    for rng in sorted(ranges):
        if len(merged) > 0 and merged[-1].touches(rng):
            last = merged[-1]
            merged[-1] = LineRange(last.first_line, max(last.last_line, rng.last_line))
        else:
            merged.append(rng)
    return merged


class CellSlice:
    """The part of one logged execution that a slice needs."""

    def __init__(self, execution: CellExecution, line_ranges: Iterable[LineRange]) -> None:
        self.execution = execution
        self.line_ranges = merge_line_ranges(line_ranges)

    @property
    def persistent_id(self) -> str:
        return self.execution.persistent_id

    @property
    def execution_count(self) -> Optional[int]:
        return self.execution.execution_count

    @property
    def ordinal(self) -> int:
        return self.execution.ordinal

    @property
    def text_slice_lines(self) -> List[str]:
        lines = self.execution.display_lines
        return [
            lines[line - 1]
            for rng in self.line_ranges
            for line in range(rng.first_line, rng.last_line + 1)
            if 1 <= line <= len(lines)
        ]

    @property
    def text_slice(self) -> str:
        return "\n".join(self.text_slice_lines)

    def __repr__(self) -> str:
        ranges = ", ".join("%d-%d" % rng for rng in self.line_ranges)
        return "<CellSlice %d of %s [%s]>" % (self.ordinal, self.persistent_id, ranges)


class Slice:
    """
    Statements, grouped per logged execution in ordinal order, that must be
    replayed to reproduce ``target``. Executions are referenced, not copied,
    so the slice is only meaningful while the log that produced it is alive.
    """

    def __init__(
        self,
        target: CellExecution,
        cell_slices: Iterable[CellSlice],
        unresolved: Iterable[str] = (),
    ) -> None:
        self.target = target
        self.cell_slices = sorted(cell_slices, key=lambda cs: cs.ordinal)
        self.unresolved: FrozenSet[str] = frozenset(unresolved)

    def __len__(self) -> int:
        return len(self.cell_slices)

    def __iter__(self):
        return iter(self.cell_slices)

    @property
    def executions(self) -> List[CellExecution]:
        return [cell_slice.execution for cell_slice in self.cell_slices]

    @property
    def ordinals(self) -> List[int]:
        return [cell_slice.ordinal for cell_slice in self.cell_slices]

    def slice_for(self, ordinal: int) -> Optional[CellSlice]:
        for cell_slice in self.cell_slices:
            if cell_slice.ordinal == ordinal:
                return cell_slice
        return None

    @classmethod
    def merge(cls, *slices: "Slice") -> "Slice":
        """Union of several slices; the target is that of the latest one."""
        if len(slices) == 0:
            raise ValueError("need at least one slice to merge")
        executions: Dict[int, CellExecution] = {}
        ranges: Dict[int, List[LineRange]] = defaultdict(list)
        unresolved: Set[str] = set()
        for slc in slices:
            unresolved |= slc.unresolved
            for cell_slice in slc.cell_slices:
                executions[cell_slice.ordinal] = cell_slice.execution
                ranges[cell_slice.ordinal].extend(cell_slice.line_ranges)
        target = max(slices, key=lambda slc: slc.target.ordinal).target
        return cls(
            target,
            [CellSlice(executions[ordinal], ranges[ordinal]) for ordinal in executions],
            unresolved,
        )

    def _header(self, cell_slice: CellSlice) -> str:
        cell_num = cell_slice.execution_count
        if cell_num is None:
            cell_num = cell_slice.ordinal
        return f"# Cell {cell_num}\n"

    def to_text(self, blacken: bool = False, include_cell_headers: bool = True) -> str:
        contents = []
        for cell_slice in self.cell_slices:
            content = cell_slice.text_slice
            if blacken:
                try:
                    content = black.format_str(content, mode=black.FileMode()).strip()
                except Exception as e:
                    logger.info("call to black failed with exception: %s", e)
            if include_cell_headers:
                content = self._header(cell_slice) + content
            contents.append(content)
        sep = "\n\n" if include_cell_headers else "\n"
        return sep.join(contents).strip()

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return "<Slice of %r over %s>" % (self.target, self.ordinals)
