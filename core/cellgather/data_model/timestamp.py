# -*- coding: utf-8 -*-
from typing import NamedTuple


class Timestamp(NamedTuple):
    """A statement of one logged execution: (execution ordinal, statement index)."""

    cell_num: int
    stmt_num: int

    def __str__(self) -> str:
        return "%d:%d" % (self.cell_num, self.stmt_num)
