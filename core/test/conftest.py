# -*- coding: utf-8 -*-
import textwrap

import pytest

from cellgather.data_model.cell import LogCell
from cellgather.slicing.slicer import ExecutionLogSlicer


@pytest.fixture
def slicer():
    return ExecutionLogSlicer()


@pytest.fixture
def run_cell(slicer):
    def run_cell(code, cell_id=None):
        cell = LogCell(
            textwrap.dedent(code).strip(),
            execution_count=len(slicer.execution_log) + 1,
        )
        if cell_id is not None:
            cell.persistent_id = str(cell_id)
        return slicer.log_execution(cell)

    return run_cell
