# -*- coding: utf-8 -*-
from cellgather.analysis.dataflow import DataflowAnalyzer, DataflowResult
from cellgather.analysis.parser import ParseError, parse
from cellgather.config import DataflowSettings
from cellgather.data_model.cell import Cell, LogCell, OutputRecord, OutputType
from cellgather.data_model.cell_execution import CellExecution
from cellgather.data_model.execution_log import ExecutionLog
from cellgather.slicing.slice import CellSlice, LineRange, Slice
from cellgather.slicing.slicer import ExecutionLogSlicer
from cellgather.version import __version__

__all__ = [
    "Cell",
    "CellExecution",
    "CellSlice",
    "DataflowAnalyzer",
    "DataflowResult",
    "DataflowSettings",
    "ExecutionLog",
    "ExecutionLogSlicer",
    "LineRange",
    "LogCell",
    "OutputRecord",
    "OutputType",
    "ParseError",
    "Slice",
    "parse",
    "__version__",
]
