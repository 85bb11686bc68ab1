# -*- coding: utf-8 -*-
import pytest

from cellgather.data_model.cell import (
    PERSISTENT_ID_KEY,
    LogCell,
    OutputRecord,
    OutputType,
)
from cellgather.data_model.execution_log import ExecutionLog
from cellgather.types import ALL_NAMES


def _record(log, text, cell_id, **kwargs):
    return log.record_execution(LogCell(text, persistent_id=cell_id, **kwargs))


def test_ordinals_strictly_increase_across_cells():
    log = ExecutionLog()
    first = _record(log, "x = 1", "a")
    second = _record(log, "y = x", "b")
    third = _record(log, "x = 2", "a")
    assert [e.ordinal for e in log] == [1, 2, 3]
    assert [first.ordinal, second.ordinal, third.ordinal] == [1, 2, 3]
    assert third.prev_ordinal == 1
    assert second.prev_ordinal is None
    assert log.last_ordinal == 3


def test_reexecution_keeps_earlier_executions():
    log = ExecutionLog()
    first = _record(log, "x = 1", "a")
    second = _record(log, "x = 2", "a")
    assert log.executions_of("a") == [first, second]
    assert log.latest_execution("a") is second
    assert log.latest_execution("missing") is None
    assert first.text == "x = 1"
    assert first in log and second in log


def test_unparseable_text_is_still_recorded():
    log = ExecutionLog()
    execution = _record(log, "x = (", "a")
    assert len(log) == 1
    assert not execution.parsed
    assert execution.parse_error is not None
    assert execution.statements == []
    _record(log, "y = 1", "b")
    assert log.definers_before("x", 3) == []


def test_definers_before_is_newest_first():
    log = ExecutionLog()
    _record(log, "x = 1", "a")
    _record(log, "y = 2", "b")
    _record(log, "x = 3", "c")
    assert log.definers_before("x", 4) == [3, 1]
    assert log.definers_before("x", 3) == [1]
    assert log.definers_before("y", 2) == []
    assert log.names_defined_before(3) == {"x", "y"}
    assert log.names_defined_before(2) == {"x"}


def test_global_writes_of_earlier_functions():
    log = ExecutionLog()
    _record(log, "def f():\n    global g\n    g = 1", "a")
    call = _record(log, "f()", "b")
    assert log.global_writes_before("f", 3) == {"g"}
    assert call.facts.reaching_at_exit("g") == {-1, 0}
    _record(log, "f = len", "c")
    assert log.global_writes_before("f", 4) == frozenset()
    assert "g" not in _record(log, "f()", "d").facts.exit_state


def test_wildcard_definers_match_every_name():
    log = ExecutionLog()
    _record(log, "x = 1", "a")
    _record(log, "from m import *", "b")
    assert log.definers_before("anything", 3) == [2]
    assert log.definers_before("x", 3) == [2, 1]
    assert log.definers_before(ALL_NAMES, 3) == [2]


def test_magics_are_sanitized_before_analysis():
    log = ExecutionLog()
    execution = _record(log, "%matplotlib inline\nx = 1", "a")
    assert execution.parsed
    assert "get_ipython()" in execution.source
    assert execution.display_lines == ["%matplotlib inline", "x = 1"]
    assert "x" in execution.facts.defined_names


def test_sanitizing_can_be_disabled():
    log = ExecutionLog(sanitize_magics=False)
    execution = _record(log, "%matplotlib inline", "a")
    assert not execution.parsed
    assert execution.source == execution.text


def test_error_outputs_mark_execution():
    log = ExecutionLog()
    outputs = [OutputRecord(OutputType.ERROR, {"ename": "NameError"})]
    execution = _record(log, "y = x", "a", outputs=outputs)
    assert execution.has_error
    assert "y" in execution.facts.defined_names


def test_reset_clears_everything():
    log = ExecutionLog()
    _record(log, "x = 1", "a")
    log.reset()
    assert len(log) == 0
    assert log.last_ordinal == 0
    assert log.definers_before("x", 10) == []
    assert _record(log, "x = 2", "a").ordinal == 1


def test_json_round_trip_keeps_ordinals_and_ids():
    log = ExecutionLog()
    _record(log, "x = 1", "a", execution_count=1)
    _record(log, "y = x", "b", execution_count=2)
    _record(log, "x = 2", "a", execution_count=5)
    records = log.to_json()
    records[1]["outputs"] = [{"output_type": "stream", "text": "hi"}]
    restored = ExecutionLog.from_json(records)
    assert [(e.persistent_id, e.ordinal, e.execution_count) for e in restored] == [
        ("a", 1, 1),
        ("b", 2, 2),
        ("a", 3, 5),
    ]
    assert restored.at_ordinal(2).outputs[0].output_type == OutputType.STREAM
    assert restored.definers_before("x", 4) == [3, 1]
    assert restored.latest_execution("a").prev_ordinal == 1


def test_from_json_rejects_decreasing_ordinals():
    records = [
        {"persistent_id": "a", "ordinal": 2, "text": "x = 1"},
        {"persistent_id": "b", "ordinal": 2, "text": "y = 1"},
    ]
    with pytest.raises(ValueError):
        ExecutionLog.from_json(records)


def test_unknown_output_types_fall_back_to_display_data():
    record = OutputRecord.from_json({"output_type": "something_new", "data": {}})
    assert record.output_type == OutputType.DISPLAY_DATA
    assert record.to_json() == {"output_type": "display_data", "data": {}}


def test_cell_from_nbformat():
    nb_cell = {
        "cell_type": "code",
        "execution_count": 4,
        "metadata": {},
        "outputs": [{"output_type": "error", "ename": "ValueError"}],
        "source": ["x = 1\n", "y = 2"],
    }
    cell = LogCell.from_nbformat(nb_cell)
    assert cell.text == "x = 1\ny = 2"
    assert cell.execution_count == 4
    assert cell.has_error
    assert cell.persistent_id == nb_cell["metadata"][PERSISTENT_ID_KEY]
    assert LogCell.from_nbformat(nb_cell).persistent_id == cell.persistent_id
    copied = cell.copy()
    assert copied is not cell and copied.persistent_id == cell.persistent_id
    with pytest.raises(ValueError):
        LogCell.from_nbformat({"cell_type": "markdown", "source": "# hi"})
