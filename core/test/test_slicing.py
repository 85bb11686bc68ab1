# -*- coding: utf-8 -*-
import contextlib
import io

import pytest
from traitlets.config import Config

from cellgather.data_model.cell import LogCell
from cellgather.slicing.slice import LineRange, Slice, merge_line_ranges
from cellgather.slicing.slicer import ExecutionLogSlicer


def _slice_ordinals(slicer, cell_id, **kwargs):
    return slicer.slice_latest_execution(str(cell_id), **kwargs).ordinals


def _printed(code):
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        exec(code, {})
    return out.getvalue()


def test_simple(slicer, run_cell):
    run_cell("a = 1", 1)
    run_cell("b = a + 1", 2)
    run_cell("c = 5", 3)
    run_cell("d = b * 2", 4)
    deps = _slice_ordinals(slicer, 4)
    assert deps == [1, 2, 4], "got %s" % deps
    text = slicer.format_slice(slicer.slice_latest_execution("4"))
    assert text == "# Cell 1\na = 1\n\n# Cell 2\nb = a + 1\n\n# Cell 4\nd = b * 2", (
        "got %s" % text
    )


def test_reexecution_does_not_rewrite_history(slicer, run_cell):
    run_cell("a = 1", "x")
    run_cell("b = a", "y")
    run_cell("a = 2", "x")
    run_cell("c = b", "z")
    deps = _slice_ordinals(slicer, "z")
    assert deps == [1, 2, 4], "got %s" % deps
    assert _slice_ordinals(slicer, "x") == [3]
    all_slices = slicer.slice_all_executions("x")
    assert [slc.ordinals for slc in all_slices] == [[1], [3]]


def test_repeated_self_dependent_cell(slicer, run_cell):
    run_cell("x = 1", "a")
    run_cell("x = x + 1", "b")
    run_cell("x = x + 1", "b")
    deps = _slice_ordinals(slicer, "b")
    assert deps == [1, 2, 3], "got %s" % deps


def test_adjacent_lines_merge_into_one_range(slicer, run_cell):
    execution = run_cell(
        """
        x = 1
        y = 2
        z = x + y
        """,
        1,
    )
    slc = slicer.slice_execution(execution)
    assert slc.slice_for(execution.ordinal).line_ranges == [LineRange(1, 3)]


def test_seed_lines_restrict_target(slicer, run_cell):
    run_cell("a = 1\nb = 2", 1)
    run_cell("x = a\ny = b", 2)
    slc = slicer.slice_latest_execution("2", seed_lines=[2])
    assert slc.ordinals == [1, 2]
    assert slc.slice_for(1).text_slice == "b = 2"
    assert slc.slice_for(2).text_slice == "y = b"
    assert len(slicer.slice_latest_execution("2", seed_lines=[99])) == 0


def test_unrelated_statements_are_left_out(slicer, run_cell):
    execution = run_cell(
        """
        a = 1
        b = 2
        c = a
        """,
        1,
    )
    slc = slicer.slice_execution(execution, seed_lines=[3])
    cell_slice = slc.slice_for(execution.ordinal)
    assert cell_slice.line_ranges == [LineRange(1, 1), LineRange(3, 3)]
    assert cell_slice.text_slice == "a = 1\nc = a"


def test_branch_union_across_cells(slicer, run_cell):
    run_cell("x = 1", 1)
    run_cell(
        """
        if c:
            x = 2
        """,
        2,
    )
    run_cell("y = x", 3)
    slc = slicer.slice_latest_execution("3")
    assert slc.ordinals == [1, 2, 3], "got %s" % slc.ordinals
    assert slc.slice_for(2).text_slice == "if c:\n    x = 2"
    assert slc.unresolved == {"c"}


def test_unconditional_redefinition_cuts_history(slicer, run_cell):
    run_cell("x = 1", 1)
    run_cell("x = 2", 2)
    run_cell("y = x", 3)
    assert _slice_ordinals(slicer, 3) == [2, 3]


def test_mutating_call_is_kept(slicer, run_cell):
    run_cell("lst = []", 1)
    run_cell("lst.append(1)", 2)
    run_cell("n = len(lst)", 3)
    run_cell("print(lst)", 4)
    deps = _slice_ordinals(slicer, 4)
    assert deps == [1, 2, 4], "got %s" % deps


def test_unknown_function_may_mutate_argument(slicer, run_cell):
    run_cell("import helpers", 1)
    run_cell("df = helpers.load()", 2)
    run_cell("helpers.clean(df)", 3)
    run_cell("df.shape", 4)
    deps = _slice_ordinals(slicer, 4)
    assert deps == [1, 2, 3, 4], "got %s" % deps


def test_loop_accumulation(slicer, run_cell):
    run_cell("total = 0", 1)
    run_cell(
        """
        for i in range(3):
            total += i
        """,
        2,
    )
    run_cell("print(total)", 3)
    slc = slicer.slice_latest_execution("3")
    assert slc.ordinals == [1, 2, 3]
    assert slc.slice_for(2).text_slice == "for i in range(3):\n    total += i"


def test_function_reads_names_defined_after_it(slicer, run_cell):
    run_cell(
        """
        def f():
            return a
        """,
        1,
    )
    run_cell("a = 3", 2)
    run_cell("f()", 3)
    deps = _slice_ordinals(slicer, 3)
    assert deps == [1, 2, 3], "got %s" % deps


def test_free_names_resolved_where_defined_when_disabled():
    slicer = ExecutionLogSlicer(resolve_call_time_free_names=False)
    for idx, code in enumerate(["def f():\n    return a", "a = 3", "f()"]):
        slicer.log_execution(LogCell(code, persistent_id=str(idx + 1)))
    slc = slicer.slice_latest_execution("3")
    assert slc.ordinals == [1, 3], "got %s" % slc.ordinals
    assert slc.unresolved == {"a"}


def test_function_writing_global(slicer, run_cell):
    run_cell(
        """
        counter = 0
        def bump():
            global counter
            counter += 1
        bump()
        """,
        1,
    )
    run_cell("print(counter)", 2)
    slc = slicer.slice_latest_execution("2")
    assert slc.ordinals == [1, 2]
    assert slc.slice_for(1).line_ranges == [LineRange(1, 5)]


def test_function_writing_global_in_an_earlier_cell(slicer, run_cell):
    run_cell(
        """
        def f():
            global g
            g = 1
        """,
        1,
    )
    run_cell("f()", 2)
    run_cell("print(g)", 3)
    deps = _slice_ordinals(slicer, 3)
    assert deps == [1, 2, 3], "got %s" % deps
    assert slicer.slice_latest_execution("3").unresolved == set()


def test_break_is_kept_with_its_loop(slicer, run_cell):
    execution = run_cell(
        """
        x = 0
        for i in range(3):
            if i:
                x = 5
                break
        else:
            x = 9
        print(x)
        """,
        1,
    )
    slc = slicer.slice_execution(execution, seed_lines=[8])
    text = slc.to_text(include_cell_headers=False)
    assert "break" in text, "got %s" % text
    assert _printed(execution.text) == "5\n"
    assert _printed(text) == "5\n", "got %s" % text


def test_continue_is_kept_with_its_loop(slicer, run_cell):
    execution = run_cell(
        """
        total = 0
        unrelated = 1
        for i in range(4):
            if i % 2:
                continue
            total += i
        print(total)
        """,
        1,
    )
    slc = slicer.slice_execution(execution, seed_lines=[7])
    text = slc.to_text(include_cell_headers=False)
    assert "unrelated" not in text, "got %s" % text
    assert _printed(execution.text) == "2\n"
    assert _printed(text) == "2\n", "got %s" % text


def test_completion_keeps_else_block(slicer, run_cell):
    run_cell(
        """
        if c:
            x = 1
        else:
            y = 2
            z = 3
        """,
        1,
    )
    run_cell("print(x)", 2)
    slc = slicer.slice_latest_execution("2")
    text = slc.slice_for(1).text_slice
    assert text == "if c:\n    x = 1\nelse:\n    y = 2", "got %s" % text


def test_statements_sharing_a_line_are_kept_together(slicer, run_cell):
    run_cell("a = 1; b = 2", 1)
    run_cell("c = a", 2)
    slc = slicer.slice_latest_execution("2")
    assert slc.slice_for(1).text_slice == "a = 1; b = 2"


def test_unresolved_names_are_reported(slicer, run_cell):
    run_cell("y = undefined_thing + len([])", 1)
    slc = slicer.slice_latest_execution("1")
    assert slc.unresolved == {"undefined_thing"}, "got %s" % slc.unresolved


def test_opaque_code_may_define_anything(slicer, run_cell):
    run_cell("exec('q = 1')", 1)
    run_cell("r = 2", 2)
    run_cell("print(q)", 3)
    slc = slicer.slice_latest_execution("3")
    assert slc.ordinals == [1, 3], "got %s" % slc.ordinals
    assert len(slc.unresolved) == 0


def test_star_import_may_define_anything(slicer, run_cell):
    run_cell("from os.path import *", 1)
    run_cell("p = join('a', 'b')", 2)
    assert _slice_ordinals(slicer, 2) == [1, 2]


def test_unparseable_target_is_kept_whole(slicer, run_cell):
    run_cell("x = 1", 1)
    run_cell("y = (", 2)
    run_cell("print(x)", 3)
    slc = slicer.slice_latest_execution("2")
    assert slc.ordinals == [2]
    assert slc.slice_for(2).text_slice == "y = ("
    assert _slice_ordinals(slicer, 3) == [1, 3]


def test_magics_are_left_out_of_slices(slicer, run_cell):
    run_cell("%matplotlib inline\na = 1", 1)
    run_cell("b = a", 2)
    slc = slicer.slice_latest_execution("2")
    assert slc.slice_for(1).text_slice == "a = 1"


def test_missing_cell_gives_no_slice(slicer, run_cell):
    run_cell("a = 1", 1)
    assert slicer.slice_latest_execution("nope") is None
    assert slicer.slice_all_executions("nope") == []


def test_foreign_execution_is_rejected(slicer, run_cell):
    execution = run_cell("a = 1", 1)
    with pytest.raises(ValueError):
        ExecutionLogSlicer().slice_execution(execution)


def test_dependent_executions(slicer, run_cell):
    first = run_cell("a = 1", 1)
    run_cell("b = a", 2)
    run_cell("c = 2", 3)
    run_cell("d = b", 4)
    dependents = [e.ordinal for e in slicer.get_dependent_executions(first)]
    assert dependents == [2, 4], "got %s" % dependents


def test_merge_slices(slicer, run_cell):
    run_cell("a = 1", 1)
    run_cell("b = a", 2)
    run_cell("c = 2", 3)
    merged = Slice.merge(
        slicer.slice_latest_execution("2"), slicer.slice_latest_execution("3")
    )
    assert merged.ordinals == [1, 2, 3]
    assert merged.target.ordinal == 3
    with pytest.raises(ValueError):
        Slice.merge()


def test_text_without_headers(slicer, run_cell):
    run_cell("a = 1", 1)
    run_cell("b = a", 2)
    slc = slicer.slice_latest_execution("2")
    assert slc.to_text(include_cell_headers=False) == "a = 1\nb = a"


def test_blacken():
    slicer = ExecutionLogSlicer(blacken=True)
    slicer.log_execution(LogCell("x=[1,2]", execution_count=7, persistent_id="a"))
    text = slicer.format_slice(slicer.slice_latest_execution("a"))
    assert text == "# Cell 7\nx = [1, 2]", "got %s" % text


def test_config_through_traitlets():
    config = Config()
    config.ExecutionLogSlicer.include_cell_headers = False
    config.ExecutionLogSlicer.sanitize_magics = False
    slicer = ExecutionLogSlicer(config=config)
    assert not slicer.include_cell_headers
    assert not slicer.execution_log.sanitize_magics


def test_reset(slicer, run_cell):
    run_cell("a = 1", 1)
    slicer.reset()
    assert len(slicer.execution_log) == 0
    assert slicer.slice_latest_execution("1") is None


def test_merge_line_ranges():
    ranges = [LineRange(4, 6), LineRange(1, 2), LineRange(3, 3), LineRange(9, 9)]
    assert merge_line_ranges(ranges) == [LineRange(1, 6), LineRange(9, 9)]
