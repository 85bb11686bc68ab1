# -*- coding: utf-8 -*-
import textwrap

from cellgather.analysis.dataflow import (
    DataflowAnalyzer,
    DefinitionKind,
    FlowKind,
    UseKind,
)
from cellgather.analysis.parser import parse
from cellgather.config import DataflowSettings
from cellgather.types import ALL_NAMES


def _analyze(code, effect_table=None, settings=None):
    tree = parse(textwrap.dedent(code).strip())
    return DataflowAnalyzer(settings).analyze(tree, effect_table)


def _stmt_at(result, line):
    for stmt in result.statements:
        if stmt.location.first_line == line:
            return stmt
    raise AssertionError("no statement starts on line %d" % line)


def _data_sources(result, line, name=None):
    stmt = _stmt_at(result, line)
    return {
        result.source_of(edge).location.first_line
        for edge in stmt.inbound
        if edge.kind == FlowKind.DATA and (name is None or edge.name == name)
    }


def _definitions(result, line, kind=None):
    return {
        definition.name
        for definition in _stmt_at(result, line).definitions
        if kind is None or definition.kind == kind
    }


def test_use_resolves_to_nearest_preceding_definition():
    result = _analyze(
        """
        x = 1
        y = x
        x = 2
        z = x
        """
    )
    assert _data_sources(result, 2) == {1}
    sources = _data_sources(result, 4)
    assert sources == {3}, "got %s" % sources
    assert len(_stmt_at(result, 4).external_uses) == 0


def test_branch_definitions_are_unioned():
    result = _analyze(
        """
        if c:
            x = 1
        else:
            x = 2
        y = x
        """
    )
    sources = _data_sources(result, 5, "x")
    assert sources == {2, 4}, "got %s" % sources
    assert "x" not in _stmt_at(result, 5).external_uses
    assert _stmt_at(result, 1).external_uses == {"c"}


def test_branch_without_else_keeps_earlier_definition_live():
    result = _analyze(
        """
        x = 0
        if c:
            x = 1
        y = x
        """
    )
    sources = _data_sources(result, 4, "x")
    assert sources == {1, 3}, "got %s" % sources


def test_partially_defined_name_is_also_external():
    result = _analyze(
        """
        if c:
            x = 1
        y = x
        """
    )
    assert _data_sources(result, 3) == {2}
    assert "x" in _stmt_at(result, 3).external_uses
    assert not result.definitely_defines("x")
    assert result.definitely_defines("y")


def test_body_statements_depend_on_their_header():
    result = _analyze(
        """
        for i in items:
            if i:
                y = i
        """
    )
    for line, parent_line in ((2, 1), (3, 2)):
        stmt = _stmt_at(result, line)
        control = [edge for edge in stmt.inbound if edge.kind == FlowKind.CONTROL]
        assert len(control) == 1, "got %s" % control
        assert result.source_of(control[0]).location.first_line == parent_line
    assert _definitions(result, 1, DefinitionKind.LOOP_TARGET) == {"i"}


def test_loop_carried_definitions_reach_earlier_uses():
    result = _analyze(
        """
        for i in items:
            y = x
            x = i
        """
    )
    assert _data_sources(result, 2, "x") == {3}
    assert "x" in _stmt_at(result, 2).external_uses


def test_break_state_reaches_after_loop():
    result = _analyze(
        """
        while c:
            x = 1
            break
            x = 2
        y = x
        """
    )
    sources = _data_sources(result, 5, "x")
    assert sources == {2, 4}, "got %s" % sources


def test_handlers_see_every_intermediate_body_state():
    result = _analyze(
        """
        x = 0
        try:
            x = 1
            x = f()
        except Exception:
            y = x
        """
    )
    sources = _data_sources(result, 6, "x")
    assert sources == {1, 3, 4}, "got %s" % sources


def test_unknown_call_uses_and_mutates_its_arguments():
    result = _analyze(
        """
        x = [1]
        y = f(x)
        z = x
        """
    )
    assert _data_sources(result, 2, "x") == {1}
    uses = {use.name: use.kind for use in _stmt_at(result, 2).uses}
    assert uses["x"] == UseKind.UNKNOWN_EFFECT, "got %s" % uses
    assert uses["f"] == UseKind.DIRECT, "got %s" % uses
    assert _definitions(result, 2, DefinitionKind.MUTATION) == {"x"}
    sources = _data_sources(result, 3, "x")
    assert sources == {1, 2}, "got %s" % sources


def test_pure_builtins_do_not_mutate():
    result = _analyze(
        """
        x = [1]
        n = len(x)
        z = x
        """
    )
    assert _definitions(result, 2) == {"n"}
    assert _data_sources(result, 3, "x") == {1}


def test_injected_effect_table():
    code = """
        x = [1]
        y = f(x)
        z = x
        """
    result = _analyze(code, effect_table={"f": True})
    assert _definitions(result, 2) == {"y"}
    assert _data_sources(result, 3, "x") == {1}
    settings = DataflowSettings().with_effects({"f": True})
    result = _analyze(code, settings=settings)
    assert _definitions(result, 2) == {"y"}


def test_method_call_mutates_receiver():
    result = _analyze(
        """
        lst = []
        lst.append(1)
        print(lst)
        """
    )
    assert _definitions(result, 2, DefinitionKind.MUTATION) == {"lst"}
    assert _data_sources(result, 3, "lst") == {1, 2}


def test_attribute_assignment_mutates_root():
    result = _analyze(
        """
        obj = make()
        obj.attr = 1
        obj.other[0] = 2
        """
    )
    assert _data_sources(result, 2, "obj") == {1}
    definition = _stmt_at(result, 2).definitions[0]
    assert definition.kind == DefinitionKind.MUTATION
    assert definition.path == "obj.attr"
    assert _data_sources(result, 3, "obj") == {1, 2}


def test_augmented_assignment_reads_then_kills():
    result = _analyze(
        """
        x = 1
        x += 2
        y = x
        """
    )
    assert _data_sources(result, 2, "x") == {1}
    assert _data_sources(result, 3, "x") == {2}


def test_function_free_names_are_deferred():
    result = _analyze(
        """
        def f(p, q=d):
            return p + a + b
        """
    )
    stmt = _stmt_at(result, 1)
    assert stmt.free_names == frozenset({"a", "b"}), "got %s" % stmt.free_names
    assert stmt.external_uses == {"d"}
    assert _definitions(result, 1, DefinitionKind.FUNCTION) == {"f"}


def test_class_body_runs_immediately_but_methods_do_not():
    result = _analyze(
        """
        class A(Base):
            x = y
            def m(self):
                return z
        """
    )
    stmt = _stmt_at(result, 1)
    assert stmt.external_uses == {"Base", "y"}, "got %s" % stmt.external_uses
    assert stmt.free_names == frozenset({"z"})


def test_calling_a_function_that_writes_a_global():
    result = _analyze(
        """
        def setx():
            global x
            x = 1
        setx()
        print(x)
        """
    )
    assert _definitions(result, 4, DefinitionKind.MUTATION) == {"x"}
    assert _data_sources(result, 5, "x") == {4}


def test_dynamic_code_is_opaque():
    result = _analyze(
        """
        a = 1
        exec(s)
        print(x)
        """
    )
    stmt = _stmt_at(result, 2)
    assert stmt.is_opaque
    assert _data_sources(result, 2, "a") == {1}
    assert ALL_NAMES in stmt.external_uses
    assert _definitions(result, 2) == {ALL_NAMES}
    assert _data_sources(result, 3, "x") == {2}


def test_star_import_may_define_anything():
    result = _analyze(
        """
        from m import *
        y = z
        w = 1
        v = w
        """
    )
    assert _definitions(result, 1, DefinitionKind.STAR_IMPORT) == {ALL_NAMES}
    assert _data_sources(result, 2, "z") == {1}
    assert "z" in _stmt_at(result, 2).external_uses
    assert _data_sources(result, 4, "w") == {1, 3}
    assert "w" not in _stmt_at(result, 4).external_uses


def test_comprehension_and_lambda_bindings_are_local():
    result = _analyze(
        """
        y = [i * k for i in xs if i]
        f = lambda q: q + j
        """
    )
    assert _stmt_at(result, 1).external_uses == {"xs", "k"}
    assert _stmt_at(result, 2).external_uses == {"j"}


def test_assignment_expression_defines_name():
    result = _analyze(
        """
        if (n := len(a)) > 1:
            print(n)
        """
    )
    assert _definitions(result, 1) == {"n"}
    assert _data_sources(result, 2, "n") == {1}


def test_delete_kills():
    result = _analyze(
        """
        x = 1
        del x
        y = x
        """
    )
    assert _data_sources(result, 2, "x") == {1}
    assert _definitions(result, 2, DefinitionKind.DELETION) == {"x"}
    assert _data_sources(result, 3, "x") == {2}


def test_result_is_keyed_by_location():
    result = _analyze("a = 1\nb = a")
    assert len(result) == 2
    for location in result:
        assert result[location].location == location
    assert result.defined_names == {"a", "b"}


def test_deeply_nested_loops_settle():
    depth = 30
    code = "".join("    " * level + "for i%d in r:\n" % level for level in range(depth))
    code += "    " * depth + "x = 1\n"
    code += "y = x\n"
    result = _analyze(code)
    sources = _data_sources(result, depth + 2, "x")
    assert sources == {depth + 1}, "got %s" % sources
    assert "x" in _stmt_at(result, depth + 2).external_uses


def test_loop_reaches_fixpoint_through_nested_loops():
    result = _analyze(
        """
        for i in r:
            for j in s:
                a = b
            b = c
            c = i
        d = a
        """
    )
    assert _data_sources(result, 3, "b") == {4}
    assert _data_sources(result, 4, "c") == {5}
    assert "b" in _stmt_at(result, 3).external_uses


def test_functions_from_earlier_code_that_write_globals():
    tree = parse("setx()\nprint(x)\nsetx = other\nsetx()")
    result = DataflowAnalyzer().analyze(
        tree, global_writes={"setx": frozenset({"x"})}
    )
    assert _definitions(result, 1, DefinitionKind.MUTATION) == {"x"}
    assert _data_sources(result, 2, "x") == {1}
    assert "x" in _stmt_at(result, 2).external_uses
    # rebound here, so the earlier function is no longer the one called
    assert "x" not in _definitions(result, 4)
