# -*- coding: utf-8 -*-
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from cellgather.analysis.syntax_tree import (
    Location,
    NodeKind,
    Param,
    SyntaxNode,
)


ChildRule = Callable[[SyntaxNode], List[SyntaxNode]]


def _present(*nodes: Optional[SyntaxNode]) -> List[SyntaxNode]:
    return [node for node in nodes if node is not None]


def _param_children(params: Sequence[Param]) -> List[SyntaxNode]:
    children: List[SyntaxNode] = []
    for param in params:
        children.extend(_present(param.annotation, param.default))
    return children


def _no_children(_node: SyntaxNode) -> List[SyntaxNode]:
    return []


def _decorate_children(node) -> List[SyntaxNode]:
    return [*node.decorators, node.definition]


def _def_children(node) -> List[SyntaxNode]:
    return [*_param_children(node.params), *_present(node.returns), *node.code]


def _class_children(node) -> List[SyntaxNode]:
    return [*node.bases, *(kw.value for kw in node.keywords), *node.code]


def _assign_children(node) -> List[SyntaxNode]:
    return [*node.targets, *_present(node.annotation, node.value)]


def _if_children(node) -> List[SyntaxNode]:
    children = [node.test, *node.code]
    for clause in node.elifs:
        children.append(clause.test)
        children.extend(clause.body)
    if node.orelse is not None:
        children.extend(node.orelse.body)
    return children


def _while_children(node) -> List[SyntaxNode]:
    children = [node.test, *node.code]
    if node.orelse is not None:
        children.extend(node.orelse.body)
    return children


def _for_children(node) -> List[SyntaxNode]:
    children = [node.target, node.iter, *node.code]
    if node.orelse is not None:
        children.extend(node.orelse.body)
    return children


def _try_children(node) -> List[SyntaxNode]:
    children = list(node.code)
    for handler in node.excepts:
        children.extend(_present(handler.type))
        children.extend(handler.body)
    for clause in (node.orelse, node.finalbody):
        if clause is not None:
            children.extend(clause.body)
    return children


def _with_children(node) -> List[SyntaxNode]:
    children: List[SyntaxNode] = []
    for item in node.items:
        children.extend(_present(item.context, item.target))
    return children + list(node.code)


def _call_children(node) -> List[SyntaxNode]:
    return [node.func, *node.args, *(kw.value for kw in node.keywords)]


def _dict_children(node) -> List[SyntaxNode]:
    children: List[SyntaxNode] = []
    for entry in node.entries:
        children.extend(_present(entry.key, entry.value))
    return children


def _comprehension_children(node) -> List[SyntaxNode]:
    children = _present(node.element, node.value)
    for gen in node.generators:
        children.extend([gen.target, gen.iter, *gen.conditions])
    return children


_CHILD_RULES: Dict[NodeKind, ChildRule] = {
    NodeKind.MODULE: lambda node: list(node.code),
    NodeKind.IMPORT: _no_children,
    NodeKind.FROM: _no_children,
    NodeKind.DECORATOR: lambda node: [node.expression],
    NodeKind.DECORATE: _decorate_children,
    NodeKind.DEF: _def_children,
    NodeKind.CLASS: _class_children,
    NodeKind.ASSIGN: _assign_children,
    NodeKind.ASSERT: lambda node: _present(node.condition, node.message),
    NodeKind.RETURN: lambda node: _present(node.value),
    NodeKind.YIELD: lambda node: _present(node.value),
    NodeKind.RAISE: lambda node: _present(node.exception, node.cause),
    NodeKind.BREAK: _no_children,
    NodeKind.CONTINUE: _no_children,
    NodeKind.PASS: _no_children,
    NodeKind.GLOBAL: _no_children,
    NodeKind.NONLOCAL: _no_children,
    NodeKind.DELETE: lambda node: list(node.targets),
    NodeKind.EXPR: lambda node: [node.value],
    NodeKind.IF: _if_children,
    NodeKind.WHILE: _while_children,
    NodeKind.FOR: _for_children,
    NodeKind.TRY: _try_children,
    NodeKind.WITH: _with_children,
    NodeKind.CALL: _call_children,
    NodeKind.IFEXPR: lambda node: [node.test, node.then, node.orelse],
    NodeKind.LAMBDA: lambda node: [*_param_children(node.params), node.body],
    NodeKind.UNOP: lambda node: [node.operand],
    NodeKind.BINOP: lambda node: [node.left, node.right],
    NodeKind.STARRED: lambda node: [node.value],
    NodeKind.TUPLE: lambda node: list(node.items),
    NodeKind.LIST: lambda node: list(node.items),
    NodeKind.SET: lambda node: list(node.items),
    NodeKind.DICT: _dict_children,
    NodeKind.NAME: _no_children,
    NodeKind.LITERAL: _no_children,
    NodeKind.DOT: lambda node: [node.value],
    NodeKind.INDEX: lambda node: [node.value, node.index],
    NodeKind.SLICE: lambda node: _present(node.lower, node.upper, node.step),
    NodeKind.COMPREHENSION: _comprehension_children,
    NodeKind.FSTRING: lambda node: list(node.values),
    NodeKind.OPAQUE: _no_children,
}


def children(node: SyntaxNode) -> List[SyntaxNode]:
    """The ordered child nodes of ``node``; absent optional slots are skipped."""
    return _CHILD_RULES[node.kind](node)


def walk(
    node: SyntaxNode, prune: Optional[Callable[[SyntaxNode], bool]] = None
) -> List[SyntaxNode]:
    """
    Pre-order, depth-first flattening of the tree rooted at ``node``.

    Nodes for which ``prune`` returns True are included in the result but
    their descendants are not. Each call traverses from scratch.
    """
    result: List[SyntaxNode] = []
    stack = [node]
    while len(stack) > 0:
        current = stack.pop()
        result.append(current)
        if prune is not None and prune(current):
            continue
        stack.extend(reversed(children(current)))
    return result


def clause_blocks(node: SyntaxNode) -> List[Tuple[Location, List[SyntaxNode]]]:
    """
    The statement blocks of a compound statement, each paired with the
    location of the header that introduces it. Empty for simple statements
    and for function / class definitions, whose bodies run in their own scope.
    """
    kind = node.kind
    if kind not in _COMPOUND_BLOCK_RULES:
        return []
    return _COMPOUND_BLOCK_RULES[kind](node)


def _else_block(clause) -> List[Tuple[Location, List[SyntaxNode]]]:
    if clause is None:
        return []
    return [(clause.header, clause.body)]


_COMPOUND_BLOCK_RULES: Dict[
    NodeKind, Callable[[SyntaxNode], List[Tuple[Location, List[SyntaxNode]]]]
] = {
    NodeKind.MODULE: lambda node: [(node.location, node.code)],
    NodeKind.IF: lambda node: [
        (node.header, node.code),
        *((clause.header, clause.body) for clause in node.elifs),
        *_else_block(node.orelse),
    ],
    NodeKind.WHILE: lambda node: [(node.header, node.code), *_else_block(node.orelse)],
    NodeKind.FOR: lambda node: [(node.header, node.code), *_else_block(node.orelse)],
    NodeKind.TRY: lambda node: [
        (node.header, node.code),
        *((handler.header, handler.body) for handler in node.excepts),
        *_else_block(node.orelse),
        *_else_block(node.finalbody),
    ],
    NodeKind.WITH: lambda node: [(node.header, node.code)],
}


def iter_statements(node: SyntaxNode) -> List[SyntaxNode]:
    """
    Every statement reachable from ``node`` through module and compound
    blocks, in source order. Definition bodies are not entered.
    """
    result: List[SyntaxNode] = []
    stack = [stmt for _, block in reversed(clause_blocks(node)) for stmt in reversed(block)]
    while len(stack) > 0:
        stmt = stack.pop()
        result.append(stmt)
        for _, block in reversed(clause_blocks(stmt)):
            stack.extend(reversed(block))
    return result


_LOOP_KINDS = frozenset({NodeKind.FOR, NodeKind.WHILE})
_JUMP_KINDS = frozenset({NodeKind.BREAK, NodeKind.CONTINUE})


def loop_jumps(loop: SyntaxNode) -> List[SyntaxNode]:
    """
    The ``break`` / ``continue`` statements that leave or restart ``loop``:
    those in its body, but not in the body of a loop nested inside it.
    A jump in a nested loop's ``else`` clause still belongs to ``loop``.
    """
    result: List[SyntaxNode] = []
    stack = list(reversed(loop.code))  # type: ignore[attr-defined]
    while len(stack) > 0:
        stmt = stack.pop()
        if stmt.kind in _JUMP_KINDS:
            result.append(stmt)
        elif stmt.kind in _LOOP_KINDS:
            if stmt.orelse is not None:  # type: ignore[attr-defined]
                stack.extend(reversed(stmt.orelse.body))  # type: ignore[attr-defined]
        else:
            for _, block in reversed(clause_blocks(stmt)):
                stack.extend(reversed(block))
    return result
