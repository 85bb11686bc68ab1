# -*- coding: utf-8 -*-
"""
Purely syntactic name-binding helpers shared by the dataflow passes:
which names a target binds, which root name an attribute / subscript chain
hangs off, and which names an expression reads from its enclosing scope
once lambdas, comprehensions and assignment expressions are accounted for.
"""
from typing import Iterator, List, Optional, Set

from cellgather.analysis.syntax_tree import (
    Comprehension,
    Lambda,
    Name,
    NodeKind,
    Param,
    SyntaxNode,
)
from cellgather.analysis.walker import walk

_SCOPE_KINDS = frozenset({NodeKind.LAMBDA, NodeKind.COMPREHENSION})
_UNPACK_KINDS = frozenset({NodeKind.TUPLE, NodeKind.LIST})


def opens_scope(node: SyntaxNode) -> bool:
    return node.kind in _SCOPE_KINDS


def _opens_scope_or_binds(node: SyntaxNode) -> bool:
    return node.kind in _SCOPE_KINDS or (
        node.kind == NodeKind.ASSIGN and node.is_expression  # type: ignore[attr-defined]
    )


def root_name(node: Optional[SyntaxNode]) -> Optional[str]:
    """``a`` for ``a``, ``a.b``, ``a[0].c`` and ``*a``; None for e.g. ``f().x``."""
    while node is not None:
        if node.kind == NodeKind.NAME:
            return node.id  # type: ignore[attr-defined]
        elif node.kind in (NodeKind.DOT, NodeKind.INDEX, NodeKind.STARRED):
            node = node.value  # type: ignore[attr-defined]
        else:
            return None
    return None


def dotted_path(node: SyntaxNode) -> Optional[str]:
    if node.kind == NodeKind.NAME:
        return node.id  # type: ignore[attr-defined]
    elif node.kind == NodeKind.DOT:
        base = dotted_path(node.value)  # type: ignore[attr-defined]
        if base is None:
            return None
        return f"{base}.{node.attr}"  # type: ignore[attr-defined]
    return None


def target_path(node: SyntaxNode) -> str:
    """A readable path for a definition target, e.g. ``df.columns`` or ``d[]``."""
    if node.kind == NodeKind.NAME:
        return node.id  # type: ignore[attr-defined]
    elif node.kind == NodeKind.DOT:
        return f"{target_path(node.value)}.{node.attr}"  # type: ignore[attr-defined]
    elif node.kind == NodeKind.INDEX:
        return f"{target_path(node.value)}[]"  # type: ignore[attr-defined]
    elif node.kind == NodeKind.STARRED:
        return target_path(node.value)  # type: ignore[attr-defined]
    return "<expr>"


def target_names(target: SyntaxNode) -> List[Name]:
    """Name nodes bound directly by an assignment target (through unpacking)."""
    if target.kind == NodeKind.NAME:
        return [target]  # type: ignore[list-item]
    elif target.kind in _UNPACK_KINDS:
        return [
            name
            for item in target.items  # type: ignore[attr-defined]
            for name in target_names(item)
        ]
    elif target.kind == NodeKind.STARRED:
        return target_names(target.value)  # type: ignore[attr-defined]
    return []


def param_names(params: List[Param]) -> Set[str]:
    return {param.name for param in params}


def _lambda_free_names(node: Lambda) -> Iterator[Name]:
    for param in node.params:
        for slot in (param.default, param.annotation):
            if slot is not None:
                yield from iter_free_names(slot)
    bound = param_names(node.params)
    for name in iter_free_names(node.body):
        if name.id not in bound:
            yield name


def _comprehension_free_names(node: Comprehension) -> Iterator[Name]:
    generators = node.generators
    # the outermost iterable is evaluated in the enclosing scope
    yield from iter_free_names(generators[0].iter)
    bound: Set[str] = set()
    inner: List[SyntaxNode] = []
    for idx, gen in enumerate(generators):
        bound |= {name.id for name in target_names(gen.target)}
        if idx > 0:
            inner.append(gen.iter)
        inner.extend(gen.conditions)
    inner.append(node.element)
    if node.value is not None:
        inner.append(node.value)
    for expr in inner:
        for name in iter_free_names(expr):
            if name.id not in bound:
                yield name


def iter_free_names(expr: SyntaxNode) -> Iterator[Name]:
    """
    Yield the Name nodes in ``expr`` that read from the enclosing scope.
    Names bound by lambdas / comprehensions are excluded, as are the targets
    of assignment expressions.
    """
    for node in walk(expr, prune=_opens_scope_or_binds):
        kind = node.kind
        if kind == NodeKind.NAME:
            yield node  # type: ignore[misc]
        elif kind == NodeKind.LAMBDA:
            yield from _lambda_free_names(node)  # type: ignore[arg-type]
        elif kind == NodeKind.COMPREHENSION:
            yield from _comprehension_free_names(node)  # type: ignore[arg-type]
        elif kind == NodeKind.ASSIGN:
            for target in node.targets:  # type: ignore[attr-defined]
                if target.kind != NodeKind.NAME:
                    yield from iter_free_names(target)
            yield from iter_free_names(node.value)  # type: ignore[attr-defined]


def iter_expression_bindings(expr: SyntaxNode) -> Iterator[Name]:
    """Targets of assignment expressions (``:=``) evaluated as part of ``expr``."""
    for node in walk(expr, prune=lambda n: n.kind == NodeKind.LAMBDA):
        if node.kind == NodeKind.ASSIGN and node.is_expression:  # type: ignore[attr-defined]
            yield from target_names(node.targets[0])  # type: ignore[attr-defined]
