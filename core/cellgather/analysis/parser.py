# -*- coding: utf-8 -*-
import ast
import logging
from typing import List, Optional, Sequence

from pyccolo._fast.misc_ast_utils import subscript_to_slice

from cellgather.analysis.syntax_tree import (
    Assert,
    Assign,
    BinaryOp,
    Break,
    Call,
    ClassDef,
    Clause,
    CompFor,
    Comprehension,
    Continue,
    Decorate,
    Decorator,
    Def,
    Delete,
    DictDisplay,
    DictEntry,
    Dot,
    ElifClause,
    ExceptClause,
    ExprStmt,
    For,
    FromImport,
    FString,
    Global,
    If,
    IfExpr,
    Import,
    ImportAlias,
    Index,
    Keyword,
    Lambda,
    ListDisplay,
    Literal,
    Location,
    Module,
    Name,
    Nonlocal,
    Opaque,
    Param,
    Pass,
    Raise,
    Return,
    SetDisplay,
    SliceExpr,
    Starred,
    SyntaxNode,
    Try,
    TupleDisplay,
    UnaryOp,
    While,
    With,
    WithItem,
    Yield,
)

logger = logging.getLogger(__name__)
logger.setLevel(logging.WARNING)


class ParseError(ValueError):
    def __init__(self, msg: str, line: Optional[int] = None, column: Optional[int] = None) -> None:
        super().__init__(msg)
        self.msg = msg
        self.line = line
        self.column = column

    @classmethod
    def from_syntax_error(cls, err: SyntaxError) -> "ParseError":
        column = None if err.offset is None else max(err.offset - 1, 0)
        return cls(err.msg or str(err), err.lineno, column)

    def __str__(self) -> str:
        if self.line is None:
            return self.msg
        return "%s (line %d)" % (self.msg, self.line)


_OPERATORS = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.MatMult: "@",
    ast.Div: "/",
    ast.Mod: "%",
    ast.Pow: "**",
    ast.LShift: "<<",
    ast.RShift: ">>",
    ast.BitOr: "|",
    ast.BitXor: "^",
    ast.BitAnd: "&",
    ast.FloorDiv: "//",
    ast.And: "and",
    ast.Or: "or",
    ast.Eq: "==",
    ast.NotEq: "!=",
    ast.Lt: "<",
    ast.LtE: "<=",
    ast.Gt: ">",
    ast.GtE: ">=",
    ast.Is: "is",
    ast.IsNot: "is not",
    ast.In: "in",
    ast.NotIn: "not in",
    ast.Invert: "~",
    ast.Not: "not",
    ast.UAdd: "+",
    ast.USub: "-",
}

_COMPREHENSION_FLAVORS = {
    ast.ListComp: "list",
    ast.SetComp: "set",
    ast.GeneratorExp: "generator",
    ast.DictComp: "dict",
}


class SyntaxTreeBuilder(ast.NodeVisitor):
    """
    Converts a CPython ``ast`` module into :mod:`cellgather.analysis.syntax_tree`
    nodes. Anything without a counterpart in the union becomes an ``Opaque``
    node carrying its source text, so no construct is ever dropped.
    """

    def __init__(self, source: str) -> None:
        self._source = source
        self._lines = source.splitlines()

    def __call__(self, module: ast.Module) -> Module:
        last_line = max(len(self._lines), 1)
        last_column = len(self._lines[-1]) if self._lines else 0
        return Module(
            location=Location(1, 0, last_line, last_column),
            code=self._stmts(module.body),
        )

    # helpers

    def _loc(self, node: ast.AST) -> Location:
        lineno = node.lineno  # type: ignore[attr-defined]
        end_lineno = getattr(node, "end_lineno", None) or lineno
        end_col = getattr(node, "end_col_offset", None)
        return Location(
            lineno,
            node.col_offset,  # type: ignore[attr-defined]
            end_lineno,
            self._line_length(end_lineno) if end_col is None else end_col,
        )

    def _line_length(self, line: int) -> int:
        if 1 <= line <= len(self._lines):
            return len(self._lines[line - 1])
        return 0

    def _line_text(self, line: int) -> str:
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return ""

    @staticmethod
    def _first_line(stmt: ast.stmt) -> int:
        lines = [stmt.lineno]
        for decorator in getattr(stmt, "decorator_list", []):
            lines.append(decorator.lineno)
        return min(lines)

    def _span(self, first: int, column: int, last: int) -> Location:
        last = max(first, last)
        return Location(first, column, last, self._line_length(last))

    def _header(self, node: ast.stmt, body: Sequence[ast.stmt]) -> Location:
        return self._span(node.lineno, node.col_offset, self._first_line(body[0]) - 1)

    def _keyword_header(
        self, keyword: str, after_line: int, body: Sequence[ast.stmt]
    ) -> Location:
        """Header span of an ``else:`` / ``finally:`` clause between two blocks."""
        first_body_line = self._first_line(body[0])
        first = after_line + 1
        for line in range(after_line + 1, first_body_line + 1):
            if self._line_text(line).lstrip().startswith(keyword):
                first = line
                break
        column = len(self._line_text(first)) - len(self._line_text(first).lstrip())
        return self._span(first, column, first_body_line - 1)

    @staticmethod
    def _end_line(stmts: Sequence[ast.stmt]) -> int:
        last = stmts[-1]
        return getattr(last, "end_lineno", None) or last.lineno

    def _is_elif(self, node: ast.stmt) -> bool:
        return isinstance(node, ast.If) and self._line_text(node.lineno).lstrip().startswith("elif")

    def _opaque(self, node: ast.AST) -> Opaque:
        logger.debug("no syntax tree counterpart for %s", type(node).__name__)
        return Opaque(
            location=self._loc(node),
            source=ast.get_source_segment(self._source, node) or "",
        )

    def _stmts(self, stmts: Sequence[ast.stmt]) -> List[SyntaxNode]:
        return [self.visit(stmt) for stmt in stmts]

    def _expr(self, node: Optional[ast.expr]) -> Optional[SyntaxNode]:
        if node is None:
            return None
        return self.visit(node)

    def _exprs(self, nodes: Sequence[Optional[ast.expr]]) -> List[SyntaxNode]:
        return [self.visit(node) for node in nodes if node is not None]

    def _params(self, args: ast.arguments) -> List[Param]:
        params: List[Param] = []
        positional = list(getattr(args, "posonlyargs", [])) + list(args.args)
        defaults: List[Optional[ast.expr]] = [None] * (
            len(positional) - len(args.defaults)
        ) + list(args.defaults)
        for arg, default in zip(positional, defaults):
            params.append(
                Param(arg.arg, self._expr(default), self._expr(arg.annotation))
            )
        if args.vararg is not None:
            params.append(
                Param(args.vararg.arg, annotation=self._expr(args.vararg.annotation), star="*")
            )
        for arg, default in zip(args.kwonlyargs, args.kw_defaults):
            params.append(
                Param(arg.arg, self._expr(default), self._expr(arg.annotation))
            )
        if args.kwarg is not None:
            params.append(
                Param(args.kwarg.arg, annotation=self._expr(args.kwarg.annotation), star="**")
            )
        return params

    def _keywords(self, keywords: Sequence[ast.keyword]) -> List[Keyword]:
        return [Keyword(kw.arg, self.visit(kw.value)) for kw in keywords]

    def _else_clause(
        self, keyword: str, after: Sequence[ast.stmt], body: Sequence[ast.stmt]
    ) -> Optional[Clause]:
        if len(body) == 0:
            return None
        return Clause(
            header=self._keyword_header(keyword, self._end_line(after), body),
            body=self._stmts(body),
        )

    def generic_visit(self, node: ast.AST) -> SyntaxNode:
        return self._opaque(node)

    # statements

    def _visit_def(self, node) -> SyntaxNode:
        definition = Def(
            location=self._span(node.lineno, node.col_offset, self._end_line(node.body)),
            name=node.name,
            header=self._header(node, node.body),
            params=self._params(node.args),
            returns=self._expr(node.returns),
            code=self._stmts(node.body),
            is_async=isinstance(node, ast.AsyncFunctionDef),
        )
        return self._decorated(node, definition)

    visit_FunctionDef = visit_AsyncFunctionDef = _visit_def

    def visit_ClassDef(self, node: ast.ClassDef) -> SyntaxNode:
        definition = ClassDef(
            location=self._span(node.lineno, node.col_offset, self._end_line(node.body)),
            name=node.name,
            header=self._header(node, node.body),
            bases=self._exprs(node.bases),
            keywords=self._keywords(node.keywords),
            code=self._stmts(node.body),
        )
        return self._decorated(node, definition)

    def _decorated(self, node, definition: SyntaxNode) -> SyntaxNode:
        if len(node.decorator_list) == 0:
            return definition
        decorators = [
            Decorator(location=self._loc(dec), expression=self.visit(dec))
            for dec in node.decorator_list
        ]
        first = decorators[0].location
        return Decorate(
            location=Location(
                first.first_line,
                node.col_offset,
                definition.location.last_line,
                definition.location.last_column,
            ),
            decorators=decorators,
            definition=definition,
        )

    def visit_Return(self, node: ast.Return) -> SyntaxNode:
        return Return(location=self._loc(node), value=self._expr(node.value))

    def visit_Delete(self, node: ast.Delete) -> SyntaxNode:
        return Delete(location=self._loc(node), targets=self._exprs(node.targets))

    def visit_Assign(self, node: ast.Assign) -> SyntaxNode:
        return Assign(
            location=self._loc(node),
            targets=self._exprs(node.targets),
            value=self.visit(node.value),
        )

    def visit_AugAssign(self, node: ast.AugAssign) -> SyntaxNode:
        return Assign(
            location=self._loc(node),
            targets=[self.visit(node.target)],
            value=self.visit(node.value),
            op=_OPERATORS.get(type(node.op), "?") + "=",
        )

    def visit_AnnAssign(self, node: ast.AnnAssign) -> SyntaxNode:
        return Assign(
            location=self._loc(node),
            targets=[self.visit(node.target)],
            value=self._expr(node.value),
            annotation=self.visit(node.annotation),
        )

    def _visit_for(self, node) -> SyntaxNode:
        return For(
            location=self._loc(node),
            header=self._header(node, node.body),
            target=self.visit(node.target),
            iter=self.visit(node.iter),
            code=self._stmts(node.body),
            orelse=self._else_clause("else", node.body, node.orelse),
            is_async=isinstance(node, ast.AsyncFor),
        )

    visit_For = visit_AsyncFor = _visit_for

    def visit_While(self, node: ast.While) -> SyntaxNode:
        return While(
            location=self._loc(node),
            header=self._header(node, node.body),
            test=self.visit(node.test),
            code=self._stmts(node.body),
            orelse=self._else_clause("else", node.body, node.orelse),
        )

    def visit_If(self, node: ast.If) -> SyntaxNode:
        elifs: List[ElifClause] = []
        orelse = node.orelse
        after = node.body
        while len(orelse) == 1 and self._is_elif(orelse[0]):
            branch = orelse[0]
            elifs.append(
                ElifClause(
                    header=self._header(branch, branch.body),
                    test=self.visit(branch.test),
                    body=self._stmts(branch.body),
                )
            )
            after = branch.body
            orelse = branch.orelse
        return If(
            location=self._loc(node),
            header=self._header(node, node.body),
            test=self.visit(node.test),
            code=self._stmts(node.body),
            elifs=elifs,
            orelse=self._else_clause("else", after, orelse),
        )

    def _visit_with(self, node) -> SyntaxNode:
        return With(
            location=self._loc(node),
            header=self._header(node, node.body),
            items=[
                WithItem(self.visit(item.context_expr), self._expr(item.optional_vars))
                for item in node.items
            ],
            code=self._stmts(node.body),
            is_async=isinstance(node, ast.AsyncWith),
        )

    visit_With = visit_AsyncWith = _visit_with

    def visit_Raise(self, node: ast.Raise) -> SyntaxNode:
        return Raise(
            location=self._loc(node),
            exception=self._expr(node.exc),
            cause=self._expr(node.cause),
        )

    def visit_Try(self, node) -> SyntaxNode:
        excepts = [
            ExceptClause(
                header=self._header(handler, handler.body),
                body=self._stmts(handler.body),
                type=self._expr(handler.type),
                name=handler.name,
            )
            for handler in node.handlers
        ]
        after_body = node.handlers[-1].body if node.handlers else node.body
        after_else = node.orelse if node.orelse else after_body
        return Try(
            location=self._loc(node),
            header=self._header(node, node.body),
            code=self._stmts(node.body),
            excepts=excepts,
            orelse=self._else_clause("else", after_body, node.orelse),
            finalbody=self._else_clause("finally", after_else, node.finalbody),
        )

    visit_TryStar = visit_Try

    def visit_Assert(self, node: ast.Assert) -> SyntaxNode:
        return Assert(
            location=self._loc(node),
            condition=self.visit(node.test),
            message=self._expr(node.msg),
        )

    def visit_Import(self, node: ast.Import) -> SyntaxNode:
        return Import(
            location=self._loc(node),
            names=[ImportAlias(alias.name, alias.asname) for alias in node.names],
        )

    def visit_ImportFrom(self, node: ast.ImportFrom) -> SyntaxNode:
        return FromImport(
            location=self._loc(node),
            base=node.module or "",
            level=node.level or 0,
            names=[ImportAlias(alias.name, alias.asname) for alias in node.names],
        )

    def visit_Global(self, node: ast.Global) -> SyntaxNode:
        return Global(location=self._loc(node), names=list(node.names))

    def visit_Nonlocal(self, node: ast.Nonlocal) -> SyntaxNode:
        return Nonlocal(location=self._loc(node), names=list(node.names))

    def visit_Expr(self, node: ast.Expr) -> SyntaxNode:
        return ExprStmt(location=self._loc(node), value=self.visit(node.value))

    def visit_Pass(self, node: ast.Pass) -> SyntaxNode:
        return Pass(location=self._loc(node))

    def visit_Break(self, node: ast.Break) -> SyntaxNode:
        return Break(location=self._loc(node))

    def visit_Continue(self, node: ast.Continue) -> SyntaxNode:
        return Continue(location=self._loc(node))

    # expressions

    def visit_BoolOp(self, node: ast.BoolOp) -> SyntaxNode:
        op = _OPERATORS[type(node.op)]
        result = self.visit(node.values[0])
        for value in node.values[1:]:
            result = BinaryOp(location=self._loc(node), op=op, left=result, right=self.visit(value))
        return result

    def visit_Compare(self, node: ast.Compare) -> SyntaxNode:
        result = self.visit(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            result = BinaryOp(
                location=self._loc(node),
                op=_OPERATORS[type(op)],
                left=result,
                right=self.visit(comparator),
            )
        return result

    def visit_BinOp(self, node: ast.BinOp) -> SyntaxNode:
        return BinaryOp(
            location=self._loc(node),
            op=_OPERATORS.get(type(node.op), "?"),
            left=self.visit(node.left),
            right=self.visit(node.right),
        )

    def visit_UnaryOp(self, node: ast.UnaryOp) -> SyntaxNode:
        return UnaryOp(
            location=self._loc(node),
            op=_OPERATORS.get(type(node.op), "?"),
            operand=self.visit(node.operand),
        )

    def visit_Await(self, node: ast.Await) -> SyntaxNode:
        return UnaryOp(location=self._loc(node), op="await", operand=self.visit(node.value))

    def visit_NamedExpr(self, node: ast.NamedExpr) -> SyntaxNode:
        return Assign(
            location=self._loc(node),
            targets=[self.visit(node.target)],
            value=self.visit(node.value),
            is_expression=True,
        )

    def visit_Lambda(self, node: ast.Lambda) -> SyntaxNode:
        return Lambda(
            location=self._loc(node),
            params=self._params(node.args),
            body=self.visit(node.body),
        )

    def visit_IfExp(self, node: ast.IfExp) -> SyntaxNode:
        return IfExpr(
            location=self._loc(node),
            test=self.visit(node.test),
            then=self.visit(node.body),
            orelse=self.visit(node.orelse),
        )

    def visit_Dict(self, node: ast.Dict) -> SyntaxNode:
        return DictDisplay(
            location=self._loc(node),
            entries=[
                DictEntry(self._expr(key), self.visit(value))
                for key, value in zip(node.keys, node.values)
            ],
        )

    def visit_Set(self, node: ast.Set) -> SyntaxNode:
        return SetDisplay(location=self._loc(node), items=self._exprs(node.elts))

    def visit_List(self, node: ast.List) -> SyntaxNode:
        return ListDisplay(location=self._loc(node), items=self._exprs(node.elts))

    def visit_Tuple(self, node: ast.Tuple) -> SyntaxNode:
        return TupleDisplay(location=self._loc(node), items=self._exprs(node.elts))

    def _visit_comprehension(self, node) -> SyntaxNode:
        if isinstance(node, ast.DictComp):
            element, value = self.visit(node.key), self.visit(node.value)
        else:
            element, value = self.visit(node.elt), None
        return Comprehension(
            location=self._loc(node),
            flavor=_COMPREHENSION_FLAVORS[type(node)],
            element=element,
            value=value,
            generators=[
                CompFor(
                    target=self.visit(gen.target),
                    iter=self.visit(gen.iter),
                    conditions=self._exprs(gen.ifs),
                    is_async=bool(gen.is_async),
                )
                for gen in node.generators
            ],
        )

    visit_ListComp = visit_SetComp = visit_GeneratorExp = visit_DictComp = _visit_comprehension

    def visit_Yield(self, node: ast.Yield) -> SyntaxNode:
        return Yield(location=self._loc(node), value=self._expr(node.value))

    def visit_YieldFrom(self, node: ast.YieldFrom) -> SyntaxNode:
        return Yield(location=self._loc(node), value=self.visit(node.value), is_from=True)

    def visit_Call(self, node: ast.Call) -> SyntaxNode:
        return Call(
            location=self._loc(node),
            func=self.visit(node.func),
            args=self._exprs(node.args),
            keywords=self._keywords(node.keywords),
        )

    def visit_JoinedStr(self, node: ast.JoinedStr) -> SyntaxNode:
        values: List[SyntaxNode] = []
        for value in node.values:
            if isinstance(value, ast.FormattedValue):
                values.append(self.visit(value.value))
                if value.format_spec is not None:
                    values.append(self.visit(value.format_spec))
            else:
                values.append(self.visit(value))
        return FString(location=self._loc(node), values=values)

    def visit_Constant(self, node: ast.Constant) -> SyntaxNode:
        return Literal(location=self._loc(node), value=node.value)

    def visit_Attribute(self, node: ast.Attribute) -> SyntaxNode:
        return Dot(location=self._loc(node), value=self.visit(node.value), attr=node.attr)

    def visit_Subscript(self, node: ast.Subscript) -> SyntaxNode:
        return Index(
            location=self._loc(node),
            value=self.visit(node.value),
            index=self.visit(subscript_to_slice(node)),
        )

    def visit_Slice(self, node: ast.Slice) -> SyntaxNode:
        # slices only carry a location from 3.9 onwards
        location = self._loc(node) if hasattr(node, "lineno") else Location(0, 0, 0, 0)
        return SliceExpr(
            location=location,
            lower=self._expr(node.lower),
            upper=self._expr(node.upper),
            step=self._expr(node.step),
        )

    def visit_Starred(self, node: ast.Starred) -> SyntaxNode:
        return Starred(location=self._loc(node), value=self.visit(node.value))

    def visit_Name(self, node: ast.Name) -> SyntaxNode:
        return Name(location=self._loc(node), id=node.id)


def parse(text: str) -> Module:
    """Parse cell source into a syntax tree, raising ``ParseError`` if it is invalid."""
    try:
        module = ast.parse(text)
    except SyntaxError as e:
        raise ParseError.from_syntax_error(e) from e
    except ValueError as e:
        # e.g. source containing null bytes
        raise ParseError(str(e)) from e
    return SyntaxTreeBuilder(text)(module)
