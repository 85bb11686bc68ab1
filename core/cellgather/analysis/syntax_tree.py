# -*- coding: utf-8 -*-
"""
A closed, tagged-union representation of parsed cell source.

Every variant is a frozen dataclass carrying its :class:`NodeKind` tag and a
source :class:`Location`. Nodes compare by identity, so they can be used as
keys for per-node facts. Records that are not themselves expressions or
statements (parameters, keywords, import aliases, clauses) are plain
dataclasses hanging off their owning node; the walker enumerates the syntax
nodes inside them.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, FrozenSet, List, NamedTuple, Optional


class Location(NamedTuple):
    first_line: int
    first_column: int
    last_line: int
    last_column: int

    @property
    def lines(self) -> range:
        return range(self.first_line, self.last_line + 1)

    def contains_line(self, line: int) -> bool:
        return self.first_line <= line <= self.last_line


class NodeKind(Enum):
    MODULE = "module"
    IMPORT = "import"
    FROM = "from"
    DECORATOR = "decorator"
    DECORATE = "decorate"
    DEF = "def"
    CLASS = "class"
    ASSIGN = "assign"
    ASSERT = "assert"
    RETURN = "return"
    YIELD = "yield"
    RAISE = "raise"
    BREAK = "break"
    CONTINUE = "continue"
    PASS = "pass"
    GLOBAL = "global"
    NONLOCAL = "nonlocal"
    DELETE = "del"
    EXPR = "expr"
    IF = "if"
    WHILE = "while"
    FOR = "for"
    TRY = "try"
    WITH = "with"
    CALL = "call"
    IFEXPR = "ifexpr"
    LAMBDA = "lambda"
    UNOP = "unop"
    BINOP = "binop"
    STARRED = "starred"
    TUPLE = "tuple"
    LIST = "list"
    SET = "set"
    DICT = "dict"
    NAME = "name"
    LITERAL = "literal"
    DOT = "dot"
    INDEX = "index"
    SLICE = "slice"
    COMPREHENSION = "comprehension"
    FSTRING = "fstring"
    OPAQUE = "opaque"


@dataclass(frozen=True, eq=False)
class SyntaxNode:
    kind: ClassVar[NodeKind]
    location: Location


# records owned by syntax nodes


@dataclass(frozen=True, eq=False)
class ImportAlias:
    path: str
    alias: Optional[str] = None

    @property
    def bound_name(self) -> str:
        if self.alias is not None:
            return self.alias
        return self.path.split(".")[0]


@dataclass(frozen=True, eq=False)
class Param:
    name: str
    default: Optional[SyntaxNode] = None
    annotation: Optional[SyntaxNode] = None
    star: str = ""


@dataclass(frozen=True, eq=False)
class Keyword:
    name: Optional[str]  # None for **kwargs
    value: SyntaxNode


@dataclass(frozen=True, eq=False)
class WithItem:
    context: SyntaxNode
    target: Optional[SyntaxNode] = None


@dataclass(frozen=True, eq=False)
class DictEntry:
    key: Optional[SyntaxNode]  # None for **mapping
    value: SyntaxNode


@dataclass(frozen=True, eq=False)
class CompFor:
    target: SyntaxNode
    iter: SyntaxNode
    conditions: List[SyntaxNode] = field(default_factory=list)
    is_async: bool = False


@dataclass(frozen=True, eq=False)
class Clause:
    """An ``else`` or ``finally`` block; ``header`` spans the keyword line."""

    header: Location
    body: List[SyntaxNode]


@dataclass(frozen=True, eq=False)
class ElifClause:
    header: Location
    test: SyntaxNode
    body: List[SyntaxNode]


@dataclass(frozen=True, eq=False)
class ExceptClause:
    header: Location
    body: List[SyntaxNode]
    type: Optional[SyntaxNode] = None
    name: Optional[str] = None


# statements


@dataclass(frozen=True, eq=False)
class Module(SyntaxNode):
    kind = NodeKind.MODULE
    code: List[SyntaxNode] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class Import(SyntaxNode):
    kind = NodeKind.IMPORT
    names: List[ImportAlias] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class FromImport(SyntaxNode):
    kind = NodeKind.FROM
    base: str = ""
    level: int = 0
    names: List[ImportAlias] = field(default_factory=list)

    @property
    def is_star(self) -> bool:
        return len(self.names) == 1 and self.names[0].path == "*"


@dataclass(frozen=True, eq=False)
class Decorator(SyntaxNode):
    kind = NodeKind.DECORATOR
    expression: SyntaxNode = None  # type: ignore


@dataclass(frozen=True, eq=False)
class Def(SyntaxNode):
    kind = NodeKind.DEF
    name: str = ""
    header: Location = None  # type: ignore
    params: List[Param] = field(default_factory=list)
    returns: Optional[SyntaxNode] = None
    code: List[SyntaxNode] = field(default_factory=list)
    is_async: bool = False


@dataclass(frozen=True, eq=False)
class ClassDef(SyntaxNode):
    kind = NodeKind.CLASS
    name: str = ""
    header: Location = None  # type: ignore
    bases: List[SyntaxNode] = field(default_factory=list)
    keywords: List[Keyword] = field(default_factory=list)
    code: List[SyntaxNode] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class Decorate(SyntaxNode):
    kind = NodeKind.DECORATE
    decorators: List[Decorator] = field(default_factory=list)
    definition: SyntaxNode = None  # type: ignore


@dataclass(frozen=True, eq=False)
class Assign(SyntaxNode):
    """
    Plain (``a = b = 1``), augmented (``op`` is set), and annotated
    assignment. ``is_expression`` marks an assignment expression (``:=``).
    """

    kind = NodeKind.ASSIGN
    targets: List[SyntaxNode] = field(default_factory=list)
    value: Optional[SyntaxNode] = None
    op: Optional[str] = None
    annotation: Optional[SyntaxNode] = None
    is_expression: bool = False


@dataclass(frozen=True, eq=False)
class Assert(SyntaxNode):
    kind = NodeKind.ASSERT
    condition: SyntaxNode = None  # type: ignore
    message: Optional[SyntaxNode] = None


@dataclass(frozen=True, eq=False)
class Return(SyntaxNode):
    kind = NodeKind.RETURN
    value: Optional[SyntaxNode] = None


@dataclass(frozen=True, eq=False)
class Yield(SyntaxNode):
    kind = NodeKind.YIELD
    value: Optional[SyntaxNode] = None
    is_from: bool = False


@dataclass(frozen=True, eq=False)
class Raise(SyntaxNode):
    kind = NodeKind.RAISE
    exception: Optional[SyntaxNode] = None
    cause: Optional[SyntaxNode] = None


@dataclass(frozen=True, eq=False)
class Break(SyntaxNode):
    kind = NodeKind.BREAK


@dataclass(frozen=True, eq=False)
class Continue(SyntaxNode):
    kind = NodeKind.CONTINUE


@dataclass(frozen=True, eq=False)
class Pass(SyntaxNode):
    kind = NodeKind.PASS


@dataclass(frozen=True, eq=False)
class Global(SyntaxNode):
    kind = NodeKind.GLOBAL
    names: List[str] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class Nonlocal(SyntaxNode):
    kind = NodeKind.NONLOCAL
    names: List[str] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class Delete(SyntaxNode):
    kind = NodeKind.DELETE
    targets: List[SyntaxNode] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class ExprStmt(SyntaxNode):
    kind = NodeKind.EXPR
    value: SyntaxNode = None  # type: ignore


@dataclass(frozen=True, eq=False)
class If(SyntaxNode):
    kind = NodeKind.IF
    header: Location = None  # type: ignore
    test: SyntaxNode = None  # type: ignore
    code: List[SyntaxNode] = field(default_factory=list)
    elifs: List[ElifClause] = field(default_factory=list)
    orelse: Optional[Clause] = None


@dataclass(frozen=True, eq=False)
class While(SyntaxNode):
    kind = NodeKind.WHILE
    header: Location = None  # type: ignore
    test: SyntaxNode = None  # type: ignore
    code: List[SyntaxNode] = field(default_factory=list)
    orelse: Optional[Clause] = None


@dataclass(frozen=True, eq=False)
class For(SyntaxNode):
    kind = NodeKind.FOR
    header: Location = None  # type: ignore
    target: SyntaxNode = None  # type: ignore
    iter: SyntaxNode = None  # type: ignore
    code: List[SyntaxNode] = field(default_factory=list)
    orelse: Optional[Clause] = None
    is_async: bool = False


@dataclass(frozen=True, eq=False)
class Try(SyntaxNode):
    kind = NodeKind.TRY
    header: Location = None  # type: ignore
    code: List[SyntaxNode] = field(default_factory=list)
    excepts: List[ExceptClause] = field(default_factory=list)
    orelse: Optional[Clause] = None
    finalbody: Optional[Clause] = None


@dataclass(frozen=True, eq=False)
class With(SyntaxNode):
    kind = NodeKind.WITH
    header: Location = None  # type: ignore
    items: List[WithItem] = field(default_factory=list)
    code: List[SyntaxNode] = field(default_factory=list)
    is_async: bool = False


@dataclass(frozen=True, eq=False)
class Opaque(SyntaxNode):
    """A construct the front end does not model; analyzed as all-uses."""

    kind = NodeKind.OPAQUE
    source: str = ""


# expressions


@dataclass(frozen=True, eq=False)
class Call(SyntaxNode):
    kind = NodeKind.CALL
    func: SyntaxNode = None  # type: ignore
    args: List[SyntaxNode] = field(default_factory=list)
    keywords: List[Keyword] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class IfExpr(SyntaxNode):
    kind = NodeKind.IFEXPR
    test: SyntaxNode = None  # type: ignore
    then: SyntaxNode = None  # type: ignore
    orelse: SyntaxNode = None  # type: ignore


@dataclass(frozen=True, eq=False)
class Lambda(SyntaxNode):
    kind = NodeKind.LAMBDA
    params: List[Param] = field(default_factory=list)
    body: SyntaxNode = None  # type: ignore


@dataclass(frozen=True, eq=False)
class UnaryOp(SyntaxNode):
    kind = NodeKind.UNOP
    op: str = ""
    operand: SyntaxNode = None  # type: ignore


@dataclass(frozen=True, eq=False)
class BinaryOp(SyntaxNode):
    kind = NodeKind.BINOP
    op: str = ""
    left: SyntaxNode = None  # type: ignore
    right: SyntaxNode = None  # type: ignore


@dataclass(frozen=True, eq=False)
class Starred(SyntaxNode):
    kind = NodeKind.STARRED
    value: SyntaxNode = None  # type: ignore


@dataclass(frozen=True, eq=False)
class TupleDisplay(SyntaxNode):
    kind = NodeKind.TUPLE
    items: List[SyntaxNode] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class ListDisplay(SyntaxNode):
    kind = NodeKind.LIST
    items: List[SyntaxNode] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class SetDisplay(SyntaxNode):
    kind = NodeKind.SET
    items: List[SyntaxNode] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class DictDisplay(SyntaxNode):
    kind = NodeKind.DICT
    entries: List[DictEntry] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class Name(SyntaxNode):
    kind = NodeKind.NAME
    id: str = ""


@dataclass(frozen=True, eq=False)
class Literal(SyntaxNode):
    kind = NodeKind.LITERAL
    value: Any = None


@dataclass(frozen=True, eq=False)
class Dot(SyntaxNode):
    kind = NodeKind.DOT
    value: SyntaxNode = None  # type: ignore
    attr: str = ""


@dataclass(frozen=True, eq=False)
class Index(SyntaxNode):
    kind = NodeKind.INDEX
    value: SyntaxNode = None  # type: ignore
    index: SyntaxNode = None  # type: ignore


@dataclass(frozen=True, eq=False)
class SliceExpr(SyntaxNode):
    kind = NodeKind.SLICE
    lower: Optional[SyntaxNode] = None
    upper: Optional[SyntaxNode] = None
    step: Optional[SyntaxNode] = None


@dataclass(frozen=True, eq=False)
class Comprehension(SyntaxNode):
    """List / set / dict comprehensions and generator expressions."""

    kind = NodeKind.COMPREHENSION
    flavor: str = "list"
    element: SyntaxNode = None  # type: ignore
    value: Optional[SyntaxNode] = None  # dict comprehensions only
    generators: List[CompFor] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class FString(SyntaxNode):
    kind = NodeKind.FSTRING
    values: List[SyntaxNode] = field(default_factory=list)


STATEMENT_KINDS: FrozenSet[NodeKind] = frozenset(
    {
        NodeKind.IMPORT,
        NodeKind.FROM,
        NodeKind.DECORATE,
        NodeKind.DEF,
        NodeKind.CLASS,
        NodeKind.ASSIGN,
        NodeKind.ASSERT,
        NodeKind.RETURN,
        NodeKind.RAISE,
        NodeKind.BREAK,
        NodeKind.CONTINUE,
        NodeKind.PASS,
        NodeKind.GLOBAL,
        NodeKind.NONLOCAL,
        NodeKind.DELETE,
        NodeKind.EXPR,
        NodeKind.IF,
        NodeKind.WHILE,
        NodeKind.FOR,
        NodeKind.TRY,
        NodeKind.WITH,
        NodeKind.OPAQUE,
    }
)

COMPOUND_KINDS: FrozenSet[NodeKind] = frozenset(
    {NodeKind.IF, NodeKind.WHILE, NodeKind.FOR, NodeKind.TRY, NodeKind.WITH}
)

# nodes whose bodies are evaluated later, in a scope of their own
DEFINITION_KINDS: FrozenSet[NodeKind] = frozenset(
    {NodeKind.DECORATE, NodeKind.DEF, NodeKind.CLASS}
)
