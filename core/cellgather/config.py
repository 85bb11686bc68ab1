# -*- coding: utf-8 -*-
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Mapping, Optional


class EnumWithDefault(Enum):
    @classmethod
    def _missing_(cls, value):
        return cls(cls.__default__)  # type: ignore


# builtins that neither mutate their arguments nor touch the calling namespace
_PURE_BUILTINS = (
    "abs",
    "all",
    "any",
    "ascii",
    "bin",
    "bool",
    "bytearray",
    "bytes",
    "callable",
    "chr",
    "complex",
    "dict",
    "dir",
    "divmod",
    "enumerate",
    "filter",
    "float",
    "format",
    "frozenset",
    "getattr",
    "hasattr",
    "hash",
    "hex",
    "id",
    "int",
    "isinstance",
    "issubclass",
    "iter",
    "len",
    "list",
    "map",
    "max",
    "min",
    "oct",
    "ord",
    "pow",
    "print",
    "range",
    "repr",
    "reversed",
    "round",
    "set",
    "slice",
    "sorted",
    "str",
    "sum",
    "tuple",
    "type",
    "zip",
    "math.ceil",
    "math.floor",
    "math.sqrt",
    "math.log",
    "math.exp",
)

# methods looked up by attribute name alone, regardless of receiver
_PURE_METHODS = (
    ".copy",
    ".count",
    ".endswith",
    ".format",
    ".get",
    ".index",
    ".items",
    ".join",
    ".keys",
    ".lower",
    ".lstrip",
    ".replace",
    ".rstrip",
    ".split",
    ".startswith",
    ".strip",
    ".upper",
    ".values",
)

DEFAULT_EFFECT_TABLE: Dict[str, bool] = {
    name: True for name in _PURE_BUILTINS + _PURE_METHODS
}

# calls that can read or write arbitrary names in the calling namespace
DEFAULT_DYNAMIC_CODE_NAMES: FrozenSet[str] = frozenset(
    {"eval", "exec", "globals", "locals", "vars"}
)


@dataclass(frozen=True)
class DataflowSettings:
    effect_table: Mapping[str, bool] = field(
        default_factory=lambda: dict(DEFAULT_EFFECT_TABLE)
    )
    dynamic_code_names: FrozenSet[str] = DEFAULT_DYNAMIC_CODE_NAMES

    def with_effects(self, effects: Mapping[str, bool]) -> "DataflowSettings":
        table = dict(self.effect_table)
        table.update(effects)
        return replace(self, effect_table=table)

    @staticmethod
    def is_pure(
        effect_table: Mapping[str, bool], path: Optional[str], attr: Optional[str]
    ) -> bool:
        """
        Look up a callee first by its full dotted path (``np.mean``), then
        by its final attribute (``.mean``). Anything missing is impure.
        """
        if path is not None and path in effect_table:
            return effect_table[path]
        if attr is not None:
            return effect_table.get(f".{attr}", False)
        return False
