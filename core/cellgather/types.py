# -*- coding: utf-8 -*-
from typing import Dict, FrozenSet, Tuple

PersistentId = str
Ordinal = int
StmtIndex = int

# reaching-definitions state: name -> indices of statements whose definition
# may reach the current point; ENTRY stands for "defined before this execution"
ReachingState = Dict[str, FrozenSet[StmtIndex]]

ENTRY: StmtIndex = -1
ENTRY_ONLY: FrozenSet[StmtIndex] = frozenset({ENTRY})

# pseudo-name for uses / definitions that cover every name
ALL_NAMES = "*"

LineSpan = Tuple[int, int]
