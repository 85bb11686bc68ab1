# -*- coding: utf-8 -*-
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Protocol, Sequence

from cellgather.config import EnumWithDefault

PERSISTENT_ID_KEY = "persistent_id"


class OutputType(EnumWithDefault):
    EXECUTE_RESULT = "execute_result"
    DISPLAY_DATA = __default__ = "display_data"  # type: ignore
    STREAM = "stream"
    ERROR = "error"


class OutputRecord(NamedTuple):
    output_type: OutputType
    payload: Dict[str, Any]

    @classmethod
    def from_json(cls, output: Dict[str, Any]) -> "OutputRecord":
        return cls(
            OutputType(output.get("output_type")),
            {k: v for k, v in output.items() if k != "output_type"},
        )

    def to_json(self) -> Dict[str, Any]:
        return {"output_type": self.output_type.value, **self.payload}


class Cell(Protocol):
    """What the execution log needs to know about one run of a host's cell."""

    @property
    def persistent_id(self) -> str:
        ...

    @property
    def text(self) -> str:
        ...

    @property
    def execution_count(self) -> Optional[int]:
        ...

    @property
    def outputs(self) -> Sequence[OutputRecord]:
        ...

    @property
    def has_error(self) -> bool:
        ...

    def copy(self) -> "Cell":
        ...


@dataclass
class LogCell:
    text: str
    execution_count: Optional[int] = None
    outputs: List[OutputRecord] = field(default_factory=list)
    persistent_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def has_error(self) -> bool:
        return any(output.output_type == OutputType.ERROR for output in self.outputs)

    def copy(self) -> "LogCell":
        return LogCell(
            text=self.text,
            execution_count=self.execution_count,
            outputs=list(self.outputs),
            persistent_id=self.persistent_id,
        )

    @classmethod
    def from_nbformat(cls, cell: Dict[str, Any]) -> "LogCell":
        """
        Adapt a code cell from notebook JSON. A persistent id is stored in the
        cell's metadata the first time the cell is seen, so later loads of the
        same notebook map back onto the same logical cell.
        """
        if cell.get("cell_type", "code") != "code":
            raise ValueError("only code cells can be logged, got %s" % cell.get("cell_type"))
        metadata = cell.setdefault("metadata", {})
        if PERSISTENT_ID_KEY not in metadata:
            metadata[PERSISTENT_ID_KEY] = str(uuid.uuid4())
        source = cell.get("source", "")
        if not isinstance(source, str):
            source = "".join(source)
        return cls(
            text=source,
            execution_count=cell.get("execution_count"),
            outputs=[OutputRecord.from_json(output) for output in cell.get("outputs", [])],
            persistent_id=metadata[PERSISTENT_ID_KEY],
        )
