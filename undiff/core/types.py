from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

PathKey = Union[str, int]


class LineKind(str, Enum):
    """Classification of a single raw log line."""

    DIFF = "diff"
    ACTION = "action"
    IRRELEVANT = "irrelevant"


@dataclass(frozen=True)
class ClassifiedLine:
    number: int
    text: str
    kind: LineKind


class DiffKind(str, Enum):
    """Kind of a single diff operation (deep-diff letters)."""

    NEW = "N"
    EDIT = "E"
    DELETE = "D"
    ARRAY = "A"

    @classmethod
    def parse(cls, value: Any) -> "DiffKind":
        """Resolve a kind from its letter or spelled-out name.

        Raises:
            ValueError: If the value names no known kind.
        """
        if isinstance(value, str) and value in _KIND_ALIASES:
            return _KIND_ALIASES[value]
        raise ValueError(f"unknown diff kind: {value!r}")


_KIND_ALIASES = {
    "N": DiffKind.NEW,
    "New": DiffKind.NEW,
    "E": DiffKind.EDIT,
    "Edit": DiffKind.EDIT,
    "D": DiffKind.DELETE,
    "Delete": DiffKind.DELETE,
    "A": DiffKind.ARRAY,
    "Array": DiffKind.ARRAY,
    "ArrayChange": DiffKind.ARRAY,
}


def format_path(path: Tuple[PathKey, ...]) -> str:
    """Render a path as ``$.a[0].b`` for log messages."""
    rendered = "$"
    for key in path:
        if isinstance(key, int):
            rendered += f"[{key}]"
        else:
            rendered += f".{key}"
    return rendered


@dataclass(frozen=True)
class DiffOperation:
    """
    One structural edit against the state document.

    Attributes:
        kind: NEW, EDIT, DELETE or ARRAY
        path: Keys/indices from the document root to the target
        lhs: Previous value (EDIT, DELETE)
        rhs: New value (NEW, EDIT)
        index: Array index the nested item applies to (ARRAY only)
        item: Nested path-less change applied at ``index`` (ARRAY only)
    """

    kind: DiffKind
    path: Tuple[PathKey, ...] = ()
    lhs: Any = None
    rhs: Any = None
    index: Optional[int] = None
    item: Optional["DiffOperation"] = None

    def describe(self) -> str:
        """Short human-readable label, e.g. ``EDIT $.counter``."""
        label = f"{self.kind.name} {format_path(self.path)}"
        if self.kind == DiffKind.ARRAY and self.index is not None:
            label += f"[{self.index}]"
        return label

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to deep-diff shaped JSON."""
        result: Dict[str, Any] = {"kind": self.kind.value}
        if self.path:
            result["path"] = list(self.path)
        if self.kind in (DiffKind.EDIT, DiffKind.DELETE):
            result["lhs"] = self.lhs
        if self.kind in (DiffKind.NEW, DiffKind.EDIT):
            result["rhs"] = self.rhs
        if self.kind == DiffKind.ARRAY:
            result["index"] = self.index
            result["item"] = self.item.to_dict() if self.item else None
        return result


@dataclass(frozen=True)
class RejectedOperation:
    """An element of a diff payload that could not be read as an operation."""

    index: int
    raw: Any
    reason: str


@dataclass(frozen=True)
class DiffRecord:
    line_number: int
    operations: Tuple[DiffOperation, ...] = ()
    rejected: Tuple[RejectedOperation, ...] = ()


@dataclass(frozen=True)
class ActionRecord:
    """
    A dispatched action snapshot.

    Attributes:
        type: Action type discriminator
        payload: The full action object as logged
        name: Action name captured from the log line, if any
        line_number: Source line (0 when built by hand)
    """

    type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None
    line_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        result = dict(self.payload)
        result["type"] = self.type
        return result


@dataclass(frozen=True)
class StateSnapshot:
    line_number: int
    state: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "state", "line": self.line_number, "state": self.state}


@dataclass(frozen=True)
class ActionSnapshot:
    line_number: int
    action: ActionRecord

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "action",
            "line": self.line_number,
            "action": self.action.to_dict(),
        }


TimelineEntry = Union[StateSnapshot, ActionSnapshot]


def entry_from_dict(data: Dict[str, Any]) -> TimelineEntry:
    """
    Rebuild a timeline entry from its exported form.

    Raises:
        ValueError: If the record has an unknown ``kind``.
    """
    kind = data.get("kind")
    line_number = int(data.get("line", 0))
    if kind == "state":
        return StateSnapshot(line_number=line_number, state=data.get("state"))
    if kind == "action":
        payload = dict(data.get("action") or {})
        return ActionSnapshot(
            line_number=line_number,
            action=ActionRecord(
                type=str(payload.get("type", "")),
                payload=payload,
                line_number=line_number,
            ),
        )
    raise ValueError(f"unknown timeline entry kind: {kind!r}")
