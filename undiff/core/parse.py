"""Record parsing for classified log lines.

Diff lines carry a JSON array of deep-diff operations:

    From Keybase: ... Diff:  [{"kind":"E","path":["counter"],"lhs":1,"rhs":2}]

Action lines carry an action name and a JSON object:

    ... Dispatching action: increment:  {"type":"increment","payload":{"n":1}}

A line whose payload is not valid JSON of the expected shape yields None and
is dropped by the caller. One malformed operation inside an otherwise valid
diff array is kept as a RejectedOperation instead of dropping the line.
"""
from __future__ import annotations

import json
from typing import Any, List, Optional, Tuple, Union

import structlog

from .policy import ReplayPolicy
from .types import (
    ActionRecord,
    ClassifiedLine,
    DiffKind,
    DiffOperation,
    DiffRecord,
    LineKind,
    PathKey,
    RejectedOperation,
)

logger = structlog.get_logger()

ParsedRecord = Union[DiffRecord, ActionRecord]


def parse_line(
    line: ClassifiedLine, policy: Optional[ReplayPolicy] = None
) -> Optional[ParsedRecord]:
    """Parse a classified line into a record, or None if it is unusable."""
    policy = policy or ReplayPolicy.default()
    if line.kind == LineKind.DIFF:
        return parse_diff_line(line, policy)
    if line.kind == LineKind.ACTION:
        return parse_action_line(line, policy)
    return None


def parse_diff_line(line: ClassifiedLine, policy: ReplayPolicy) -> Optional[DiffRecord]:
    match = policy.diff_pattern.search(line.text)
    if match is None:
        return None
    try:
        payload = json.loads(match.group(1))
    except ValueError as e:
        logger.debug("diff_line_unparseable", line=line.number, error=str(e))
        return None
    if not isinstance(payload, list):
        logger.debug(
            "diff_line_unparseable",
            line=line.number,
            error=f"expected array, got {type(payload).__name__}",
        )
        return None

    operations: List[DiffOperation] = []
    rejected: List[RejectedOperation] = []
    for idx, raw in enumerate(payload):
        try:
            operations.append(parse_operation(raw))
        except ValueError as e:
            rejected.append(RejectedOperation(index=idx, raw=raw, reason=str(e)))
    return DiffRecord(
        line_number=line.number,
        operations=tuple(operations),
        rejected=tuple(rejected),
    )


def parse_action_line(
    line: ClassifiedLine, policy: ReplayPolicy
) -> Optional[ActionRecord]:
    match = policy.action_pattern.search(line.text)
    if match is None:
        return None
    name = match.group(1).strip()
    try:
        payload = json.loads(match.group(2))
    except ValueError as e:
        logger.debug("action_line_unparseable", line=line.number, error=str(e))
        return None
    if not isinstance(payload, dict):
        return None

    action_type = payload.get("type")
    if not isinstance(action_type, str) or not action_type:
        action_type = name
        payload["type"] = name
    elif name and action_type != name:
        if policy.strict_action_type:
            logger.debug(
                "action_line_unparseable",
                line=line.number,
                error=f"type {action_type!r} does not match name {name!r}",
            )
            return None
        logger.warning(
            "action_type_mismatch", line=line.number, name=name, type=action_type
        )

    return ActionRecord(
        type=action_type, payload=payload, name=name, line_number=line.number
    )


def parse_operation(raw: Any) -> DiffOperation:
    """
    Read one deep-diff operation object.

    Raises:
        ValueError: If the object is not a well-formed operation.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"operation must be an object, got {type(raw).__name__}")
    kind = DiffKind.parse(raw.get("kind"))
    path = _parse_path(raw.get("path"))

    if kind != DiffKind.ARRAY:
        return DiffOperation(
            kind=kind, path=path, lhs=raw.get("lhs"), rhs=raw.get("rhs")
        )

    index = raw.get("index")
    if not _is_index(index):
        raise ValueError(f"array change needs an integer index, got {index!r}")
    item = raw.get("item")
    if not isinstance(item, dict):
        raise ValueError("array change needs an item object")
    return DiffOperation(kind=kind, path=path, index=index, item=parse_operation(item))


def _parse_path(raw: Any) -> Tuple[PathKey, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValueError(f"path must be an array, got {type(raw).__name__}")
    for key in raw:
        if not (isinstance(key, str) or _is_index(key)):
            raise ValueError(f"invalid path element: {key!r}")
    return tuple(raw)


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
