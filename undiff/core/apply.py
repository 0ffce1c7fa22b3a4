"""Diff application onto a mutable state document.

Operations follow deep-diff semantics with one deliberate tightening: only
NEW may create missing containers along its path. EDIT, DELETE and ARRAY
require the full path to exist; otherwise the operation fails.

A failing operation never aborts the record. apply_diff catches each
OperationError, logs it and moves on to the next operation, so a partially
updated document is a normal outcome.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List

import structlog

from .errors import OperationError
from .types import DiffKind, DiffOperation, DiffRecord, PathKey

logger = structlog.get_logger()


@dataclass(frozen=True)
class OperationFailure:
    """A diff operation that was skipped, with where and why."""

    line_number: int
    op_index: int
    operation: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line": self.line_number,
            "op_index": self.op_index,
            "operation": self.operation,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ApplyResult:
    document: Dict[str, Any]
    applied: int
    failures: List[OperationFailure] = field(default_factory=list)


def apply_operation(document: Dict[str, Any], op: DiffOperation) -> None:
    """
    Apply one operation to the document in place.

    Raises:
        OperationError: If the path cannot be resolved or the shape is wrong.
    """
    if not op.path and op.kind != DiffKind.ARRAY:
        _apply_root(document, op)
        return

    if op.kind == DiffKind.ARRAY:
        target = _resolve(document, op.path, op)
        if not isinstance(target, list):
            raise OperationError(
                f"array change target is {type(target).__name__}, not a list", op
            )
        _apply_array_item(target, op.index, op.item, op)
        return

    key = op.path[-1]
    if op.kind == DiffKind.NEW:
        _create(document, op.path, op.rhs, op)
    elif op.kind == DiffKind.EDIT:
        parent = _resolve(document, op.path[:-1], op)
        _require(parent, key, op)
        parent[key] = copy.deepcopy(op.rhs)
    elif op.kind == DiffKind.DELETE:
        parent = _resolve(document, op.path[:-1], op)
        _require(parent, key, op)
        del parent[key]


def apply_diff(document: Dict[str, Any], record: DiffRecord) -> ApplyResult:
    """
    Apply every operation of a record, in order, containing failures.

    Returns:
        ApplyResult whose ``document`` is the same object that was passed in.
    """
    applied = 0
    failures: List[OperationFailure] = []

    for rejected in record.rejected:
        failures.append(
            _failure(record.line_number, rejected.index, "REJECTED", rejected.reason)
        )

    for idx, op in enumerate(record.operations):
        try:
            apply_operation(document, op)
        except OperationError as e:
            failures.append(
                _failure(record.line_number, idx, op.describe(), str(e.args[0]))
            )
            continue
        applied += 1

    return ApplyResult(document=document, applied=applied, failures=failures)


class StateMirror:
    """
    The single mutable state document of one replay run.

    Starts empty and is only ever changed through apply(), in log order.
    """

    def __init__(self) -> None:
        self.document: Dict[str, Any] = {}
        self.operations_applied = 0
        self.failures: List[OperationFailure] = []

    @property
    def operations_skipped(self) -> int:
        return len(self.failures)

    def apply(self, record: DiffRecord) -> Dict[str, Any]:
        result = apply_diff(self.document, record)
        self.operations_applied += result.applied
        self.failures.extend(result.failures)
        return self.document

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the current document."""
        return copy.deepcopy(self.document)


def _failure(
    line_number: int, op_index: int, operation: str, reason: str
) -> OperationFailure:
    logger.warning(
        "diff_operation_failed",
        line=line_number,
        op_index=op_index,
        operation=operation,
        reason=reason,
    )
    return OperationFailure(
        line_number=line_number, op_index=op_index, operation=operation, reason=reason
    )


def _apply_root(document: Dict[str, Any], op: DiffOperation) -> None:
    if op.kind in (DiffKind.NEW, DiffKind.EDIT) and isinstance(op.rhs, dict):
        document.clear()
        document.update(copy.deepcopy(op.rhs))
        return
    raise OperationError("root of the document can only be replaced by an object", op)


def _apply_array_item(
    arr: List[Any], index: Any, item: Any, op: DiffOperation
) -> None:
    if item is None:
        raise OperationError("array change has no item", op)
    if item.path:
        apply_operation(_child(arr, index, op), item)
        return

    if item.kind == DiffKind.ARRAY:
        nested = _child(arr, index, op)
        if not isinstance(nested, list):
            raise OperationError(
                f"nested array change target is {type(nested).__name__}", op
            )
        _apply_array_item(nested, item.index, item.item, op)
    elif item.kind == DiffKind.NEW:
        _set(arr, index, item.rhs, op)
    elif item.kind == DiffKind.EDIT:
        _require(arr, index, op)
        arr[index] = copy.deepcopy(item.rhs)
    elif item.kind == DiffKind.DELETE:
        _require(arr, index, op)
        del arr[index]


def _resolve(document: Any, path: tuple, op: DiffOperation) -> Any:
    node = document
    for key in path:
        node = _child(node, key, op)
    return node


def _create(document: Any, path: tuple, value: Any, op: DiffOperation) -> None:
    """
    Set ``path`` to ``value``, creating missing containers on the way.

    Missing containers are built detached and attached only after the final
    value is set, so a failing New leaves the document untouched.
    """
    node = document
    attach = None
    for pos, key in enumerate(path[:-1]):
        if attach is None and _has(node, key):
            node = _child(node, key, op)
            continue
        container = [] if _is_index(path[pos + 1]) else {}
        if attach is None:
            _check_key_type(node, key, op)
            attach = (node, key, container)
            node = container
        else:
            _set(node, key, container, op)
            node = node[key]

    _set(node, path[-1], value, op)
    if attach is not None:
        parent, key, container = attach
        _set(parent, key, container, op)


def _child(node: Any, key: PathKey, op: DiffOperation) -> Any:
    _require(node, key, op)
    return node[key]


def _has(node: Any, key: PathKey) -> bool:
    if isinstance(node, dict):
        return isinstance(key, str) and key in node
    if isinstance(node, list):
        return _is_index(key) and 0 <= key < len(node)
    return False


def _require(node: Any, key: PathKey, op: DiffOperation) -> None:
    _check_key_type(node, key, op)
    if not _has(node, key):
        raise OperationError(f"path element {key!r} does not exist", op)


def _set(node: Any, key: PathKey, value: Any, op: DiffOperation) -> None:
    _check_key_type(node, key, op)
    value = copy.deepcopy(value)
    if isinstance(node, dict):
        node[key] = value
    elif 0 <= key < len(node):
        node[key] = value
    elif key == len(node):
        node.append(value)
    else:
        raise OperationError(
            f"index {key} out of range for list of length {len(node)}", op
        )


def _check_key_type(node: Any, key: PathKey, op: DiffOperation) -> None:
    if isinstance(node, dict):
        if not isinstance(key, str):
            raise OperationError(f"object key must be a string, got {key!r}", op)
    elif isinstance(node, list):
        if not _is_index(key):
            raise OperationError(f"list index must be an integer, got {key!r}", op)
    else:
        raise OperationError(
            f"cannot descend into {type(node).__name__} at {key!r}", op
        )


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
