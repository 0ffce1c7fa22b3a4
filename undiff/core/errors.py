"""
Exceptions raised by the undiff engine.

Only InputMissingError and OutputWriteError abort a replay. OperationError
is raised per diff operation and is always contained by the applier.
"""

from __future__ import annotations

from typing import Optional

from .types import DiffOperation


class UndiffError(Exception):
    """Base exception for undiff errors."""

    pass


class InputMissingError(UndiffError):
    """Raised when the source log cannot be read."""

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        return f"InputMissingError(path={self.path}): {self.args[0]}"


class OutputWriteError(UndiffError):
    """Raised when the exported timeline cannot be written."""

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        return f"OutputWriteError(path={self.path}): {self.args[0]}"


class OperationError(UndiffError):
    """
    Raised when a single diff operation cannot be applied.

    Common causes:
    - Stale path (the key or index no longer exists)
    - Shape mismatch (indexing a dict with an int, descending into a scalar)
    - Array index out of range
    """

    def __init__(self, message: str, operation: Optional[DiffOperation] = None):
        super().__init__(message)
        self.operation = operation

    def __str__(self) -> str:
        if self.operation is None:
            return f"OperationError: {self.args[0]}"
        return f"OperationError({self.operation.describe()}): {self.args[0]}"
