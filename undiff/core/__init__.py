"""Core types and logic for undiff."""

from .apply import (
    ApplyResult,
    OperationFailure,
    StateMirror,
    apply_diff,
    apply_operation,
)
from .classify import classify_line
from .errors import InputMissingError, OperationError, OutputWriteError, UndiffError
from .export import dumps_timeline, read_timeline, timeline_to_dict, write_timeline
from .parse import parse_line, parse_operation
from .policy import ReplayPolicy
from .redaction import (
    REDACT,
    ActionFilter,
    RedactionAction,
    RedactionPolicy,
    RedactionRule,
    StateFilter,
    chain_action_filters,
    chain_state_filters,
    create_default_policy,
    drop_action_types,
    identity_action_filter,
    identity_state_filter,
    narrow_state,
)
from .replay import ReplayStats, Timeline, TimelineBuilder, build_timeline
from .types import (
    ActionRecord,
    ActionSnapshot,
    ClassifiedLine,
    DiffKind,
    DiffOperation,
    DiffRecord,
    LineKind,
    RejectedOperation,
    StateSnapshot,
    TimelineEntry,
    entry_from_dict,
)

__all__ = [
    # Types
    "ActionRecord",
    "ActionSnapshot",
    "ClassifiedLine",
    "DiffKind",
    "DiffOperation",
    "DiffRecord",
    "LineKind",
    "RejectedOperation",
    "StateSnapshot",
    "TimelineEntry",
    "entry_from_dict",
    # Exceptions
    "UndiffError",
    "InputMissingError",
    "OutputWriteError",
    "OperationError",
    # Classification and parsing
    "ReplayPolicy",
    "classify_line",
    "parse_line",
    "parse_operation",
    # Diff application
    "ApplyResult",
    "OperationFailure",
    "StateMirror",
    "apply_diff",
    "apply_operation",
    # Redaction
    "REDACT",
    "ActionFilter",
    "StateFilter",
    "RedactionAction",
    "RedactionPolicy",
    "RedactionRule",
    "chain_action_filters",
    "chain_state_filters",
    "create_default_policy",
    "drop_action_types",
    "identity_action_filter",
    "identity_state_filter",
    "narrow_state",
    # Timeline
    "ReplayStats",
    "Timeline",
    "TimelineBuilder",
    "build_timeline",
    # Export
    "dumps_timeline",
    "read_timeline",
    "timeline_to_dict",
    "write_timeline",
]
