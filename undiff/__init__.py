from .core import (
    REDACT,
    # Core types
    ActionRecord,
    ActionSnapshot,
    DiffKind,
    DiffOperation,
    DiffRecord,
    # Exceptions
    InputMissingError,
    OperationError,
    OutputWriteError,
    # Redaction
    RedactionAction,
    RedactionPolicy,
    RedactionRule,
    # Configuration
    ReplayPolicy,
    # Timeline
    ReplayStats,
    StateMirror,
    StateSnapshot,
    Timeline,
    TimelineBuilder,
    UndiffError,
    apply_diff,
    build_timeline,
    create_default_policy,
    drop_action_types,
    narrow_state,
    read_timeline,
    write_timeline,
)
from .replay import ReplayResult, ReplayStatus, read_log, replay_log
from .version import (
    DEFAULT_TIMELINE_SCHEMA_VERSION,
    TIMELINE_SCHEMA_VERSION,
    UNDIFF_VERSION,
)

__all__ = [
    # Version
    "UNDIFF_VERSION",
    "TIMELINE_SCHEMA_VERSION",
    "DEFAULT_TIMELINE_SCHEMA_VERSION",
    # Core types
    "ActionRecord",
    "ActionSnapshot",
    "DiffKind",
    "DiffOperation",
    "DiffRecord",
    "StateSnapshot",
    # Configuration
    "ReplayPolicy",
    # Exceptions
    "UndiffError",
    "InputMissingError",
    "OutputWriteError",
    "OperationError",
    # Diff application
    "StateMirror",
    "apply_diff",
    # Redaction
    "REDACT",
    "RedactionAction",
    "RedactionPolicy",
    "RedactionRule",
    "create_default_policy",
    "drop_action_types",
    "narrow_state",
    # Timeline
    "ReplayStats",
    "Timeline",
    "TimelineBuilder",
    "build_timeline",
    "read_timeline",
    "write_timeline",
    # File replay
    "ReplayResult",
    "ReplayStatus",
    "read_log",
    "replay_log",
]
