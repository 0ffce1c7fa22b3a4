"""
File-level replay: read a diagnostic log, build the timeline, export it.

This is the operation external callers use. Fatal failures (unreadable log,
unwritable output) are reported in the returned ReplayResult rather than
raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from .core.errors import InputMissingError, OutputWriteError
from .core.export import write_timeline
from .core.policy import ReplayPolicy
from .core.redaction import ActionFilter, StateFilter
from .core.replay import ReplayStats, TimelineBuilder

logger = structlog.get_logger()


class ReplayStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ReplayResult:
    """
    Outcome of replaying one log file.

    Attributes:
        status: SUCCESS or FAILED
        message: Human-readable outcome
        log_path: Source log
        output_path: Written timeline (None if nothing was written)
        stats: Reconstruction counters (None if the log was never read)
    """

    status: ReplayStatus
    message: str
    log_path: str
    output_path: Optional[str] = None
    stats: Optional[ReplayStats] = None

    def is_success(self) -> bool:
        return self.status == ReplayStatus.SUCCESS

    def summary(self) -> str:
        if self.status == ReplayStatus.SUCCESS and self.stats is not None:
            s = self.stats
            return (
                f"SUCCESS: wrote {self.output_path} "
                f"({s.lines_retained} lines retained, {s.lines_dropped} dropped, "
                f"{s.operations_skipped} diff operations skipped)"
            )
        return f"FAILED: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "status": self.status.value,
            "message": self.message,
            "log_path": self.log_path,
            "output_path": self.output_path,
        }
        if self.stats is not None:
            result["stats"] = self.stats.to_dict()
        return result


def read_log(path: str) -> str:
    """
    Read a whole diagnostic log as UTF-8.

    Raises:
        InputMissingError: If the file cannot be read or decoded.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise InputMissingError(f"cannot read log: {e}", path) from e


def replay_log(
    log_path: str,
    output_path: str,
    state_filter: Optional[StateFilter] = None,
    action_filter: Optional[ActionFilter] = None,
    policy: Optional[ReplayPolicy] = None,
) -> ReplayResult:
    """
    Replay ``log_path`` and write the timeline to ``output_path``.

    Nothing is written when the log cannot be read.
    """
    logger.info("replay_started", log_path=log_path)
    try:
        raw_text = read_log(log_path)
    except InputMissingError as e:
        logger.error("replay_input_missing", log_path=log_path, error=str(e))
        return ReplayResult(
            status=ReplayStatus.FAILED,
            message=f"Undiff needs {log_path} to analyze: {e.args[0]}",
            log_path=log_path,
        )

    timeline = TimelineBuilder(state_filter, action_filter, policy).build(raw_text)

    try:
        write_timeline(timeline, output_path)
    except OutputWriteError as e:
        logger.error("replay_output_failed", output_path=output_path, error=str(e))
        return ReplayResult(
            status=ReplayStatus.FAILED,
            message=f"Could not write {output_path}: {e.args[0]}",
            log_path=log_path,
            stats=timeline.stats,
        )

    return ReplayResult(
        status=ReplayStatus.SUCCESS,
        message=f"Wrote {output_path}: {timeline.summary()}",
        log_path=log_path,
        output_path=output_path,
        stats=timeline.stats,
    )
