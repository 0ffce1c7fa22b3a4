"""
Timeline builder for diagnostic log replay.

Rebuilds the application state from the diffs found in a log, interleaved
with the dispatched actions, and returns the resulting timeline.

Core Invariants:
- Exactly one state document per build, starting empty
- The document changes only through diff records, in log order
- Filters see copies; they never touch the running document
- Output order is log order, restricted to retained entries
- A bad line or a bad operation never stops the replay
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from .apply import OperationFailure, StateMirror
from .classify import classify_line
from .parse import parse_line
from .policy import ReplayPolicy
from .redaction import (
    ActionFilter,
    StateFilter,
    identity_action_filter,
    identity_state_filter,
    is_dropped,
)
from .types import (
    ActionRecord,
    ActionSnapshot,
    LineKind,
    StateSnapshot,
    TimelineEntry,
)

logger = structlog.get_logger()


@dataclass
class ReplayStats:
    """
    Counters describing how faithful a reconstruction is.

    A line is retained when it produced a timeline entry; every other line
    (irrelevant, unparseable, or dropped by a filter) counts as dropped.
    """

    lines_total: int = 0
    lines_irrelevant: int = 0
    lines_unparseable: int = 0
    diff_lines: int = 0
    action_lines: int = 0
    entries_filtered: int = 0
    operations_applied: int = 0
    operations_skipped: int = 0

    @property
    def lines_retained(self) -> int:
        return (
            self.lines_total
            - self.lines_irrelevant
            - self.lines_unparseable
            - self.entries_filtered
        )

    @property
    def lines_dropped(self) -> int:
        return self.lines_total - self.lines_retained

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lines_total": self.lines_total,
            "lines_retained": self.lines_retained,
            "lines_dropped": self.lines_dropped,
            "lines_irrelevant": self.lines_irrelevant,
            "lines_unparseable": self.lines_unparseable,
            "diff_lines": self.diff_lines,
            "action_lines": self.action_lines,
            "entries_filtered": self.entries_filtered,
            "operations_applied": self.operations_applied,
            "operations_skipped": self.operations_skipped,
        }


@dataclass(frozen=True)
class Timeline:
    """Ordered result of one replay: entries plus fidelity information."""

    entries: List[TimelineEntry] = field(default_factory=list)
    stats: ReplayStats = field(default_factory=ReplayStats)
    failures: List[OperationFailure] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def states(self) -> List[StateSnapshot]:
        return [e for e in self.entries if isinstance(e, StateSnapshot)]

    def actions(self) -> List[ActionSnapshot]:
        return [e for e in self.entries if isinstance(e, ActionSnapshot)]

    def summary(self) -> str:
        s = self.stats
        return (
            f"{s.lines_retained} lines retained, {s.lines_dropped} dropped; "
            f"{s.operations_applied} diff operations applied, "
            f"{s.operations_skipped} skipped"
        )


def split_log_lines(raw_text: str) -> List[str]:
    """
    Split log text into lines on LF only.

    Logged JSON may carry U+2028, U+2029 and other characters that
    str.splitlines() treats as breaks, so those stay inside their line.
    One trailing CR is stripped per line, and a final newline does not
    start an extra empty line.
    """
    lines = raw_text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class TimelineBuilder:
    """
    Builds a timeline from raw log text.

    Usage:
        builder = TimelineBuilder(action_filter=drop_action_types("gregor"))
        timeline = builder.build(log_text)
        print(timeline.summary())

    The builder holds no state between builds: each call to build() gets a
    fresh StateMirror, so building the same text twice gives equal results.
    """

    def __init__(
        self,
        state_filter: Optional[StateFilter] = None,
        action_filter: Optional[ActionFilter] = None,
        policy: Optional[ReplayPolicy] = None,
    ):
        self.state_filter = state_filter or identity_state_filter
        self.action_filter = action_filter or identity_action_filter
        self.policy = policy or ReplayPolicy.default()

    def build(self, raw_text: str) -> Timeline:
        mirror = StateMirror()
        stats = ReplayStats()
        entries: List[TimelineEntry] = []

        for number, text in enumerate(split_log_lines(raw_text), start=1):
            stats.lines_total += 1

            classified = classify_line(text, number, self.policy)
            if classified.kind == LineKind.IRRELEVANT:
                stats.lines_irrelevant += 1
                continue

            record = parse_line(classified, self.policy)
            if record is None:
                stats.lines_unparseable += 1
                logger.debug("line_dropped", line=number, kind=classified.kind.value)
                continue

            if isinstance(record, ActionRecord):
                stats.action_lines += 1
                entry = self._action_entry(record)
            else:
                stats.diff_lines += 1
                mirror.apply(record)
                entry = self._state_entry(number, mirror)

            if entry is None:
                stats.entries_filtered += 1
                continue
            entries.append(entry)

        stats.operations_applied = mirror.operations_applied
        stats.operations_skipped = mirror.operations_skipped
        logger.info("timeline_built", **stats.to_dict())
        return Timeline(entries=entries, stats=stats, failures=list(mirror.failures))

    def _state_entry(self, number: int, mirror: StateMirror) -> Optional[StateSnapshot]:
        state = self.state_filter(mirror.snapshot())
        if is_dropped(state):
            return None
        return StateSnapshot(line_number=number, state=state)

    def _action_entry(self, record: ActionRecord) -> Optional[ActionSnapshot]:
        action = self.action_filter(record)
        if action is None:
            return None
        return ActionSnapshot(line_number=record.line_number, action=action)


def build_timeline(
    raw_text: str,
    state_filter: Optional[StateFilter] = None,
    action_filter: Optional[ActionFilter] = None,
    policy: Optional[ReplayPolicy] = None,
) -> Timeline:
    """Functional form of TimelineBuilder(...).build(raw_text)."""
    return TimelineBuilder(state_filter, action_filter, policy).build(raw_text)
