"""
Replay configuration.

A ReplayPolicy fixes the textual markers used to recognize records in a
diagnostic log and how strictly action lines are validated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

DEFAULT_ORIGIN_MARKER = "From Keybase: "
DEFAULT_DIFF_MARKER = " Diff: "
DEFAULT_ACTION_MARKER = " Dispatching action: "


@lru_cache(maxsize=32)
def _diff_pattern(marker: str) -> re.Pattern[str]:
    return re.compile(re.escape(marker.rstrip()) + r" +(.*)")


@lru_cache(maxsize=32)
def _action_pattern(marker: str) -> re.Pattern[str]:
    return re.compile(re.escape(marker.rstrip()) + r" +(.*?): +(\{.*\})")


@dataclass(frozen=True)
class ReplayPolicy:
    """
    Configuration for log replay.

    Attributes:
        origin_marker: Prefix a diff line must start with. None disables
            the check.
        diff_marker: Substring introducing a diff payload.
        action_marker: Substring introducing an action name and payload.
        strict_action_type: If True, an action whose payload ``type`` differs
            from the logged name is treated as unparseable.
    """

    origin_marker: Optional[str] = DEFAULT_ORIGIN_MARKER
    diff_marker: str = DEFAULT_DIFF_MARKER
    action_marker: str = DEFAULT_ACTION_MARKER
    strict_action_type: bool = False

    @classmethod
    def default(cls) -> "ReplayPolicy":
        """Create default replay policy."""
        return cls()

    @classmethod
    def lenient(cls) -> "ReplayPolicy":
        """Create lenient policy - diff lines need no origin marker."""
        return cls(origin_marker=None)

    @classmethod
    def strict(cls) -> "ReplayPolicy":
        """Create strict policy - action names must match payload types."""
        return cls(strict_action_type=True)

    @property
    def diff_pattern(self) -> re.Pattern[str]:
        return _diff_pattern(self.diff_marker)

    @property
    def action_pattern(self) -> re.Pattern[str]:
        return _action_pattern(self.action_marker)
