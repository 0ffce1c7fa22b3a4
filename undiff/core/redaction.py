"""
Redaction filters for replayed timelines.

A state filter receives a copy of the reconstructed document and returns a
possibly narrowed copy, or REDACT (or None) to drop the entry. An action
filter receives an ActionRecord and returns a possibly modified record, or
None to drop it.

Filters run after the diff has been applied and before the entry is
appended. They always operate on copies, never on the running document.
"""

from __future__ import annotations

import copy
import dataclasses
import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .types import ActionRecord


class _Redact:
    """Sentinel returned by a state filter to drop the snapshot entirely."""

    _instance: Optional["_Redact"] = None

    def __new__(cls) -> "_Redact":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "REDACT"

    def __copy__(self) -> "_Redact":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_Redact":
        return self


REDACT = _Redact()

StateFilter = Callable[[Dict[str, Any]], Any]
ActionFilter = Callable[[ActionRecord], Optional[ActionRecord]]


def is_dropped(value: Any) -> bool:
    """True if a filter result means "drop this entry"."""
    return value is None or value is REDACT


def identity_state_filter(state: Dict[str, Any]) -> Dict[str, Any]:
    return state


def identity_action_filter(action: ActionRecord) -> ActionRecord:
    return action


def drop_action_types(*prefixes: str) -> ActionFilter:
    """Action filter that drops actions whose type starts with any prefix."""

    def _filter(action: ActionRecord) -> Optional[ActionRecord]:
        if any(action.type.startswith(prefix) for prefix in prefixes):
            return None
        return action

    return _filter


_NULL_STORE = {"nullStore": None}


def narrow_state(*paths: str, missing: Any = _NULL_STORE) -> StateFilter:
    """
    State filter that keeps only the given dotted paths.

    Each kept value is keyed by the last segment of its path, e.g.
    ``narrow_state("tracker.trackers.mike")`` yields ``{"mike": ...}``.
    If any path is missing the filter returns ``missing`` instead.
    """

    def _filter(state: Dict[str, Any]) -> Any:
        narrowed: Dict[str, Any] = {}
        for path in paths:
            node: Any = state
            for key in path.split("."):
                if isinstance(node, dict) and key in node:
                    node = node[key]
                elif isinstance(node, list) and key.isdigit() and int(key) < len(node):
                    node = node[int(key)]
                else:
                    return copy.deepcopy(missing)
            narrowed[path.split(".")[-1]] = node
        return narrowed

    return _filter


def chain_state_filters(*filters: StateFilter) -> StateFilter:
    """Compose state filters left to right; the first drop wins."""

    def _filter(state: Dict[str, Any]) -> Any:
        result: Any = state
        for f in filters:
            result = f(result)
            if is_dropped(result):
                return REDACT
        return result

    return _filter


def chain_action_filters(*filters: ActionFilter) -> ActionFilter:
    """Compose action filters left to right; the first drop wins."""

    def _filter(action: ActionRecord) -> Optional[ActionRecord]:
        result: Optional[ActionRecord] = action
        for f in filters:
            result = f(result)
            if result is None:
                return None
        return result

    return _filter


class RedactionAction(str, Enum):
    """Action to take when a redaction rule matches."""

    MASK = "mask"  # Replace with "[REDACTED]"
    HASH = "hash"  # Replace with deterministic SHA-256 hash
    DROP = "drop"  # Remove the field entirely


@dataclass(frozen=True)
class RedactionRule:
    """
    A single redaction rule.

    Rules match on:
    - key_pattern: matches key names (case-insensitive substring match)
    - path_pattern: matches dot-separated paths (e.g., "config.auth.token")

    Both patterns are optional. If both are specified, BOTH must match.
    If neither is specified, the rule never matches.
    """

    action: RedactionAction
    key_pattern: Optional[str] = None
    path_pattern: Optional[str] = None

    def __post_init__(self):
        if self.key_pattern is None and self.path_pattern is None:
            raise ValueError("RedactionRule requires at least one pattern")


class RedactionPolicy:
    """
    Pattern-based redaction of nested state and action values.

    Applies rules in order; the first matching rule wins. Inputs are never
    mutated.
    """

    def __init__(self, rules: List[RedactionRule]):
        self.rules = rules

    def redact(self, value: Any) -> Any:
        """Return a redacted deep copy of ``value``."""
        return self._redact_value(copy.deepcopy(value), path="")

    def state_filter(self) -> StateFilter:
        return self.redact

    def action_filter(self) -> ActionFilter:
        """
        Adapt the policy to an action filter.

        The ``type`` discriminator itself is never redacted.
        """

        def _filter(action: ActionRecord) -> ActionRecord:
            payload = {k: v for k, v in action.payload.items() if k != "type"}
            redacted = self.redact(payload)
            redacted["type"] = action.type
            return dataclasses.replace(action, payload=redacted)

        return _filter

    def _redact_value(self, value: Any, path: str) -> Any:
        """
        Recursively redact a state or payload value.

        Args:
            value: Value to redact (dict, list, or scalar)
            path: Dot-separated path of ``value`` within the document

        Returns:
            Redacted value
        """
        if isinstance(value, dict):
            return self._redact_dict(value, path)
        if isinstance(value, list):
            # List elements share their parent's path
            return [self._redact_value(item, path) for item in value]
        # Scalars are only redacted through their enclosing key
        return value

    def _redact_dict(self, d: Dict[str, Any], path: str) -> Dict[str, Any]:
        """
        Redact a mapping by applying the rules to each key.

        Args:
            d: Mapping to redact
            path: Dot-separated path of ``d``

        Returns:
            New mapping with matched keys masked, hashed or dropped
        """
        result = {}

        for key, value in d.items():
            # State keys are strings once decoded from JSON, but filters may
            # hand us anything
            current_path = f"{path}.{key}" if path else str(key)
            matched_rule = self._find_matching_rule(str(key), current_path)

            if matched_rule is None:
                result[key] = self._redact_value(value, current_path)
            elif matched_rule.action == RedactionAction.DROP:
                # Key is omitted from the snapshot
                pass
            elif matched_rule.action == RedactionAction.MASK:
                result[key] = "[REDACTED]"
            elif matched_rule.action == RedactionAction.HASH:
                # Same value, same digest across snapshots
                result[key] = self._hash_value(value)

        return result

    def _find_matching_rule(self, key: str, path: str) -> Optional[RedactionRule]:
        """
        Find the first rule matching a key and its path.

        Args:
            key: Key name
            path: Dot-separated path ending in ``key``

        Returns:
            First matching rule, or None if no rule applies
        """
        for rule in self.rules:
            # Both patterns are case-insensitive substrings
            key_matches = (
                rule.key_pattern is None or rule.key_pattern.lower() in key.lower()
            )
            path_matches = (
                rule.path_pattern is None or rule.path_pattern.lower() in path.lower()
            )
            if key_matches and path_matches:
                return rule

        return None

    def _hash_value(self, value: Any) -> str:
        """
        Hash a value so equal values stay comparable after redaction.

        Returns:
            Hex-encoded SHA-256 digest prefixed with "hash:"
        """
        # repr is stable for the JSON types a decoded log can contain
        digest = hashlib.sha256(repr(value).encode("utf-8")).hexdigest()
        return f"hash:{digest}"


def create_default_policy() -> RedactionPolicy:
    """
    Create the default redaction policy for sharing replayed logs.

    Masks credentials, tokens and session identifiers wherever they appear
    in the state or in action payloads.
    """
    patterns = [
        "token",
        "secret",
        "password",
        "passphrase",
        "api_key",
        "apikey",
        "authorization",
        "cookie",
        "credentials",
        "private_key",
        "privatekey",
        "paperkey",
        "session",
        "csrf",
    ]
    return RedactionPolicy(
        [RedactionRule(action=RedactionAction.MASK, key_pattern=p) for p in patterns]
    )
