"""Undiff CLI.

Entry point for the ``undiff`` command-line tool.

Usage:
    undiff replay [LOG] [-o OUT] [--drop-action-prefix P ...] [--keep PATH ...]
                  [--redact-secrets] [--lenient] [--format json|text] [-v]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

import structlog

from .core.policy import ReplayPolicy
from .core.redaction import (
    chain_action_filters,
    chain_state_filters,
    create_default_policy,
    drop_action_types,
    narrow_state,
)
from .replay import replay_log

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_replay(args: argparse.Namespace) -> None:
    state_filters = []
    action_filters = []

    if args.keep:
        state_filters.append(narrow_state(*args.keep))
    if args.drop_action_prefix:
        action_filters.append(drop_action_types(*args.drop_action_prefix))
    if args.redact_secrets:
        policy = create_default_policy()
        state_filters.append(policy.state_filter())
        action_filters.append(policy.action_filter())

    result = replay_log(
        args.log,
        args.output,
        state_filter=chain_state_filters(*state_filters) if state_filters else None,
        action_filter=chain_action_filters(*action_filters) if action_filters else None,
        policy=ReplayPolicy.lenient() if args.lenient else ReplayPolicy.default(),
    )

    if args.format == "json":
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print(result.summary())

    if not result.is_success():
        sys.exit(1)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="undiff",
        description="Undiff: rebuild application state from a diagnostic log",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log every dropped line"
    )
    subparsers = parser.add_subparsers(dest="command")

    replay_parser = subparsers.add_parser(
        "replay", help="Recreate the store from a log that has diffs"
    )
    replay_parser.add_argument(
        "log", nargs="?", default="./log.txt", help="Log to analyze (default: ./log.txt)"
    )
    replay_parser.add_argument(
        "-o",
        "--output",
        default="./log.json",
        help="Where to write the timeline (default: ./log.json)",
    )
    replay_parser.add_argument(
        "--drop-action-prefix",
        action="append",
        metavar="PREFIX",
        help="Drop actions whose type starts with PREFIX (repeatable)",
    )
    replay_parser.add_argument(
        "--keep",
        action="append",
        metavar="PATH",
        help="Keep only this dotted state path in snapshots (repeatable)",
    )
    replay_parser.add_argument(
        "--redact-secrets",
        action="store_true",
        help="Mask tokens, passwords and session ids in states and actions",
    )
    replay_parser.add_argument(
        "--lenient",
        action="store_true",
        help="Accept diff lines without the origin marker",
    )
    replay_parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="text",
        help="Result report format (default: text)",
    )
    replay_parser.set_defaults(func=_cmd_replay)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
