from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from possync.app import (
    auto_resolve_conflicts,
    conflict_history,
    conflict_summary,
    list_pending_conflicts,
    list_rules,
    purge_resolved_conflicts,
)
from possync.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve POS sync conflicts")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "auto-resolve",
        help="Apply resolution rules to every unresolved conflict",
    )

    purge = subparsers.add_parser("purge", help="Soft-delete old resolved conflicts")
    purge.add_argument(
        "--older-than-days",
        type=int,
        default=None,
        help="Retention window in days (defaults to POSSYNC_RETENTION_DAYS)",
    )

    subparsers.add_parser("summary", help="Show conflict counts")
    subparsers.add_parser("rules", help="List the active resolution rules")

    pending = subparsers.add_parser("pending", help="List unresolved conflicts, oldest first")
    pending.add_argument("--entity-type", default=None, help="Only this entity type")
    pending.add_argument(
        "--page",
        type=int,
        default=0,
        help="Zero-based page (page size from POSSYNC_QUERY_PAGE_SIZE)",
    )

    history = subparsers.add_parser("history", help="Show the audit trail of one conflict")
    history.add_argument("conflict_id", type=str, help="Conflict id (UUID)")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _validate(args: argparse.Namespace) -> UUID | None:
    if args.command == "purge" and args.older_than_days is not None and args.older_than_days < 0:
        raise ValueError("--older-than-days must be non-negative")
    if args.command == "pending" and args.page < 0:
        raise ValueError("--page must be non-negative")
    if args.command == "history":
        return _parse_uuid(args.conflict_id)
    return None


def _log_summary() -> None:
    summary = conflict_summary()
    log.info(
        "Conflicts: total=%s, unresolved=%s, pending_manual=%s, auto_resolved=%s, "
        "manually_resolved=%s, ignored=%s",
        summary.total_conflicts,
        summary.unresolved,
        summary.pending_manual,
        summary.auto_resolved,
        summary.manually_resolved,
        summary.ignored,
    )
    for entity_type, count in summary.by_entity_type.items():
        log.info("  %s: %s", entity_type, count)
    for conflict in summary.recent_conflicts:
        log.info(
            "  recent %s %s:%s [%s] detected %s",
            conflict.id,
            conflict.entity_type,
            conflict.entity_id,
            conflict.status,
            conflict.detected_at.isoformat(),
        )


def _log_rules() -> None:
    for rule in list_rules():
        log.info(
            "%-4s %s.%s -> %s%s  %s",
            rule.priority,
            rule.entity_type,
            rule.property_name or "*",
            rule.default_resolution,
            " (manual review)" if rule.require_manual_review else "",
            rule.description or "",
        )


def _log_pending(entity_type: str | None, page: int) -> None:
    conflicts = list_pending_conflicts(entity_type=entity_type, page=page)
    if not conflicts:
        log.info("No unresolved conflicts on page %s", page)
    for conflict in conflicts:
        log.info(
            "%s %s:%s [%s] fields=%s detected %s",
            conflict.id,
            conflict.entity_type,
            conflict.entity_id,
            conflict.status,
            ",".join(conflict.conflicting_fields) or "-",
            conflict.detected_at.isoformat(),
        )


def _log_history(conflict_id: UUID) -> None:
    entries = conflict_history(conflict_id)
    if not entries:
        log.warning("No audit entries for conflict %s", conflict_id)
    for entry in entries:
        log.info(
            "%s %s %s -> %s user=%s %s",
            entry.timestamp.isoformat(),
            entry.action,
            entry.old_status or "-",
            entry.new_status,
            entry.user_id if entry.user_id is not None else "-",
            entry.details or "",
        )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        conflict_id = _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "auto-resolve":
            resolved = auto_resolve_conflicts()
            log.info("Auto-resolution finished: resolved=%s", resolved)
        elif parsed_args.command == "purge":
            purged = purge_resolved_conflicts(older_than_days=parsed_args.older_than_days)
            log.info("Purge finished: purged=%s", purged)
        elif parsed_args.command == "summary":
            _log_summary()
        elif parsed_args.command == "rules":
            _log_rules()
        elif parsed_args.command == "pending":
            _log_pending(parsed_args.entity_type, parsed_args.page)
        elif parsed_args.command == "history" and conflict_id is not None:
            _log_history(conflict_id)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during conflict processing")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point: load ``.env`` and install the SIGINT handler."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
