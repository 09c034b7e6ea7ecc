from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from catalogsync.app import (
    catalog_sync_history,
    catalog_sync_status,
    list_catalog,
    load_custom_extensions,
    sync_catalog,
)
from catalogsync.config import configure_logging
from catalogsync.domain.model import SyncRunStatus, SyncType
from catalogsync.domain.reconciliation import (
    SyncConflictError,
    SyncNotFoundError,
    SyncRunDetails,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from catalogsync.domain.model import SyncRun
    from catalogsync.domain.reconciliation import SyncStatusSummary

log = logging.getLogger(__name__)

EXIT_CONFLICT = 3


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Keep the integration catalog in sync")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Reconcile the catalog with upstream")
    sync.add_argument(
        "--type",
        dest="sync_type",
        choices=[sync_type.value for sync_type in SyncType],
        default=SyncType.INCREMENTAL.value,
        help="Sync mode (default: %(default)s)",
    )
    sync.add_argument(
        "--force",
        action="store_true",
        help="Start even if another sync is in progress",
    )
    sync.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and record the diff without changing the catalog",
    )

    status = subparsers.add_parser("status", help="Show sync status")
    status.add_argument("--sync-id", type=str, help="Show one run with its changes")

    history = subparsers.add_parser("history", help="List recent sync runs")
    history.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of runs to show (default: %(default)s)",
    )
    history.add_argument("--offset", type=int, default=0, help="Runs to skip, newest first")
    history.add_argument(
        "--status",
        choices=[status.value for status in SyncRunStatus],
        help="Only show runs in this status",
    )

    listing = subparsers.add_parser("list", help="List active catalog entries")
    listing.add_argument("--query", type=str, help="Filter by name or domain")
    listing.add_argument("--limit", type=int, default=50, help="Page size (default: %(default)s)")
    listing.add_argument("--offset", type=int, default=0, help="Page offset")

    extensions = subparsers.add_parser(
        "load-extensions",
        help="Import custom integrations from the extensions directory",
    )
    extensions.add_argument(
        "--directory",
        type=Path,
        help="Extensions directory (defaults to CATALOGSYNC_EXTENSIONS_DIR or ./extensions)",
    )

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _describe_run(run: SyncRun) -> str:
    counters = run.counters
    return (
        f"{run.id} {run.sync_type.value} {run.status.value} "
        f"started={run.started_at:%Y-%m-%d %H:%M:%S} "
        f"total={counters.total} new={counters.new} updated={counters.updated} "
        f"deleted={counters.deleted} errors={counters.errors}"
    )


def _print_status(result: SyncStatusSummary | SyncRunDetails) -> None:
    if isinstance(result, SyncRunDetails):
        print(_describe_run(result.run))  # noqa: T201
        for error in result.run.error_details:
            print(f"  error {error.domain}: {error.error}")  # noqa: T201
        for change in result.changes:
            fields = f" ({', '.join(change.changed_fields)})" if change.changed_fields else ""
            print(f"  {change.change_type.value:<10} {change.domain}{fields}")  # noqa: T201
        return
    print(f"in progress: {'yes' if result.in_progress else 'no'}")  # noqa: T201
    if result.current is not None:
        print(f"current: {_describe_run(result.current)}")  # noqa: T201
    if result.last is not None:
        print(f"last:    {_describe_run(result.last)}")  # noqa: T201


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        sync_id = (
            _parse_uuid(parsed_args.sync_id)
            if parsed_args.command == "status" and parsed_args.sync_id
            else None
        )
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "sync":
            run = sync_catalog(
                sync_type=SyncType(parsed_args.sync_type),
                force=parsed_args.force,
                dry_run=parsed_args.dry_run,
            )
            print(_describe_run(run))  # noqa: T201
            if run.status is SyncRunStatus.FAILED:
                sys.exit(1)
        elif parsed_args.command == "status":
            _print_status(catalog_sync_status(sync_id))
        elif parsed_args.command == "history":
            history = catalog_sync_history(
                parsed_args.limit,
                status=SyncRunStatus(parsed_args.status) if parsed_args.status else None,
                offset=parsed_args.offset,
            )
            for run in history.runs:
                print(_describe_run(run))  # noqa: T201
            print(f"{len(history.runs)} of {history.total}")  # noqa: T201
        elif parsed_args.command == "list":
            listing = list_catalog(
                query=parsed_args.query,
                limit=parsed_args.limit,
                offset=parsed_args.offset,
            )
            for item in listing.items:
                marker = "*" if item.is_configured else " "
                print(f"{marker} {item.entry.domain:<32} {item.entry.name}")  # noqa: T201
            print(f"{len(listing.items)} of {listing.total}")  # noqa: T201
        elif parsed_args.command == "load-extensions":
            domains = load_custom_extensions(parsed_args.directory)
            log.info("Imported: %s", ", ".join(domains) if domains else "nothing")
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except SyncConflictError as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(EXIT_CONFLICT)
    except SyncNotFoundError as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
