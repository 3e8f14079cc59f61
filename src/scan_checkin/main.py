"""
src/scan_checkin/main.py
Command line entry point for submitting check-ins and draining the pending queue.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Iterable, List, Optional

from rich.console import Console
from rich.table import Table

from .client import RecordingServiceClient
from .config.settings import Settings
from .core.checkin import CheckInPipeline
from .core.errors import CheckInError
from .core.queue import PendingQueue
from .core.records import CheckInRecord, RecentKeys, parse_scan
from .core.reporter import Notice, Severity
from .utils.env_utils import ensure_env_file, load_env
from .utils.logger import debug_detail, logger, set_log_profile, step, success
from .utils.notifier import ConsoleNotifier


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scan-checkin", description="Submit check-ins to the recording service")
    parser.add_argument("--env-file", default=os.getenv("ENV_FILE", ".env"), help="Path to the .env file")
    parser.add_argument("--log-profile", choices=["quiet", "user", "debug"], help="Console log verbosity")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Write a .env template if none exists")

    p_checkin = sub.add_parser("checkin", help="Check a person in (queued until the service answers)")
    p_checkin.add_argument("--name")
    p_checkin.add_argument("--id", dest="record_id")

    p_scan = sub.add_parser("scan", help="Check in decoded QR strings (from args or stdin)")
    p_scan.add_argument("data", nargs="*", help="Decoded scan strings carrying name/id query parameters")
    p_scan.add_argument("--name", help="Fallback name when a scan has none")
    p_scan.add_argument("--id", dest="record_id", help="Fallback id when a scan has none")

    p_checkout = sub.add_parser("checkout", help="Undo a check-in (not queued)")
    p_checkout.add_argument("--name", required=True)

    sub.add_parser("retry", help="Resend every pending check-in")
    sub.add_parser("queue", help="Show pending check-ins")
    sub.add_parser("names", help="List the names known to the service")
    return parser


def _print_queue(queue: PendingQueue, console: Console) -> None:
    records = queue.get()
    if not records:
        console.print("No pending check-ins.")
        return
    table = Table(box=None, header_style="bold blue")
    table.add_column("#", justify="right", style="blue")
    table.add_column("Name", style="bold")
    table.add_column("ID")
    for i, record in enumerate(records, 1):
        table.add_row(str(i), record.name or "", record.id or "")
    console.print(table)


def _scan_lines(data: List[str]) -> Iterable[str]:
    if data:
        yield from data
        return
    for line in sys.stdin:
        line = line.strip()
        if line:
            yield line


async def _run_scans(
    pipeline: CheckInPipeline,
    queue: PendingQueue,
    lines: Iterable[str],
    defaults: dict,
    window: float,
) -> int:
    scans = RecentKeys(window=window)
    submits = RecentKeys(window=window)
    submitted = 0
    for data in lines:
        if scans.seen(data):
            debug_detail(f"Ignoring repeated scan: {data}")
            continue
        record = parse_scan(data, defaults)
        if record is None:
            debug_detail(f"Scan without name or id ignored: {data}")
            continue
        step(f"Checking in {record.key}")
        if await pipeline.check_in_once(record, queue, submits) is not None:
            submitted += 1
    return submitted


async def _dispatch(args: argparse.Namespace, settings: Settings) -> int:
    queue = settings.open_queue()
    notifier = ConsoleNotifier()

    if args.command == "queue":
        _print_queue(queue, notifier.console)
        return 0

    async with RecordingServiceClient(settings.require_service_url()) as client:
        pipeline = CheckInPipeline(
            client.post_record,
            notifier,
            timeout_ms=settings.submit_timeout_ms,
            extended_ms=settings.extended_notice_ms,
            processing=Notice("Processing", Severity.INFO, settings.notice_ms),
        )

        if args.command == "checkin":
            if not args.name and not args.record_id:
                logger.error("Provide --name or --id")
                return 2
            await pipeline.check_in_and_save(CheckInRecord(name=args.name, id=args.record_id), queue)
        elif args.command == "scan":
            defaults = {k: v for k, v in (("name", args.name), ("id", args.record_id)) if v}
            count = await _run_scans(
                pipeline, queue, _scan_lines(args.data), defaults, settings.debounce_seconds
            )
            success(f"Processed {count} scan(s)")
        elif args.command == "checkout":
            await pipeline.check_out(CheckInRecord(name=args.name))
        elif args.command == "retry":
            await pipeline.retry_pending(queue)
        elif args.command == "names":
            for name in await client.list_names():
                notifier.console.print(name)
            return 0

    remaining = len(queue)
    if remaining:
        logger.warning("%d check-in(s) still pending; run 'retry' once the network is back", remaining)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command == "init":
        if ensure_env_file(args.env_file):
            success(f"Wrote {args.env_file}; set CHECKIN_SERVICE_URL before checking in")
        else:
            logger.info("%s already exists; left untouched", args.env_file)
        return 0
    load_env(args.env_file)
    profile = args.log_profile or os.getenv("LOG_PROFILE")
    if profile:
        set_log_profile(profile)
    settings = Settings.from_env()
    if args.command != "queue" and not settings.service_url:
        logger.error("Missing CHECKIN_SERVICE_URL in environment or .env")
        return 2
    try:
        return asyncio.run(_dispatch(args, settings))
    except CheckInError as exc:
        logger.error(f"Check-in failed: {exc}")
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
