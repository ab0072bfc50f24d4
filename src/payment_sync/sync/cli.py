#!/usr/bin/env python3
"""Command-line interface for the payment sync service.

Usage:
    payment-sync serve
    payment-sync poll-once --since 2026-02-01
    payment-sync --dry-run process --invoice-id 12345
    payment-sync history --status failed --format text
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from ..clients import ClientError, SevdeskClient, ShopifyClient
from ..config import load_settings
from ..database import (
    NotificationLog,
    NotificationRepository,
    close_db,
    init_db,
    session_scope,
)
from .poller import Poller
from .processor import PaymentProcessor
from .report import REPORT_FORMATS, HistoryReport

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=level or load_settings().log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def parse_datetime(dt_string: str) -> datetime:
    """Parse an ISO date or datetime; naive values are taken as UTC.

    Raises:
        ValueError: If the string cannot be parsed.
    """
    formats = [
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%dT%H:%M:%S.%f",
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d",
    ]

    for fmt in formats:
        try:
            return datetime.strptime(dt_string, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    try:
        parsed = datetime.fromisoformat(dt_string)
    except ValueError:
        raise ValueError(
            f"Unable to parse datetime: {dt_string}. "
            f"Expected formats: YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS"
        ) from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _build_processor(dry_run: Optional[bool] = None) -> PaymentProcessor:
    return PaymentProcessor(orders=ShopifyClient(), log=NotificationLog(), dry_run=dry_run)


async def poll_once_async(since: Optional[datetime] = None, dry_run: Optional[bool] = None) -> int:
    """Run a single poll cycle. Exit code 0 on success, 2 if the cycle failed."""
    await init_db()
    try:
        poller = Poller(invoices=SevdeskClient(), processor=_build_processor(dry_run))
        summary = await poller.run_cycle(since=since)
        print(summary.model_dump_json(indent=2))
        if not summary.succeeded:
            logger.error(f"Poll cycle failed: {summary.error}")
            return 2
        return 0
    finally:
        await close_db()


async def process_invoice_async(invoice_id: str, dry_run: Optional[bool] = None) -> int:
    """Fetch one invoice from Sevdesk and run the workflow on it.

    Only paid invoices are processed; any other status exits with 1.
    """
    await init_db()
    try:
        try:
            invoice = await SevdeskClient().get_invoice(invoice_id)
        except ClientError as e:
            logger.error(str(e))
            return 2

        if not invoice.is_paid:
            logger.error(f"Invoice {invoice_id} is not paid (status {invoice.status.value}); not processing")
            return 1

        outcome = await _build_processor(dry_run).process_paid_invoice(invoice)
        print(outcome.value if outcome else "already_processed")
        return 0 if outcome is None or outcome.value in ("sent", "dry-run") else 1
    finally:
        await close_db()


async def history_async(
    invoice_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 100,
    output_format: str = "json",
    output_file: Optional[str] = None,
) -> int:
    await init_db()
    try:
        async with session_scope() as session:
            repo = NotificationRepository(session)
            if invoice_id:
                records = await repo.list_by_invoice(invoice_id)
            else:
                records = await repo.list_recent(limit=limit, status=status)

        output = HistoryReport(records).render(output_format)

        if output_file:
            with open(output_file, "w") as f:
                f.write(output)
            logger.info(f"Report written to {output_file}")
        else:
            print(output)
        return 0
    finally:
        await close_db()


def serve(dry_run: Optional[bool] = None) -> int:
    import uvicorn

    from ..api import app

    app.state.dry_run = dry_run
    settings = load_settings()
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payment-sync",
        description="Mark Shopify orders as paid when their Sevdesk invoices are paid.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Match invoices to orders without marking anything as paid",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Run the HTTP service (and the poller if ENABLE_POLLING=true)")

    poll_parser = subparsers.add_parser("poll-once", help="Run a single poll cycle")
    poll_parser.add_argument(
        "--since", "-s",
        help="Only invoices updated since (YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS); default last 24 hours",
    )

    process_parser = subparsers.add_parser("process", help="Process a single invoice")
    process_parser.add_argument("--invoice-id", "-i", required=True, help="Sevdesk invoice id")

    history_parser = subparsers.add_parser("history", help="Export the notification log")
    history_parser.add_argument("--invoice-id", "-i", help="Only records for this invoice")
    history_parser.add_argument(
        "--status",
        choices=["sent", "failed", "skipped", "dry-run"],
        help="Only records with this status",
    )
    history_parser.add_argument("--limit", "-n", type=int, default=100)
    history_parser.add_argument(
        "--format", "-f",
        choices=list(REPORT_FORMATS),
        default="json",
        help="Output format (default: json)",
    )
    history_parser.add_argument("--output", "-o", help="Output file path (default: stdout)")

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Optional list of command-line arguments (for testing).

    Returns:
        Exit code.
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    configure_logging()

    # Without the flag the processor reads DRY_RUN at each invocation
    dry_run = True if parsed_args.dry_run else None

    if parsed_args.command == "serve":
        return serve(dry_run)

    if parsed_args.command == "poll-once":
        since = None
        if parsed_args.since:
            try:
                since = parse_datetime(parsed_args.since)
            except ValueError as e:
                logger.error(str(e))
                return 1
        return asyncio.run(poll_once_async(since, dry_run))

    if parsed_args.command == "process":
        return asyncio.run(process_invoice_async(parsed_args.invoice_id, dry_run))

    if parsed_args.command == "history":
        return asyncio.run(history_async(
            invoice_id=parsed_args.invoice_id,
            status=parsed_args.status,
            limit=parsed_args.limit,
            output_format=parsed_args.format,
            output_file=parsed_args.output,
        ))

    return 0


if __name__ == "__main__":
    sys.exit(main())
