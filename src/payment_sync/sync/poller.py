"""Interval scheduler that feeds paid invoices to the processor."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from pydantic import BaseModel, Field

from ..clients.base import InvoiceSource
from ..config import load_settings
from .processor import PaymentProcessor

logger = logging.getLogger(__name__)

# Window used before the first successful cycle
DEFAULT_LOOKBACK = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PollerState:
    """Mutable scheduler state. Owned by exactly one Poller."""
    timer_task: Optional[asyncio.Task] = None
    cycle_task: Optional[asyncio.Task] = None
    last_check_time: Optional[datetime] = None

    @property
    def running(self) -> bool:
        return self.timer_task is not None

    @property
    def cycle_in_progress(self) -> bool:
        return self.cycle_task is not None and not self.cycle_task.done()


class CycleSummary(BaseModel):
    """Result of one poll cycle."""
    started_at: datetime
    since: datetime
    invoices_found: int = 0
    outcomes: Dict[str, int] = Field(default_factory=dict)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class Poller:
    """
    Runs a poll cycle immediately on start() and then every interval.

    Cycles never overlap: a tick that arrives while a cycle is still running
    is skipped. Invoices within a cycle are processed one after another.
    """

    def __init__(
        self,
        invoices: InvoiceSource,
        processor: PaymentProcessor,
        interval_seconds: Optional[float] = None,
        lookback: timedelta = DEFAULT_LOOKBACK,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.invoices = invoices
        self.processor = processor
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None
            else load_settings().poll_interval_seconds
        )
        self.lookback = lookback
        self._clock = clock
        self.state = PollerState()

    @property
    def running(self) -> bool:
        return self.state.running

    def start(self) -> None:
        """Start polling. Must be called from within a running event loop."""
        if self.state.running:
            logger.info("Polling already running")
            return

        logger.info(f"Starting polling every {self.interval_seconds}s")
        self._fire()
        self.state.timer_task = asyncio.create_task(self._tick_forever())

    def stop(self) -> None:
        """Stop the timer. A cycle already in flight runs to completion."""
        if not self.state.running:
            return
        self.state.timer_task.cancel()
        self.state.timer_task = None
        logger.info("Stopped polling")

    async def _tick_forever(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self._fire()

    def _fire(self) -> Optional[asyncio.Task]:
        if self.state.cycle_in_progress:
            logger.warning("Previous poll cycle still running, skipping this tick")
            return None
        self.state.cycle_task = asyncio.create_task(self.run_cycle())
        return self.state.cycle_task

    async def run_now(self) -> Optional[CycleSummary]:
        """Run a cycle right away; returns None if one is already in flight."""
        task = self._fire()
        if task is None:
            return None
        return await task

    async def wait_for_cycle(self) -> Optional[CycleSummary]:
        """Wait for the in-flight cycle, if any, and return its summary."""
        task = self.state.cycle_task
        if task is None:
            return None
        return await task

    async def run_cycle(self, since: Optional[datetime] = None) -> CycleSummary:
        """Fetch paid invoices since the watermark and process them in order.

        The watermark moves to this cycle's start time once the invoice list
        has been fetched. If fetching fails, the window start is kept so the
        next cycle asks for the same range again. Never raises.
        """
        started_at = self._clock()
        if since is None:
            since = self.state.last_check_time or started_at - self.lookback
        summary = CycleSummary(started_at=started_at, since=since)

        try:
            logger.info(f"Checking for paid invoices since {since.isoformat()}")
            paid_invoices = await self.invoices.list_paid_invoices(since)
        except Exception as e:
            logger.error(f"Error checking for paid invoices: {e}", exc_info=True)
            if self.state.last_check_time is None:
                self.state.last_check_time = since
            summary.error = str(e)
            return summary

        self.state.last_check_time = started_at
        summary.invoices_found = len(paid_invoices)

        if not paid_invoices:
            logger.info("No new paid invoices found")
            return summary

        logger.info(f"Found {len(paid_invoices)} paid invoices")
        try:
            for invoice in paid_invoices:
                outcome = await self.processor.process_paid_invoice(invoice)
                key = outcome.value if outcome is not None else "already_processed"
                summary.outcomes[key] = summary.outcomes.get(key, 0) + 1
        except Exception as e:
            logger.error(f"Error processing paid invoices: {e}", exc_info=True)
            summary.error = str(e)

        return summary
