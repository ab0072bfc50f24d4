"""Operator endpoints for the sync scheduler and notification history."""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import READ_LIMIT, RUN_CYCLE_LIMIT, limiter, verify_api_key
from ..database import NotificationRepository, NotificationStatus, get_db
from .poller import CycleSummary, Poller

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


class PollerStatusResponse(BaseModel):
    running: bool
    cycle_in_progress: bool
    last_check_time: Optional[datetime] = None
    interval_seconds: float


class NotificationResponse(BaseModel):
    id: int
    sevdesk_invoice_id: str
    notification_type: str
    customer_email: str
    shopify_order_id: Optional[str] = None
    status: str
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    total: int
    status_counts: Dict[str, int]
    records: List[NotificationResponse]


def get_poller(request: Request) -> Poller:
    poller = getattr(request.app.state, "poller", None)
    if poller is None:
        raise HTTPException(status_code=503, detail="Scheduler not initialized")
    return poller


def _to_response(record) -> NotificationResponse:
    return NotificationResponse(
        id=record.id,
        sevdesk_invoice_id=record.sevdesk_invoice_id,
        notification_type=record.notification_type,
        customer_email=record.customer_email,
        shopify_order_id=record.shopify_order_id,
        status=record.status,
        error_message=record.error_message,
        created_at=record.created_at,
    )


@router.post("/run", response_model=CycleSummary)
@limiter.limit(RUN_CYCLE_LIMIT)
async def run_cycle(
    request: Request,
    poller: Poller = Depends(get_poller),
    api_key: str = Depends(verify_api_key),
):
    """Run one poll cycle now and return its summary."""
    logger.info("Manual poll cycle requested")
    summary = await poller.run_now()
    if summary is None:
        raise HTTPException(status_code=409, detail="A poll cycle is already running")
    return summary


@router.get("/status", response_model=PollerStatusResponse)
async def poller_status(
    poller: Poller = Depends(get_poller),
    api_key: str = Depends(verify_api_key),
):
    return PollerStatusResponse(
        running=poller.running,
        cycle_in_progress=poller.state.cycle_in_progress,
        last_check_time=poller.state.last_check_time,
        interval_seconds=poller.interval_seconds,
    )


@router.get("/notifications", response_model=NotificationListResponse)
@limiter.limit(READ_LIMIT)
async def list_notifications(
    request: Request,
    limit: int = Query(default=100, ge=1, le=1000),
    status: Optional[str] = Query(default=None, description="sent, failed, skipped or dry-run"),
    db: AsyncSession = Depends(get_db),
    api_key: str = Depends(verify_api_key),
):
    """Most recent notification records, newest first."""
    if status is not None and status not in {s.value for s in NotificationStatus}:
        raise HTTPException(
            status_code=400,
            detail="status must be one of: sent, failed, skipped, dry-run",
        )

    repo = NotificationRepository(db)
    records = await repo.list_recent(limit=limit, status=status)
    return NotificationListResponse(
        total=len(records),
        status_counts=await repo.count_by_status(),
        records=[_to_response(r) for r in records],
    )


@router.get("/notifications/{invoice_id}", response_model=List[NotificationResponse])
async def invoice_notifications(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
    api_key: str = Depends(verify_api_key),
):
    """Every record for one invoice, oldest first."""
    records = await NotificationRepository(db).list_by_invoice(invoice_id)
    if not records:
        raise HTTPException(status_code=404, detail=f"No notifications for invoice {invoice_id}")
    return [_to_response(r) for r in records]
