import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .auth import limiter
from .clients import SevdeskClient, ShopifyClient
from .config import load_settings, missing_required_settings
from .database import NotificationLog, close_db, init_db
from .sync.api import router as sync_router
from .sync.poller import Poller
from .sync.processor import PaymentProcessor

logger = logging.getLogger(__name__)


def build_poller(dry_run: Optional[bool] = None) -> Poller:
    """Wire the production clients, log and processor into a Poller."""
    processor = PaymentProcessor(orders=ShopifyClient(), log=NotificationLog(), dry_run=dry_run)
    return Poller(invoices=SevdeskClient(), processor=processor)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    missing = missing_required_settings(settings)
    if missing:
        logger.warning(f"Missing required config: {', '.join(missing)}")

    await init_db()
    poller = build_poller(dry_run=getattr(app.state, "dry_run", None))
    app.state.poller = poller

    if settings.polling_enabled:
        logger.info("Starting polling job...")
        poller.start()
    else:
        logger.info("Polling job disabled")

    yield

    poller.stop()
    await poller.wait_for_cycle()
    await close_db()


app = FastAPI(title="Sevdesk to Shopify payment sync", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.include_router(sync_router)


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": str(exc), "status": 500})
