"""Environment-based configuration."""

import os
import logging
from typing import List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_SEVDESK_BASE_URL = "https://my.sevdesk.de/api/v1"
DEFAULT_SHOPIFY_API_VERSION = "2024-01"

_TRUTHY = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


class Settings(BaseModel):
    """Process-wide settings. Build with load_settings(); never cache."""
    sevdesk_api_key: str = ""
    sevdesk_base_url: str = DEFAULT_SEVDESK_BASE_URL

    shopify_shop: str = ""
    shopify_client_id: str = ""
    shopify_client_secret: str = ""
    shopify_access_token: Optional[str] = None
    shopify_api_version: str = DEFAULT_SHOPIFY_API_VERSION

    port: int = 3000
    poll_interval_ms: int = 60000
    polling_enabled: bool = False
    dry_run: bool = False
    log_level: str = "INFO"
    api_key: Optional[str] = None

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000


def load_settings() -> Settings:
    """Read settings from the environment.

    Called at every point of use so that toggles such as DRY_RUN take
    effect without a restart.
    """
    return Settings(
        sevdesk_api_key=os.getenv("SEVDESK_API_KEY", ""),
        sevdesk_base_url=os.getenv("SEVDESK_BASE_URL", DEFAULT_SEVDESK_BASE_URL),
        shopify_shop=os.getenv("SHOPIFY_SHOP", "").rstrip("/"),
        shopify_client_id=os.getenv("SHOPIFY_CLIENT_ID", ""),
        shopify_client_secret=os.getenv("SHOPIFY_CLIENT_SECRET", ""),
        shopify_access_token=os.getenv("SHOPIFY_ACCESS_TOKEN") or None,
        shopify_api_version=os.getenv("SHOPIFY_API_VERSION", DEFAULT_SHOPIFY_API_VERSION),
        port=int(os.getenv("PORT", "3000")),
        poll_interval_ms=int(os.getenv("POLL_INTERVAL_MS", "60000")),
        polling_enabled=_env_flag("ENABLE_POLLING"),
        dry_run=_env_flag("DRY_RUN"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        api_key=os.getenv("API_KEY") or None,
    )


def is_dry_run() -> bool:
    return load_settings().dry_run


def missing_required_settings(settings: Optional[Settings] = None) -> List[str]:
    """Return the environment variable names of required settings that are empty."""
    settings = settings or load_settings()
    missing = []
    if not settings.shopify_shop:
        missing.append("SHOPIFY_SHOP")
    if not settings.shopify_access_token:
        if not settings.shopify_client_id:
            missing.append("SHOPIFY_CLIENT_ID")
        if not settings.shopify_client_secret:
            missing.append("SHOPIFY_CLIENT_SECRET")
    if not settings.sevdesk_api_key:
        missing.append("SEVDESK_API_KEY")
    return missing
