"""Operator access control for the /sync endpoints."""

import logging
import secrets
from typing import Optional

from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import load_settings

logger = logging.getLogger(__name__)

# Manual cycles hit both external APIs, listing only hits the local log
RUN_CYCLE_LIMIT = "6/minute"
READ_LIMIT = "60/minute"

operator_bearer = HTTPBearer(description="Operator API key (API_KEY)")


def _client_key(request: Request) -> str:
    """Rate-limit bucket: the presented bearer token, else the client address."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token:
        return f"key:{token[:8]}"
    return get_remote_address(request)


limiter = Limiter(key_func=_client_key)


def _configured_key() -> Optional[str]:
    return load_settings().api_key


async def verify_api_key(credentials: HTTPAuthorizationCredentials = Security(operator_bearer)) -> str:
    """Check the bearer token against API_KEY.

    An unset API_KEY is a deployment error and answers 500 rather than
    letting every caller through.
    """
    expected = _configured_key()
    if not expected:
        logger.error("API_KEY is not configured; rejecting operator request")
        raise HTTPException(status_code=500, detail="Server configuration error")
    if not secrets.compare_digest(credentials.credentials.encode(), expected.encode()):
        logger.warning("Rejected operator request with invalid API key")
        raise HTTPException(status_code=401, detail="Invalid API key")
    return credentials.credentials
