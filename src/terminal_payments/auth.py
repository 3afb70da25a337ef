"""Authentication and rate limiting helpers for the API."""

import secrets
import logging
from typing import Optional

from fastapi import HTTPException, Request, Security
from fastapi.security import APIKeyHeader
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import Settings

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"

api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


def create_limiter(settings: Settings) -> Limiter:
    """Build the rate limiter applied to every route.

    Args:
        settings: Settings carrying the limit string and on/off switch.

    Returns:
        Configured Limiter keyed by client address.
    """
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
    )


async def verify_api_key(
    request: Request,
    api_key: Optional[str] = Security(api_key_header),
) -> str:
    """Verify the API key from the ``X-API-Key`` header.

    Args:
        request: Incoming request; settings are read from ``app.state``.
        api_key: Header value, if sent.

    Returns:
        The verified API key.

    Raises:
        HTTPException: If the API key is missing, wrong, or not configured.
    """
    settings: Settings = request.app.state.settings
    expected_key = settings.api_key
    if not expected_key:
        logger.error("API_KEY is not configured")
        raise HTTPException(status_code=500, detail="Server configuration error")
    if not api_key or not secrets.compare_digest(
        api_key.encode("utf-8"), expected_key.encode("utf-8")
    ):
        logger.warning(f"Rejected request to {request.url.path}: bad API key")
        raise HTTPException(status_code=401, detail="Unauthorized")
    return api_key
