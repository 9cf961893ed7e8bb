"""Shared-secret authentication for the lead API and purchase webhook."""

from typing import Any, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import secrets
import logging

from lead_delivery.config import Settings, get_settings

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


def secrets_match(provided: Any, expected: Optional[str]) -> bool:
    """Constant-time comparison. Non-string or unset values never match."""
    if not isinstance(provided, str) or not isinstance(expected, str):
        return False
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def verify_webhook_secret(provided: Any, config: Settings) -> None:
    """Raise 401 unless the payload secret equals WEBHOOK_SECRET."""
    if not secrets_match(provided, config.WEBHOOK_SECRET):
        logger.warning("Webhook secret invalid or missing")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid secret"
        )


async def require_api_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    config: Settings = Depends(get_settings)
) -> None:
    """Verify the bearer token against LEAD_API_TOKEN."""
    token = credentials.credentials if credentials else None

    if not secrets_match(token, config.LEAD_API_TOKEN):
        logger.warning("Lead API token authentication failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
