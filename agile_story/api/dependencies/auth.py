"""
X-API-Key guard for the story routes.

Off unless API_AUTH_ENABLED=true. When on, every /story request must send
an X-API-Key header equal to API_KEY. /health is never guarded.
"""

import logging
import os
import secrets
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"

API_AUTH_ENABLED = os.getenv("API_AUTH_ENABLED", "false").lower() == "true"
API_KEY = os.getenv("API_KEY", "")

if API_AUTH_ENABLED and not API_KEY:
    logger.warning("[StoryAPI] API_AUTH_ENABLED is set but API_KEY is empty; all story requests will be rejected")

api_key_header = APIKeyHeader(
    name=API_KEY_HEADER,
    auto_error=False,
    description="Story API key (only checked when API_AUTH_ENABLED=true)",
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "ApiKey"},
    )


async def verify_api_key(
    api_key: Optional[str] = Security(api_key_header),
) -> Optional[str]:
    """
    Check the X-API-Key header against API_KEY.

    Returns the accepted key, or None while auth is disabled.

    Raises:
        HTTPException: 401 when the header is missing or does not match
    """
    if not API_AUTH_ENABLED:
        return None

    if not api_key:
        raise _unauthorized(f"Missing API key. Provide {API_KEY_HEADER} header.")

    if not API_KEY or not secrets.compare_digest(api_key, API_KEY):
        logger.info("[StoryAPI] Rejected request with invalid API key")
        raise _unauthorized("Invalid API key")

    return api_key
