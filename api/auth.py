"""
API Authentication for Facility OS.

Single shared bearer token from FACILITY_API_TOKEN. When the variable is
unset the API is open (local development) and a warning is logged once.

Token extraction order:
1. Authorization: Bearer <token> header
2. X-API-Token header

Usage:
    from api.auth import require_auth

    router = APIRouter(dependencies=[Depends(require_auth)])
"""

import logging
import os
import secrets

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)

_warned_open = False


def _get_token_from_env() -> str | None:
    """Read at call time so tests and deployments can change it without reimporting."""
    return os.environ.get("FACILITY_API_TOKEN") or None


def _get_token_from_request(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]

    x_token = request.headers.get("X-API-Token")
    if x_token:
        return x_token

    return None


async def require_auth(
    request: Request, credentials: HTTPAuthorizationCredentials | None = Depends(security)
) -> str | None:
    """
    Dependency that requires a valid token when one is configured.

    Raises HTTPException 401 on a missing or wrong token.
    """
    global _warned_open  # noqa: PLW0603

    expected_token = _get_token_from_env()
    if not expected_token:
        if not _warned_open:
            logger.warning("FACILITY_API_TOKEN not set; API is running without authentication")
            _warned_open = True
        return None

    provided_token = _get_token_from_request(request)
    if not provided_token:
        logger.warning(f"Auth failed: no token provided for {request.url.path}")
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Provide Bearer token in Authorization header.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not secrets.compare_digest(provided_token, expected_token):
        logger.warning(f"Auth failed: invalid token for {request.url.path}")
        raise HTTPException(
            status_code=401,
            detail="Invalid authentication token.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return provided_token
