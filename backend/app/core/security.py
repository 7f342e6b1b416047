"""Shared-secret authentication for plugin-facing endpoints."""

import hmac
from typing import Annotated, Optional

import structlog
from fastapi import Depends, Header, HTTPException, Request

from .config import AuthMode
from .exceptions import AuthError

logger = structlog.get_logger(__name__)

BEARER_PREFIX = "Bearer "


def verify_bearer_token(auth_mode: AuthMode, authorization: Optional[str]) -> None:
    """Check an ``Authorization`` header against the configured mode.

    :param auth_mode: Mode resolved at startup
    :param authorization: Raw header value, if any
    :raises AuthError: 401 when the header is missing or not a Bearer token,
        403 when the token does not match the shared secret
    """
    if auth_mode.is_open:
        return

    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthError("Missing authorization header", status_code=401)

    token = authorization[len(BEARER_PREFIX) :]
    if not hmac.compare_digest(token.encode(), auth_mode.token.encode()):
        raise AuthError("Invalid API key", status_code=403)


async def require_api_key(
    request: Request,
    authorization: Annotated[Optional[str], Header()] = None,
) -> None:
    """FastAPI dependency guarding plugin-facing routes."""
    auth_mode: AuthMode = request.app.state.auth_mode
    try:
        verify_bearer_token(auth_mode, authorization)
    except AuthError as e:
        logger.info(
            "Rejected unauthenticated request",
            path=request.url.path,
            status_code=e.status_code,
        )
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


ApiKeyDep = Depends(require_api_key)
