"""Bearer authentication dependency for protected API routes."""

from __future__ import annotations

import secrets
from typing import Annotated, cast

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from loyalbot.config import Secrets

_bearer_scheme = HTTPBearer(auto_error=False)


async def require_bearer_auth(
    request: Request,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(_bearer_scheme),
    ],
) -> None:
    """Require the configured API token on protected routes."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized_error()
    expected = _resolve_secrets(request).api_token
    if not secrets.compare_digest(
        expected.encode("utf-8"),
        credentials.credentials.encode("utf-8"),
    ):
        raise _unauthorized_error()


def _resolve_secrets(request: Request) -> Secrets:
    state_obj = cast("object", request.app.state)
    secrets_obj = getattr(state_obj, "secrets", None)
    if not isinstance(secrets_obj, Secrets):
        message = "Missing app secrets: app.state.secrets."
        raise TypeError(message)
    return secrets_obj


def _unauthorized_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized.",
        headers={"WWW-Authenticate": "Bearer"},
    )
