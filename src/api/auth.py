# This file resolves whether the caller is an admin from a bearer token.
# It exists so routers receive the admin decision as an explicit dependency instead of ambient state.
# A missing token is a 401 and an unknown token is a 403, matching the public site's role gate.

from __future__ import annotations

import hmac
from typing import Annotated

from fastapi import Depends, Request

from src.api.api_config import ApiConfig
from src.api.dependencies import get_config
from src.api.error_handlers import ForbiddenError, UnauthorizedError

ConfigDep = Annotated[ApiConfig, Depends(get_config)]


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def resolve_admin_status(request: Request, config: ApiConfig) -> None:
    """Raise UnauthorizedError/ForbiddenError unless the request carries an admin token."""

    token = _bearer_token(request)
    if token is None:
        raise UnauthorizedError()
    if not any(hmac.compare_digest(token, candidate) for candidate in config.admin_api_tokens):
        raise ForbiddenError()


def require_admin(request: Request, config: ConfigDep) -> bool:
    resolve_admin_status(request, config)
    return True


def get_is_admin(request: Request, config: ConfigDep) -> bool:
    try:
        resolve_admin_status(request, config)
    except (UnauthorizedError, ForbiddenError):
        return False
    return True
