"""Shared-secret cookie gate."""

import hmac
import logging
from typing import Awaitable, Callable

from aiohttp import web

from pompey import config

log = logging.getLogger("pompey.webapp.auth")

OPEN_PATHS = frozenset({"/login", "/api/login", "/favicon.ico"})

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def is_authenticated(request: web.Request) -> bool:
    return request.cookies.get(config.AUTH_COOKIE_NAME) == config.AUTH_COOKIE_VALUE


def check_password(submitted: str, expected: str) -> bool:
    """With no site password configured, any password is accepted."""
    if not expected:
        return True
    return hmac.compare_digest((submitted or "").encode("utf-8"), expected.encode("utf-8"))


def set_auth_cookie(response: web.StreamResponse) -> None:
    response.set_cookie(
        config.AUTH_COOKIE_NAME,
        config.AUTH_COOKIE_VALUE,
        max_age=config.AUTH_COOKIE_MAX_AGE,
        httponly=True,
        secure=config.is_production(),
        samesite="Lax",
        path="/",
    )


@web.middleware
async def auth_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    if is_authenticated(request) or request.path in OPEN_PATHS:
        return await handler(request)
    log.debug("Unauthenticated request to %s, redirecting.", request.path)
    raise web.HTTPFound("/login")
