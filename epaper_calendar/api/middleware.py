"""Access-token and request-timeout middleware for the epaper_calendar web surface."""

from __future__ import annotations

import asyncio
import hmac
import logging
from collections.abc import Awaitable, Callable
from typing import Optional

from aiohttp import web

from .correlation_id import get_request_id

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def extract_token(request: web.Request) -> Optional[str]:
    """Token from the Authorization header (raw or ``Bearer``) or the ``token`` query."""
    header = request.headers.get("Authorization", "").strip()
    if header:
        if header.lower().startswith("bearer "):
            return header[7:].strip()
        return header
    return request.query.get("token")


def check_access_token(request: web.Request, required_token: Optional[str]) -> bool:
    """Check the request carries ``required_token``.

    Args:
        request: aiohttp request object
        required_token: Expected token, or None to skip auth

    Returns:
        True if auth is valid or not required, False otherwise
    """
    if required_token is None:
        return True
    provided = extract_token(request)
    if provided is None:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), required_token.encode("utf-8"))


def make_auth_middleware(required_token: Optional[str]) -> Callable[..., Awaitable[web.StreamResponse]]:
    """Build a middleware rejecting requests without the access token."""

    @web.middleware
    async def auth_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if is_cors_preflight(request):
            return await handler(request)
        if not check_access_token(request, required_token):
            logger.warning(
                "Rejected unauthenticated request to %s from %s [%s]",
                request.path,
                request.remote,
                get_request_id(),
            )
            return web.json_response({"error": "unauthorized"}, status=401)
        return await handler(request)

    return auth_middleware


def is_cors_preflight(request: web.Request) -> bool:
    """Whether ``request`` is a browser CORS preflight, which never carries credentials."""
    return request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers


def make_timeout_middleware(seconds: float) -> Callable[..., Awaitable[web.StreamResponse]]:
    """Build a middleware answering 408 when a handler runs longer than ``seconds``."""

    @web.middleware
    async def timeout_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        try:
            return await asyncio.wait_for(handler(request), timeout=seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Request %s %s timed out after %.1fs [%s]",
                request.method,
                request.path,
                seconds,
                get_request_id(),
            )
            return web.json_response({"error": "request timeout"}, status=408)

    return timeout_middleware
