"""Provides IP blacklist admission for every request the application serves."""

import logging

from fastapi import Request
from fastapi import Response
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.base import RequestResponseEndpoint

from upload_relay.services.blacklist import BlacklistStore

# Initialize logger
logger = logging.getLogger(__name__)

ACCESS_DENIED = "Access denied."


def client_address(request: Request, trust_proxy: bool = False) -> str:
    """Resolves the caller's address for admission and audit purposes.

    Candidates are tried in order and the first non-empty one wins:

    1. The proxy-aware address: the leftmost ``X-Forwarded-For`` hop when
       ``trust_proxy`` is set, otherwise the connection peer.
    2. The ``X-Forwarded-For`` header as sent.
    3. The connection peer.

    Args:
        request: The incoming request.
        trust_proxy: Whether ``X-Forwarded-For`` is set by a trusted proxy.

    Returns:
        The caller's address, or ``"unknown"`` if nothing identifies it.
    """
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    peer = request.client.host if request.client else ""

    proxy_aware = peer
    if trust_proxy and forwarded_for:
        proxy_aware = forwarded_for.split(",")[0].strip()

    for candidate in (proxy_aware, forwarded_for, peer):
        if candidate:
            return candidate
    return "unknown"


class BlacklistMiddleware(BaseHTTPMiddleware):
    """Rejects blacklisted callers with 403 before any route or static mount runs.

    The store is looked up on ``request.app.state.blacklist`` so the one instance
    owned by the application lifespan is shared with the refresh task.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        store: BlacklistStore | None = getattr(request.app.state, "blacklist", None)
        if store is None:
            return await call_next(request)

        settings = request.app.state.settings
        address = client_address(request, trust_proxy=settings.trust_proxy)
        if store.is_blacklisted(address):
            logger.warning("Blocked blacklisted address %s: %s %s", address, request.method, request.url.path)
            return PlainTextResponse(ACCESS_DENIED, status_code=403)
        return await call_next(request)
