"""Request ID middleware.

Every request carries an ``X-Request-ID``: the client's own value when one was
sent, otherwise a fresh UUID. The ID is available to handlers and log calls
through :func:`get_request_id` and is echoed on the response, error responses
included.
"""

import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

from aiohttp import web

REQUEST_ID_HEADER = "X-Request-ID"

# Context variable for the current request ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


@web.middleware
async def request_id_middleware(
    request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]
) -> web.StreamResponse:
    """Attach a request ID to the request context and to the response headers.

    Args:
        request: aiohttp request object
        handler: Next handler in middleware chain

    Returns:
        Response with ``X-Request-ID`` set
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request_id_var.set(request_id)
    request["request_id"] = request_id

    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers[REQUEST_ID_HEADER] = request_id
        raise

    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def get_request_id() -> str:
    """Current request ID, or "no-request-id" outside a request."""
    request_id = request_id_var.get()
    return request_id if request_id else "no-request-id"
