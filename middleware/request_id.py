"""
Request ID middleware.

Each request gets an id (client supplied X-Request-ID, or a fresh uuid4). It is
stored on request.state, echoed back in the response headers, and published
through `request_id_ctx` so RequestIDFilter can stamp it on every log record
emitted while the request is being served.
"""

import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from utils.logger import request_id_ctx


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        token = request_id_ctx.set(request_id)
        try:
            response: Response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            request_id_ctx.reset(token)


def get_request_id(request: Request) -> str:
    """Request id of the current request, or "no-request-id" outside the middleware."""
    return getattr(request.state, "request_id", "no-request-id")
