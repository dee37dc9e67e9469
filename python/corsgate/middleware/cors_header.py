"""Request/response style CORS middleware.

Same policy and decisions as the pure ASGI CORSMiddleware, attached through
starlette's BaseHTTPMiddleware for hosts that compose middleware with
dispatch(request, call_next). The downstream response is produced first and
decorated afterwards.

Use CORSMiddleware instead for streaming endpoints: BaseHTTPMiddleware
buffers StreamingResponse bodies.
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from corsgate.cors.engine import decide
from corsgate.cors.policy import PolicyConfig
from corsgate.logging import clear_request_context, set_request_context
from corsgate.middleware.cors import (
    PREFLIGHT_STATUS_CODE,
    apply_outcome,
    request_view_from_headers,
    trace_outcome,
)


class CORSHeaderMiddleware(BaseHTTPMiddleware):
    """Middleware decorating responses with CORS headers.

    Order of operations:
    1. Pass through untouched if the policy is disabled
    2. Evaluate the request (preflight for OPTIONS, actual request otherwise)
    3. Short-circuited preflight: answer 204 without calling downstream
    4. Otherwise call downstream, then apply the header writes to its response

    Args:
        app: The ASGI application.
        policy: Normalized policy, shared read-only across requests.
    """

    def __init__(self, app: ASGIApp, policy: PolicyConfig):
        super().__init__(app)
        self.policy = policy

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request with CORS handling."""
        if not self.policy.enabled:
            return await call_next(request)

        outcome = decide(self.policy, request_view_from_headers(request.method, request.headers))

        if self.policy.debug:
            set_request_context(
                path=request.url.path,
                method=request.method,
                origin=request.headers.get("origin"),
            )
            try:
                trace_outcome(outcome)
            finally:
                clear_request_context()

        if outcome.short_circuit:
            response = Response(status_code=PREFLIGHT_STATUS_CODE)
        else:
            response = await call_next(request)

        apply_outcome(response.headers, outcome)
        return response
