"""Pure ASGI CORS middleware.

- Does NOT use BaseHTTPMiddleware (buffers StreamingResponse, defeats incremental delivery).
- Evaluates every http request against a PolicyConfig built once at startup.
- Injects CORS headers only on the http.response.start message, after the
  downstream app has produced its response.
- Answers preflight requests itself with 204 unless options passthrough is on.
- Non-http scopes (websocket, lifespan) and a disabled policy pass through untouched.
"""

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from corsgate.cors.engine import VARY, Outcome, RequestView, decide
from corsgate.cors.policy import PolicyConfig
from corsgate.logging import clear_request_context, get_logger, set_request_context

logger = get_logger(__name__)

PREFLIGHT_STATUS_CODE = 204


def request_view_from_headers(method: str, headers: Headers) -> RequestView:
    """Build the engine's request view from starlette headers."""
    return RequestView.build(method, headers.items())


def apply_outcome(headers: MutableHeaders, outcome: Outcome) -> None:
    """Apply an Outcome's header writes to a response.

    Replacing writes overwrite any existing value. Appending writes to Vary are
    merged into the existing comma-separated list.
    """
    for write in outcome.headers:
        if not write.append:
            headers[write.name] = write.value
        elif write.name.lower() == VARY.lower():
            headers.add_vary_header(write.value)
        else:
            headers.append(write.name, write.value)


def trace_outcome(outcome: Outcome) -> None:
    """Log a debug trace for one CORS decision."""
    if outcome.preflight:
        logger.debug("cors_preflight_request")
    else:
        logger.debug("cors_actual_request")

    if not outcome.allowed:
        event = "cors_preflight_aborted" if outcome.preflight else "cors_actual_request_skipped"
        logger.debug(event, reason=outcome.reason.value)
        return

    logger.debug(
        "cors_headers_applied",
        headers={write.name: write.value for write in outcome.headers},
        short_circuit=outcome.short_circuit,
    )


class CORSMiddleware:
    """Pure ASGI middleware applying a CORS policy to every http request.

    Args:
        app: The ASGI application.
        policy: Normalized policy, shared read-only across requests.
    """

    def __init__(self, app: ASGIApp, policy: PolicyConfig):
        self.app = app
        self.policy = policy

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self.policy.enabled:
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        outcome = decide(self.policy, request_view_from_headers(scope["method"], headers))

        if self.policy.debug:
            set_request_context(
                path=scope["path"], method=scope["method"], origin=headers.get("origin")
            )
            try:
                trace_outcome(outcome)
            finally:
                clear_request_context()

        if outcome.short_circuit:
            # Preflight - respond immediately, downstream never sees the request
            response = Response(status_code=PREFLIGHT_STATUS_CODE)
            apply_outcome(response.headers, outcome)
            await response(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                apply_outcome(MutableHeaders(scope=message), outcome)
            await send(message)

        await self.app(scope, receive, send_with_cors)
