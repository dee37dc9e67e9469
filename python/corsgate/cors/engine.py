"""CORS decision engine.

Pure functions of (PolicyConfig, RequestView). Nothing here logs, raises, or
performs I/O; host adapters apply the returned Outcome to a response and log
from Outcome.reason.

Preflight flow (OPTIONS):
1. Always replace Vary with Origin, Access-Control-Request-Method,
   Access-Control-Request-Headers (set even when the request is rejected)
2. Abort if Origin is missing or not allowed
3. Abort if Access-Control-Request-Method is not allowed
4. Abort if any of Access-Control-Request-Headers is not allowed
5. Emit Allow-Origin, Allow-Methods, Allow-Headers, Allow-Credentials, Max-Age

Actual request flow (any other method):
1. Append Origin to Vary
2. Stop if Origin is missing or not allowed, or the method is not allowed
3. Emit Allow-Origin, Expose-Headers, Allow-Credentials
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum

from corsgate.cors.policy import PolicyConfig

ORIGIN = "Origin"
VARY = "Vary"
ACCESS_CONTROL_REQUEST_METHOD = "Access-Control-Request-Method"
ACCESS_CONTROL_REQUEST_HEADERS = "Access-Control-Request-Headers"
ACCESS_CONTROL_ALLOW_ORIGIN = "Access-Control-Allow-Origin"
ACCESS_CONTROL_ALLOW_METHODS = "Access-Control-Allow-Methods"
ACCESS_CONTROL_ALLOW_HEADERS = "Access-Control-Allow-Headers"
ACCESS_CONTROL_ALLOW_CREDENTIALS = "Access-Control-Allow-Credentials"
ACCESS_CONTROL_EXPOSE_HEADERS = "Access-Control-Expose-Headers"
ACCESS_CONTROL_MAX_AGE = "Access-Control-Max-Age"

PREFLIGHT_METHOD = "OPTIONS"
PREFLIGHT_VARY = ", ".join([ORIGIN, ACCESS_CONTROL_REQUEST_METHOD, ACCESS_CONTROL_REQUEST_HEADERS])


class Decision(str, Enum):
    """Step at which a CORS evaluation finished."""

    ALLOWED = "allowed"
    ORIGIN_MISSING = "origin_missing"
    ORIGIN_NOT_ALLOWED = "origin_not_allowed"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    HEADERS_NOT_ALLOWED = "headers_not_allowed"
    PREFLIGHT_METHOD = "preflight_method"


@dataclass(frozen=True)
class HeaderWrite:
    """A single response header mutation.

    Attributes:
        name: Header name.
        value: Header value.
        append: If True, add to the existing value list instead of replacing it.
    """

    name: str
    value: str
    append: bool = False


@dataclass(frozen=True)
class Outcome:
    """Result of evaluating one request against the policy.

    Attributes:
        headers: Header writes to apply to the response, in order.
        short_circuit: If True, the host should answer the request itself
            instead of passing it downstream (preflight only).
        reason: Step that ended the evaluation. Diagnostic only.
        preflight: Whether the request was handled as a preflight.
    """

    headers: tuple[HeaderWrite, ...] = ()
    short_circuit: bool = False
    reason: Decision = Decision.ALLOWED
    preflight: bool = False

    @property
    def allowed(self) -> bool:
        return self.reason == Decision.ALLOWED


@dataclass(frozen=True)
class RequestView:
    """The parts of an HTTP request the engine reads.

    Header names are stored lower-cased so lookups are case-insensitive.
    Repeated headers keep every value in arrival order.
    """

    method: str
    raw_headers: tuple[tuple[str, str], ...] = ()

    @classmethod
    def build(
        cls, method: str, headers: Mapping[str, str] | Iterable[tuple[str, str]] = ()
    ) -> "RequestView":
        """Build a view from a header mapping or a sequence of (name, value) pairs."""
        items = headers.items() if isinstance(headers, Mapping) else headers
        return cls(
            method=method,
            raw_headers=tuple((name.lower(), value) for name, value in items),
        )

    def header(self, name: str) -> str:
        """Return the first value of a header, or "" if absent."""
        name = name.lower()
        for key, value in self.raw_headers:
            if key == name:
                return value
        return ""

    def header_values(self, name: str) -> list[str]:
        """Return every value of a possibly repeated header."""
        name = name.lower()
        return [value for key, value in self.raw_headers if key == name]


def parse_header_list(values: Iterable[str]) -> list[str]:
    """Tokenize comma-separated header lists.

    Tokens are lower-cased and trimmed; empty tokens are dropped.

    Args:
        values: Raw header values (a header may be sent more than once).

    Returns:
        Normalized header names in request order.
    """
    tokens = []
    for value in values:
        for token in value.lower().split(","):
            token = token.strip()
            if token:
                tokens.append(token)
    return tokens


def is_origin_allowed(policy: PolicyConfig, origin: str) -> bool:
    """Check an Origin value against the policy.

    Callers must reject an empty origin first; with allow-all every
    string matches.
    """
    if policy.allow_all_origins:
        return True

    origin = origin.lower()
    if origin in policy.plain_origins:
        return True

    for prefix, suffix in policy.wildcard_origins:
        # The length guard stops prefix and suffix from sharing characters
        if (
            len(origin) >= len(prefix) + len(suffix)
            and origin.startswith(prefix)
            and origin.endswith(suffix)
        ):
            return True

    return False


def is_method_allowed(policy: PolicyConfig, method: str) -> bool:
    """Check a method against the policy.

    An empty method list denies everything, including OPTIONS, which
    disables preflight entirely. Otherwise OPTIONS is always allowed.
    """
    if not policy.allowed_methods:
        return False

    method = method.upper()
    if method == PREFLIGHT_METHOD:
        return True

    return method in policy.allowed_methods


def are_headers_allowed(policy: PolicyConfig, headers: Iterable[str]) -> bool:
    """Check normalized request header names against the allow-list.

    An empty allow-list places no restriction, unlike the method list.
    """
    if policy.allow_all_headers or not policy.allowed_headers:
        return True

    return all(header in policy.allowed_headers for header in headers)


def _allow_origin_value(policy: PolicyConfig, origin: str) -> str:
    # "*" cannot be combined with credentials, so echo the origin instead
    if policy.allow_all_origins and not policy.allow_credentials:
        return "*"
    return origin


def handle_preflight(policy: PolicyConfig, request: RequestView) -> Outcome:
    """Evaluate a preflight (OPTIONS) request.

    Args:
        policy: The normalized policy.
        request: The incoming request.

    Returns:
        Outcome whose first write is always the Vary header.
    """
    writes = [HeaderWrite(VARY, PREFLIGHT_VARY)]
    short_circuit = not policy.options_passthrough

    def finish(reason: Decision) -> Outcome:
        return Outcome(
            headers=tuple(writes),
            short_circuit=short_circuit,
            reason=reason,
            preflight=True,
        )

    origin = request.header(ORIGIN)
    if origin == "":
        return finish(Decision.ORIGIN_MISSING)

    if not is_origin_allowed(policy, origin):
        return finish(Decision.ORIGIN_NOT_ALLOWED)

    request_method = request.header(ACCESS_CONTROL_REQUEST_METHOD)
    if not is_method_allowed(policy, request_method):
        return finish(Decision.METHOD_NOT_ALLOWED)

    request_headers = parse_header_list(request.header_values(ACCESS_CONTROL_REQUEST_HEADERS))
    if not are_headers_allowed(policy, request_headers):
        return finish(Decision.HEADERS_NOT_ALLOWED)

    writes.append(HeaderWrite(ACCESS_CONTROL_ALLOW_ORIGIN, _allow_origin_value(policy, origin)))

    # Echo only the requested method and headers: the allow-lists can be unbounded
    writes.append(HeaderWrite(ACCESS_CONTROL_ALLOW_METHODS, request_method.upper()))
    if request_headers:
        writes.append(HeaderWrite(ACCESS_CONTROL_ALLOW_HEADERS, ", ".join(request_headers)))

    if policy.allow_credentials:
        writes.append(HeaderWrite(ACCESS_CONTROL_ALLOW_CREDENTIALS, "true"))

    if policy.max_age > 0:
        writes.append(HeaderWrite(ACCESS_CONTROL_MAX_AGE, str(policy.max_age)))

    return finish(Decision.ALLOWED)


def handle_actual_request(policy: PolicyConfig, request: RequestView) -> Outcome:
    """Evaluate a non-preflight cross-origin request.

    Args:
        policy: The normalized policy.
        request: The incoming request.

    Returns:
        Outcome that never short-circuits. Empty for OPTIONS requests.
    """
    if request.method.upper() == PREFLIGHT_METHOD:
        return Outcome(reason=Decision.PREFLIGHT_METHOD)

    writes = [HeaderWrite(VARY, ORIGIN, append=True)]

    def finish(reason: Decision) -> Outcome:
        return Outcome(headers=tuple(writes), reason=reason)

    origin = request.header(ORIGIN)
    if origin == "":
        return finish(Decision.ORIGIN_MISSING)

    if not is_origin_allowed(policy, origin):
        return finish(Decision.ORIGIN_NOT_ALLOWED)

    # Simple methods are not required to be checked, but the allow-list applies anyway
    if not is_method_allowed(policy, request.method):
        return finish(Decision.METHOD_NOT_ALLOWED)

    writes.append(HeaderWrite(ACCESS_CONTROL_ALLOW_ORIGIN, _allow_origin_value(policy, origin)))

    if policy.exposed_headers:
        writes.append(HeaderWrite(ACCESS_CONTROL_EXPOSE_HEADERS, ", ".join(policy.exposed_headers)))

    if policy.allow_credentials:
        writes.append(HeaderWrite(ACCESS_CONTROL_ALLOW_CREDENTIALS, "true"))

    return finish(Decision.ALLOWED)


def decide(policy: PolicyConfig, request: RequestView) -> Outcome:
    """Dispatch to the preflight or actual-request flow by method."""
    if request.method.upper() == PREFLIGHT_METHOD:
        return handle_preflight(policy, request)
    return handle_actual_request(policy, request)
