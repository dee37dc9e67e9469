"""CORS policy configuration and normalization.

Two types:
- CorsOptions: raw configuration as supplied by the host (unvalidated lists/scalars)
- PolicyConfig: immutable, normalized policy built once by build_policy()

Normalization rules:
- Origins are lower-cased. "*" allows every origin and stops further processing.
- An origin containing "*" is split at the first "*" into a (prefix, suffix) pair.
- "origin" is always part of a non-empty header allow-list (some browsers always
  request it at preflight). An empty allow-list places no restriction on headers.
- Allowed/exposed headers are lower-cased, methods are upper-cased.

Malformed configuration never raises. Empty lists degrade to restrictive behavior
(an empty method list denies every method, including preflight).
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

ORIGIN_HEADER = "origin"
WILDCARD = "*"


@dataclass(frozen=True)
class CorsOptions:
    """Raw CORS configuration as loaded by the host.

    Attributes:
        enabled: Whether CORS handling is active at all.
        allowed_origins: Origins allowed to make cross-origin requests.
            "*" allows all, "https://*.example.com" allows one wildcard segment.
        allowed_methods: HTTP methods allowed for cross-origin requests.
        allowed_headers: Request headers allowed in preflight. "*" allows all.
        exposed_headers: Response headers exposed to the browser.
        allow_credentials: Whether to announce credential support.
        max_age: Preflight cache duration in seconds (<= 0 omits the header).
        options_passthrough: Pass preflight requests on to downstream handlers.
        debug: Emit debug traces for every CORS decision.
    """

    enabled: bool = False
    allowed_origins: Sequence[str] = field(default_factory=tuple)
    allowed_methods: Sequence[str] = field(default_factory=tuple)
    allowed_headers: Sequence[str] = field(default_factory=tuple)
    exposed_headers: Sequence[str] = field(default_factory=tuple)
    allow_credentials: bool = False
    max_age: int = 0
    options_passthrough: bool = False
    debug: bool = False


@dataclass(frozen=True)
class PolicyConfig:
    """Normalized, immutable CORS policy.

    Safe to share across concurrent requests. Build with build_policy().
    """

    allow_all_origins: bool = False
    plain_origins: frozenset[str] = frozenset()
    wildcard_origins: tuple[tuple[str, str], ...] = ()
    allow_all_headers: bool = False
    allowed_headers: frozenset[str] = frozenset()
    exposed_headers: tuple[str, ...] = ()
    allowed_methods: frozenset[str] = frozenset()
    allow_credentials: bool = False
    max_age: int = 0
    options_passthrough: bool = False
    enabled: bool = False
    debug: bool = False


def split_origins(
    origins: Sequence[str],
) -> tuple[bool, frozenset[str], tuple[tuple[str, str], ...]]:
    """Classify configured origins.

    Args:
        origins: Raw origin strings.

    Returns:
        Tuple of (allow_all, plain_origins, wildcard_origins). When allow_all is
        True the two collections contain only what was seen before the "*".
    """
    plain: set[str] = set()
    wildcards: list[tuple[str, str]] = []

    for origin in origins:
        origin = origin.lower()
        if origin == WILDCARD:
            return True, frozenset(plain), tuple(wildcards)
        prefix, star, suffix = origin.partition(WILDCARD)
        if star:
            wildcards.append((prefix, suffix))
        else:
            plain.add(origin)

    return False, frozenset(plain), tuple(wildcards)


def build_policy(options: CorsOptions) -> PolicyConfig:
    """Build the normalized policy from raw options.

    Called once at startup (or on policy change); the result is never mutated.

    Args:
        options: Raw configuration record.

    Returns:
        PolicyConfig ready for use by the engine.
    """
    allow_all_origins, plain_origins, wildcard_origins = split_origins(options.allowed_origins)

    # An empty allow-list means "no restriction", which already admits Origin
    allowed_headers = [h.lower() for h in options.allowed_headers]
    if allowed_headers and ORIGIN_HEADER not in allowed_headers:
        allowed_headers.append(ORIGIN_HEADER)

    return PolicyConfig(
        allow_all_origins=allow_all_origins,
        plain_origins=plain_origins,
        wildcard_origins=wildcard_origins,
        allow_all_headers=WILDCARD in allowed_headers,
        allowed_headers=frozenset(allowed_headers),
        exposed_headers=tuple(h.lower() for h in options.exposed_headers),
        allowed_methods=frozenset(m.upper() for m in options.allowed_methods),
        allow_credentials=options.allow_credentials,
        max_age=options.max_age,
        options_passthrough=options.options_passthrough,
        enabled=options.enabled,
        debug=options.debug,
    )
