"""CORS policy engine.

This module provides:
- CorsOptions / PolicyConfig / build_policy: policy normalization
- RequestView / Outcome / decide: the per-request decision engine

The engine is framework-free; see corsgate.middleware for host adapters.
"""

from corsgate.cors.engine import (
    Decision,
    HeaderWrite,
    Outcome,
    RequestView,
    are_headers_allowed,
    decide,
    handle_actual_request,
    handle_preflight,
    is_method_allowed,
    is_origin_allowed,
    parse_header_list,
)
from corsgate.cors.policy import CorsOptions, PolicyConfig, build_policy

__all__ = [
    "CorsOptions",
    "Decision",
    "HeaderWrite",
    "Outcome",
    "PolicyConfig",
    "RequestView",
    "are_headers_allowed",
    "build_policy",
    "decide",
    "handle_actual_request",
    "handle_preflight",
    "is_method_allowed",
    "is_origin_allowed",
    "parse_header_list",
]
