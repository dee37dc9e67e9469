"""Middleware modules attaching the CORS engine to an ASGI application."""

from corsgate.middleware.cors import CORSMiddleware, apply_outcome
from corsgate.middleware.cors_header import CORSHeaderMiddleware

__all__ = ["CORSMiddleware", "CORSHeaderMiddleware", "apply_outcome"]
