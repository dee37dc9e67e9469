"""FastAPI application creation and configuration.

This module creates and configures the FastAPI application instance.
It registers exception handlers, the CORS middleware, and routes.

CORS Policy Lifecycle:
- The policy is built once from settings when the app is created
- The resulting PolicyConfig is immutable and shared by every request
- Changing the policy means creating a new app

Middleware Style:
- asgi (default): CORSMiddleware, pure ASGI, safe for streaming responses
- http: CORSHeaderMiddleware, BaseHTTPMiddleware request/response style
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from corsgate.api.routes import create_api_router
from corsgate.config import MiddlewareStyle, Settings, get_settings
from corsgate.cors.policy import PolicyConfig, build_policy
from corsgate.errors import ApiError, ApiErrorCode
from corsgate.logging import configure_logging, get_logger
from corsgate.middleware.cors import CORSMiddleware
from corsgate.middleware.cors_header import CORSHeaderMiddleware
from corsgate.responses import (
    api_error_handler,
    error_response,
    http_exception_handler,
    unhandled_exception_handler,
)

logger = get_logger(__name__)


def add_cors_middleware(
    app: FastAPI,
    policy: PolicyConfig,
    style: MiddlewareStyle = MiddlewareStyle.ASGI,
) -> None:
    """Attach the CORS engine to the app.

    Should be called AFTER all other middleware is added, so it runs FIRST
    and decorates every response, including errors from inner middleware.

    Args:
        app: The FastAPI application.
        policy: Normalized CORS policy.
        style: Which adapter to install.
    """
    if style == MiddlewareStyle.HTTP:
        app.add_middleware(CORSHeaderMiddleware, policy=policy)
    else:
        app.add_middleware(CORSMiddleware, policy=policy)

    logger.info(
        "cors_middleware_enabled",
        style=style.value,
        allow_all_origins=policy.allow_all_origins,
        origins=sorted(policy.plain_origins),
        wildcard_origins=["*".join(pair) for pair in policy.wildcard_origins],
        methods=sorted(policy.allowed_methods),
        allow_credentials=policy.allow_credentials,
        options_passthrough=policy.options_passthrough,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings (for testing). Loaded from environment if None.

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    configure_logging(
        json_format=settings.log_json,
        level=logging.DEBUG if settings.cors_debug else logging.INFO,
    )

    app = FastAPI(
        title="corsgate",
        description="CORS policy engine for ASGI applications",
        version="0.1.0",
    )

    # Register exception handlers
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors."""
        return JSONResponse(
            status_code=400,
            content=error_response(ApiErrorCode.E_INVALID_REQUEST, "Invalid request"),
        )

    app.include_router(create_api_router())

    policy = build_policy(settings.cors_options)
    logger.debug(
        "cors_policy_initialized",
        allowed_headers=sorted(policy.allowed_headers),
        exposed_headers=list(policy.exposed_headers),
    )

    if policy.enabled:
        add_cors_middleware(app, policy, settings.cors_middleware_style)
    else:
        logger.info("cors_middleware_disabled")

    return app
