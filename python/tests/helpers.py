"""Test helpers for building policies, settings and apps.

Provides:
- Policy construction from keyword options
- Settings construction with test defaults
- A minimal FastAPI app wired with either CORS adapter
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from corsgate.config import Settings
from corsgate.cors.engine import RequestView
from corsgate.cors.policy import CorsOptions, PolicyConfig, build_policy

GOOGLE = "https://google.com"

# Policy used by the end-to-end scenarios
SCENARIO_OPTIONS = {
    "enabled": True,
    "allowed_origins": [GOOGLE],
    "allowed_methods": ["GET", "POST"],
    "exposed_headers": ["Custom-Header"],
    "allow_credentials": True,
    "max_age": 60,
}

# Same policy shape, but allowing every origin without credentials
ALLOW_ALL_OPTIONS = {
    "enabled": True,
    "allowed_origins": ["*"],
    "allowed_methods": ["GET", "POST"],
    "exposed_headers": ["Custom-Header"],
    "allow_credentials": False,
    "max_age": 60,
}


def make_policy(**options) -> PolicyConfig:
    """Build a normalized policy from CorsOptions keyword arguments."""
    return build_policy(CorsOptions(**options))


def preflight(origin: str | None = None, method: str | None = None, headers: str | None = None):
    """Build an OPTIONS RequestView carrying the given CORS request headers."""
    raw = {}
    if origin is not None:
        raw["Origin"] = origin
    if method is not None:
        raw["Access-Control-Request-Method"] = method
    if headers is not None:
        raw["Access-Control-Request-Headers"] = headers
    return RequestView.build("OPTIONS", raw)


def actual(method: str, origin: str | None = None) -> RequestView:
    """Build a non-preflight RequestView."""
    return RequestView.build(method, {"Origin": origin} if origin is not None else {})


def make_settings(**overrides) -> Settings:
    """Build a Settings instance with test defaults + overrides (by env alias)."""
    defaults = {"CORSGATE_ENV": "test", "LOG_JSON": False}
    defaults.update(overrides)
    return Settings(**defaults)


def make_downstream_app() -> FastAPI:
    """A bare FastAPI app with routes exercising Vary merging and preflight passthrough."""
    app = FastAPI()

    @app.get("/items")
    async def list_items() -> dict:
        return {"items": []}

    @app.post("/items")
    async def create_item() -> dict:
        return {"created": True}

    @app.get("/varied")
    async def varied() -> JSONResponse:
        return JSONResponse({"ok": True}, headers={"Vary": "Accept-Encoding"})

    @app.options("/items")
    async def items_options() -> PlainTextResponse:
        return PlainTextResponse("downstream options", headers={"Allow": "GET, POST"})

    return app
