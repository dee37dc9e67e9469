"""Tests for application wiring.

Covers:
- CORS middleware installed only when CORS_ENABLED
- Middleware style selection
- End-to-end scenarios against /health through create_app
"""

import pytest
from fastapi.testclient import TestClient

from corsgate.app import add_cors_middleware, create_app
from corsgate.config import MiddlewareStyle
from corsgate.middleware import CORSHeaderMiddleware, CORSMiddleware
from tests.helpers import GOOGLE, make_downstream_app, make_policy, make_settings

SCENARIO_ENV = {
    "CORS_ALLOWED_ORIGINS": GOOGLE,
    "CORS_ALLOWED_METHODS": "GET,POST",
    "CORS_EXPOSED_HEADERS": "Custom-Header",
    "CORS_ALLOW_CREDENTIALS": True,
    "CORS_MAX_AGE": 60,
}


def installed_middleware(app) -> list[type]:
    return [m.cls for m in app.user_middleware]


class TestCreateApp:
    """Tests for create_app middleware wiring."""

    def test_cors_disabled_by_default(self):
        app = create_app(make_settings())
        assert installed_middleware(app) == []

    def test_asgi_style_by_default(self):
        app = create_app(make_settings(CORS_ENABLED=True, **SCENARIO_ENV))
        assert installed_middleware(app) == [CORSMiddleware]

    def test_http_style(self):
        app = create_app(
            make_settings(CORS_ENABLED=True, CORS_MIDDLEWARE_STYLE="http", **SCENARIO_ENV)
        )
        assert installed_middleware(app) == [CORSHeaderMiddleware]

    def test_policy_is_built_once_and_shared(self):
        app = create_app(make_settings(CORS_ENABLED=True, **SCENARIO_ENV))
        policy = app.user_middleware[0].kwargs["policy"]
        assert policy.plain_origins == frozenset({GOOGLE})
        assert policy.allowed_methods == frozenset({"GET", "POST"})

    def test_add_cors_middleware_on_existing_app(self):
        app = make_downstream_app()
        add_cors_middleware(app, make_policy(enabled=True), MiddlewareStyle.HTTP)
        assert installed_middleware(app) == [CORSHeaderMiddleware]


class TestDisabled:
    """A disabled engine leaves responses untouched."""

    def test_no_headers_when_disabled(self, client: TestClient):
        response = client.get("/health", headers={"Origin": GOOGLE})

        assert response.status_code == 200
        assert "vary" not in response.headers
        assert "access-control-allow-origin" not in response.headers


@pytest.mark.parametrize("style", ["asgi", "http"])
class TestScenarios:
    """End-to-end scenarios through the real application."""

    def test_preflight(self, cors_client, style):
        client = cors_client(CORS_MIDDLEWARE_STYLE=style, **SCENARIO_ENV)
        response = client.options(
            "/health",
            headers={
                "Origin": GOOGLE,
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "",
            },
        )

        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == GOOGLE
        assert response.headers["access-control-allow-methods"] == "GET"
        assert response.headers["access-control-allow-credentials"] == "true"
        assert response.headers["access-control-max-age"] == "60"
        assert "access-control-allow-headers" not in response.headers

    def test_actual_request(self, cors_client, style):
        client = cors_client(CORS_MIDDLEWARE_STYLE=style, **SCENARIO_ENV)
        response = client.get("/health", headers={"Origin": GOOGLE})

        assert response.status_code == 200
        assert response.json() == {"data": {"status": "ok"}}
        assert response.headers["vary"] == "Origin"
        assert response.headers["access-control-allow-origin"] == GOOGLE
        assert response.headers["access-control-expose-headers"] == "custom-header"
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_wildcard_origin_rejects_other_domain(self, cors_client, style):
        client = cors_client(
            CORS_MIDDLEWARE_STYLE=style, **{**SCENARIO_ENV, "CORS_ALLOWED_ORIGINS": "*.google.com"}
        )
        response = client.get("/health", headers={"Origin": "https://test.de"})

        assert response.status_code == 200
        assert response.headers["vary"] == "Origin"
        assert "access-control-allow-origin" not in response.headers

    def test_options_passthrough_reaches_router(self, cors_client, style):
        """With passthrough the router answers OPTIONS itself (405 on /health)."""
        client = cors_client(
            CORS_MIDDLEWARE_STYLE=style, CORS_OPTIONS_PASSTHROUGH=True, **SCENARIO_ENV
        )
        response = client.options(
            "/health",
            headers={"Origin": GOOGLE, "Access-Control-Request-Method": "GET"},
        )

        assert response.status_code == 405
        assert response.headers["access-control-allow-origin"] == GOOGLE

    def test_empty_methods_disable_preflight(self, cors_client, style):
        client = cors_client(
            CORS_MIDDLEWARE_STYLE=style, **{**SCENARIO_ENV, "CORS_ALLOWED_METHODS": ""}
        )
        response = client.options(
            "/health",
            headers={"Origin": GOOGLE, "Access-Control-Request-Method": "GET"},
        )

        assert response.status_code == 204
        assert "access-control-allow-origin" not in response.headers
