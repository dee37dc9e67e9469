"""Application settings loaded from environment variables.

Environment Configuration:
    CORSGATE_ENV: Deployment environment (local | test | staging | prod)
    LOG_JSON: Emit JSON logs (default true); false renders console-friendly output

CORS Configuration:
    CORS_ENABLED: Turn CORS handling on (default false)
    CORS_ALLOWED_ORIGINS: Comma-separated origins; "*" allows all,
        "https://*.example.com" allows one wildcard segment
    CORS_ALLOWED_METHODS: Comma-separated methods (default GET,POST,HEAD)
    CORS_ALLOWED_HEADERS: Comma-separated request headers; "*" allows all,
        empty places no restriction
    CORS_EXPOSED_HEADERS: Comma-separated response headers exposed to browsers
    CORS_ALLOW_CREDENTIALS: Announce credential support (default false)
    CORS_MAX_AGE: Preflight cache duration in seconds; <= 0 omits the header
    CORS_OPTIONS_PASSTHROUGH: Pass preflight requests on to route handlers
    CORS_DEBUG: Log a debug trace for every CORS decision
    CORS_MIDDLEWARE_STYLE: "asgi" (pure ASGI, default) or "http" (BaseHTTPMiddleware)
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from corsgate.cors.policy import CorsOptions


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class MiddlewareStyle(str, Enum):
    """How the CORS engine is attached to the application."""

    ASGI = "asgi"
    HTTP = "http"


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables. Malformed CORS lists are
    not rejected: they simply produce a more restrictive policy.
    """

    corsgate_env: Environment = Field(default=Environment.LOCAL, alias="CORSGATE_ENV")
    log_json: bool = Field(default=True, alias="LOG_JSON")

    # CORS policy
    cors_enabled: bool = Field(default=False, alias="CORS_ENABLED")
    cors_allowed_origins: str = Field(default="", alias="CORS_ALLOWED_ORIGINS")
    cors_allowed_methods: str = Field(default="GET,POST,HEAD", alias="CORS_ALLOWED_METHODS")
    cors_allowed_headers: str = Field(default="", alias="CORS_ALLOWED_HEADERS")
    cors_exposed_headers: str = Field(default="", alias="CORS_EXPOSED_HEADERS")
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")
    cors_max_age: int = Field(default=0, alias="CORS_MAX_AGE")
    cors_options_passthrough: bool = Field(default=False, alias="CORS_OPTIONS_PASSTHROUGH")
    cors_debug: bool = Field(default=False, alias="CORS_DEBUG")
    cors_middleware_style: MiddlewareStyle = Field(
        default=MiddlewareStyle.ASGI, alias="CORS_MIDDLEWARE_STYLE"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def allowed_origin_list(self) -> list[str]:
        """Parse comma-separated allowed origins into a list."""
        return _split_list(self.cors_allowed_origins)

    @property
    def allowed_method_list(self) -> list[str]:
        """Parse comma-separated allowed methods into a list."""
        return _split_list(self.cors_allowed_methods)

    @property
    def allowed_header_list(self) -> list[str]:
        """Parse comma-separated allowed headers into a list."""
        return _split_list(self.cors_allowed_headers)

    @property
    def exposed_header_list(self) -> list[str]:
        """Parse comma-separated exposed headers into a list."""
        return _split_list(self.cors_exposed_headers)

    @property
    def cors_options(self) -> CorsOptions:
        """Raw CORS options record for corsgate.cors.build_policy."""
        return CorsOptions(
            enabled=self.cors_enabled,
            allowed_origins=tuple(self.allowed_origin_list),
            allowed_methods=tuple(self.allowed_method_list),
            allowed_headers=tuple(self.allowed_header_list),
            exposed_headers=tuple(self.exposed_header_list),
            allow_credentials=self.cors_allow_credentials,
            max_age=self.cors_max_age,
            options_passthrough=self.cors_options_passthrough,
            debug=self.cors_debug,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If a setting has the wrong type.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
