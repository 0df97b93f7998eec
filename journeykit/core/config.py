"""Client configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Connection fields (AM base URL, realm) are validated at
load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from journeykit.core.constants import (
    CLASSIC_DEPLOYMENT_TYPE,
    CLOUD_DEPLOYMENT_TYPE,
    DEPLOYMENT_TYPES,
)


class Settings(BaseSettings):
    """Client settings loaded from environment and .env.

    All settings are optional with defaults except am_base_url, which is
    validated in validate_connection (together with deployment_type and
    max_concurrency).
    """

    # Tool
    app_name: str = "journeykit"
    app_version: str = "1.0.0"
    debug: bool = False

    # Platform connection
    am_base_url: str = ""
    # IDM base URL; derived from am_base_url (".../am" -> ".../openidm") when empty
    idm_base_url: str = ""
    realm: str = "alpha"
    deployment_type: str = CLOUD_DEPLOYMENT_TYPE
    am_version: str = ""
    username: str = ""
    bearer_token: SecretStr | None = None

    # Request / fan-out
    request_timeout_seconds: float = 30.0
    max_concurrency: int = 8

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="JOURNEYKIT_",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_connection(self) -> "Settings":
        """Validate connection settings.

        - AM_BASE_URL is required (trailing slash is stripped).
        - deployment_type must be one of cloud, forgeops, classic.
        - max_concurrency must be at least 1.
        """
        if not self.am_base_url:
            raise ValueError(
                "JOURNEYKIT_AM_BASE_URL is required (e.g. https://tenant.example.com/am). "
                "Set in environment or .env file."
            )
        self.am_base_url = self.am_base_url.rstrip("/")
        if not self.idm_base_url:
            base = self.am_base_url
            if base.endswith("/am"):
                base = base[: -len("/am")]
            self.idm_base_url = f"{base}/openidm"
        self.idm_base_url = self.idm_base_url.rstrip("/")
        if self.deployment_type not in DEPLOYMENT_TYPES:
            raise ValueError(
                f"deployment_type must be one of {', '.join(DEPLOYMENT_TYPES)}, "
                f"got: {self.deployment_type!r}"
            )
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        return self

    @property
    def realm_name(self) -> str:
        """Last path element of the realm ("/alpha" -> "alpha", "/" -> "/")."""
        parts = [p for p in self.realm.split("/") if p]
        return parts[-1] if parts else "/"

    @property
    def realm_path(self) -> str:
        """AM realm path used in REST URLs ("alpha" -> "/realms/root/realms/alpha")."""
        elements = ["root"] + [p for p in self.realm.split("/") if p]
        return "/realms/" + "/realms/".join(elements)

    @property
    def realm_managed_user(self) -> str:
        """Managed user object name for the realm (cloud: "<realm>_user", else "user")."""
        if self.deployment_type == CLOUD_DEPLOYMENT_TYPE:
            return f"{self.realm_name}_user"
        return "user"

    @property
    def supports_idm_config(self) -> bool:
        """Whether email templates and themes (IDM config) are available."""
        return self.deployment_type != CLASSIC_DEPLOYMENT_TYPE


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
