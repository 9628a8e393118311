"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. SECRET_KEY and ENCRYPTION_SALT are validated at load
time; Firebase and Google OAuth credentials are optional so the service
can boot (and report 503 on the routes that need them) without them.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env."""

    # App
    app_name: str = "stallsync"
    app_version: str = "1.0.0"
    debug: bool = False

    # Security
    secret_key: SecretStr = SecretStr("")
    encryption_salt: SecretStr = SecretStr("")

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:9002"

    # Firebase service account: full JSON (env) or path to the JSON file.
    firebase_service_account_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "GOOGLE_APPLICATION_CREDENTIALS_JSON",
            "FIREBASE_SERVICE_ACCOUNT_KEY",
        ),
    )
    firebase_service_account_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "GOOGLE_APPLICATION_CREDENTIALS",
            "FIREBASE_SERVICE_ACCOUNT_PATH",
        ),
    )

    # Google OAuth (Gmail read-only access for Hungerbox imports)
    google_client_id: str | None = None
    google_client_secret: SecretStr | None = None
    google_redirect_uri: str | None = None
    oauth_ui_redirect_url: str = "http://localhost:3000/settings"
    oauth_state_max_age_seconds: int = 600
    hungerbox_gmail_query: str = "from:noreply@hungerbox.com"

    # Request / middleware
    request_timeout_seconds: int = 60
    request_id_header: str = "X-Request-ID"
    correlation_id_header: str = "X-Correlation-ID"
    max_request_size: int = 10 * 1024 * 1024  # 10MB (CSV imports)
    rate_limit_enabled: bool = True

    # Data operations
    reset_batch_size: int = 500
    import_batch_size: int = 400
    stock_transaction_max_attempts: int = 5
    live_query_poll_seconds: float = 2.0

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """Validate secrets and batch bounds.

        Firestore commits accept at most 500 writes, so batch sizes are
        capped there.
        """
        if not self.secret_key.get_secret_value():
            raise ValueError(
                "SECRET_KEY is required. Generate with: openssl rand -hex 32."
            )
        if not self.encryption_salt.get_secret_value():
            raise ValueError(
                "ENCRYPTION_SALT is required. Generate with: openssl rand -hex 16."
            )
        if not 1 <= self.reset_batch_size <= 500:
            raise ValueError("RESET_BATCH_SIZE must be between 1 and 500")
        if not 1 <= self.import_batch_size <= 500:
            raise ValueError("IMPORT_BATCH_SIZE must be between 1 and 500")
        if self.stock_transaction_max_attempts < 1:
            raise ValueError("STOCK_TRANSACTION_MAX_ATTEMPTS must be at least 1")
        return self

    @property
    def google_oauth_configured(self) -> bool:
        """True when client id, secret and redirect URI are all set."""
        return bool(
            self.google_client_id
            and self.google_client_secret
            and self.google_client_secret.get_secret_value()
            and self.google_redirect_uri
        )


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.
    """
    return Settings()
