"""Application settings and configuration.

This module defines all configuration options for the Campus Check-in service.
Settings are loaded from environment variables with sensible defaults.
"""

from datetime import timedelta

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files. The QR
    secret is held as a ``SecretStr`` so it never shows up in reprs or logs.
    """

    # Application metadata
    app_name: str = Field(default="Campus Check-in", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Identity provider (JWT bearer tokens)
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./campus_checkin.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    store_timeout_seconds: float = Field(default=10.0, alias="STORE_TIMEOUT_SECONDS")

    # Attendance token signing
    qr_secret_key: SecretStr = Field(alias="QR_SECRET_KEY")
    qr_token_version: str = Field(default="2.0", alias="QR_TOKEN_VERSION")
    qr_supported_versions: list[str] = Field(
        default=["2.0"],
        alias="QR_SUPPORTED_VERSIONS",
    )
    qr_accept_legacy_tokens: bool = Field(default=False, alias="QR_ACCEPT_LEGACY_TOKENS")

    # Check-in windows
    checkin_grace_before_seconds: int = Field(default=3600, alias="CHECKIN_GRACE_BEFORE_SECONDS")
    checkin_grace_after_seconds: int = Field(default=3600, alias="CHECKIN_GRACE_AFTER_SECONDS")
    qr_replay_window_seconds: int = Field(default=300, alias="QR_REPLAY_WINDOW_SECONDS")
    qr_max_age_seconds: int = Field(default=86_400, alias="QR_MAX_AGE_SECONDS")
    qr_clock_skew_seconds: int = Field(default=120, alias="QR_CLOCK_SKEW_SECONDS")
    qr_max_payload_bytes: int = Field(default=4096, alias="QR_MAX_PAYLOAD_BYTES")

    # QR image rendering
    qr_box_size: int = Field(default=10, alias="QR_BOX_SIZE")
    qr_border: int = Field(default=2, alias="QR_BORDER")

    # Camera scan loop
    scan_debounce_seconds: float = Field(default=1.0, alias="SCAN_DEBOUNCE_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def grace_before(self) -> timedelta:
        """Check-in grace period before the event starts."""
        return timedelta(seconds=self.checkin_grace_before_seconds)

    @property
    def grace_after(self) -> timedelta:
        """Check-in grace period after the event ends."""
        return timedelta(seconds=self.checkin_grace_after_seconds)

    @property
    def replay_window(self) -> timedelta:
        return timedelta(seconds=self.qr_replay_window_seconds)

    @property
    def max_token_age(self) -> timedelta:
        return timedelta(seconds=self.qr_max_age_seconds)

    @property
    def clock_skew_tolerance(self) -> timedelta:
        return timedelta(seconds=self.qr_clock_skew_seconds)


settings = Settings()  # type: ignore[call-arg]
