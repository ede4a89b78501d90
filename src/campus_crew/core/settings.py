"""Application settings and configuration.

This module defines all configuration options for the Campus Crew service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Campus Crew", alias="APP_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./campus_crew.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # JWT access tokens issued by this service
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Identity tokens issued by the upstream OAuth-style provider
    identity_token_secret: str | None = Field(default=None, alias="IDENTITY_TOKEN_SECRET")
    identity_token_audience: str = Field(default="campus-crew", alias="IDENTITY_TOKEN_AUDIENCE")
    identity_token_issuer: str | None = Field(default=None, alias="IDENTITY_TOKEN_ISSUER")

    # Admin panel credentials (password stored as a passlib hash)
    admin_username: str = Field(default="admin", alias="ADMIN_USERNAME")
    admin_password_hash: str | None = Field(default=None, alias="ADMIN_PASSWORD_HASH")
    admin_max_attempts: int = Field(default=3, alias="ADMIN_MAX_ATTEMPTS")
    admin_lockout_seconds: int = Field(default=300, alias="ADMIN_LOCKOUT_SECONDS")

    # OTP session policy
    otp_length: int = Field(default=6, alias="OTP_LENGTH")
    otp_expiry_minutes: int = Field(default=5, alias="OTP_EXPIRY_MINUTES")
    otp_max_attempts: int = Field(default=3, alias="OTP_MAX_ATTEMPTS")
    otp_min_resend_seconds: int = Field(default=60, alias="OTP_MIN_RESEND_SECONDS")
    otp_default_country_code: str = Field(default="91", alias="OTP_DEFAULT_COUNTRY_CODE")

    # SMS collaborator ("mock" logs the code, "http" posts to a gateway)
    sms_provider: str = Field(default="mock", alias="SMS_PROVIDER")
    sms_gateway_url: str | None = Field(default=None, alias="SMS_GATEWAY_URL")
    sms_http_timeout_seconds: float = Field(default=10.0, alias="SMS_HTTP_TIMEOUT_SECONDS")

    # Blob storage and media limits
    media_root: str = Field(default="./media", alias="MEDIA_ROOT")
    media_base_url: str = Field(default="/media", alias="MEDIA_BASE_URL")
    max_image_bytes: int = Field(default=10 * 1024 * 1024, alias="MAX_IMAGE_BYTES")
    max_media_bytes: int = Field(default=5 * 1024 * 1024, alias="MAX_MEDIA_BYTES")
    max_video_seconds: float = Field(default=15.0, alias="MAX_VIDEO_SECONDS")
    max_profile_picture_bytes: int = Field(
        default=5 * 1024 * 1024,
        alias="MAX_PROFILE_PICTURE_BYTES",
    )

    # Listing defaults
    gig_list_limit: int = Field(default=20, alias="GIG_LIST_LIMIT")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
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
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
