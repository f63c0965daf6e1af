"""Application settings and configuration.

This module defines all configuration options for the PassVote application.
Settings are loaded from environment variables with sensible defaults.
"""

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="PassVote", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./passvote.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Passkey challenge sessions
    session_ttl_seconds: int = Field(default=600, alias="SESSION_TTL_SECONDS")
    session_sweep_interval_seconds: float = Field(
        default=600.0,
        alias="SESSION_SWEEP_INTERVAL_SECONDS",
    )
    session_sweep_enabled: bool = Field(default=True, alias="SESSION_SWEEP_ENABLED")

    # Fee-bearing votes (amounts in XLM)
    vote_fee: Decimal = Field(default=Decimal("0.1"), alias="VOTE_FEE")
    vote_reserve_margin: Decimal = Field(default=Decimal("1"), alias="VOTE_RESERVE_MARGIN")
    vote_payment_destination: str = Field(
        default="GAIH3ULLFQ4DGSECF2AR555KZ4KNDGEKN4AFI4SU2M7B43MGK3QJZNSR",
        alias="VOTE_PAYMENT_DESTINATION",
    )

    # External wallet integration
    wallet_horizon_url: str = Field(
        default="https://horizon-testnet.stellar.org",
        alias="WALLET_HORIZON_URL",
    )
    wallet_signer_url: str = Field(
        default="http://localhost:8700",
        alias="WALLET_SIGNER_URL",
    )
    wallet_http_timeout_seconds: float = Field(
        default=30.0,
        alias="WALLET_HTTP_TIMEOUT_SECONDS",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
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
