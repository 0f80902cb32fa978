"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LedgerMode(str, Enum):
    """Host ledger operation mode."""

    MOCK = "mock"
    DEVNET = "devnet"
    MAINNET = "mainnet"


# Development identities, hex encoded
DEFAULT_PROGRAM_ID = "0d2c6b2e6f2a5b36c1b7c7d9a8f3e9c4b52a1f0d7e6c3b9a84f2e1d0c9b8a7f6"
DEFAULT_NULLIFIER_NAMESPACE = "08d0b35d3bd7e3b1e4a1a79b2c5f0e6d7a9c3b21f4e8d6c0a5b7e9f1d3c2b4a6"


class PoolSettings(BaseSettings):
    """Shielded pool policy and accumulator configuration."""

    model_config = SettingsConfigDict(env_prefix="POOL_")

    tree_height: int = Field(default=26, ge=1, le=32)
    root_history_size: int = Field(default=100, ge=1)
    max_deposit_amount: int = Field(default=1_000_000_000_000, ge=0, lt=2**64)

    # Basis points (1/10000)
    deposit_fee_rate: int = Field(default=0, ge=0, le=10000)
    withdrawal_fee_rate: int = Field(default=25, ge=0, le=10000)
    fee_error_margin: int = Field(default=500, ge=0, le=10000)

    bump: int = Field(default=255, ge=0, le=255)
    program_id: str = DEFAULT_PROGRAM_ID
    nullifier_namespace: str = DEFAULT_NULLIFIER_NAMESPACE

    # Only this identity may initialize the pool when set
    admin: str | None = None

    # Upper bound on the slippage fee a swap may extract (None = uncapped)
    max_swap_fee: int | None = Field(default=None, ge=0)

    @field_validator("program_id", "nullifier_namespace", "admin", mode="before")
    @classmethod
    def strip_hex_prefix(cls, v: str | None) -> str | None:
        """Accept identities with or without a 0x prefix."""
        if isinstance(v, str):
            v = v.lower().removeprefix("0x")
            if len(v) != 64:
                raise ValueError("identity must be 32 bytes of hex")
            bytes.fromhex(v)
        return v


class LedgerSettings(BaseSettings):
    """Host ledger integration configuration."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    mode: LedgerMode = LedgerMode.MOCK
    rpc_url: str = ""


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class JWTSettings(BaseSettings):
    """JWT authentication configuration."""

    model_config = SettingsConfigDict(env_prefix="JWT_")

    secret_key: SecretStr = SecretStr("your-jwt-secret-key-min-32-chars-long")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: LogLevel = LogLevel.INFO

    port: int = Field(default=8010, alias="POOL_SERVICE_PORT")

    pool: PoolSettings = Field(default_factory=PoolSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
