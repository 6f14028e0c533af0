"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dynamic_api.core.constants import (
    DEFAULT_LEDGER_URL,
    DEFAULT_MONGO_URI,
    DEFAULT_PROVISION_TIMEOUT_SECONDS,
    DEFAULT_SETTINGS_COLLECTION,
    ENCRYPTION_KEY_LENGTH,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Dynamic API"
    debug: bool = False
    environment: str = "development"  # development, staging, production

    # Document store
    mongo_uri: str = DEFAULT_MONGO_URI
    mongo_server_selection_timeout_ms: int = 5000

    # Credential ledger
    ledger_database_url: str = DEFAULT_LEDGER_URL
    ledger_echo: bool = False

    # Secret cipher key; generated at start-up when unset
    encryption_key: str | None = None

    # Provisioning
    provision_timeout_seconds: float = DEFAULT_PROVISION_TIMEOUT_SECONDS
    settings_collection: str = DEFAULT_SETTINGS_COLLECTION

    # CORS
    cors_origins: list[str] = []

    # API Documentation
    api_docs_base_url: str = "https://api.example.com"

    # Observability
    log_level: str = "INFO"

    @field_validator("encryption_key")
    @classmethod
    def validate_encryption_key(cls, v: str | None) -> str | None:
        """Validate that the encryption key is usable as an AES-256 key.

        Args:
            v: The configured key, if any

        Returns:
            The validated key

        Raises:
            ValueError: If the key does not encode to exactly 32 bytes
        """
        if v is None or v == "":
            return None
        if len(v.encode("utf-8")) != ENCRYPTION_KEY_LENGTH:
            raise ValueError(
                f"ENCRYPTION_KEY must be exactly {ENCRYPTION_KEY_LENGTH} bytes. "
                "Generate one with: python -c 'import secrets; print(secrets.token_hex(16))'"
            )
        return v

    @field_validator("provision_timeout_seconds")
    @classmethod
    def validate_provision_timeout(cls, v: float) -> float:
        """Reject non-positive provisioning timeouts."""
        if v <= 0:
            raise ValueError("PROVISION_TIMEOUT_SECONDS must be positive")
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
