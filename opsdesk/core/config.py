"""
Configuration management using pydantic-settings.
Loads settings from environment variables and .env file.
"""
from typing import List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Known placeholder secrets that must never sign production tokens
INSECURE_SECRETS = {
    "change-me-in-production",
    "maaj_super_secret_key_2026",
    "secret",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Database Settings
    database_url: str = Field(..., description="Async SQLAlchemy connection string")
    database_pool_size: int = Field(default=10, description="Connection pool size")
    database_max_overflow: int = Field(default=20, description="Max overflow connections")
    database_echo: bool = Field(default=False, description="Echo SQL queries")

    # JWT Settings
    jwt_secret_key: str = Field(..., description="Secret key for JWT signing")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expiration_minutes: int = Field(default=600, description="Access token expiration in minutes")

    # Provisioning Settings
    password_min_length: int = Field(default=8, description="Minimum length for provisioned passwords")

    # Application Settings
    app_name: str = Field(default="OpsDesk Access", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    backend_host: str = Field(default="0.0.0.0", description="Backend host")
    backend_port: int = Field(default=8000, description="Backend port")
    cors_origins: str = Field(default="http://localhost:5173", description="Comma-separated CORS origins")
    api_version: str = Field(default="v1", description="API version")

    # Logging Settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json or text)")

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        """Refuse to start without a real signing secret."""
        if not v or not v.strip():
            raise ValueError("JWT_SECRET_KEY must be set")
        if v in INSECURE_SECRETS:
            raise ValueError("JWT_SECRET_KEY must be set to a secure value")
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("jwt_expiration_minutes")
    @classmethod
    def validate_jwt_expiration(cls, v: int) -> int:
        """Validate token lifetime is positive."""
        if v <= 0:
            raise ValueError("JWT_EXPIRATION_MINUTES must be positive")
        return v

    @field_validator("password_min_length")
    @classmethod
    def validate_password_min_length(cls, v: int) -> int:
        """Validate minimum password length is at least 1."""
        if v < 1:
            raise ValueError("PASSWORD_MIN_LENGTH must be at least 1")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def api_prefix(self) -> str:
        """Get API prefix path."""
        return f"/api/{self.api_version}"

    @property
    def jwt_expiration_seconds(self) -> int:
        """Token lifetime in seconds, as reported to clients."""
        return self.jwt_expiration_minutes * 60


# Singleton settings instance
settings = Settings()


def get_settings() -> Settings:
    """
    Get the singleton settings instance.

    This function provides a consistent way to access settings
    and is useful for dependency injection in FastAPI.

    Returns:
        Settings instance loaded from environment
    """
    return settings
