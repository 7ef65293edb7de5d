"""
Userbase Backend - Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory, the database handle, and the server entrypoint.
When:  Loaded once at module import time; production checks run in the lifespan.

Database URL resolution:
    DATABASE_URL wins when set (tests point it at SQLite). Otherwise the URL
    is assembled from DATABASE_DRIVER / HOST / PORT / USERNAME / PASSWORD / NAME,
    which mirrors how the service is usually configured in containers.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL, make_url

from app import __version__

DEFAULT_DATABASE_PASSWORD = "postgres"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development.
    Attributes are grouped by concern for readability.
    """

    # ── Service ───────────────────────────────────────────────────────────
    app_name: str = Field(default="userbase", description="Service name reported by /api/health")
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=3000, ge=1, le=65535)

    # What: Deployment mode; controls error detail echo and HSTS
    # Valid: development, test, production
    environment: str = Field(default="development")

    log_level: str = Field(default="INFO")

    # ── HTTP ──────────────────────────────────────────────────────────────
    # Comma-separated origins, or "*" for any origin
    cors_origin: str = Field(default="*")

    # Seconds before an unfinished request is answered with 408
    request_timeout: float = Field(default=30.0, gt=0, le=600)

    # ── Database ──────────────────────────────────────────────────────────
    database_url: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy async URL; overrides the individual parts below",
    )
    database_driver: str = Field(default="postgresql+asyncpg")
    database_host: str = Field(default="localhost")
    database_port: int = Field(default=5432, ge=1, le=65535)
    database_username: str = Field(default="postgres")
    database_password: str = Field(default=DEFAULT_DATABASE_PASSWORD)
    database_name: str = Field(default="userbase")

    # What: Create missing tables at startup (no migrations are shipped)
    database_synchronize: bool = Field(default=False)

    # What: Echo every SQL statement through the sqlalchemy.engine logger
    database_logging: bool = Field(default=False)

    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid = {"development", "test", "production"}
        lower = v.lower()
        if lower not in valid:
            raise ValueError(f"Invalid environment '{v}'. Must be one of: {valid}")
        return lower

    @property
    def version(self) -> str:
        return __version__

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into the list CORSMiddleware expects."""
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    @property
    def sqlalchemy_url(self) -> URL:
        """The async database URL, either taken verbatim or assembled from parts."""
        if self.database_url:
            return make_url(self.database_url)
        return URL.create(
            drivername=self.database_driver,
            username=self.database_username,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_name,
        )

    def validate_required_for_production(self) -> None:
        """
        What:  Rejects development defaults that must not reach production.
        When:  Called during app startup (lifespan).
        Raises ValueError listing every problem found.
        """
        if not self.is_production:
            return
        errors = []
        if "*" in self.cors_origins_list:
            errors.append("CORS_ORIGIN must list explicit origins in production, not '*'")
        if not self.database_url and self.database_password == DEFAULT_DATABASE_PASSWORD:
            errors.append("DATABASE_PASSWORD is still the development default")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported throughout the application
settings = Settings()
