"""
OwnerGate Backend: Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the database layer, identity resolution, middleware and main.
When:  Loaded once at module import time; validated before app starts.

Design Decision:
    Identity is resolved from signed session tokens, so the signing secret
    lives here next to the database URL. Both must be overridden in
    production; `validate_required_for_production()` reports the secret.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults. Production deployments MUST
    override DATABASE_URL, JWT_SECRET and CORS_ORIGINS.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Format: sqlite+aiosqlite:///./file.db or postgresql+asyncpg://user:pw@host/db
    # SQLite is the default because the store has no row-level security;
    # ownership is enforced by AccessControlService instead.
    database_url: str = Field(
        default="sqlite+aiosqlite:///./ownergate.db",
        description="Async SQLAlchemy connection URL",
    )

    # Pool sizing only applies to server databases; SQLite uses its own pool
    db_pool_size: int = Field(default=20, ge=5, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # ── Session Tokens ────────────────────────────────────────────────────
    # HS256-signed JWTs carry the caller id (sub) and role claims
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET)
    jwt_algorithm: str = Field(default="HS256")
    jwt_expiry_minutes: int = Field(default=60 * 24, ge=5, le=60 * 24 * 30)

    # Cookie checked when no Authorization header is present
    auth_cookie_name: str = Field(default="auth-token")

    # ── Admin Bootstrap ───────────────────────────────────────────────────
    # Used by `python -m app.bootstrap` when no ADMIN user exists yet
    bootstrap_admin_email: str = Field(default="admin@ownergate.local")
    bootstrap_admin_name: str = Field(default="OwnerGate Admin")

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        # Only symmetric algorithms: the same secret signs and verifies
        allowed = {"HS256", "HS384", "HS512"}
        if v not in allowed:
            raise ValueError(f"Invalid jwt_algorithm '{v}'. Must be one of: {allowed}")
        return v

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # Fixed window per caller (or per client IP for anonymous requests)
    rate_limit_requests: int = Field(default=300, ge=10, le=10000)
    rate_limit_window: int = Field(default=60, ge=1, le=86400)  # seconds

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def validate_required_for_production(self) -> None:
        """
        Validates that security-sensitive settings are configured.

        Called during app startup (lifespan). Raises ValueError listing
        every problem found.
        """
        errors = []
        if not self.jwt_secret or self.jwt_secret == DEFAULT_JWT_SECRET:
            errors.append(
                "JWT_SECRET is not set. Generate one with "
                "`python -c \"import secrets; print(secrets.token_urlsafe(48))\"`"
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance imported throughout the application
settings = Settings()
