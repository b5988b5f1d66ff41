from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import EmailStr, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the FastAPI service.

    This is separate from refurb_ops.db.config.Settings, which focuses on the database layer.
    """

    # FastAPI metadata
    APP_NAME: str = Field(default="Refurb Ops API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Backend API for a refurbished-electronics operations tracker. "
            "Covers inward receiving, inspection, repair routing, paint shop, QC, "
            "spares and outward dispatch."
        )
    )
    LOG_LEVEL: str = Field(default="INFO", description="Root log level name")
    APP_VERSION: str = Field(default="0.1.0")

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins. Default: *",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Startup behavior
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(
        default=True,
        description="If true, run Alembic migrations (upgrade head) at app startup.",
    )
    AUTO_SEED: bool = Field(
        default=False,
        description="If true, seed default users and racks after migrations.",
    )
    SEED_DEFAULT_PASSWORD: str = Field(
        default="password123", description="Password given to the seeded per-role accounts"
    )

    # Auth
    JWT_SECRET_KEY: str = Field(
        default="change-me", description="Secret used to sign JWT access/refresh tokens"
    )
    JWT_ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60)
    REFRESH_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24 * 7)

    # File storage
    STORAGE_PROVIDER: Literal["database", "local"] = Field(
        default="database", description='Where uploads are kept: "database" or "local" (UPLOAD_DIR)'
    )
    UPLOAD_DIR: str = Field(default="uploads", description="Directory for uploaded files (local provider)")
    MAX_UPLOAD_BYTES: int = Field(default=10 * 1024 * 1024, description="Upload size limit (10MB)")

    # Email (Resend HTTP API)
    RESEND_API_KEY: Optional[str] = Field(
        default=None, description="When unset, outgoing emails are logged and skipped."
    )
    RESEND_API_URL: str = Field(default="https://api.resend.com/emails")
    FROM_EMAIL: str = Field(default="noreply@refurb-ops.local")
    EMAIL_APP_NAME: str = Field(default="Refurb Operations")
    WAREHOUSE_MANAGER_EMAIL: Optional[EmailStr] = Field(
        default=None, description="Recipient of purchase order aging alerts"
    )

    # Cron trigger protection
    CRON_SECRET: Optional[str] = Field(
        default=None, description="Shared secret required by /cron endpoints when set"
    )

    # Workflow tunables
    TAT_DAYS: int = Field(default=5, description="Repair turnaround time in days")
    MAX_ACTIVE_REPAIR_JOBS: int = Field(default=10, description="Max UNDER_REPAIR jobs per engineer")
    PO_AGING_DAYS: int = Field(default=10, description="Days before an unaddressed PO is flagged")
    DEFAULT_BATTERY_TARGET: str = Field(default="80%")

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """
        Accept both JSON array format and comma-separated formats for CORS origins.
        """
        if v is None:
            return ["*"]
        if isinstance(v, str):
            parts = [p.strip() for p in v.split(",") if p.strip()]
            return parts or ["*"]
        if isinstance(v, list):
            return v or ["*"]
        return ["*"]


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Return a new AppSettings instance populated from environment variables.

    Note:
      For simplicity we construct a new instance each time, so tests can change
      the environment between calls.
    """
    return AppSettings()
