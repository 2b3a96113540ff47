"""
Runtime configuration.

All settings come from environment variables and are read exactly once,
when the application starts. Components receive the resulting Settings
object instead of reading the environment themselves.
"""

import os
from typing import List, Optional
from pydantic import BaseModel


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Application settings."""
    database_url: str = "sqlite:///./question_bank.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_echo: bool = False

    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    # Question sampling
    default_sample_limit: int = 20

    # AI question generation (Gemini REST API)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash-latest"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout_seconds: float = 60.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment, falling back to defaults."""
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.model_fields["database_url"].default),
            db_pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
            db_max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "20")),
            db_echo=_env_bool("DB_ECHO", False),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            default_sample_limit=int(os.getenv("DEFAULT_SAMPLE_LIMIT", "20")),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_model=os.getenv("GEMINI_MODEL", cls.model_fields["gemini_model"].default),
            gemini_base_url=os.getenv("GEMINI_BASE_URL", cls.model_fields["gemini_base_url"].default),
            gemini_timeout_seconds=float(os.getenv("GEMINI_TIMEOUT_SECONDS", "60")),
        )
