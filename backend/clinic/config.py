from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # Storage
    storage_backend: str = Field(default="json", env="CLINIC_STORAGE_BACKEND")  # "memory" | "json" | "sql"
    storage_path: str = Field(default="clinic_storage.json", env="CLINIC_STORAGE_PATH")
    database_url: str = Field(default="sqlite:///./clinic.db", env="CLINIC_DATABASE_URL")

    # Store lifecycle
    seed_on_init: bool = Field(default=True, env="CLINIC_SEED_ON_INIT")
    drop_stale_sessions: bool = Field(default=True, env="CLINIC_DROP_STALE_SESSIONS")

    # Dashboard / calendar list sizes
    upcoming_limit: int = Field(default=10, env="CLINIC_UPCOMING_LIMIT")
    top_patients_limit: int = Field(default=5, env="CLINIC_TOP_PATIENTS_LIMIT")
    recent_treatments_limit: int = Field(default=5, env="CLINIC_RECENT_TREATMENTS_LIMIT")

    class Config:
        env_file = ".env"
        env_prefix = "CLINIC_"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
