"""Application configuration using Pydantic Settings."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # MongoDB (local durable store)
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "focus_ledger"
    state_collection: str = "app_state"
    tasks_record_key: str = "tasks"
    goals_record_key: str = "goals"

    # Engine
    backlog_default_minutes: int = 30
    project_bank_minutes: int = 60
    session_tick_seconds: float = 1.0

    # Notifications
    notifications_enabled: bool = True
    notification_history: int = 50

    # Logging
    log_level: str = "INFO"

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    debug: bool = False

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


settings = Settings()
