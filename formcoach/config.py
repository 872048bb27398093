# formcoach/config.py
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Server
    APP_NAME: str = "FormCoach API"
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000

    # CORS (comma-separated)
    CORS_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"

    # Session store bounds
    SESSION_TTL_SECONDS: float = 3600.0
    MAX_SESSIONS: int = 1000

    # Camera demo
    CAMERA_INDEX: int = 0
    MIN_VISIBILITY: float = 0.5   # landmarks below this are treated as absent
    SPEAK_FEEDBACK: bool = True
    COUNTDOWN_SECONDS: int = 5

    model_config = SettingsConfigDict(
        env_prefix="FORMCOACH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


settings = Settings()


def get_cors_origins() -> List[str]:
    return [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
