from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Fallback session hours and slot length for doctors without their own
    default_morning_start: str = "09:00"
    default_morning_end: str = "13:00"
    default_evening_start: str = "14:00"
    default_evening_end: str = "18:00"
    default_consultation_duration: int = 20
    # Times before this belong to the morning session when no window matches
    session_cutoff: str = "14:00"

    # "date" numbers tokens continuously over the day, "session" restarts per session
    token_scope: Literal["date", "session"] = "date"
    # Bookings in these statuses count toward the session cap and can be checked in
    active_statuses: str = "scheduled,confirmed,approved"
    max_appointments_per_session: int = 20

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def active_statuses_list(self) -> list[str]:
        return [s.strip().lower() for s in self.active_statuses.split(",") if s.strip()]


settings = Settings()
