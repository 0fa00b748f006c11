from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://pulse:pulse@db:5432/pulsebloom"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    CORS_ORIGINS: str = "*"

    # IANA zone that defines "local midnight" for day/week buckets.
    APP_TIMEZONE: str = "UTC"

    HEATMAP_DEFAULT_DAYS: int = 365
    HEATMAP_MAX_DAYS: int = 730
    INSIGHT_WINDOW_DAYS: int = 90

    # OpenAI-compatible chat completions endpoint used for insight prose.
    GROQ_API_KEY: str = ""
    GROQ_API_URL: str = "https://api.groq.com/openai/v1/chat/completions"
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    INSIGHT_TIMEOUT_SECONDS: float = 30.0

    REMINDER_MAX_ATTEMPTS: int = 3

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def tz(self) -> tzinfo:
        if self.APP_TIMEZONE.strip().upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.APP_TIMEZONE)


settings = Settings()
