from pydantic import BaseModel, field_validator
from typing import List, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import os


class Settings(BaseModel):
    """Application settings and configuration."""

    # Database
    database_url: str = "sqlite:///./taskcycle.db"

    # API
    api_title: str = "Taskcycle API"
    api_version: str = "0.1.0"
    api_description: str = "Recurring task generation, rollover and completion tracking"

    # CORS
    cors_origins: List[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Environment
    environment: str = "development"
    debug: bool = True

    # Owner used when a request carries no X-User-Id header
    default_user_id: str = "local"

    # Civil calendar every date computation is anchored to
    timezone: str = "Asia/Tokyo"

    # Engine
    shopping_category: str = "shopping"
    generation_catchup_days: int = 7
    generation_lookahead_days: int = 0
    rollover_lookback_days: int = 7
    rollover_mode: Literal["per_date", "consolidated"] = "per_date"
    leap_day_policy: Literal["skip", "clamp"] = "skip"
    auto_rollover: bool = False

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        from dotenv import load_dotenv

        # Load .env.local first, then .env (if they exist)
        load_dotenv(".env.local", override=True)
        load_dotenv(".env", override=False)
        cors_origins_str = os.getenv("CORS_ORIGINS", "")
        cors_origins = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()] or ["*"]

        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./taskcycle.db"),
            api_title=os.getenv("API_TITLE", "Taskcycle API"),
            api_version=os.getenv("API_VERSION", "0.1.0"),
            api_description=os.getenv("API_DESCRIPTION", "Recurring task generation, rollover and completion tracking"),
            cors_origins=cors_origins,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            environment=os.getenv("ENVIRONMENT", "development"),
            debug=os.getenv("DEBUG", "true").lower() == "true",
            default_user_id=os.getenv("DEFAULT_USER_ID", "local"),
            timezone=os.getenv("TIMEZONE", "Asia/Tokyo"),
            shopping_category=os.getenv("SHOPPING_CATEGORY", "shopping"),
            generation_catchup_days=int(os.getenv("GENERATION_CATCHUP_DAYS", "7")),
            generation_lookahead_days=int(os.getenv("GENERATION_LOOKAHEAD_DAYS", "0")),
            rollover_lookback_days=int(os.getenv("ROLLOVER_LOOKBACK_DAYS", "7")),
            rollover_mode=os.getenv("ROLLOVER_MODE", "per_date"),
            leap_day_policy=os.getenv("LEAP_DAY_POLICY", "skip"),
            auto_rollover=os.getenv("AUTO_ROLLOVER", "false").lower() == "true",
        )


# Global settings instance
settings = Settings.from_env()
