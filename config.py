"""
Runtime configuration for the daily fortune service.

Settings are read from the environment (optionally seeded by a ``.env`` file
next to this module) into an immutable struct. Callers build a fresh
``Settings`` per request or per scheduled run and pass it down explicitly.
"""
import os
from enum import Enum
from pathlib import Path
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")

# China Standard Time offset (UTC+8)
CST_OFFSET_HOURS = 8

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000
DEFAULT_PUSH_GROUP = "每日运势"

# 00:00 UTC == 08:00 Beijing
DEFAULT_CRON = "0 0 * * *"


class OutputFormat(str, Enum):
    """Structured format the model is asked to answer in."""
    JSON = "json"
    YAML = "yaml"


class Settings(BaseModel):
    """Immutable snapshot of the service configuration."""
    model_config = ConfigDict(frozen=True)

    # AI
    ai_api_key: str = ""
    ai_base_url: str = "https://api.openai.com/v1"
    ai_model: str = "gpt-4o"
    output_format: OutputFormat = OutputFormat.YAML
    temperature: float = Field(DEFAULT_TEMPERATURE, ge=0, le=2)
    max_tokens: int = Field(DEFAULT_MAX_TOKENS, gt=0)

    # Secret path prefix; empty means every HTTP request is rejected
    safe_path: str = ""

    # Bark
    bark_server_url: str = "https://api.day.app"
    bark_device_key: str = ""
    bark_group: str = DEFAULT_PUSH_GROUP
    bark_icon: Optional[str] = None
    bark_sound: Optional[str] = None

    # Raw JSON: {"gender":"male","birthDate":"1990-01-01","birthTime":"12:00"}
    user_profile: str = ""

    cron: str = DEFAULT_CRON
    scheduler_enabled: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None) -> "Settings":
        """Build settings from ``os.environ`` (or the given mapping)."""
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(name)
            if value is None or not value.strip():
                return None
            return value.strip()

        values = {
            "ai_api_key": get("AI_API_KEY"),
            "ai_base_url": get("AI_BASE_URL"),
            "ai_model": get("AI_MODEL"),
            "output_format": (get("AI_OUTPUT_FORMAT") or "").lower() or None,
            "temperature": get("AI_TEMPERATURE"),
            "max_tokens": get("AI_MAX_TOKENS"),
            "bark_server_url": get("BARK_SERVER_URL"),
            "bark_device_key": get("BARK_DEVICE_KEY"),
            "bark_group": get("BARK_GROUP"),
            "bark_icon": get("BARK_ICON"),
            "bark_sound": get("BARK_SOUND"),
            "cron": get("FORTUNE_CRON"),
            "scheduler_enabled": get("SCHEDULER_ENABLED"),
            "log_level": get("LOG_LEVEL"),
        }
        # Normalization of these two happens downstream, keep them verbatim
        values["safe_path"] = env.get("SAFE_PATH")
        values["user_profile"] = env.get("USER_PROFILE")

        settings = cls(**{k: v for k, v in values.items() if v is not None})
        if settings.ai_base_url.endswith("/"):
            settings = settings.model_copy(update={"ai_base_url": settings.ai_base_url.rstrip("/")})
        if settings.bark_server_url.endswith("/"):
            settings = settings.model_copy(update={"bark_server_url": settings.bark_server_url.rstrip("/")})
        return settings


def get_cst_today() -> str:
    """Get current date in China Standard Time (UTC+8) as YYYY-MM-DD string."""
    cst_now = datetime.now(timezone.utc) + timedelta(hours=CST_OFFSET_HOURS)
    return cst_now.strftime("%Y-%m-%d")
