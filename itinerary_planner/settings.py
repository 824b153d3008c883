# itinerary_planner/settings.py
import os
import logging
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

_LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger writing to stderr at the configured level."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)
    level = os.getenv("ITINERARY_PLANNER_LOG_LEVEL", "INFO").upper()
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.propagate = False
    return logger


def _float_env(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, default))
    except (TypeError, ValueError):
        return default


def _int_env(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, default))
    except (TypeError, ValueError):
        return default


def _origins_env() -> List[str]:
    raw = os.getenv("ITINERARY_PLANNER_ALLOWED_ORIGINS") or "*"
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


@dataclass
class Settings:
    api_key: str | None = None
    model: str = "gemini-1.5-flash"
    temperature: float = 0.7
    max_output_tokens: int = 4096
    base_url: str = GEMINI_OPENAI_BASE_URL
    timeout: float = 30.0
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_GEMINI_API_KEY"),
            model=os.getenv("AI_MODEL") or "gemini-1.5-flash",
            temperature=_float_env("AI_TEMPERATURE", 0.7),
            max_output_tokens=_int_env("AI_MAX_OUTPUT_TOKENS", 4096),
            base_url=os.getenv("AI_BASE_URL") or GEMINI_OPENAI_BASE_URL,
            timeout=_float_env("AI_TIMEOUT", 30.0),
            allowed_origins=_origins_env(),
        )
