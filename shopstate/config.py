"""Runtime settings and logging setup for the store and its API client."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

import structlog


@dataclass(frozen=True)
class Settings:
    api_url: str = "http://localhost:8080"
    timeout: float = 10.0
    log_level: str = "INFO"
    history_limit: int = 50

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        defaults = Settings()
        return Settings(
            api_url=env.get("SHOPSTATE_API_URL", defaults.api_url).rstrip("/"),
            timeout=float(env.get("SHOPSTATE_TIMEOUT", defaults.timeout)),
            log_level=env.get("SHOPSTATE_LOG_LEVEL", defaults.log_level).upper(),
            history_limit=int(env.get("SHOPSTATE_HISTORY_LIMIT", defaults.history_limit)),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
    # httpx логирует каждый запрос на INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
