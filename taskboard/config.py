"""Environment configuration and logging setup."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

from loguru import logger


@dataclass(frozen=True)
class Settings:
    """
    Attributes:
        api_url:      Base URL of the REST persistence service.
        http_timeout: Seconds before an HttpGateway request fails.
        log_level:    Minimum loguru level written to stderr.
        host:         Bind address of the demo server.
        port:         Port of the demo server.
    """

    api_url: str = "http://127.0.0.1:8000"
    http_timeout: float = 10.0
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_url=os.getenv("TASKBOARD_API_URL", cls.api_url),
            http_timeout=float(os.getenv("TASKBOARD_HTTP_TIMEOUT", "10")),
            log_level=os.getenv("TASKBOARD_LOG_LEVEL", cls.log_level).upper(),
            host=os.getenv("TASKBOARD_HOST", cls.host),
            port=int(os.getenv("TASKBOARD_PORT", "8000")),
        )


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with one stderr sink at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=level)
