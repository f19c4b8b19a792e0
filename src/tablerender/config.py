from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import __version__

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Service settings read from the environment (or a ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "http://localhost:23100"
    bind_addr: str = ":23100"
    cors_allowed_origins: str = "*"
    shutdown_timeout: float = 5.0
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["text", "json"] = "text"
    service_version: str = __version__

    @field_validator("shutdown_timeout", mode="before")
    @classmethod
    def parse_duration(cls, value: object) -> object:
        """Accept plain seconds as well as ``5s``/``500ms``/``1m`` style durations."""
        if not isinstance(value, str):
            return value
        text = value.strip().lower()
        for suffix, scale in (("ms", 0.001), ("s", 1.0), ("m", 60.0)):
            if text.endswith(suffix):
                return float(text[: -len(suffix)]) * scale
        return text

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    @property
    def bind_host(self) -> str:
        host, _, _ = self.bind_addr.rpartition(":")
        return host or "0.0.0.0"

    @property
    def bind_port(self) -> int:
        _, _, port = self.bind_addr.rpartition(":")
        return int(port) if port else 23100

    def log(self) -> None:
        logger.info(
            "configuration",
            extra={
                "host": self.host,
                "bind_addr": self.bind_addr,
                "cors_allowed_origins": self.cors_allowed_origins,
                "shutdown_timeout": self.shutdown_timeout,
            },
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
