"""Runtime settings for the operator console."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_NATS_URL = "nats://localhost:4222"
DEFAULT_CONFIG_DIR = "/var/lib/maculaos"
CONFIGURED_MARKER = ".configured"


def default_nats_url() -> str:
    return os.getenv("MACULA_NATS_URL", DEFAULT_NATS_URL) or DEFAULT_NATS_URL


def default_config_dir() -> Path:
    return Path(os.getenv("MACULA_CONFIG_DIR", DEFAULT_CONFIG_DIR) or DEFAULT_CONFIG_DIR)


def default_log_file() -> Optional[Path]:
    value = os.getenv("MACULA_LOG_FILE")
    return Path(value) if value else None


class ConsoleSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    nats_url: str = Field(default_factory=default_nats_url, min_length=1)
    debug: bool = False
    config_dir: Path = Field(default_factory=default_config_dir)
    log_file: Optional[Path] = Field(default_factory=default_log_file)
    queue_capacity: int = Field(default=100, ge=1)
    log_capacity: int = Field(default=1000, ge=1)
    poll_interval_ms: int = Field(default=100, ge=1)

    @property
    def marker_path(self) -> Path:
        """File written by macula-wizard once first-run setup completes."""
        return self.config_dir / CONFIGURED_MARKER

    def is_configured(self) -> bool:
        return self.marker_path.exists()
