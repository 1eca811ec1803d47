from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field

from .base import BaseConfig


class LoggingSettings(BaseConfig):
    """Settings for application logging."""

    level: str = Field("INFO", description="Root log level.")
    mask_sensitive: bool = Field(
        True, description="Mask uuids, passwords and access tokens in log output."
    )
    log_file: Optional[Path] = Field(None, description="Optional log file path.")
