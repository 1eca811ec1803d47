from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field

from ..constants import KV_KEY_PROFILES, KV_KEY_SUBS
from .base import BaseConfig


class StorageSettings(BaseConfig):
    """Settings for the key-value store holding profiles and sources."""

    backend: Literal["memory", "sqlite"] = Field(
        "memory", description="Store implementation ('memory' or 'sqlite')."
    )
    sqlite_path: Path = Field(
        Path("data/subfusion.db"), description="Database file for the sqlite backend."
    )
    profiles_key: str = Field(KV_KEY_PROFILES, description="Key of the profile collection.")
    subscriptions_key: str = Field(
        KV_KEY_SUBS, description="Key of the shared subscription/manual-node collection."
    )
