from __future__ import annotations

from pydantic import Field

from ..constants import DEFAULT_RENAME_TEMPLATE
from .base import BaseConfig


class TransformSettings(BaseConfig):
    """Defaults for the node rename/reorder pipeline."""

    default_template: str = Field(
        DEFAULT_RENAME_TEMPLATE,
        description="Rename template used when a profile does not define its own.",
    )
