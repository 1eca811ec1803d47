"""Node rename/reorder pipeline."""
from __future__ import annotations

from .pipeline import apply_node_transform_pipeline

__all__ = ["apply_node_transform_pipeline"]
