"""Protocol and region histograms over a node list."""
from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable

from ..constants import UNKNOWN_REGION
from .types import Node


def protocol_stats(nodes: Iterable[Node]) -> Dict[str, int]:
    """Count nodes per protocol, in first-seen order."""
    return dict(Counter(node.protocol or "unknown" for node in nodes))


def region_stats(nodes: Iterable[Node]) -> Dict[str, int]:
    """Count nodes per region; nodes without a region count as ``UNKNOWN_REGION``."""
    return dict(Counter(node.region or UNKNOWN_REGION for node in nodes))
