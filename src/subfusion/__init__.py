"""Resolve subscription profiles and aggregate their proxy nodes."""

from __future__ import annotations

from .core.types import Node, ProfileResult, SubscriptionResult
from .exceptions import ProfileNotFoundError, SubFusionError
from .profiles import handle_profile_mode

__version__ = "0.1.0"

__all__ = [
    "Node",
    "ProfileNotFoundError",
    "ProfileResult",
    "SubFusionError",
    "SubscriptionResult",
    "handle_profile_mode",
    "__version__",
]
