"""Profile resolution and node aggregation.

The pipeline runs strictly in order: resolve the credential, gate access,
merge the profile's sources, retrieve them, optionally transform the nodes,
and compute statistics. ``handle_profile_mode`` drives it end to end.
"""
from __future__ import annotations

from .access import AccessDecision, AccessState, evaluate_access, generate_expired_nodes, parse_expiry
from .adapter import apply_transform
from .handler import handle_profile_mode
from .merger import MergedSources, merge_sources
from .orchestrator import retrieve_nodes
from .resolver import CredentialIndex, CredentialMatch, resolve_credential

__all__ = [
    "AccessDecision",
    "AccessState",
    "CredentialIndex",
    "CredentialMatch",
    "MergedSources",
    "apply_transform",
    "evaluate_access",
    "generate_expired_nodes",
    "handle_profile_mode",
    "merge_sources",
    "parse_expiry",
    "resolve_credential",
    "retrieve_nodes",
]
