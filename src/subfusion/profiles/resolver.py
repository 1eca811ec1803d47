"""Credential resolution: which profile does a request identifier select?

A profile can be addressed by its primary id, by its legacy custom id, or by
any of its enabled access tokens. Profiles are considered in collection
order, and within a profile the rules apply in that precedence order; the
first match wins.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from ..models import AccessToken, Profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialMatch:
    """A resolved profile and, when matched by token, the token itself."""

    profile: Profile
    token: Optional[AccessToken] = None


class CredentialIndex:
    """Lookup table from identifier to ``CredentialMatch``."""

    def __init__(self, profiles: Iterable[Profile]):
        self._index: Dict[str, CredentialMatch] = {}
        for profile in profiles:
            self._add(profile.id, CredentialMatch(profile))
            if profile.custom_id:
                self._add(profile.custom_id, CredentialMatch(profile))
            for token in profile.eligible_tokens():
                self._add(token.token, CredentialMatch(profile, token))

    def _add(self, key: str, match: CredentialMatch) -> None:
        if key:
            self._index.setdefault(key, match)

    def lookup(self, identifier: str) -> Optional[CredentialMatch]:
        if not identifier:
            return None
        return self._index.get(identifier)

    def __len__(self) -> int:
        return len(self._index)


def resolve_credential(identifier: str, profiles: Iterable[Profile]) -> Optional[CredentialMatch]:
    """Resolve ``identifier`` against ``profiles``; None when nothing matches."""
    match = CredentialIndex(profiles).lookup(identifier)
    if match is None:
        logger.debug("No profile matches the presented identifier")
    elif match.token is not None:
        logger.debug("Identifier matched an access token of profile %s", match.profile.id)
    return match
