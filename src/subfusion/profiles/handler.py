from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..config import Settings
from ..core.stats import protocol_stats, region_stats
from ..core.types import ProfileResult
from ..exceptions import ProfileNotFoundError
from ..fetcher import SubscriptionFetcher
from ..storage import Store, load_collections
from . import adapter
from .access import AccessState, evaluate_access, generate_expired_nodes
from .merger import merge_sources
from .orchestrator import Fetcher, retrieve_nodes
from .resolver import resolve_credential

logger = logging.getLogger(__name__)


async def handle_profile_mode(
    store: Store,
    identifier: str,
    user_agent: str,
    apply_transform: bool = False,
    *,
    settings: Optional[Settings] = None,
    fetcher: Optional[Fetcher] = None,
    now: Optional[datetime] = None,
) -> ProfileResult:
    """
    Resolve ``identifier`` to a profile and aggregate its nodes.

    Args:
        store: Store holding the profile and source collections.
        identifier: Profile id, custom id or access token from the request.
        user_agent: User-Agent forwarded to remote subscriptions.
        apply_transform: Run the profile's transform pipeline, if enabled.
        settings: Application settings; defaults are used when omitted.
        fetcher: Fetcher for remote sources. A ``SubscriptionFetcher`` is
            created, and closed afterwards, when omitted.
        now: Reference time for expiry checks.

    Returns:
        The aggregated ``ProfileResult``; for an expired profile, the
        placeholder result.
    Raises:
        ProfileNotFoundError: If no enabled profile matches ``identifier``.
    """
    settings = settings or Settings()
    profiles, sources = await load_collections(store, settings)

    match = resolve_credential(identifier, profiles)
    decision = evaluate_access(
        match.profile if match else None, match.token if match else None, now=now
    )
    if decision.state is AccessState.DENIED:
        raise ProfileNotFoundError()
    if decision.state is AccessState.EXPIRED:
        logger.info("Profile %s expired on %s", match.profile.id, decision.expires_at)
        return generate_expired_nodes(decision.expires_at)

    profile = match.profile
    merged = merge_sources(profile, sources)
    logger.info(
        "Profile %s: %d subscriptions, %d manual nodes",
        profile.id,
        len(merged.subscriptions),
        len(merged.manual_nodes),
    )

    own_fetcher = fetcher is None
    active_fetcher = fetcher or SubscriptionFetcher(settings.network)
    try:
        results, nodes = await retrieve_nodes(
            merged, active_fetcher, user_agent or settings.network.user_agent
        )
    finally:
        if own_fetcher:
            await active_fetcher.close()

    nodes = adapter.apply_transform(
        profile, nodes, apply_transform, settings.transform.default_template
    )
    return ProfileResult(
        subscriptions=results,
        nodes=nodes,
        protocol_stats=protocol_stats(nodes),
        region_stats=region_stats(nodes),
    )
