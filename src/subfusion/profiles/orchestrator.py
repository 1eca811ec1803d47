from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol, Tuple

from ..constants import MANUAL_NODE_LABEL
from ..core.node_parser import parse_node_info
from ..core.types import Node, SubscriptionResult
from ..models import Source
from .merger import MergedSources

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(
        self,
        url: str,
        display_name: str,
        user_agent: str,
        custom_user_agent: Optional[str] = None,
        exclude: Optional[str] = None,
    ) -> SubscriptionResult:
        ...


def parse_manual_node(source: Source) -> SubscriptionResult:
    """A manual node always yields a successful single-node result."""
    label = source.name or MANUAL_NODE_LABEL
    node = parse_node_info(source.url)
    node.subscription_name = label
    return SubscriptionResult(
        subscription_name=label,
        url=source.url,
        success=True,
        nodes=[node],
        is_manual_node=True,
    )


async def fetch_subscription(fetcher: Fetcher, source: Source, user_agent: str) -> SubscriptionResult:
    """Fetch one remote source; any exception becomes a failed result."""
    try:
        return await fetcher.fetch(
            source.url,
            source.name,
            user_agent,
            custom_user_agent=source.custom_user_agent,
            exclude=source.exclude,
        )
    except Exception as exc:
        logger.error("Fetching subscription %s failed: %s", source.id, exc)
        return SubscriptionResult(
            subscription_name=source.name, url=source.url, success=False, error=str(exc)
        )


async def retrieve_nodes(
    merged: MergedSources, fetcher: Fetcher, user_agent: str
) -> Tuple[List[SubscriptionResult], List[Node]]:
    """
    Retrieve every selected source.

    Remote subscriptions are fetched concurrently, manual nodes are parsed
    in place. Results are ordered remote first, then manual, each group in
    declared order; nodes are collected from successful results only.
    """
    manual_results = [parse_manual_node(source) for source in merged.manual_nodes]
    remote_results = list(
        await asyncio.gather(
            *(fetch_subscription(fetcher, source, user_agent) for source in merged.subscriptions)
        )
    )

    results = remote_results + manual_results
    nodes: List[Node] = []
    for result in results:
        if result.success:
            nodes.extend(result.nodes)
    failed = sum(1 for r in remote_results if not r.success)
    logger.info(
        "Retrieved %d nodes from %d sources (%d failed)", len(nodes), len(results), failed
    )
    return results, nodes
