"""Remote subscription fetching.

``SubscriptionFetcher`` downloads a subscription feed, extracts and parses
its node links and returns a ``SubscriptionResult``. Failures are reported in
the result rather than raised, so one broken feed never fails a profile.
"""
from __future__ import annotations

import logging
from typing import Optional

import aiohttp

from .config import NetworkSettings
from .core.filters import apply_exclude_rules
from .core.node_parser import parse_node_info
from .core.types import SubscriptionResult
from .core.utils import decode_subscription_content, fetch_text, parse_configs_from_text
from .exceptions import NetworkError

logger = logging.getLogger(__name__)


class SubscriptionFetcher:
    """
    Fetches remote subscription feeds over a shared aiohttp session.

    The session is created on first use and must be released with
    ``close()`` or by using the fetcher as an async context manager.
    """

    def __init__(
        self,
        settings: Optional[NetworkSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.settings = settings or NetworkSettings()
        self.session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            connector = aiohttp.TCPConnector(limit=self.settings.concurrent_limit)
            self.session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True
        return self.session

    async def close(self) -> None:
        """Close the underlying session if this fetcher created it."""
        if self.session is not None and self._owns_session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def __aenter__(self) -> "SubscriptionFetcher":
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def fetch(
        self,
        url: str,
        display_name: str,
        user_agent: str,
        custom_user_agent: Optional[str] = None,
        exclude: Optional[str] = None,
    ) -> SubscriptionResult:
        """
        Fetch one subscription feed and parse its nodes.

        Args:
            url: The subscription URL.
            display_name: Name recorded on the result and on every node.
            user_agent: User-Agent of the incoming request.
            custom_user_agent: Per-source override of ``user_agent``.
            exclude: Exclude/keep rules applied to the parsed nodes.

        Returns:
            A ``SubscriptionResult``; ``success`` is False when the feed
            could not be downloaded.
        """
        headers = dict(self.settings.headers)
        headers["User-Agent"] = custom_user_agent or user_agent or self.settings.user_agent

        session = await self._get_session()
        try:
            text = await fetch_text(
                session,
                url,
                self.settings.request_timeout,
                headers=headers,
                retries=self.settings.retry_attempts,
                base_delay=self.settings.retry_base_delay,
                jitter=self.settings.retry_jitter,
                proxy=self.settings.http_proxy,
            )
        except NetworkError as exc:
            logger.warning("Subscription '%s' failed: %s", display_name, exc)
            return SubscriptionResult(
                subscription_name=display_name, url=url, success=False, error=str(exc)
            )

        links = parse_configs_from_text(decode_subscription_content(text))
        nodes = []
        for link in links:
            node = parse_node_info(link)
            node.subscription_name = display_name
            nodes.append(node)
        nodes = apply_exclude_rules(nodes, exclude)

        logger.info("Subscription '%s': %d nodes", display_name, len(nodes))
        return SubscriptionResult(
            subscription_name=display_name, url=url, success=True, nodes=nodes
        )
