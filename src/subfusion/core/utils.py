"""Core utility functions for SubFusion.

Helpers shared by the fetcher: downloading subscription bodies with retries,
decoding base64 subscription payloads, and extracting node links from text.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import random
import re
from typing import Dict, List, Optional
from urllib.parse import urlparse

import aiohttp

from ..constants import BASE64_RE, MAX_DECODE_SIZE, PROTOCOL_RE
from ..exceptions import NetworkError

logger = logging.getLogger(__name__)

_TRAILING_PUNCTUATION = '\'".,!?:;)'


def decode_subscription_content(text: str) -> str:
    """
    Decode a subscription body that is a single base64 blob.

    Bodies that already contain node links, or that are not valid base64,
    are returned unchanged.
    """
    stripped = text.strip()
    if not stripped or PROTOCOL_RE.search(stripped):
        return text
    compact = re.sub(r"\s+", "", stripped)
    if not BASE64_RE.match(compact):
        return text
    if len(compact) > MAX_DECODE_SIZE:
        logger.debug("Skipping oversized base64 body (%d > %d)", len(compact), MAX_DECODE_SIZE)
        return text
    try:
        padded = compact + "=" * (-len(compact) % 4)
        return base64.urlsafe_b64decode(padded.replace("+", "-").replace("/", "_")).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        logger.debug("Failed to decode base64 body: %s", exc)
        return text


def parse_configs_from_text(text: str) -> List[str]:
    """
    Extract node links from a block of text, in order of appearance.

    Lines without a recognised link are tried as base64 and searched again.
    Duplicated links are kept; deduplication is a transform concern.
    """
    configs: List[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        matches = PROTOCOL_RE.findall(line)
        if matches:
            configs.extend(m.rstrip(_TRAILING_PUNCTUATION) for m in matches)
            continue
        if BASE64_RE.match(line):
            if len(line) > MAX_DECODE_SIZE:
                logger.debug(
                    "Skipping oversized base64 line (%d > %d)",
                    len(line),
                    MAX_DECODE_SIZE,
                )
                continue
            try:
                padded = line + "=" * (-len(line) % 4)
                decoded = base64.urlsafe_b64decode(
                    padded.replace("+", "-").replace("/", "_")
                ).decode()
            except (binascii.Error, UnicodeDecodeError) as exc:
                logger.debug("Failed to decode base64 line: %s", exc)
                continue
            configs.extend(m.rstrip(_TRAILING_PUNCTUATION) for m in PROTOCOL_RE.findall(decoded))
    return configs


async def fetch_text(
    session: aiohttp.ClientSession,
    url: str,
    timeout: int = 10,
    *,
    headers: Optional[Dict[str, str]] = None,
    retries: int = 3,
    base_delay: float = 1.0,
    jitter: float = 0.1,
    proxy: str | None = None,
) -> str:
    """
    Fetch text content from a URL with retries and exponential backoff.

    Server errors (5xx), 429 responses and connection failures are retried;
    any other 4xx response fails immediately.

    Args:
        session: The aiohttp client session to use for the request.
        url: The URL to fetch.
        timeout: The total timeout for the request in seconds.
        headers: Request headers, including the User-Agent.
        retries: The maximum number of attempts.
        base_delay: The base delay for the exponential backoff in seconds.
        jitter: Upper bound of the random delay added to each backoff.
        proxy: The proxy URL to use for the request.

    Returns:
        The text content of the response.
    Raises:
        NetworkError: If the request fails after all retries.
    """
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise NetworkError(f"Invalid URL for fetch_text: {url}")

    last_exc: BaseException | None = None
    attempt = 0
    while attempt < retries:
        try:
            async with session.get(
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
                proxy=proxy,
            ) as resp:
                if resp.status == 200:
                    return await resp.text(errors="ignore")
                if 400 <= resp.status < 500 and resp.status != 429:
                    raise NetworkError(f"HTTP {resp.status} from {url}")
                last_exc = NetworkError(f"HTTP {resp.status} from {url}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.debug("fetch_text error on %s: %s", url, exc)
            last_exc = exc

        attempt += 1
        if attempt >= retries:
            break
        delay = base_delay * 2 ** (attempt - 1)
        await asyncio.sleep(delay + random.uniform(0, jitter))

    raise NetworkError(f"Failed to fetch {url} after {retries} attempts: {last_exc}") from last_exc
