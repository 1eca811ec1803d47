from __future__ import annotations

from typing import Dict, Optional

from pydantic import Field

from ..constants import DEFAULT_USER_AGENT
from .base import BaseConfig


class NetworkSettings(BaseConfig):
    """Settings related to subscription fetching, timeouts, and proxies."""

    request_timeout: int = Field(10, description="Total timeout for a subscription request in seconds.")
    concurrent_limit: int = Field(
        20, description="Maximum number of simultaneous connections in the fetcher's pool."
    )
    retry_attempts: int = Field(
        3, description="Number of attempts for a failed subscription request."
    )
    retry_base_delay: float = Field(
        1.0, description="Base delay for exponential backoff between retries."
    )
    retry_jitter: float = Field(
        0.1, description="Upper bound of the random jitter added to retry delays, in seconds."
    )
    user_agent: str = Field(
        DEFAULT_USER_AGENT,
        description="User-Agent sent upstream when the request does not provide one.",
    )
    http_proxy: Optional[str] = Field(
        None, description="URL for an HTTP proxy used for upstream fetches."
    )
    headers: Dict[str, str] = Field(
        default={
            "Accept": "text/plain, application/octet-stream, */*",
            "Cache-Control": "no-cache",
        },
        description="Extra headers sent with every subscription request.",
    )
