"""Access gating for a resolved profile.

A disabled profile is denied. An enabled profile is expired when its
effective expiry, the matched token's ``expiresAt`` if it sets one and the
profile's otherwise, lies in the past. Expired profiles are answered with a
single placeholder node telling the user the subscription has lapsed.
"""
from __future__ import annotations

import base64
import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, Optional

from ..constants import SYSTEM_NOTICE_LABEL
from ..core.types import Node, ProfileResult
from ..models import AccessToken, Profile

logger = logging.getLogger(__name__)

PLACEHOLDER_SERVER = "127.0.0.1"
PLACEHOLDER_PORT = 80
PLACEHOLDER_UUID = "00000000-0000-0000-0000-000000000000"
EXPIRED_NOTICE = "[Notice] This subscription expired on {expires_at}, please contact the administrator."

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Non-ISO layouts accepted by browser date parsing; read as UTC.
_FALLBACK_FORMATS = [
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M:%S",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%d %b %Y",
    "%b %d, %Y %H:%M:%S",
    "%B %d, %Y %H:%M:%S",
]


class AccessState(str, Enum):
    ACTIVE = "active"
    DENIED = "denied"
    EXPIRED = "expired"


@dataclass(frozen=True)
class AccessDecision:
    state: AccessState
    expires_at: Any = None


def parse_expiry(value: Any) -> Optional[datetime]:
    """
    Parse an expiry value into an aware UTC datetime.

    Accepts ISO-8601 dates (UTC midnight), ISO date-times with or without an
    offset (naive ones are UTC), epoch milliseconds, slash-separated dates,
    month-name dates such as "Jan 1, 2024" and RFC 2822 timestamps. Values
    without an offset are read as UTC. Returns None for anything else.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if _DATE_ONLY_RE.match(text):
        text += "T00:00:00"
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        parsed = _parse_loose(value.strip())
        if parsed is None:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_loose(text: str) -> Optional[datetime]:
    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        # RFC 2822, e.g. "Mon, 01 Jan 2024 00:00:00 GMT"
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None


def effective_expiry(profile: Profile, token: Optional[AccessToken] = None) -> Any:
    if token is not None and token.expires_at not in (None, ""):
        return token.expires_at
    return profile.expires_at


def evaluate_access(
    profile: Optional[Profile],
    token: Optional[AccessToken] = None,
    now: Optional[datetime] = None,
) -> AccessDecision:
    """Decide whether ``profile`` may be served right now."""
    if profile is None or not profile.enabled:
        return AccessDecision(AccessState.DENIED)

    expires_at = effective_expiry(profile, token)
    if expires_at in (None, ""):
        return AccessDecision(AccessState.ACTIVE)

    expiry = parse_expiry(expires_at)
    if expiry is None:
        logger.warning("Unparsable expiry %r on profile %s; allowing access", expires_at, profile.id)
        return AccessDecision(AccessState.ACTIVE, expires_at)

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if expiry < now:
        return AccessDecision(AccessState.EXPIRED, expires_at)
    return AccessDecision(AccessState.ACTIVE, expires_at)


def expired_placeholder_node(expires_at: Any) -> Node:
    name = EXPIRED_NOTICE.format(expires_at=expires_at)
    payload = {
        "v": "2",
        "ps": name,
        "add": PLACEHOLDER_SERVER,
        "port": str(PLACEHOLDER_PORT),
        "id": PLACEHOLDER_UUID,
        "aid": "0",
        "scy": "auto",
        "net": "tcp",
        "type": "none",
        "host": "",
        "path": "",
        "tls": "",
    }
    encoded = base64.b64encode(json.dumps(payload, ensure_ascii=False).encode("utf-8")).decode()
    return Node(
        protocol="vmess",
        server=PLACEHOLDER_SERVER,
        port=PLACEHOLDER_PORT,
        name=name,
        url=f"vmess://{encoded}",
        subscription_name=SYSTEM_NOTICE_LABEL,
        uuid=PLACEHOLDER_UUID,
        cipher="auto",
        details={"alterId": 0, "network": "tcp", "tls": False},
    )


def generate_expired_nodes(expires_at: Any) -> ProfileResult:
    """The result served in place of an expired profile's nodes."""
    return ProfileResult(subscriptions=[], nodes=[expired_placeholder_node(expires_at)])
