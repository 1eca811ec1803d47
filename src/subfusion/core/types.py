"""Shared data types for the SubFusion application."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..constants import UNKNOWN_REGION


@dataclass
class Node:
    """
    A parsed proxy node.

    Attributes:
        protocol: Proxy type as used by Clash-style clients (e.g. "vmess", "ss").
        server: The server hostname or IP address.
        port: The server port, 0 when unknown.
        name: Display name carried by the link.
        url: The original node link.
        region: Region code derived from the node name.
        subscription_name: Name of the source the node came from.
        uuid: User id for vmess/vless/tuic style protocols.
        password: Password for trojan/ss/hysteria style protocols.
        cipher: Cipher for ss/ssr/vmess.
        details: Transport and TLS options.
    """

    protocol: str
    server: str
    port: int
    name: str
    url: str
    region: str = UNKNOWN_REGION
    subscription_name: Optional[str] = None
    uuid: Optional[str] = None
    password: Optional[str] = None
    cipher: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def endpoint(self) -> Tuple[str, int]:
        """Host/port pair used to correlate a node across rewrites."""
        return self.server.lower(), self.port

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        data: Dict[str, Any] = dict(self.details)
        data.update(
            {
                "name": self.name,
                "type": self.protocol,
                "server": self.server,
                "port": self.port,
                "region": self.region,
                "url": self.url,
                "subscriptionName": self.subscription_name,
            }
        )
        for key in ("uuid", "password", "cipher"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass
class SubscriptionResult:
    """Outcome of retrieving one source."""

    subscription_name: str
    url: str
    success: bool
    nodes: List[Node] = field(default_factory=list)
    error: Optional[str] = None
    is_manual_node: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "subscriptionName": self.subscription_name,
            "url": self.url,
            "success": self.success,
            "nodes": [node.to_dict() for node in self.nodes],
            "error": self.error,
            "isManualNode": self.is_manual_node,
        }


@dataclass
class ProfileResult:
    """The merged node list returned for a resolved profile."""

    subscriptions: List[SubscriptionResult] = field(default_factory=list)
    nodes: List[Node] = field(default_factory=list)
    protocol_stats: Dict[str, int] = field(default_factory=dict)
    region_stats: Dict[str, int] = field(default_factory=dict)
    success: bool = True

    @property
    def total_count(self) -> int:
        return len(self.nodes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "success": self.success,
            "subscriptions": [result.to_dict() for result in self.subscriptions],
            "nodes": [node.to_dict() for node in self.nodes],
            "totalCount": self.total_count,
            "stats": {
                "protocols": dict(self.protocol_stats),
                "regions": dict(self.region_stats),
            },
        }
