from __future__ import annotations

from typing import Any, Dict
from urllib.parse import parse_qs, unquote, urlparse

from ...exceptions import ParserError
from .common import BaseParser


class TuicParser(BaseParser):
    """
    Parses a TUIC link.
    """

    def parse(self) -> Dict[str, Any]:
        p = urlparse(self.config_uri)
        try:
            port = p.port
        except ValueError as exc:
            raise ParserError("Invalid port in tuic link") from exc
        if not p.hostname or not port:
            raise ParserError("Missing host or port in tuic link")

        q = parse_qs(p.query)
        proxy: Dict[str, Any] = {
            "name": self.fragment_name(p.fragment, f"{p.hostname}:{port}"),
            "type": "tuic",
            "server": self.sanitize_str(p.hostname),
            "port": port,
        }
        uuid = p.username or q.get("uuid", [None])[0]
        passwd = p.password or q.get("password", [None])[0]
        if uuid:
            proxy["uuid"] = self.sanitize_str(unquote(uuid))
        if passwd:
            proxy["password"] = self.sanitize_str(unquote(passwd))

        key_map = {
            "alpn": ["alpn"],
            "sni": ["sni"],
            "congestion-controller": ["congestion_control", "congestion-control"],
            "udp-relay-mode": ["udp_relay_mode", "udp-relay-mode"],
        }
        for out_key, keys in key_map.items():
            for k in keys:
                if k in q:
                    proxy[out_key] = self.sanitize_str(q[k][0])
                    break
        return proxy
