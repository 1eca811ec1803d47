from __future__ import annotations

from typing import Any, Dict
from urllib.parse import parse_qs, unquote, urlparse

from ...exceptions import ParserError
from .common import BaseParser


class TrojanParser(BaseParser):
    """
    Parses a Trojan link.
    """

    def parse(self) -> Dict[str, Any]:
        """
        Parse the Trojan link.

        Raises:
            ParserError: If essential components are missing.
        """
        p = urlparse(self.config_uri)
        try:
            port = p.port
        except ValueError as exc:
            raise ParserError("Invalid port in trojan link") from exc

        password = self.sanitize_str(unquote(p.username or p.password or ""))
        if not p.hostname or not port or not password:
            raise ParserError("Missing components in trojan link")

        q = parse_qs(p.query)
        proxy: Dict[str, Any] = {
            "name": self.fragment_name(p.fragment, f"{p.hostname}:{port}"),
            "type": "trojan",
            "server": self.sanitize_str(p.hostname),
            "port": port,
            "password": password,
            "network": self.sanitize_str(q.get("type", ["tcp"])[0]),
        }
        if q.get("sni") or q.get("peer"):
            proxy["sni"] = self.sanitize_str((q.get("sni") or q.get("peer"))[0])
        if q.get("allowInsecure", ["0"])[0] in ("1", "true"):
            proxy["skip-cert-verify"] = True
        for key in ("host", "path", "alpn", "fp", "serviceName"):
            if key in q:
                proxy[key] = self.sanitize_str(q[key][0])
        return proxy
