from __future__ import annotations

from typing import Any, Dict
from urllib.parse import parse_qs, unquote, urlparse

from ...exceptions import ParserError
from .common import BaseParser


class HysteriaParser(BaseParser):
    """
    Parses a Hysteria, Hy2, or Hysteria2 link.
    """

    def parse(self) -> Dict[str, Any]:
        """
        Parse the Hysteria link.

        Raises:
            ParserError: If the host or port is missing.
        """
        p = urlparse(self.config_uri)
        try:
            port = p.port
        except ValueError as exc:
            raise ParserError("Invalid port in hysteria link") from exc
        if not p.hostname or not port:
            raise ParserError("Missing host or port in hysteria link")

        q = parse_qs(p.query)
        proxy: Dict[str, Any] = {
            "name": self.fragment_name(p.fragment, f"{p.hostname}:{port}"),
            "type": "hysteria2" if self.scheme in ("hy2", "hysteria2") else "hysteria",
            "server": self.sanitize_str(p.hostname),
            "port": port,
        }
        passwd = p.password or q.get("password", [None])[0] or q.get("auth", [None])[0]
        if p.username and not passwd:
            passwd = p.username
        if passwd:
            proxy["password"] = self.sanitize_str(unquote(passwd))

        for key in ("sni", "peer", "insecure", "alpn", "obfs", "obfs-password"):
            if key in q:
                proxy[key] = self.sanitize_str(q[key][0])

        for out_key, keys in (("up", ("upmbps", "up", "up_mbps")), ("down", ("downmbps", "down", "down_mbps"))):
            for k in keys:
                if k in q:
                    proxy[out_key] = self.sanitize_str(q[k][0])
                    break
        return proxy
