from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from ...exceptions import ParserError
from .common import BaseParser


class VlessParser(BaseParser):
    """
    Parses a VLESS or Reality link.
    """

    def _parse_reality_opts(self, q: Dict[str, List[str]]) -> Tuple[Dict[str, str], Optional[str]]:
        """Helper to build the reality-opts dictionary."""
        pbk_q = q.get("pbk") or q.get("public-key") or q.get("publicKey")
        sid_q = q.get("sid") or q.get("short-id") or q.get("shortId")
        spider_q = q.get("spx") or q.get("spiderX")

        opts = {}
        if pbk_q:
            opts["public-key"] = self.sanitize_str(pbk_q[0])
        if sid_q:
            opts["short-id"] = self.sanitize_str(sid_q[0])
        if spider_q:
            opts["spider-x"] = self.sanitize_str(spider_q[0])
        return opts, opts.get("public-key")

    def parse(self) -> Dict[str, Any]:
        """
        Parse the VLESS or Reality link.

        Raises:
            ParserError: If the host or port cannot be read.
        """
        p = urlparse(self.config_uri)
        try:
            port = p.port
        except ValueError as exc:
            raise ParserError("Invalid port in vless link") from exc
        if not p.hostname or not port:
            raise ParserError("Missing host or port in vless link")

        q = parse_qs(p.query)
        security = q.get("security", [""])[0]
        proxy: Dict[str, Any] = {
            "name": self.fragment_name(p.fragment, f"{p.hostname}:{port}"),
            "type": "vless",
            "server": self.sanitize_str(p.hostname),
            "port": port,
            "uuid": self.sanitize_str(p.username or ""),
            "encryption": self.sanitize_str(q.get("encryption", ["none"])[0]),
            "tls": self.scheme == "reality" or security in ("tls", "reality"),
            "network": self.sanitize_str(q.get("type", ["tcp"])[0]),
        }

        for key in ("host", "path", "sni", "alpn", "fp", "flow", "serviceName"):
            if key in q:
                proxy[key] = self.sanitize_str(q[key][0])

        reality_opts, pbk = self._parse_reality_opts(q)
        if pbk or security == "reality":
            proxy["reality-opts"] = reality_opts

        if "ws-headers" in q:
            proxy["ws-headers"] = self.sanitize_headers(q["ws-headers"][0])
        return proxy
