from __future__ import annotations

from typing import Any, Dict
from urllib.parse import urlparse

from ...exceptions import ParserError
from .common import BaseParser


class FallbackParser(BaseParser):
    """Reads host and port from any ``scheme://[user@]host:port`` link."""

    def parse(self) -> Dict[str, Any]:
        p = urlparse(self.config_uri)
        try:
            port = p.port
        except ValueError as exc:
            raise ParserError(f"Invalid port in {self.scheme} link") from exc
        if not p.hostname or not port:
            raise ParserError(f"Missing host or port in {self.scheme} link")

        # socks* links map onto Clash's socks5 type, everything else keeps its scheme.
        typ = "socks5" if self.scheme.startswith("socks") else self.scheme
        return {
            "name": self.fragment_name(p.fragment, f"{p.hostname}:{port}"),
            "type": typ,
            "server": self.sanitize_str(p.hostname),
            "port": port,
        }
