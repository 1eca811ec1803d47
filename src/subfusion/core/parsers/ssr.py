from __future__ import annotations

import binascii
import logging
from typing import Any, Dict
from urllib.parse import parse_qs

from ...exceptions import ParserError
from .common import BaseParser, b64decode_padded

logger = logging.getLogger(__name__)


class SsrParser(BaseParser):
    """
    Parses a ShadowsocksR (SSR) link.
    """

    def decode_body(self) -> str:
        base = self.config_uri.split("://", 1)[1].split("#", 1)[0]
        return b64decode_padded(base, urlsafe=True).decode()

    def parse(self) -> Dict[str, Any]:
        """
        Parse the SSR link.

        Raises:
            ParserError: If the body cannot be decoded.
        """
        try:
            decoded = self.decode_body()
            main, _, tail = decoded.partition("/")
            parts = main.rsplit(":", 5)
            if len(parts) < 6:
                raise ParserError("Too few fields in ssr link")
            server, port_str, proto, method, obfs, pwd_enc = parts
            port = int(port_str)
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            logger.debug("SSR parse failed: %s", exc)
            raise ParserError("Invalid ssr link") from exc

        try:
            password = self.sanitize_str(b64decode_padded(pwd_enc, urlsafe=True).decode())
        except (binascii.Error, UnicodeDecodeError):
            password = self.sanitize_str(pwd_enc)

        q = parse_qs(tail[1:]) if tail.startswith("?") else {}
        proxy: Dict[str, Any] = {
            "name": f"{server}:{port}",
            "type": "ssr",
            "server": self.sanitize_str(server),
            "port": port,
            "cipher": self.sanitize_str(method),
            "password": password,
            "protocol": self.sanitize_str(proto),
            "obfs": self.sanitize_str(obfs),
        }

        for param, key in [
            ("obfsparam", "obfs-param"),
            ("protoparam", "protocol-param"),
            ("remarks", "name"),
            ("group", "group"),
        ]:
            if param in q:
                try:
                    val = b64decode_padded(q[param][0], urlsafe=True).decode()
                except (binascii.Error, UnicodeDecodeError):
                    val = q[param][0]
                if val:
                    proxy[key] = self.sanitize_str(val)
        return proxy
