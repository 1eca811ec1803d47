from __future__ import annotations

import binascii
import json
import logging
from typing import Any, Dict
from urllib.parse import parse_qs, urlparse

from ...exceptions import ParserError
from .common import BaseParser, b64decode_padded

logger = logging.getLogger(__name__)

TRANSPORT_KEYS = ("host", "path", "sni", "alpn", "fp", "serviceName")


class VmessParser(BaseParser):
    """
    Parses a VMess link, either the common base64 JSON form or the URI form.
    """

    def decode_payload(self) -> Dict[str, Any]:
        """Return the base64 JSON body of the link."""
        body = self.config_uri.split("://", 1)[1].split("#", 1)[0]
        data = json.loads(b64decode_padded(body).decode("utf-8"))
        if not isinstance(data, dict):
            raise ValueError("vmess payload is not an object")
        return data

    def parse(self) -> Dict[str, Any]:
        """
        Parse the VMess link.

        Returns:
            A dictionary representing the Clash proxy.
        Raises:
            ParserError: If neither form can be parsed.
        """
        try:
            data = self.decode_payload()
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, ValueError):
            logger.debug("Falling back to URI parse for vmess link")
            return self._parse_uri()

        server = self.sanitize_str(str(data.get("add") or ""))
        try:
            port = int(data.get("port") or 0)
            alter_id = int(data.get("aid") or 0)
        except (TypeError, ValueError) as exc:
            raise ParserError("Invalid port or alterId in vmess link") from exc

        proxy: Dict[str, Any] = {
            "name": self.sanitize_str(str(data.get("ps") or "")) or f"{server}:{port}",
            "type": "vmess",
            "server": server,
            "port": port,
            "uuid": self.sanitize_str(data.get("id") or ""),
            "alterId": alter_id,
            "cipher": self.sanitize_str(data.get("scy") or "auto"),
            "tls": data.get("tls") in ("tls", True),
            "network": self.sanitize_str(data.get("net") or "tcp"),
        }
        for key in TRANSPORT_KEYS:
            if data.get(key):
                proxy[key] = self.sanitize_str(data.get(key))
        if data.get("ws-headers"):
            proxy["ws-headers"] = self.sanitize_headers(data.get("ws-headers"))
        return proxy

    def _parse_uri(self) -> Dict[str, Any]:
        p = urlparse(self.config_uri)
        try:
            port = p.port
            q = parse_qs(p.query)
            alter_id = int(q.get("aid", [0])[0])
        except ValueError as exc:
            raise ParserError("Failed to parse vmess link") from exc
        if not p.hostname or not port or not p.username:
            raise ParserError("Failed to parse vmess link")

        proxy: Dict[str, Any] = {
            "name": self.fragment_name(p.fragment, f"{p.hostname}:{port}"),
            "type": "vmess",
            "server": self.sanitize_str(p.hostname),
            "port": port,
            "uuid": self.sanitize_str(p.username or ""),
            "alterId": alter_id,
            "cipher": self.sanitize_str(q.get("encryption", ["auto"])[0]),
            "tls": q.get("security", [""])[0] == "tls",
            "network": self.sanitize_str(q.get("type", ["tcp"])[0]),
        }
        for key in TRANSPORT_KEYS:
            if key in q:
                proxy[key] = self.sanitize_str(q[key][0])
        return proxy
