from __future__ import annotations

import binascii
from typing import Any, Dict
from urllib.parse import parse_qs, unquote, urlparse

from ...exceptions import ParserError
from .common import BaseParser, b64decode_padded


class ShadowsocksParser(BaseParser):
    """
    Parses a Shadowsocks (SS) link in SIP002 or legacy base64 form.
    """

    def parse(self) -> Dict[str, Any]:
        """
        Parse the Shadowsocks link.

        Raises:
            ParserError: If parsing fails.
        """
        p = urlparse(self.config_uri)
        try:
            server, port = p.hostname, p.port
        except ValueError:
            server, port = None, None
        method = password = None

        if server and port and p.username and p.password:
            method = unquote(p.username)
            password = unquote(p.password)
        elif server and port and p.username:
            try:
                userinfo = b64decode_padded(unquote(p.username)).decode()
                method, password = userinfo.split(":", 1)
            except (ValueError, binascii.Error, UnicodeDecodeError) as exc:
                raise ParserError("Invalid base64 userinfo in ss link") from exc
        else:
            try:
                base = self.config_uri.split("://", 1)[1].split("#", 1)[0].split("?", 1)[0]
                decoded = b64decode_padded(base).decode()
                before_at, host_port = decoded.rsplit("@", 1)
                method, password = before_at.split(":", 1)
                server_str, port_str = host_port.rsplit(":", 1)
                server, port = server_str.strip("[]"), int(port_str)
            except (ValueError, binascii.Error, UnicodeDecodeError) as exc:
                raise ParserError("Invalid ss link format") from exc

        if not all([server, port, method, password]):
            raise ParserError("Missing components in ss link")

        proxy: Dict[str, Any] = {
            "name": self.fragment_name(p.fragment, f"{server}:{port}"),
            "type": "ss",
            "server": self.sanitize_str(server),
            "port": int(port),
            "cipher": self.sanitize_str(method),
            "password": self.sanitize_str(password),
        }

        query_params = {k: (v[0] if v else "") for k, v in parse_qs(p.query).items()}
        plugin_val = (query_params.get("plugin") or "").strip()
        if plugin_val:
            plugin_name, _, plugin_opts = plugin_val.partition(";")
            if plugin_name.strip():
                proxy["plugin"] = plugin_name.strip()
            if plugin_opts.strip():
                proxy["plugin-opts"] = plugin_opts.strip()
        if str(query_params.get("udp", "false")).lower() == "true":
            proxy["udp"] = True
        return proxy
