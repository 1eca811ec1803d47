from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type

from ..exceptions import ParserError
from .geo import classify_region
from .parsers.common import BaseParser
from .parsers.fallback import FallbackParser
from .parsers.hysteria import HysteriaParser
from .parsers.naive import NaiveParser
from .parsers.shadowsocks import ShadowsocksParser
from .parsers.ssr import SsrParser
from .parsers.trojan import TrojanParser
from .parsers.tuic import TuicParser
from .parsers.vless import VlessParser
from .parsers.vmess import VmessParser
from .types import Node

logger = logging.getLogger(__name__)

CREDENTIAL_KEYS = ("uuid", "password", "cipher")
NODE_KEYS = ("name", "type", "server", "port") + CREDENTIAL_KEYS


class NodeParser:
    """
    Turns node links into ``Node`` records.

    This class acts as a facade, delegating the parsing of specific
    protocols to the parser classes in the ``parsers`` subpackage.
    """

    def __init__(self):
        self.parsers: Dict[str, Type[BaseParser]] = {
            "vmess": VmessParser,
            "vless": VlessParser,
            "reality": VlessParser,
            "trojan": TrojanParser,
            "ss": ShadowsocksParser,
            "shadowsocks": ShadowsocksParser,
            "ssr": SsrParser,
            "shadowsocksr": SsrParser,
            "naive": NaiveParser,
            "naive+https": NaiveParser,
            "hy2": HysteriaParser,
            "hysteria2": HysteriaParser,
            "hysteria": HysteriaParser,
            "tuic": TuicParser,
        }

    def to_proxy(self, url: str) -> Optional[Dict[str, Any]]:
        """
        Convert a single node link to a Clash-style proxy dictionary.

        Returns:
            The proxy dictionary, or None if the link cannot be parsed.
        """
        scheme = url.split("://", 1)[0].lower()
        parser_cls = self.parsers.get(scheme, FallbackParser)
        try:
            return parser_cls(url).parse()
        except (ParserError, ValueError, UnicodeDecodeError) as exc:
            logger.debug("Failed to parse %s link: %s", scheme, exc)
            return None

    def parse(self, url: str) -> Node:
        """
        Parse a node link; never raises.

        A link that cannot be interpreted yields a node carrying the link's
        scheme as protocol, an empty server and port 0.
        """
        url = (url or "").strip()
        proxy = self.to_proxy(url) if "://" in url else None
        if proxy is None:
            scheme = url.split("://", 1)[0].lower() if "://" in url else "unknown"
            return Node(protocol=scheme, server="", port=0, name="", url=url)

        name = str(proxy.get("name") or "")
        return Node(
            protocol=str(proxy.get("type") or ""),
            server=str(proxy.get("server") or ""),
            port=int(proxy.get("port") or 0),
            name=name,
            url=url,
            region=classify_region(name),
            uuid=proxy.get("uuid") or None,
            password=proxy.get("password") or None,
            cipher=proxy.get("cipher") or None,
            details={k: v for k, v in proxy.items() if k not in NODE_KEYS},
        )


_default_parser = NodeParser()


def parse_node_info(url: str) -> Node:
    """Parse one node link into a ``Node``."""
    return _default_parser.parse(url)
