"""Protocol-specific parsers for proxy node links.

Each module turns one family of node links (e.g. VMess, VLESS, Trojan) into
a Clash-style proxy dictionary. Parsers raise ``ParserError`` for links they
cannot interpret; the ``node_parser`` facade turns both outcomes into ``Node``
records.
"""
from __future__ import annotations
