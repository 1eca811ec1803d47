"""
The node transform pipeline.

Takes the node links of a profile and returns them deduplicated, sorted and
renamed according to the profile's ``NodeTransformSettings``. Every stage
works on links: renaming only touches the part of a link that carries the
display name (the ``ps`` field of a base64 VMess body, the ``remarks``
parameter of an SSR body, or the URL fragment), so server and port always
survive a rename.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from collections import defaultdict
from typing import Callable, Dict, List, Tuple
from urllib.parse import parse_qs, quote, urlencode

from ..constants import DEFAULT_RENAME_TEMPLATE, UNKNOWN_REGION
from ..core.geo import region_emoji
from ..core.node_parser import parse_node_info
from ..core.parsers.common import b64decode_padded
from ..core.types import Node
from ..models import NodeTransformSettings

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{(emoji|region|protocol|index|name)\}")

SORT_KEYS: Dict[str, Callable[[Node], Tuple]] = {
    "region": lambda n: (n.region == UNKNOWN_REGION, n.region),
    "protocol": lambda n: (n.protocol,),
    "name": lambda n: (n.name.lower(),),
}


def _dedup_key(node: Node) -> Tuple:
    if not node.server:
        return ("raw", node.url)
    return (node.protocol, node.server.lower(), node.port, node.uuid or node.password or "")


def dedupe_nodes(nodes: List[Node]) -> List[Node]:
    """Drop nodes sharing protocol, endpoint and credential; the first one wins."""
    seen = set()
    out = []
    for node in nodes:
        key = _dedup_key(node)
        if key in seen:
            continue
        seen.add(key)
        out.append(node)
    if len(out) != len(nodes):
        logger.debug("Dedup reduced %d -> %d nodes", len(nodes), len(out))
    return out


def sort_nodes(nodes: List[Node], keys: List[str]) -> List[Node]:
    """Stable sort by the given keys, in order."""
    key_funcs = [SORT_KEYS[k] for k in keys if k in SORT_KEYS]
    if not key_funcs:
        return list(nodes)
    return sorted(nodes, key=lambda n: tuple(part for f in key_funcs for part in f(n)))


def render_name(template: str, node: Node, index: int, index_width: int, enable_emoji: bool) -> str:
    values = {
        "emoji": region_emoji(node.region) if enable_emoji else "",
        "region": node.region,
        "protocol": node.protocol.upper(),
        "index": str(index).zfill(index_width),
        "name": node.name,
    }
    return PLACEHOLDER_RE.sub(lambda m: values[m.group(1)], template).strip()


def _rename_vmess(url: str, name: str) -> str | None:
    body = url.split("://", 1)[1].split("#", 1)[0]
    try:
        data = json.loads(b64decode_padded(body).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    data["ps"] = name
    encoded = base64.b64encode(json.dumps(data, ensure_ascii=False).encode("utf-8")).decode()
    return f"vmess://{encoded}"


def _rename_ssr(url: str, name: str) -> str | None:
    body = url.split("://", 1)[1].split("#", 1)[0]
    try:
        decoded = b64decode_padded(body, urlsafe=True).decode()
    except (binascii.Error, UnicodeDecodeError):
        return None
    main, _, tail = decoded.partition("/")
    params = parse_qs(tail[1:]) if tail.startswith("?") else {}
    flat = {k: v[0] for k, v in params.items()}
    flat["remarks"] = base64.urlsafe_b64encode(name.encode()).decode().rstrip("=")
    new_body = f"{main}/?{urlencode(flat)}"
    return "ssr://" + base64.urlsafe_b64encode(new_body.encode()).decode().rstrip("=")


def rename_link(url: str, name: str) -> str:
    """Return ``url`` carrying ``name`` as its display name."""
    scheme = url.split("://", 1)[0].lower()
    renamed = None
    if scheme == "vmess":
        renamed = _rename_vmess(url, name)
    elif scheme == "ssr":
        renamed = _rename_ssr(url, name)
    if renamed is not None:
        return renamed
    return url.split("#", 1)[0] + "#" + quote(name, safe="")


def rename_nodes(nodes: List[Node], config: NodeTransformSettings) -> List[str]:
    rename = config.rename.template
    template = rename.template or DEFAULT_RENAME_TEMPLATE
    counters: Dict[Tuple[str, str], int] = defaultdict(int)
    urls = []
    for node in nodes:
        if not node.server:
            urls.append(node.url)
            continue
        counters[(node.region, node.protocol)] += 1
        name = render_name(
            template,
            node,
            counters[(node.region, node.protocol)],
            rename.index_width,
            config.enable_emoji,
        )
        urls.append(rename_link(node.url, name))
    return urls


def apply_node_transform_pipeline(urls: List[str], config: NodeTransformSettings) -> List[str]:
    """
    Run the dedup, sort and rename stages over node links.

    Args:
        urls: Node links in their aggregated order.
        config: The profile's transform settings.

    Returns:
        The transformed node links.
    """
    nodes = [parse_node_info(url) for url in urls]
    if config.dedup.enabled:
        nodes = dedupe_nodes(nodes)
    if config.sort.enabled:
        nodes = sort_nodes(nodes, list(config.sort.keys))
    if not config.rename.template.enabled:
        return [node.url for node in nodes]
    return rename_nodes(nodes, config)
