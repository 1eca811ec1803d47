"""Per-source exclude/keep rules applied to fetched nodes.

Rules are given one per line::

    # comments and blank lines are ignored
    expire|traffic       regex matched against the node name
    proto:ssr            matches nodes of a protocol
    keep:HK|JP           whitelist mode, only matching nodes are kept

As soon as one ``keep:`` rule is present the filter only keeps nodes that
match any keep rule; the other lines are ignored.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .types import Node

logger = logging.getLogger(__name__)

KEEP_PREFIX = "keep:"
PROTOCOL_PREFIX = "proto:"

Matcher = Callable[[Node], bool]


def _compile_rule(rule: str) -> Matcher:
    if rule.lower().startswith(PROTOCOL_PREFIX):
        protocols = {p.strip().lower() for p in rule[len(PROTOCOL_PREFIX):].split(",") if p.strip()}
        return lambda node: node.protocol.lower() in protocols
    try:
        pattern = re.compile(rule, re.IGNORECASE)
    except re.error:
        logger.debug("Invalid exclude pattern %r, using substring match", rule)
        needle = rule.lower()
        return lambda node: needle in node.name.lower()
    return lambda node: bool(pattern.search(node.name))


@dataclass
class NodeFilter:
    """Compiled exclude/keep rules."""

    exclude: List[Matcher] = field(default_factory=list)
    keep: List[Matcher] = field(default_factory=list)

    @classmethod
    def from_rules(cls, rules: Optional[str]) -> "NodeFilter":
        node_filter = cls()
        for line in (rules or "").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if line.lower().startswith(KEEP_PREFIX):
                pattern = line[len(KEEP_PREFIX):].strip()
                if pattern:
                    node_filter.keep.append(_compile_rule(pattern))
            else:
                node_filter.exclude.append(_compile_rule(line))
        return node_filter

    def accepts(self, node: Node) -> bool:
        if self.keep:
            return any(match(node) for match in self.keep)
        return not any(match(node) for match in self.exclude)

    def apply(self, nodes: List[Node]) -> List[Node]:
        return [node for node in nodes if self.accepts(node)]


def apply_exclude_rules(nodes: List[Node], rules: Optional[str]) -> List[Node]:
    """Filter ``nodes`` by the rule text; no rules keep every node."""
    if not rules or not rules.strip():
        return list(nodes)
    kept = NodeFilter.from_rules(rules).apply(nodes)
    if len(kept) != len(nodes):
        logger.debug("Exclude rules removed %d of %d nodes", len(nodes) - len(kept), len(nodes))
    return kept
