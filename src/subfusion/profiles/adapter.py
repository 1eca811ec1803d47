"""Runs the transform pipeline over aggregated nodes and restores provenance.

The pipeline works on links only, so the transformed links are parsed again
and each one is given the ``subscription_name`` of the first original node
with the same server and port.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from ..constants import DEFAULT_RENAME_TEMPLATE, EMOJI_PLACEHOLDER, UNKNOWN_SUBSCRIPTION_LABEL
from ..core.node_parser import parse_node_info
from ..core.types import Node
from ..models import NodeTransformSettings, Profile
from ..transform import pipeline

logger = logging.getLogger(__name__)


def effective_transform_config(
    settings: NodeTransformSettings, default_template: str = DEFAULT_RENAME_TEMPLATE
) -> NodeTransformSettings:
    template = settings.rename.template.template or default_template
    rename_template = settings.rename.template.model_copy(update={"template": template})
    rename = settings.rename.model_copy(update={"template": rename_template})
    return settings.model_copy(
        update={"rename": rename, "enable_emoji": EMOJI_PLACEHOLDER in template}
    )


def recorrelate(urls: List[str], originals: List[Node]) -> List[Node]:
    """Parse ``urls`` and copy each one's provenance from the original nodes."""
    by_endpoint: Dict[Tuple[str, int], Node] = {}
    for node in originals:
        by_endpoint.setdefault(node.endpoint, node)

    nodes = []
    for url in urls:
        node = parse_node_info(url)
        original = by_endpoint.get(node.endpoint)
        if original is not None and original.subscription_name:
            node.subscription_name = original.subscription_name
        else:
            node.subscription_name = node.subscription_name or UNKNOWN_SUBSCRIPTION_LABEL
        nodes.append(node)
    return nodes


def apply_transform(
    profile: Profile,
    nodes: List[Node],
    requested: bool,
    default_template: Optional[str] = None,
) -> List[Node]:
    """
    Transform ``nodes`` when the caller asked for it and the profile enables it.

    A failing pipeline leaves the nodes untouched.
    """
    settings = profile.node_transform
    if not requested or settings is None or not settings.enabled:
        return nodes

    config = effective_transform_config(settings, default_template or DEFAULT_RENAME_TEMPLATE)
    try:
        urls = pipeline.apply_node_transform_pipeline([node.url for node in nodes], config)
    except Exception as exc:
        logger.error("Node transform failed for profile %s: %s", profile.id, exc)
        return nodes
    logger.debug("Transform produced %d of %d nodes", len(urls), len(nodes))
    return recorrelate(urls, nodes)
