"""Assembles the sources a profile selects, in their declared order."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List

from ..models import Profile, Source, SourceKind

logger = logging.getLogger(__name__)


@dataclass
class MergedSources:
    subscriptions: List[Source] = field(default_factory=list)
    manual_nodes: List[Source] = field(default_factory=list)

    def all(self) -> Iterator[Source]:
        yield from self.subscriptions
        yield from self.manual_nodes

    def __len__(self) -> int:
        return len(self.subscriptions) + len(self.manual_nodes)


def _select(ids: Iterable[str], by_id: Dict[str, Source], kind: SourceKind) -> List[Source]:
    selected = []
    for source_id in ids:
        source = by_id.get(source_id)
        if source is None:
            logger.debug("Skipping unknown source %s", source_id)
        elif not source.enabled:
            logger.debug("Skipping disabled source %s", source_id)
        elif source.kind is not kind:
            logger.debug("Skipping source %s: listed as %s but is %s", source_id, kind.value, source.kind.value)
        else:
            selected.append(source)
    return selected


def merge_sources(profile: Profile, sources: Iterable[Source]) -> MergedSources:
    """
    Resolve the profile's subscription and manual-node ids against ``sources``.

    Missing, disabled and misclassified entries are skipped; the rest keep
    the order in which the profile lists them.
    """
    # A repeated id resolves to the last record carrying it.
    by_id: Dict[str, Source] = {source.id: source for source in sources}
    return MergedSources(
        subscriptions=_select(profile.subscriptions, by_id, SourceKind.REMOTE_SUBSCRIPTION),
        manual_nodes=_select(profile.manual_nodes, by_id, SourceKind.MANUAL_NODE),
    )
