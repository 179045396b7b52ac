"""Reverse-dependency lookup consumed by the conflict explainer.

The explainer only reads the lookup. ``build_reverse_depends`` is the
driver-side builder: a breadth-first walk from the resolution root(s).
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Set

from common.logging_utils import extra_context, is_debug_enabled

from .models import VersionId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReverseDependsEntry:
    """BFS depth from the root and the immediate referrers of one node."""
    depth: int
    parents: FrozenSet[VersionId]

    @property
    def is_root(self) -> bool:
        return not self.parents


ReverseDepends = Mapping[VersionId, ReverseDependsEntry]


def build_reverse_depends(
    roots: Iterable[VersionId],
    dependencies: Mapping[VersionId, Iterable[VersionId]],
) -> ReverseDepends:
    """Build a read-only lookup for every node reachable from ``roots``.

    Args:
        roots: Resolution roots (depth 0, no parents)
        dependencies: Forward edges, node -> nodes it depends on

    Returns:
        Immutable mapping of node -> ReverseDependsEntry
    """
    depth: Dict[VersionId, int] = {}
    queue = deque()
    for root in roots:
        if root not in depth:
            depth[root] = 0
            queue.append(root)

    parents: Dict[VersionId, Set[VersionId]] = {node: set() for node in depth}
    while queue:
        node = queue.popleft()
        for child in dependencies.get(node, ()):
            if child not in depth:
                depth[child] = depth[node] + 1
                parents[child] = set()
                queue.append(child)
            if child != node:
                parents[child].add(node)

    lookup = {
        node: ReverseDependsEntry(depth=depth[node], parents=frozenset(parents[node]))
        for node in depth
    }
    if is_debug_enabled(logger):
        logger.debug(
            "Reverse dependencies built",
            extra=extra_context(
                event="build", component="graph", action="build_reverse_depends",
                count=len(lookup),
            ),
        )
    return MappingProxyType(lookup)
