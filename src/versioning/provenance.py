"""Range accumulation with provenance.

A ProvenanceRange narrows as referrer edges are folded in, while remembering
exactly which referrers asserted which interval so that conflicts can be
explained later.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Iterable, List, Mapping, Tuple

from .models import UNCONSTRAINED, ExtendedRange, Version, VersionId, VersionRange, contains, intersect


def _frozen_contributions(
    contributions: Mapping[VersionRange, FrozenSet[VersionId]],
) -> Mapping[VersionRange, FrozenSet[VersionId]]:
    return MappingProxyType(dict(contributions))


@dataclass(frozen=True)
class ProvenanceRange:
    """Accumulated range for one target package plus who asserted what.

    ``contributions`` maps every distinct interval folded in to the set of
    referrers that asserted exactly that interval; ``current`` is the
    intersection of all of those intervals.
    """
    current: ExtendedRange = UNCONSTRAINED
    contributions: Mapping[VersionRange, FrozenSet[VersionId]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self):
        if not isinstance(self.contributions, MappingProxyType):
            object.__setattr__(self, "contributions", _frozen_contributions(self.contributions))

    @classmethod
    def empty(cls) -> "ProvenanceRange":
        """Unconstrained range with no contributions."""
        return cls()

    @classmethod
    def from_edges(cls, edges: Iterable[Tuple[VersionId, VersionRange]]) -> "ProvenanceRange":
        """Left-fold ``(referrer, range)`` edges into an empty range."""
        result = cls.empty()
        for referrer, version_range in edges:
            result = result.fold(referrer, version_range)
        return result

    def fold(self, referrer: VersionId, version_range: VersionRange) -> "ProvenanceRange":
        """Return a new range narrowed by ``version_range`` as asserted by ``referrer``."""
        updated = dict(self.contributions)
        updated[version_range] = updated.get(version_range, frozenset()) | {referrer}
        return ProvenanceRange(
            current=intersect(self.current, ExtendedRange.constrained(version_range)),
            contributions=MappingProxyType(updated),
        )

    def contains(self, version: Version) -> bool:
        """Return True if ``version`` satisfies every folded-in range."""
        return contains(version, self.current)

    def referrers(self) -> FrozenSet[VersionId]:
        """All referrers that contributed any range."""
        merged: FrozenSet[VersionId] = frozenset()
        for ids in self.contributions.values():
            merged |= ids
        return merged

    def sorted_contributions(self) -> List[Tuple[VersionRange, FrozenSet[VersionId]]]:
        """Contributions ordered by interval, for stable explanations."""
        return sorted(self.contributions.items(), key=lambda item: item[0])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProvenanceRange):
            return NotImplemented
        return self.current == other.current and dict(self.contributions) == dict(other.contributions)

    def __hash__(self) -> int:
        return hash((self.current, frozenset(self.contributions.items())))
