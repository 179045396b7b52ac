"""Conflict explanation for accumulated version ranges.

``explain`` turns a ProvenanceRange into a structured Diagnostic that says
which referrers are responsible when either no version can satisfy every
range, or a candidate version falls outside the accumulated range.

Known limitation: empty intersections are explained pairwise only. Three
or more intervals that overlap pairwise but share no common version yield
a NO_COMMON_RANGE diagnostic with no entries.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

from common.logging_utils import Timer, extra_context, is_debug_enabled

from .errors import InternalConsistencyError
from .graph import ReverseDepends, ReverseDependsEntry
from .models import RangeState, Version, VersionId, VersionRange
from .provenance import ProvenanceRange

logger = logging.getLogger(__name__)


class ProblemKind(Enum):
    """What a diagnostic is reporting."""
    NONE = "none"
    NO_COMMON_RANGE = "no_common_range"
    VERSION_REJECTED = "version_rejected"


@dataclass(frozen=True)
class DiagnosticEntry:
    """One interval, the minimal referrers that asserted it, and nested entries."""
    range: VersionRange
    referrers: Tuple[VersionId, ...]
    children: Tuple["DiagnosticEntry", ...] = ()


@dataclass(frozen=True)
class Diagnostic:
    """Format-agnostic explanation for one target package.

    Iterating yields the top-level entries; an empty diagnostic is falsy.
    """
    package: str
    problem: ProblemKind = ProblemKind.NONE
    candidate: Optional[Version] = None
    entries: Tuple[DiagnosticEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[DiagnosticEntry]:
        return iter(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    @property
    def has_problem(self) -> bool:
        return self.problem is not ProblemKind.NONE


@dataclass(frozen=True)
class ExplainOutcome:
    """Either a diagnostic or the internal error that prevented one."""
    diagnostic: Optional[Diagnostic] = None
    error: Optional[InternalConsistencyError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _entry_for(reverse_depends: ReverseDepends, node: VersionId, tag: int) -> ReverseDependsEntry:
    entry = reverse_depends.get(node)
    if entry is None:
        raise InternalConsistencyError(tag, f"{node} is missing from the reverse-dependency lookup")
    return entry


class _DominanceWalker:
    """Dominance checks for one de-duplication pass.

    ``seen`` only grows during a pass, so a node once proven dominated stays
    dominated and is cached in ``_proven``.
    """

    def __init__(self, reverse_depends: ReverseDepends, members: FrozenSet[VersionId]):
        self._reverse_depends = reverse_depends
        self._members = members
        self._proven: Set[VersionId] = set()
        self.seen: Set[VersionId] = set()

    def dominated(self, start: VersionId) -> bool:
        """True if ``start`` has parents and each is seen or a dominated member.

        Walks upward with an explicit stack; the recursion only continues
        through members of the referrer set being filtered.
        """
        memo: Dict[VersionId, bool] = {}
        visiting: Set[VersionId] = set()
        stack: List[VersionId] = [start]
        while stack:
            node = stack[-1]
            if node in memo:
                stack.pop()
                continue
            if node in self._proven:
                memo[node] = True
                stack.pop()
                continue
            # Members were already looked up by dedupe_referrers; this guards direct use.
            parents = _entry_for(self._reverse_depends, node, 2).parents
            if not parents:
                memo[node] = False
                stack.pop()
                continue
            pending = [
                parent for parent in sorted(parents)
                if parent not in self.seen and parent in self._members and parent not in memo
            ]
            if node not in visiting and pending:
                visiting.add(node)
                for parent in pending:
                    if parent in visiting:
                        raise InternalConsistencyError(
                            3, f"dependency cycle through {parent} while checking {start}"
                        )
                    stack.append(parent)
                continue
            result = all(parent in self.seen or memo.get(parent, False) for parent in parents)
            memo[node] = result
            if result:
                self._proven.add(node)
            visiting.discard(node)
            stack.pop()
        return memo[start]


def dedupe_referrers(
    referrers: Iterable[VersionId],
    reverse_depends: ReverseDepends,
) -> Tuple[VersionId, ...]:
    """Drop referrers whose contribution is implied by an already-selected ancestor.

    Candidates are visited shallowest first (ties by identity). A candidate
    whose parents are all already seen, or are themselves dominated members
    of this set, is suppressed but still marked seen so it can dominate
    deeper candidates.

    Args:
        referrers: Referrer identities responsible for one interval
        reverse_depends: Depth and parent lookup for every referrer

    Returns:
        Surviving referrers in ascending depth order

    Raises:
        InternalConsistencyError: If the lookup is missing a node or has a cycle
    """
    members = frozenset(referrers)
    ordered = sorted(members, key=lambda node: (_entry_for(reverse_depends, node, 1).depth, node))

    walker = _DominanceWalker(reverse_depends, members)
    survivors: List[VersionId] = []
    for node in ordered:
        if not walker.dominated(node):
            survivors.append(node)
        walker.seen.add(node)

    # The shallowest candidate has nothing seen above it, so it always survives.
    if members and not survivors:
        raise InternalConsistencyError(4, "every referrer was filtered out as dominated")
    return tuple(survivors)


def _referrers_for(
    version_range: VersionRange,
    ids: FrozenSet[VersionId],
    reverse_depends: ReverseDepends,
) -> Tuple[VersionId, ...]:
    if not ids:
        raise InternalConsistencyError(5, f"no referrer recorded for {version_range}")
    return dedupe_referrers(ids, reverse_depends)


def _explain_disjoint(reverse_depends: ReverseDepends, provenance: ProvenanceRange) -> Tuple[DiagnosticEntry, ...]:
    contributions = provenance.sorted_contributions()
    entries: List[DiagnosticEntry] = []
    for index, (range_a, ids_a) in enumerate(contributions):
        partners = [
            DiagnosticEntry(range=range_b, referrers=_referrers_for(range_b, ids_b, reverse_depends))
            for range_b, ids_b in contributions[index + 1:]
            if range_a.intersection(range_b) is None
        ]
        if not partners:
            continue
        entries.append(
            DiagnosticEntry(
                range=range_a,
                referrers=_referrers_for(range_a, ids_a, reverse_depends),
                children=tuple(partners),
            )
        )
    return tuple(entries)


def _explain_rejected(
    reverse_depends: ReverseDepends,
    candidate: Version,
    provenance: ProvenanceRange,
) -> Tuple[DiagnosticEntry, ...]:
    return tuple(
        DiagnosticEntry(range=version_range, referrers=_referrers_for(version_range, ids, reverse_depends))
        for version_range, ids in provenance.sorted_contributions()
        if not version_range.contains(candidate)
    )


def explain(
    reverse_depends: ReverseDepends,
    target_name: str,
    candidate_version: Optional[Version],
    provenance: ProvenanceRange,
) -> Diagnostic:
    """Explain why ``provenance`` is unsatisfiable or rejects ``candidate_version``.

    Returns an empty diagnostic when there is nothing to report.

    Raises:
        InternalConsistencyError: If a referrer is missing from ``reverse_depends``
    """
    state = provenance.current.state
    with Timer() as timer:
        if state is RangeState.UNSATISFIABLE:
            diagnostic = Diagnostic(
                package=target_name,
                problem=ProblemKind.NO_COMMON_RANGE,
                candidate=candidate_version,
                entries=_explain_disjoint(reverse_depends, provenance),
            )
        elif (
            state is RangeState.CONSTRAINED
            and candidate_version is not None
            and not provenance.contains(candidate_version)
        ):
            diagnostic = Diagnostic(
                package=target_name,
                problem=ProblemKind.VERSION_REJECTED,
                candidate=candidate_version,
                entries=_explain_rejected(reverse_depends, candidate_version, provenance),
            )
        else:
            diagnostic = Diagnostic(package=target_name, candidate=candidate_version)

    if is_debug_enabled(logger):
        logger.debug(
            "Explained range",
            extra=extra_context(
                event="explain", component="explain", action="explain",
                target=target_name, outcome=diagnostic.problem.value,
                count=len(diagnostic), duration_ms=timer.duration_ms(),
            ),
        )
    return diagnostic


def try_explain(
    reverse_depends: ReverseDepends,
    target_name: str,
    candidate_version: Optional[Version],
    provenance: ProvenanceRange,
) -> ExplainOutcome:
    """Like ``explain``, but report internal errors as a value."""
    try:
        return ExplainOutcome(diagnostic=explain(reverse_depends, target_name, candidate_version, provenance))
    except InternalConsistencyError as exc:
        logger.error(
            "Could not explain constraints on %s: %s", target_name, exc,
            extra=extra_context(event="error", component="explain", action="try_explain",
                                target=target_name, tag=exc.tag),
        )
        return ExplainOutcome(error=exc)
