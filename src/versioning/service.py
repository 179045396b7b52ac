"""Resolver driver: walks the selected graph and checks every target package."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from common.logging_utils import Timer, extra_context, is_debug_enabled

from .errors import FetchFailure, FetchKind, InternalConsistencyError
from .explain import Diagnostic, try_explain
from .graph import ReverseDepends, build_reverse_depends
from .models import VersionId, VersionRange
from .provenance import ProvenanceRange
from .scenario import Scenario
from .state import DependencyRelation, DependencyScope, PackageState

logger = logging.getLogger(__name__)

Edge = Tuple[VersionId, VersionRange]


@dataclass
class PackageReport:
    """Outcome of checking one target package."""
    state: PackageState
    provenance: ProvenanceRange
    diagnostic: Optional[Diagnostic] = None
    error: Optional[InternalConsistencyError] = None

    @property
    def has_conflict(self) -> bool:
        return self.diagnostic is not None and self.diagnostic.has_problem


@dataclass
class CheckReport:
    """Results for every package reachable from the root."""
    packages: List[PackageReport] = field(default_factory=list)
    failures: List[FetchFailure] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return any(report.has_conflict for report in self.packages)

    @property
    def has_errors(self) -> bool:
        return any(report.error is not None for report in self.packages)


@dataclass
class _Walk:
    edges: Dict[str, List[Edge]] = field(default_factory=dict)
    children: Dict[VersionId, List[VersionId]] = field(default_factory=dict)
    failures: List[FetchFailure] = field(default_factory=list)


class ConstraintService:
    """Fold referrer ranges per package and explain any that do not hold."""

    def __init__(self, scenario: Scenario):
        self.scenario = scenario

    def _child_for(self, target: str, walk: _Walk, reported: Set[FetchFailure]) -> Optional[VersionId]:
        """Selected node for ``target``, recording a fetch failure if metadata is missing."""
        versions = self.scenario.packages.get(target)
        selected = self.scenario.selected.get(target)
        failure = None
        if versions is None:
            failure = FetchFailure(FetchKind.PACKAGE, target)
        elif selected is not None and selected not in versions:
            failure = FetchFailure(FetchKind.VERSION, target, selected)
        if failure is not None and failure not in reported:
            reported.add(failure)
            walk.failures.append(failure)
            logger.warning(failure.message())
        if selected is None:
            return None
        return VersionId(target, selected)

    def walk(self) -> _Walk:
        """Breadth-first walk over selected versions, collecting edges per target."""
        walk = _Walk()
        reported: Set[FetchFailure] = set()
        visited = {self.scenario.root}
        queue = deque([self.scenario.root])
        while queue:
            node = queue.popleft()
            children = walk.children.setdefault(node, [])
            for target, version_range in self.scenario.requirements_of(node):
                walk.edges.setdefault(target, []).append((node, version_range))
                child = self._child_for(target, walk, reported)
                if child is None or child in children:
                    continue
                children.append(child)
                if child not in visited:
                    visited.add(child)
                    queue.append(child)
        return walk

    def _normal_packages(self, children: Dict[VersionId, List[VersionId]]) -> Set[str]:
        """Packages reachable from the root without going through a test dependency."""
        root = self.scenario.root
        stack = [
            VersionId(name, self.scenario.selected[name])
            for name in self.scenario.dependencies
            if name in self.scenario.selected
        ]
        names = set(self.scenario.dependencies)
        seen: Set[VersionId] = set()
        while stack:
            node = stack.pop()
            if node in seen or node == root:
                continue
            seen.add(node)
            for child in children.get(node, ()):
                names.add(child.name)
                stack.append(child)
        return names

    def _state_for(self, target: str, provenance: ProvenanceRange, normal: Set[str]) -> PackageState:
        relation = (
            DependencyRelation.DIRECT
            if self.scenario.root in provenance.referrers()
            else DependencyRelation.INDIRECT
        )
        scope = DependencyScope.NORMAL if target in normal else DependencyScope.TEST
        return PackageState(
            name=target,
            relation=relation,
            scope=scope,
            locked=self.scenario.locked.get(target),
        )

    def check_package(
        self,
        target: str,
        edges: List[Edge],
        reverse_depends: ReverseDepends,
        normal: Set[str],
    ) -> PackageReport:
        """Fold ``edges`` for ``target`` and validate its selected version."""
        provenance = ProvenanceRange.from_edges(edges)
        candidate = self.scenario.selected.get(target)
        state = self._state_for(target, provenance, normal)
        outcome = try_explain(reverse_depends, target, candidate, provenance)
        if outcome.ok and not outcome.diagnostic.has_problem and candidate is not None:
            state = state.solved(candidate)
        return PackageReport(
            state=state,
            provenance=provenance,
            diagnostic=outcome.diagnostic,
            error=outcome.error,
        )

    def check(self) -> CheckReport:
        """Check every package reachable from the scenario root."""
        with Timer() as timer:
            walk = self.walk()
            reverse_depends = build_reverse_depends([self.scenario.root], walk.children)
            normal = self._normal_packages(walk.children)
            report = CheckReport(failures=list(walk.failures))
            for target in sorted(walk.edges):
                report.packages.append(self.check_package(target, walk.edges[target], reverse_depends, normal))

        conflicts = sum(1 for item in report.packages if item.has_conflict)
        logger.info(
            "Checked %d packages: %d conflicts, %d fetch failures",
            len(report.packages), conflicts, len(report.failures),
            extra=extra_context(
                event="check", component="service", action="check",
                count=len(report.packages), duration_ms=timer.duration_ms(),
            ),
        )
        if is_debug_enabled(logger):
            for item in report.packages:
                logger.debug(
                    "Package checked",
                    extra=extra_context(
                        event="decision", component="service", action="check_package",
                        target=item.state.name, outcome=item.state.status.value,
                        range=str(item.provenance.current),
                    ),
                )
        return report
