"""Per-package solve-state bookkeeping kept by the driver."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .models import Version


class DependencyRelation(Enum):
    """Whether the root depends on a package itself or only transitively."""
    DIRECT = "direct"
    INDIRECT = "indirect"


class DependencyScope(Enum):
    """Which dependency table of the root pulled a package in."""
    NORMAL = "normal"
    TEST = "test"


class SolveStatus(Enum):
    """Tag of a PackageState."""
    UNSOLVED = "unsolved"
    SOLVED = "solved"


@dataclass(frozen=True)
class PackageState:
    """What the driver knows about one target package.

    ``version`` is set only once solved; ``matches_lock`` is None when
    there is no lock entry to compare against.
    """
    name: str
    relation: DependencyRelation
    scope: DependencyScope
    status: SolveStatus = SolveStatus.UNSOLVED
    version: Optional[Version] = None
    locked: Optional[Version] = None

    def solved(self, version: Version) -> "PackageState":
        return PackageState(
            name=self.name,
            relation=self.relation,
            scope=self.scope,
            status=SolveStatus.SOLVED,
            version=version,
            locked=self.locked,
        )

    @property
    def matches_lock(self) -> Optional[bool]:
        if self.locked is None or self.status is SolveStatus.UNSOLVED:
            return None
        return self.version == self.locked
