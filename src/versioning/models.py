"""Data models for versions, version ranges and the extended range algebra."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import semantic_version


@dataclass(frozen=True, order=True)
class Version:
    """A release version compared lexicographically on (major, minor, patch)."""
    major: int
    minor: int
    patch: int

    def __post_init__(self):
        if min(self.major, self.minor, self.patch) < 0:
            raise ValueError(f"Version components must be non-negative: {self.major}.{self.minor}.{self.patch}")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def bump_patch(self) -> "Version":
        """Return the next patch release."""
        return Version(self.major, self.minor, self.patch + 1)


@dataclass(frozen=True, order=True)
class VersionId:
    """Identity of a dependency-graph node: a package at one version."""
    name: str
    version: Version

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


@dataclass(frozen=True, order=True)
class VersionRange:
    """Half-open interval [min, max) of versions.

    ``min == max`` is allowed: it matches nothing, but it is still a
    distinct interval asserted by someone, unlike an unsatisfiable result.
    """
    min: Version
    max: Version

    def __post_init__(self):
        if self.max < self.min:
            raise ValueError(f"Invalid version range: {self.min} is greater than {self.max}")

    def __str__(self) -> str:
        return f"{self.min} <= v < {self.max}"

    def contains(self, version: Version) -> bool:
        """Return True if ``version`` lies in [min, max)."""
        return self.min <= version < self.max

    def intersection(self, other: "VersionRange") -> Optional["VersionRange"]:
        """Return the overlap with ``other``, or None when it is empty."""
        low = max(self.min, other.min)
        high = min(self.max, other.max)
        if low < high:
            return VersionRange(low, high)
        return None


class RangeState(Enum):
    """Tag of an ExtendedRange."""
    UNCONSTRAINED = "unconstrained"
    CONSTRAINED = "constrained"
    UNSATISFIABLE = "unsatisfiable"


@dataclass(frozen=True)
class ExtendedRange:
    """Result space of intersecting zero or more version ranges.

    Use the ``unconstrained``, ``constrained`` and ``unsatisfiable``
    constructors; ``interval`` is set only for the constrained state.
    """
    state: RangeState
    interval: Optional[VersionRange] = None

    def __post_init__(self):
        if (self.state is RangeState.CONSTRAINED) != (self.interval is not None):
            raise ValueError(f"{self.state.value} range cannot carry interval {self.interval}")

    @classmethod
    def unconstrained(cls) -> "ExtendedRange":
        return cls(RangeState.UNCONSTRAINED)

    @classmethod
    def constrained(cls, interval: VersionRange) -> "ExtendedRange":
        return cls(RangeState.CONSTRAINED, interval)

    @classmethod
    def unsatisfiable(cls) -> "ExtendedRange":
        return cls(RangeState.UNSATISFIABLE)

    @property
    def is_unconstrained(self) -> bool:
        return self.state is RangeState.UNCONSTRAINED

    @property
    def is_unsatisfiable(self) -> bool:
        return self.state is RangeState.UNSATISFIABLE

    def __str__(self) -> str:
        if self.state is RangeState.CONSTRAINED:
            return str(self.interval)
        return self.state.value


UNCONSTRAINED = ExtendedRange.unconstrained()
UNSATISFIABLE = ExtendedRange.unsatisfiable()


def intersect(a: ExtendedRange, b: ExtendedRange) -> ExtendedRange:
    """Intersect two extended ranges.

    Unconstrained is the identity and Unsatisfiable absorbs; two intervals
    meet in their overlap, or become Unsatisfiable when it is empty.
    """
    if a.state is RangeState.UNSATISFIABLE or b.state is RangeState.UNSATISFIABLE:
        return UNSATISFIABLE
    if a.state is RangeState.UNCONSTRAINED:
        return b
    if b.state is RangeState.UNCONSTRAINED:
        return a
    overlap = a.interval.intersection(b.interval)
    if overlap is None:
        return UNSATISFIABLE
    return ExtendedRange.constrained(overlap)


def contains(version: Version, extended: ExtendedRange) -> bool:
    """Return True if ``version`` is allowed by ``extended``."""
    if extended.state is RangeState.UNCONSTRAINED:
        return True
    if extended.state is RangeState.UNSATISFIABLE:
        return False
    return extended.interval.contains(version)


def parse_version(text: str) -> Version:
    """Parse ``M.m.p`` into a Version.

    Raises:
        ValueError: If the text is not a plain release version
    """
    try:
        parsed = semantic_version.Version(str(text).strip())
    except ValueError as exc:
        raise ValueError(f"Invalid version string: '{text}'") from exc
    if parsed.prerelease or parsed.build:
        raise ValueError(f"Pre-release and build versions are not supported: '{text}'")
    return Version(parsed.major, parsed.minor, parsed.patch)


_RANGE_RE = re.compile(r"^\s*(\S+)\s*<=\s*v\s*<\s*(\S+)\s*$")


def parse_range(text: str) -> VersionRange:
    """Parse ``"1.0.0 <= v < 2.0.0"``, or a bare ``"1.2.3"`` for that single version.

    Raises:
        ValueError: If the text matches neither form
    """
    match = _RANGE_RE.match(str(text))
    if match:
        return VersionRange(parse_version(match.group(1)), parse_version(match.group(2)))
    exact = parse_version(text)
    return VersionRange(exact, exact.bump_patch())
