"""Error types for constraint explanation and upstream fetch failures."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .models import Version


class InternalConsistencyError(Exception):
    """A caller contract was violated (e.g. an inconsistent reverse-dependency lookup).

    ``tag`` is unique per raising call site so a failure can be traced to
    its origin even though every site shares this one exception type.
    """

    def __init__(self, tag: int, message: str):
        self.tag = tag
        self.message = message
        super().__init__(f"internal error #{tag}: {message}")


class FetchKind(Enum):
    """What an upstream fetch was trying to retrieve."""
    PACKAGE = "package"
    VERSION = "version"


@dataclass(frozen=True)
class FetchFailure:
    """Upstream metadata for a referenced package or version was unavailable."""
    kind: FetchKind
    package: str
    version: Optional[Version] = None

    def message(self) -> str:
        if self.kind is FetchKind.VERSION:
            return f"failed to fetch version {self.version} of package {self.package}"
        return f"failed to fetch package {self.package}"
