"""Version ranges with provenance and conflict explanation."""

from .errors import FetchFailure, FetchKind, InternalConsistencyError
from .explain import Diagnostic, DiagnosticEntry, ExplainOutcome, ProblemKind, dedupe_referrers, explain, try_explain
from .graph import ReverseDepends, ReverseDependsEntry, build_reverse_depends
from .models import (
    UNCONSTRAINED,
    UNSATISFIABLE,
    ExtendedRange,
    RangeState,
    Version,
    VersionId,
    VersionRange,
    contains,
    intersect,
    parse_range,
    parse_version,
)
from .provenance import ProvenanceRange

__all__ = [
    "UNCONSTRAINED",
    "UNSATISFIABLE",
    "Diagnostic",
    "DiagnosticEntry",
    "ExplainOutcome",
    "ExtendedRange",
    "FetchFailure",
    "FetchKind",
    "InternalConsistencyError",
    "ProblemKind",
    "ProvenanceRange",
    "RangeState",
    "ReverseDepends",
    "ReverseDependsEntry",
    "Version",
    "VersionId",
    "VersionRange",
    "build_reverse_depends",
    "contains",
    "dedupe_referrers",
    "explain",
    "intersect",
    "parse_range",
    "parse_version",
    "try_explain",
]
