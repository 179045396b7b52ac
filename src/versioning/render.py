"""Plain-text and JSON rendering of diagnostics and check reports.

Presentation only; nothing here feeds back into the explanation logic.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from constants import Constants

from .explain import Diagnostic, DiagnosticEntry, ProblemKind


def _referrer_text(entry: DiagnosticEntry, separator: str) -> str:
    return separator.join(str(node) for node in entry.referrers)


def _entry_lines(entry: DiagnosticEntry, depth: int, separator: str, indent: str) -> List[str]:
    prefix = indent * depth
    line = f"{prefix}{entry.range} (required by {_referrer_text(entry, separator)})"
    if entry.children:
        line += " conflicts with:"
    lines = [line]
    for child in entry.children:
        lines.extend(_entry_lines(child, depth + 1, separator, indent))
    return lines


def render_text(
    diagnostic: Diagnostic,
    separator: Optional[str] = None,
    indent: Optional[str] = None,
) -> str:
    """Render a diagnostic as indented plain text ("" when there is no problem)."""
    separator = Constants.REFERRER_SEPARATOR if separator is None else separator
    indent = Constants.INDENT if indent is None else indent

    if diagnostic.problem is ProblemKind.NONE:
        return ""
    if diagnostic.problem is ProblemKind.VERSION_REJECTED:
        header = f"Version {diagnostic.candidate} of {diagnostic.package} is not allowed by:"
    else:
        header = f"No version of {diagnostic.package} satisfies every requirement:"
    lines = [header]
    for entry in diagnostic.entries:
        lines.extend(_entry_lines(entry, 1, separator, indent))
    if diagnostic.problem is ProblemKind.NO_COMMON_RANGE and not diagnostic.entries:
        lines.append(f"{indent}(no single pair of requirements is disjoint)")
    return "\n".join(lines)


def entry_to_dict(entry: DiagnosticEntry) -> Dict[str, Any]:
    return {
        "range": str(entry.range),
        "min": str(entry.range.min),
        "max": str(entry.range.max),
        "referrers": [{"name": node.name, "version": str(node.version)} for node in entry.referrers],
        "conflicts_with": [entry_to_dict(child) for child in entry.children],
    }


def diagnostic_to_dict(diagnostic: Diagnostic) -> Dict[str, Any]:
    return {
        "package": diagnostic.package,
        "problem": diagnostic.problem.value,
        "candidate": str(diagnostic.candidate) if diagnostic.candidate is not None else None,
        "entries": [entry_to_dict(entry) for entry in diagnostic.entries],
    }


def report_to_dict(report) -> Dict[str, Any]:
    """JSON-ready form of a CheckReport."""
    packages = []
    for item in report.packages:
        state = item.state
        packages.append({
            "package": state.name,
            "relation": state.relation.value,
            "scope": state.scope.value,
            "status": state.status.value,
            "version": str(state.version) if state.version is not None else None,
            "locked": str(state.locked) if state.locked is not None else None,
            "matches_lock": state.matches_lock,
            "range": str(item.provenance.current),
            "diagnostic": diagnostic_to_dict(item.diagnostic) if item.diagnostic is not None else None,
            "error": {"tag": item.error.tag, "message": item.error.message} if item.error is not None else None,
        })
    return {
        "packages": packages,
        "failures": [failure.message() for failure in report.failures],
    }


def render_report_text(report, separator: Optional[str] = None) -> str:
    """Human-readable summary of a CheckReport: one block per problem."""
    blocks: List[str] = []
    for failure in report.failures:
        blocks.append(f"Error: {failure.message()}")
    for item in report.packages:
        if item.error is not None:
            blocks.append(f"Error: could not explain {item.state.name}: {item.error}")
        elif item.has_conflict:
            blocks.append(render_text(item.diagnostic, separator=separator))
    if not blocks:
        return f"All {len(report.packages)} packages satisfy their requirements."
    return "\n\n".join(blocks)
