"""Tests for text and JSON rendering."""

import json

from constants import Constants, apply_config
from versioning.errors import FetchFailure, FetchKind, InternalConsistencyError
from versioning.explain import Diagnostic, DiagnosticEntry, ProblemKind
from versioning.models import Version
from versioning.provenance import ProvenanceRange
from versioning.render import diagnostic_to_dict, render_report_text, render_text, report_to_dict
from versioning.service import CheckReport, PackageReport
from versioning.state import DependencyRelation, DependencyScope, PackageState

from conftest import vid, vr


REJECTED = Diagnostic(
    package="html",
    problem=ProblemKind.VERSION_REJECTED,
    candidate=Version(2, 5, 0),
    entries=(DiagnosticEntry(range=vr("1.0.0", "2.0.0"), referrers=(vid("x"), vid("y"))),),
)

CONFLICT = Diagnostic(
    package="core",
    problem=ProblemKind.NO_COMMON_RANGE,
    entries=(
        DiagnosticEntry(
            range=vr("1.0.0", "2.0.0"),
            referrers=(vid("x"),),
            children=(DiagnosticEntry(range=vr("2.0.0", "3.0.0"), referrers=(vid("y"),)),),
        ),
    ),
)


def _state(name):
    return PackageState(name=name, relation=DependencyRelation.DIRECT, scope=DependencyScope.NORMAL)


def test_render_rejected_version():
    assert render_text(REJECTED) == (
        "Version 2.5.0 of html is not allowed by:\n"
        "  1.0.0 <= v < 2.0.0 (required by x 1.0.0, y 1.0.0)"
    )


def test_render_conflict_tree():
    assert render_text(CONFLICT) == (
        "No version of core satisfies every requirement:\n"
        "  1.0.0 <= v < 2.0.0 (required by x 1.0.0) conflicts with:\n"
        "    2.0.0 <= v < 3.0.0 (required by y 1.0.0)"
    )


def test_render_empty_diagnostic():
    assert render_text(Diagnostic(package="core")) == ""


def test_render_no_pairs():
    text = render_text(Diagnostic(package="core", problem=ProblemKind.NO_COMMON_RANGE))
    assert "no single pair" in text


def test_separator_override_and_config():
    assert "x 1.0.0 | y 1.0.0" in render_text(REJECTED, separator=" | ")
    apply_config({"render": {"separator": " / ", "indent": "\t"}})
    assert Constants.REFERRER_SEPARATOR == " / "
    assert "\t1.0.0 <= v < 2.0.0 (required by x 1.0.0 / y 1.0.0)" in render_text(REJECTED)


def test_apply_config_ignores_unknown_shapes():
    apply_config({"render": "nope"})
    apply_config({"render": {"separator": 5}})
    assert Constants.REFERRER_SEPARATOR == ", "


def test_diagnostic_to_dict_is_json_ready():
    data = diagnostic_to_dict(CONFLICT)
    assert json.loads(json.dumps(data)) == data
    assert data["problem"] == "no_common_range"
    assert data["candidate"] is None
    assert data["entries"][0]["referrers"] == [{"name": "x", "version": "1.0.0"}]
    assert data["entries"][0]["conflicts_with"][0]["min"] == "2.0.0"


def test_report_rendering():
    report = CheckReport(
        packages=[
            PackageReport(state=_state("html"), provenance=ProvenanceRange.empty(), diagnostic=REJECTED),
            PackageReport(state=_state("ok"), provenance=ProvenanceRange.empty(),
                          diagnostic=Diagnostic(package="ok")),
            PackageReport(state=_state("bad"), provenance=ProvenanceRange.empty(),
                          error=InternalConsistencyError(1, "gone")),
        ],
        failures=[FetchFailure(FetchKind.PACKAGE, "missing")],
    )
    text = render_report_text(report)
    assert text.startswith("Error: failed to fetch package missing")
    assert "Version 2.5.0 of html" in text
    assert "could not explain bad: internal error #1: gone" in text

    data = report_to_dict(report)
    assert data["failures"] == ["failed to fetch package missing"]
    assert data["packages"][1]["diagnostic"]["problem"] == "none"
    assert data["packages"][2]["error"] == {"tag": 1, "message": "gone"}
    assert data["packages"][0]["range"] == "unconstrained"


def test_report_all_clear():
    report = CheckReport(packages=[
        PackageReport(state=_state("ok"), provenance=ProvenanceRange.empty(), diagnostic=Diagnostic(package="ok")),
    ])
    assert render_report_text(report) == "All 1 packages satisfy their requirements."
