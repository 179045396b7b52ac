"""Tests for the rangeguard command line."""

import json
import logging

import pytest

from args import parse_args
from common.logging_utils import reset_logging
from constants import Constants, ExitCodes
from rangeguard import main
from versioning.errors import InternalConsistencyError
from versioning.provenance import ProvenanceRange
from versioning.service import CheckReport, ConstraintService, PackageReport
from versioning.state import DependencyRelation, DependencyScope, PackageState

CONFLICTING = {
    "root": {"name": "app", "version": "1.0.0"},
    "dependencies": {"a": "1.0.0 <= v < 2.0.0", "b": "1.0.0 <= v < 2.0.0"},
    "packages": {
        "a": {"1.0.0": {"dependencies": {"c": "1.0.0 <= v < 2.0.0"}}},
        "b": {"1.0.0": {"dependencies": {"c": "2.0.0 <= v < 3.0.0"}}},
        "c": {"2.5.0": {}},
    },
    "selected": {"a": "1.0.0", "b": "1.0.0", "c": "2.5.0"},
}


@pytest.fixture
def scenario_file(tmp_path):
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps(CONFLICTING), encoding="utf-8")
    return str(path)


def run_main(argv):
    with pytest.raises(SystemExit) as info:
        main(argv)
    return info.value.code


class TestArgParsing:
    """Tests for CLI argument parsing."""

    def test_defaults(self):
        ns = parse_args(["check", "scenario.json"])
        assert ns.action == "check"
        assert ns.SCENARIO == "scenario.json"
        assert ns.OUTPUT_FORMAT == "text"
        assert ns.LOG_LEVEL is None
        assert ns.ERROR_ON_CONFLICTS is False

    def test_options(self):
        ns = parse_args([
            "check", "s.yml", "--format", "JSON", "-o", "out.json",
            "--separator", " | ", "--loglevel", "debug", "--error-on-conflicts",
        ])
        assert ns.OUTPUT_FORMAT == "json"
        assert ns.OUTPUT == "out.json"
        assert ns.SEPARATOR == " | "
        assert ns.LOG_LEVEL == "DEBUG"
        assert ns.ERROR_ON_CONFLICTS is True

    def test_action_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestMain:
    """Exit codes and output of ``rangeguard check``."""

    def test_text_output(self, scenario_file, capsys):
        assert run_main(["check", scenario_file]) == ExitCodes.SUCCESS.value
        out = capsys.readouterr().out
        assert "No version of c satisfies every requirement:" in out
        assert "(required by a 1.0.0) conflicts with:" in out

    def test_error_on_conflicts(self, scenario_file):
        code = run_main(["check", scenario_file, "--error-on-conflicts"])
        assert code == ExitCodes.EXIT_CONFLICTS.value

    def test_json_output_file(self, scenario_file, tmp_path):
        out = tmp_path / "report.json"
        assert run_main(["check", scenario_file, "-f", "json", "-o", str(out)]) == ExitCodes.SUCCESS.value
        data = json.loads(out.read_text(encoding="utf-8"))
        packages = {item["package"]: item for item in data["packages"]}
        assert packages["c"]["diagnostic"]["problem"] == "no_common_range"
        assert packages["a"]["status"] == "solved"

    def test_missing_file(self, tmp_path):
        assert run_main(["check", str(tmp_path / "nope.json")]) == ExitCodes.FILE_ERROR.value

    def test_invalid_scenario(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"root": "app"}), encoding="utf-8")
        assert run_main(["check", str(path)]) == ExitCodes.FILE_ERROR.value

    def test_config_file_sets_rendering(self, scenario_file, tmp_path, capsys):
        config = tmp_path / "rangeguard.yml"
        config.write_text("render:\n  separator: ' + '\n  indent: '>>'\n", encoding="utf-8")

        assert run_main(["check", scenario_file, "--config", str(config)]) == ExitCodes.SUCCESS.value
        assert Constants.REFERRER_SEPARATOR == " + "
        assert ">>>>2.0.0 <= v < 3.0.0 (required by b 1.0.0)" in capsys.readouterr().out

    def test_logfile(self, scenario_file, tmp_path):
        log_path = tmp_path / "run.log"
        assert run_main(["check", scenario_file, "--logfile", str(log_path)]) == ExitCodes.SUCCESS.value
        assert "Checked 3 packages" in log_path.read_text(encoding="utf-8")

    def test_internal_error_exit_code(self, scenario_file, monkeypatch, capsys):
        report = CheckReport(packages=[
            PackageReport(
                state=PackageState(name="c", relation=DependencyRelation.INDIRECT, scope=DependencyScope.NORMAL),
                provenance=ProvenanceRange.empty(),
                error=InternalConsistencyError(3, "dependency cycle"),
            ),
        ])
        monkeypatch.setattr(ConstraintService, "check", lambda self: report)

        assert run_main(["check", scenario_file]) == ExitCodes.INTERNAL_ERROR.value
        assert "internal error #3" in capsys.readouterr().out

    def test_log_level_from_environment(self, scenario_file, monkeypatch):
        monkeypatch.setenv("RANGEGUARD_LOG_LEVEL", "DEBUG")
        assert run_main(["check", scenario_file]) == ExitCodes.SUCCESS.value
        assert logging.getLogger().level == logging.DEBUG

    def test_loglevel_flag_overrides_environment(self, scenario_file, monkeypatch):
        monkeypatch.setenv("RANGEGUARD_LOG_LEVEL", "DEBUG")
        assert run_main(["check", scenario_file, "--loglevel", "error"]) == ExitCodes.SUCCESS.value
        assert logging.getLogger().level == logging.ERROR

    def test_cli_handlers_detached_after_reset(self, scenario_file, tmp_path):
        log_path = tmp_path / "run.log"
        run_main(["check", scenario_file, "--logfile", str(log_path)])
        root = logging.getLogger()
        assert len([h for h in root.handlers if getattr(h, "_rangeguard", False)]) == 2

        reset_logging()
        assert not [h for h in root.handlers if getattr(h, "_rangeguard", False)]
