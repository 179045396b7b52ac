"""RangeGuard - explain conflicting dependency version ranges

    Loads a scenario (root manifest, package metadata and selected versions),
    folds every referrer's range per package and reports which referrers
    rule out the selected version, or make the package unsatisfiable.

    Returns:
        int: Exit code
"""
import json
import logging
import os
import sys

from args import parse_args
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes, OutputFormats, _load_yaml_config, apply_config
from versioning.render import render_report_text, report_to_dict
from versioning.scenario import ScenarioError, load_scenario
from versioning.service import ConstraintService

logger = logging.getLogger(__name__)


def setup_logging(args):
    """Configure logging from CLI flags; the CLI level wins over the environment."""
    if getattr(args, "LOG_LEVEL", None):
        os.environ["RANGEGUARD_LOG_LEVEL"] = str(args.LOG_LEVEL).upper()
    configure_logging(force=True)

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(Constants.FILE_LOG_FORMAT))
        file_handler._rangeguard = True  # removed on the next configure_logging(force=True)
        logging.getLogger().addHandler(file_handler)


def write_output(content, path=None):
    """Write rendered output to ``path`` or stdout."""
    if not path:
        sys.stdout.write(content + "\n")
        return
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(content + "\n")
    logger.info("Report written to %s", path)


def run_check(args):
    """Run the ``check`` action and return an ExitCodes member."""
    apply_config(_load_yaml_config(getattr(args, "CONFIG", None)))

    try:
        scenario = load_scenario(args.SCENARIO)
    except FileNotFoundError as e:
        logger.error("File not found: %s, aborting", e)
        return ExitCodes.FILE_ERROR
    except OSError as e:
        logger.error("IO error: %s, aborting", e)
        return ExitCodes.FILE_ERROR
    except ScenarioError as e:
        logger.error("Invalid scenario: %s, aborting", e)
        return ExitCodes.FILE_ERROR

    report = ConstraintService(scenario).check()

    if args.OUTPUT_FORMAT == OutputFormats.JSON.value:
        content = json.dumps(report_to_dict(report), indent=2)
    else:
        content = render_report_text(report, separator=getattr(args, "SEPARATOR", None))
    try:
        write_output(content, getattr(args, "OUTPUT", None))
    except OSError as e:
        logger.error("Could not write output: %s", e)
        return ExitCodes.FILE_ERROR

    if report.has_errors:
        return ExitCodes.INTERNAL_ERROR
    if report.has_conflicts and getattr(args, "ERROR_ON_CONFLICTS", False):
        return ExitCodes.EXIT_CONFLICTS
    return ExitCodes.SUCCESS


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    setup_logging(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.action)
        )

    code = run_check(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(event="function_exit", component="cli", action=args.action,
                                outcome=code.name.lower())
        )
    sys.exit(code.value)


if __name__ == "__main__":
    main()
