"""Argument parsing functionality for RangeGuard."""

import argparse
from constants import Constants


def _add_logging_args(parser):
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level (default: RANGEGUARD_LOG_LEVEL or INFO)",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="rangeguard",
        description=(
            "RangeGuard - explain conflicting dependency version ranges"
        ),
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="action", required=True)

    check = subparsers.add_parser(
        "check",
        help="Check the selected versions of a scenario against every referrer's range",
    )
    check.add_argument("SCENARIO",
                       help="Scenario file (JSON or YAML) with the root, packages and selected versions",
                       type=str)
    check.add_argument("-f", "--format",
                       dest="OUTPUT_FORMAT",
                       help="Output format (text or json). Defaults to text.",
                       action="store",
                       type=str.lower,
                       choices=Constants.OUTPUT_FORMATS,
                       default="text")
    check.add_argument("-o", "--output",
                       dest="OUTPUT",
                       help="Path to output file; prints to stdout when omitted",
                       action="store",
                       type=str)
    check.add_argument("-c", "--config",
                       dest="CONFIG",
                       help="Path to configuration file (YAML)",
                       action="store",
                       type=str)
    check.add_argument("--separator",
                       dest="SEPARATOR",
                       help="Separator placed between referrers in text output",
                       action="store",
                       type=str)
    check.add_argument("--error-on-conflicts",
                       dest="ERROR_ON_CONFLICTS",
                       help="Exit with a non-zero status code if any conflict is found.",
                       action="store_true")
    _add_logging_args(check)

    return parser.parse_args(argv)
