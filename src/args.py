"""Argument parsing functionality for modpublish."""

import argparse

from constants import PlatformType


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="modpublish",
        description=(
            "modpublish - Publish mod files to Modrinth, CurseForge and GitHub Releases"
        ),
        add_help=True,
    )

    parser.add_argument("files",
                        metavar="FILE",
                        help="Files or glob patterns to upload; the first match is the primary file",
                        nargs="*",
                        default=[])
    parser.add_argument("-p", "--platform",
                        dest="PLATFORMS",
                        help="Limit publishing to the given platform (can be used multiple times)",
                        action="append",
                        type=str.lower,
                        choices=[p.value for p in PlatformType],
                        default=[])

    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to the JSON report file (default: stdout)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    # Config file (general)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--set",
                        dest="SET",
                        help="Set a request field (KEY=VALUE or PLATFORM.KEY=VALUE, can be used multiple times)",
                        action="append",
                        type=str,
                        default=[])

    return parser.parse_args(argv)
