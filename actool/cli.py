"""Command-line interface for actool."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import constants
from .app import ActoolApp
from .commands import Command, CommandKind, ValidationError, build_command
from .config import ActoolConfig, ConfigurationError, load_config

LOGGER = logging.getLogger(__name__)

EPILOG = """\
Without an action flag actool starts in interactive mode.

examples:
  actool --acon 30       power on, power off again after 30 minutes
  actool --timer 23:30   power on, power off at 23:30
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=constants.APP_NAME,
        description="Remote control for a networked air conditioner",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help=f"Key file with TOKEN/DEVICENO/STUDENTNAME (default: ./{constants.DEFAULT_ENV_FILENAME})",
    )
    parser.add_argument(
        "--log-level", default=None, help="Override the configured log level"
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the resolved configuration and exit",
    )

    actions = parser.add_mutually_exclusive_group()
    actions.add_argument(
        "--status", action="store_true", help="Show device details and timer state"
    )
    actions.add_argument(
        "--acon",
        nargs="?",
        const="",
        default=None,
        metavar="MINUTES",
        help="Power on; with MINUTES, power off again after that delay",
    )
    actions.add_argument("--acoff", action="store_true", help="Power off")
    actions.add_argument(
        "--timer",
        metavar="HH:MM",
        help="Power on now and power off at HH:MM (24-hour)",
    )

    return parser


def command_from_args(args: argparse.Namespace) -> Optional[Command]:
    """Map startup flags to a command; ``None`` selects interactive mode.

    Raises:
        ValidationError: If a flag argument is malformed.
    """

    if args.status:
        return Command(CommandKind.STATUS)
    if args.acon is not None:
        minutes = [args.acon] if args.acon else []
        return build_command(CommandKind.TURN_ON, minutes, label="--acon")
    if args.acoff:
        return Command(CommandKind.TURN_OFF)
    if args.timer is not None:
        return build_command(CommandKind.SCHEDULE_AT, [args.timer], label="--timer")
    return None


def show_config(config: ActoolConfig) -> None:
    print(f"Configuration loaded from {config.path!s}\n")
    for section in config.raw.sections():
        if section == "credentials":
            continue
        print(f"[{section}]")
        for key, value in config.raw[section].items():
            print(f"{key} = {value}")
        print()

    credentials = config.credentials
    print(f"[credentials] (resolved, key file {config.env_file!s})")
    print(f"token = {_mask(credentials.token)}")
    print(f"device_no = {credentials.device_no}")
    print(f"operator_name = {credentials.operator_name}")


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    raw_args = sys.argv[1:] if argv is None else argv
    args = parser.parse_args([_fold_option(arg) for arg in raw_args])

    try:
        command = command_from_args(args)
    except ValidationError as exc:
        parser.print_usage(sys.stderr)
        LOGGER.error("%s", exc)
        return 1

    try:
        config = load_config(args.config, env_file=args.env_file)
    except ConfigurationError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 1

    if args.log_level:
        config.logging.level = args.log_level

    if args.show_config:
        show_config(config)
        return 0

    return ActoolApp.start(config, command)


def _mask(secret: str) -> str:
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}...{secret[-4:]}"


def _fold_option(arg: str) -> str:
    # Long option names are case-insensitive (``--STATUS``); values are kept.
    if not arg.startswith("--"):
        return arg
    name, sep, value = arg.partition("=")
    return name.lower() + sep + value


if __name__ == "__main__":
    sys.exit(main())
