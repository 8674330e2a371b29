from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from functools import partial
from typing import NoReturn

import boto3

from .aws_api import InventoryClient, SessionFactory, check_credentials, resolve_region
from .dispatcher import ConnectionDispatcher
from .errors import AwsSshError, ConfigError
from .fanout import SessionFanOut, build_window_command
from .formatter import RecordFormatter
from .launcher import ProcessLauncher, SubprocessLauncher
from .logging_setup import configure_logging
from .models import ConnectionConfig, InstanceRecord, Transport, selection_filter_from
from .picker import FzfPicker
from .selector import Selector
from .settings import Settings, load_settings, settings_path

logger = logging.getLogger(__name__)

EPILOG = """\
Examples:
  awsssh --profile prod --region eu-central-1
  awsssh --connection=ssm --forward=8080:localhost:80 --forward=3306:db.internal:3306
"""


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise ConfigError(message)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="awsssh",
        description="Pick EC2 instances with fzf and open SSH or SSM sessions to them.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "--region",
        metavar="REGION",
        help="AWS region for queries and sessions. Required if no default region is configured.",
    )
    parser.add_argument("--profile", metavar="PROFILE", help="AWS CLI profile to use.")
    parser.add_argument(
        "--connection",
        metavar="TYPE",
        default=Transport.SSM.value,
        help="Connection method: ssh or ssm (default: ssm).",
    )
    parser.add_argument(
        "--instance",
        metavar="NAME",
        help="Skip fzf; connect to the first instance matching this Name tag or instance ID.",
    )
    parser.add_argument(
        "--forward",
        metavar="SPEC",
        action="append",
        default=[],
        help="Port forward spec local:host:remote. Repeat flag for multiple forwards.",
    )
    parser.add_argument("--record", help=argparse.SUPPRESS)
    parser.add_argument("-h", "--help", action="store_true", help="Show this help message and exit.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)
    if args.record and args.instance:
        raise ConfigError("--instance cannot be combined with --record")
    return args


def build_config(
    args: argparse.Namespace,
    environ: Mapping[str, str],
    settings: Settings,
    session_factory: SessionFactory = boto3.Session,
) -> ConnectionConfig:
    profile = args.profile or environ.get("AWS_PROFILE") or None
    region = resolve_region(args.region, environ, profile, session_factory)
    return ConnectionConfig(
        region=region,
        profile=profile,
        transport=args.connection,
        forwards=tuple(args.forward),
        selection=selection_filter_from(args.instance),
        ssh_user=settings.ssh_user,
    )


def run(
    args: Sequence[str],
    environ: Mapping[str, str],
    *,
    launcher: ProcessLauncher | None = None,
    session_factory: SessionFactory = boto3.Session,
) -> int:
    launcher = launcher or SubprocessLauncher()
    try:
        options = parse_args(args)
        if options.help:
            print(build_parser().format_help(), end="")
            return 0

        settings = load_settings(settings_path(environ))
        config = build_config(options, environ, settings, session_factory)
        check_credentials(config.profile, config.region, session_factory)

        if options.record:
            records = [_record_from_row(options.record)]
        else:
            selector = Selector(
                InventoryClient(config.profile, config.region, session_factory),
                FzfPicker(launcher, height=settings.picker_height),
            )
            records = selector.select(config.selection)

        fanout = SessionFanOut(
            ConnectionDispatcher(launcher, ssh_user=config.ssh_user),
            launcher,
            session_name=settings.session_name,
            window_command=partial(build_window_command, keep_open=settings.keep_window_open),
            environ=environ,
        )
        return fanout.launch(records, config)
    except AwsSshError as error:
        logger.log(error.log_level, "%s", error)
        return error.exit_code
    except KeyboardInterrupt:
        return 130


def main(argv: Sequence[str] | None = None) -> None:
    configure_logging(os.environ)
    sys.exit(run(sys.argv[1:] if argv is None else argv, os.environ))


def _record_from_row(row: str) -> InstanceRecord:
    try:
        return RecordFormatter().parse(row)
    except ValueError as error:
        raise ConfigError(f"Invalid --record value: {error}") from error
