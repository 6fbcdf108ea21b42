"""alertsync command line entry point."""

from __future__ import annotations

import argparse
from typing import Sequence
from uuid import UUID

from alertsync import __version__
from alertsync.config import Settings, get_settings
from alertsync.core.errors import main_with_error_handling
from alertsync.logging import configure_logging


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    return number


def _uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid UUID: {value!r}") from None


def _add_definition_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("template", help="Path to the rule template YAML ('-' for stdin)")
    parser.add_argument("--id", dest="definition_id", type=_uuid, required=True,
                        help="Alert definition UUID (used as the rule group name)")
    parser.add_argument("--interval", type=_positive_int, required=True,
                        help="Evaluation interval in seconds")
    parser.add_argument("--threshold", type=int, help="Threshold override")
    parser.add_argument("--duration", type=int, help="Duration override in seconds")
    parser.add_argument("--disabled", action="store_true",
                        help="Render the rule so it never fires")


def _add_ruler_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--ruler-url", help="Ruler base URL (default: ALERTSYNC_RULER_URL)")
    parser.add_argument("--namespace", help="Rule namespace (default: ALERTSYNC_RULER_NAMESPACE)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="alertsync",
        description="Keep Mimir/Cortex ruler rule groups in sync with alert definitions",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", help="Log level (default: ALERTSYNC_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    render_parser = subparsers.add_parser("render", help="Print the rule group for a template")
    _add_definition_arguments(render_parser)

    push_parser = subparsers.add_parser("push", help="Push a template's rule group and verify it")
    _add_definition_arguments(push_parser)
    push_parser.add_argument("--tenant", required=True, help="Tenant identifier")
    _add_ruler_arguments(push_parser)

    sync_parser = subparsers.add_parser("sync", help="Sync a stored alert definition")
    sync_parser.add_argument("--tenant", required=True, help="Tenant identifier")
    sync_parser.add_argument("--id", dest="definition_id", type=_uuid, required=True,
                             help="Alert definition UUID")
    sync_parser.add_argument("--version", dest="definition_version", type=_positive_int,
                             help="Definition version (default: latest)")
    _add_ruler_arguments(sync_parser)

    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    overrides = {}
    if getattr(args, "ruler_url", None):
        overrides["ruler_url"] = args.ruler_url
    if getattr(args, "namespace", None):
        overrides["ruler_namespace"] = args.namespace
    if overrides:
        settings = settings.model_copy(update=overrides)
    return settings


@main_with_error_handling()
def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = _settings_from_args(args)
    configure_logging(args.log_level or settings.log_level, json_output=settings.log_json)

    from alertsync.cli import commands

    if args.command == "render":
        return commands.render_command(
            args.template,
            args.definition_id,
            args.interval,
            threshold=args.threshold,
            duration=args.duration,
            disabled=args.disabled,
        )

    if args.command == "push":
        return commands.push_command(
            args.template,
            args.definition_id,
            args.interval,
            args.tenant,
            settings,
            threshold=args.threshold,
            duration=args.duration,
            disabled=args.disabled,
        )

    if args.command == "sync":
        return commands.sync_command(
            args.tenant,
            args.definition_id,
            settings,
            version=args.definition_version,
        )

    parser.error(f"unknown command {args.command!r}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
