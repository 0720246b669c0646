"""Pulsewatch client - Entry Point

Usage:
    python -m pulsewatch [--config PATH] [--log-level LEVEL] [--yes] [--metrics] [COMMAND]

Commands:
    upgrade - Check local data and migrate it if outdated (default)
    status  - Show the version of the local data
    cleanup - Remove old data left behind by an earlier version
    version - Show version

Examples:
    python -m pulsewatch
    python -m pulsewatch status
    python -m pulsewatch --metrics status
    python -m pulsewatch --config config/production.toml --yes upgrade
"""

import argparse
import asyncio
import sys
from pathlib import Path

from pulsewatch import __version__


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pulsewatch",
        description="Real-time heart rate dashboard client",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Pulsewatch {__version__}",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (TOML)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level",
    )

    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Answer yes to every confirmation prompt",
    )

    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print migration metrics (Prometheus text format) after the command",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")
    subparsers.add_parser("upgrade", help="Migrate local data if outdated")
    subparsers.add_parser("status", help="Show the version of the local data")
    subparsers.add_parser("cleanup", help="Remove old data left behind")
    subparsers.add_parser("version", help="Show version")

    return parser.parse_args(argv)


def find_config_file(specified: Path | None) -> Path | None:
    """Find configuration file."""
    if specified and specified.exists():
        return specified

    search_paths = [
        Path("config/default.toml"),
        Path("pulsewatch.toml"),
        Path.home() / ".config" / "pulsewatch" / "pulsewatch.toml",
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


async def execute_command(controller, command: str | None) -> int:
    """Run one command against a started app's controller; returns the exit code."""
    from pulsewatch.migration.controller import UpgradeState

    if command == "status":
        context = await controller.detect()
        if context.has_legacy_records and not context.needs_upgrade:
            print(f"{len(context.legacy_keys)} old record(s) can be cleaned up.")
        return 0

    if command == "cleanup":
        context = await controller.detect()
        if context.needs_upgrade:
            print("Local data must be upgraded before old data can be cleaned up.")
            return 1
        if not context.has_legacy_records:
            print("There is no old data to clean up.")
            return 0
        report = await controller.clean_up()
        return 0 if report is None or report.success else 1

    state = await controller.run()
    ok_states = (UpgradeState.UP_TO_DATE, UpgradeState.UPGRADED, UpgradeState.CLEANED)
    return 0 if state in ok_states else 1


async def run_command(args: argparse.Namespace) -> int:
    """Run a command against the local store."""
    import structlog

    from pulsewatch.app import PulsewatchApp
    from pulsewatch.core.config import ConfigManager
    from pulsewatch.core.errors import PulsewatchError
    from pulsewatch.integrations.console import ConsoleConfirmer

    config_path = find_config_file(args.config)
    config = ConfigManager(config_path)
    if args.log_level:
        config.set("pulsewatch.log_level", args.log_level)

    try:
        app = PulsewatchApp(config, confirmer=ConsoleConfirmer(assume_yes=args.yes))
    except PulsewatchError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    log = structlog.get_logger()
    log.info(
        "starting_pulsewatch",
        version=__version__,
        config=str(config_path) if config_path else "defaults",
        command=args.command or "upgrade",
    )

    try:
        async with app:
            try:
                return await execute_command(app.controller, args.command)
            finally:
                if args.metrics:
                    print(app.metrics.get_metrics(), end="")

    except PulsewatchError as e:
        log.error("pulsewatch_command_failed", error=str(e))
        return 1
    except KeyboardInterrupt:
        log.info("interrupted")
        return 130


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.command == "version":
        print(f"Pulsewatch {__version__}")
        return 0

    return asyncio.run(run_command(args))


if __name__ == "__main__":
    sys.exit(main())
