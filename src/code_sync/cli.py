"""Command line entry point for the code-sync daemon."""

import argparse
import json
import logging
import sys
from typing import Any

import yaml
from dotenv import load_dotenv

from . import __version__
from .config import Config, load_config, yaml_fallbacks_from
from .config_loader import ensure_config, load_hierarchical_config
from .config_schema import UnifiedConfig, build_config
from .errors import CycleAbortedError, ScanError, StoreUnavailableError
from .lifespan import store_lifespan
from .logger import setup_logging
from .sync import (
    CycleReport,
    RetryPolicy,
    SyncEngine,
    format_cycle_report,
    format_dry_run_preview,
    report_to_json,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="code-sync",
        description="code-sync - mirror a local directory into a MongoDB collection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Mirror ./src into the 'my-project' collection every 30 seconds
  code-sync -p my-project -d ./src

  # Single cycle, then exit
  code-sync -p my-project -d ./src --once

  # Show what would change without writing anything
  code-sync -p my-project -d ./src --once --dry-run

  # Custom ignore list (replaces the defaults)
  code-sync -p my-project -d . --ignore .git --ignore node_modules

  # Write a starter config file to .code_sync/config.yml
  code-sync --init-config

Configuration precedence: CLI arguments > environment variables (.env)
> .code_sync/config.yml > built-in defaults.
        """,
    )

    parser.add_argument(
        "-p",
        "--project",
        help="Project name, used as the collection name (overrides CODE_SYNC_PROJECT)",
    )
    parser.add_argument(
        "-d",
        "--directory",
        help="Directory to mirror (overrides CODE_SYNC_DIRECTORY)",
    )
    parser.add_argument(
        "--uri",
        help="MongoDB connection string (overrides MONGODB_URI)"
        " (visible in process list -- prefer MONGODB_URI env var)",
    )
    parser.add_argument(
        "--database",
        help="Database name (overrides CODE_SYNC_DATABASE, default: code_sync)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between cycles (overrides CODE_SYNC_INTERVAL, default: 30)",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        metavar="FRAGMENT",
        help="Ignore paths containing FRAGMENT. Repeatable; replaces the default list",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Threads used to read files (1-64, default: 4)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle and exit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be written or deleted without changing the store",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print each cycle report as JSON",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Print the detailed per-file report after each cycle",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--service",
        action="store_true",
        help="Log to a file only (LOG_FILE or /tmp/code-sync.log) for unattended runs",
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this file",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log line format (default: text)",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write a starter .code_sync/config.yml and exit",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"code-sync version {__version__}",
    )
    return parser


def _print_report(report: CycleReport, args: argparse.Namespace) -> None:
    if args.json:
        print(json.dumps(report_to_json(report)), flush=True)
        return
    if report.dry_run:
        print(format_dry_run_preview(report), flush=True)
        return
    if report.has_changes:
        print("Files synchronized to MongoDB.")
    else:
        print("No new or modified files to send.")
    if args.report:
        print(format_cycle_report(report))
    else:
        print(f"  {report.summary()}")
    sys.stdout.flush()


def _load_settings(args: argparse.Namespace) -> Config:
    """Load .env and YAML, configure logging, and resolve the final Config.

    Raises:
        ValueError: If any source holds invalid or missing configuration.
    """
    load_dotenv()

    try:
        unified = build_config(load_hierarchical_config())
    except (yaml.YAMLError, OSError) as e:
        raise ValueError(f"Cannot read config file: {e}") from e

    _configure_logging(args, unified)

    return load_config(
        project=args.project,
        directory=args.directory,
        uri=args.uri,
        database=args.database,
        interval=args.interval,
        ignored=args.ignore,
        max_workers=args.workers,
        debug=args.debug,
        yaml_fallbacks=yaml_fallbacks_from(unified),
    )


def _configure_logging(
    args: argparse.Namespace, unified: UnifiedConfig
) -> None:
    setup_logging(
        mode="service" if args.service else "cli",
        debug=args.debug,
        log_file=args.log_file or unified.logging.file,
        log_format=args.log_format or unified.logging.format,
        level=unified.logging.level,
    )


def _sync(config: Config, args: argparse.Namespace) -> None:
    """Connect to the store and run one cycle or the endless loop."""
    policy = RetryPolicy(
        max_attempts=config.max_retries + 1,
        base_delay=config.retry_backoff,
    )

    def on_report(report: CycleReport) -> None:
        _print_report(report, args)

    with store_lifespan(config) as store:
        engine = SyncEngine(
            store,
            root=config.directory,
            collection=config.project,
            ignored=config.ignored,
            max_workers=config.max_workers,
            retry_policy=policy,
        )
        if args.once:
            on_report(engine.run_cycle(dry_run=args.dry_run))
            return

        print(
            f"Watching {config.directory} every {config.interval:g}s "
            "(Ctrl+C to stop)",
            file=sys.stderr,
            flush=True,
        )
        engine.run_forever(
            config.interval,
            max_consecutive_failures=config.max_consecutive_failures,
            dry_run=args.dry_run,
            on_report=on_report,
        )


def main(argv: list[str] | None = None) -> int:
    """Run the command and return the process exit code."""
    args = _build_parser().parse_args(argv)

    if args.init_config:
        path = ensure_config()
        print(f"Config file: {path}")
        return EXIT_OK

    try:
        config = _load_settings(args)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return EXIT_ERROR

    overrides: dict[str, Any] = {
        k: v
        for k, v in {
            "project": args.project,
            "directory": args.directory,
            "uri": args.uri,
            "database": args.database,
            "interval": args.interval,
            "ignore": args.ignore,
            "workers": args.workers,
        }.items()
        if v is not None
    }
    if overrides:
        logger.debug("Config overrides from CLI: %s", ", ".join(overrides))

    try:
        _sync(config, args)
    except StoreUnavailableError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR
    except CycleAbortedError as e:
        logger.error("Sync aborted: %s", e)
        print(f"ERROR: Sync aborted: {e}", file=sys.stderr)
        return EXIT_ERROR
    except ScanError as e:
        logger.error("Scan failed: %s", e)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED
    return EXIT_OK


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
