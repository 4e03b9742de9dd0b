import argparse
import logging
import os
import signal
import sys
from pathlib import Path

from installmod.adapters.sqlite.migrator import SQLiteMigrator
from installmod.adapters.sweeper import PublishSweeper
from installmod.app_shell.context import ServiceContext
from installmod.rules.loader import load_rules

logger = logging.getLogger("cli")

DATA_DIR = os.environ.get("INSTALLMOD_DATA_DIR", "./data")
DB_PATH = os.path.join(DATA_DIR, "installmod.db")
RULES_PATH = os.environ.get("INSTALLMOD_RULES_PATH", "rules.yaml")


def get_context(args: argparse.Namespace) -> ServiceContext:
    rules_path = Path(args.rules)
    if not rules_path.exists():
        logger.error("Rules file %s not found.", rules_path)
        sys.exit(1)

    rules = load_rules(rules_path)
    return ServiceContext.create(args.db, rules)


def handle_migrate(args: argparse.Namespace) -> int:
    Path(args.db).parent.mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(args.db).run_migrations()
    print(f"Applied {len(applied)} migrations.")
    return 0


def handle_publish_due(args: argparse.Namespace) -> int:
    ctx = get_context(args)
    result = ctx.publish_service.sweep_due()
    print(f"Published {len(result.promoted)} items.")
    for record_id, message in result.failed.items():
        print(f"Failed {record_id}: {message}", file=sys.stderr)
    return 1 if result.failed else 0


def handle_sweep(args: argparse.Namespace) -> int:
    ctx = get_context(args)
    interval = args.interval or ctx.rules.publishing.sweep_interval_seconds
    sweeper = PublishSweeper(ctx.publish_service, poll_interval_seconds=interval)

    def _stop(signum: int, frame: object) -> None:
        sweeper.stop()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    sweeper.trigger_now()
    sweeper.start()
    sweeper.wait()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="installmod content CLI")
    parser.add_argument("--db", default=DB_PATH, help="SQLite database path")
    parser.add_argument("--rules", default=RULES_PATH, help="Rules file path")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply pending database migrations")
    subparsers.add_parser("publish-due", help="Publish scheduled posts whose time has passed")

    sweep_parser = subparsers.add_parser("sweep", help="Run the publish sweeper in the foreground")
    sweep_parser.add_argument(
        "--interval", type=float, default=None, help="Seconds between sweeps (default from rules)"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    if args.command == "migrate":
        return handle_migrate(args)
    if args.command == "publish-due":
        return handle_publish_due(args)
    if args.command == "sweep":
        return handle_sweep(args)
    return 2


if __name__ == "__main__":
    sys.exit(main())
