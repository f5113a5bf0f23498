import argparse
import logging
import os
import sys
from collections.abc import Sequence
from datetime import UTC, datetime

from localcooks.adapters.sqlite.migrator import SQLiteMigrator
from localcooks.adapters.sqlite_db import SQLiteSubscriptionStore
from localcooks.api.deps import Settings, get_settings
from localcooks.components.newsletter import SubscriptionState
from localcooks.rules.loader import load_rules

logger = logging.getLogger("cli")


def handle_migrate(settings: Settings, args: argparse.Namespace) -> int:
    os.makedirs(os.path.dirname(settings.db_path) or ".", exist_ok=True)
    migrator = SQLiteMigrator(settings.db_path, settings.migrations_dir)
    if args.dry_run:
        pending = migrator.pending_migrations()
        for filename in pending:
            print(f"Pending: {filename}")
        print(f"{len(pending)} migration(s) pending.")
        return 0

    applied = migrator.run_migrations()
    print(f"Applied {len(applied)} migration(s) to {settings.db_path}.")
    return 0


def handle_stats(settings: Settings, args: argparse.Namespace) -> int:
    if not os.path.exists(settings.db_path):
        logger.error("Database %s not found. Run 'migrate' first.", settings.db_path)
        return 1

    rules = load_rules(settings.rules_path)
    store = SQLiteSubscriptionStore(settings.db_path, timeout=rules.storage.busy_timeout_seconds)
    counts = store.count_by_state(datetime.now(UTC))

    print(f"Verified: {counts[SubscriptionState.VERIFIED]}")
    print(f"Pending:  {counts[SubscriptionState.PENDING]}")
    print(f"Expired:  {counts[SubscriptionState.PENDING_EXPIRED]}")
    print(f"Total:    {sum(counts.values())}")
    return 0


def handle_serve(settings: Settings, args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("localcooks.api.main:app", host=args.host, port=args.port)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="LocalCooks site backend CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    migrate_parser = subparsers.add_parser("migrate", help="Apply pending database migrations")
    migrate_parser.add_argument(
        "--dry-run", action="store_true", help="List pending migrations without applying"
    )

    # stats
    subparsers.add_parser("stats", help="Show newsletter subscriber counts by state")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    settings = get_settings()
    handlers = {
        "migrate": handle_migrate,
        "stats": handle_stats,
        "serve": handle_serve,
    }
    return handlers[args.command](settings, args)


if __name__ == "__main__":
    sys.exit(main())
