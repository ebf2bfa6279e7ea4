#!/usr/bin/env python3
"""
Part Stock Ledger management CLI.

Usage:
    python manage.py serve       Apply migrations and start the API server
    python manage.py migrate     Apply pending database migrations
    python manage.py status      Show schema version and pending migrations
    python manage.py verify      Check schema integrity and ledger balances
"""

import argparse
import asyncio
import sys
from pathlib import Path

from partstock.config import configure_logging, get_settings
from partstock.infrastructure.storage.sqlite.migrations import (
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)


def cmd_migrate(args: argparse.Namespace) -> int:
    results = asyncio.run(
        initialize_database(args.db_path, create_backup_before=not args.no_backup)
    )
    if not results:
        print("Database is up to date.")
    for result in results:
        state = "SUCCESS" if result.success else "FAILED"
        print(f"[{state}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"         Error: {result.error}")
    return 0 if all(r.success for r in results) else 1


def cmd_status(args: argparse.Namespace) -> int:
    status = asyncio.run(get_migration_status(args.db_path))
    print(f"Database exists:    {status.exists}")
    print(f"Current version:    {status.current_version or 'N/A'}")
    print(f"Applied migrations: {', '.join(status.applied) or '-'}")
    print(f"Pending migrations: {', '.join(status.pending) or '-'}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    checks = asyncio.run(verify_schema_integrity(args.db_path))
    for check in checks:
        print(f"[{'PASS' if check.passed else 'FAIL'}] {check.name}")
        if not check.passed:
            for key, value in check.detail.items():
                print(f"       {key}: {value}")
    return 0 if all(c.passed for c in checks) else 1


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "partstock.api.main:app",
        host=args.host or settings.api.host,
        port=args.port or settings.api.port,
        reload=args.reload,
    )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Part Stock Ledger management CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Start the API server")
    serve.add_argument("--host", help="Bind host (default from settings)")
    serve.add_argument("--port", type=int, help="Bind port (default from settings)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve.set_defaults(func=cmd_serve)

    for name, func, help_text in (
        ("migrate", cmd_migrate, "Apply pending migrations"),
        ("status", cmd_status, "Show migration status"),
        ("verify", cmd_verify, "Verify schema integrity"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--db-path", type=Path, help="Database path (default from settings)")
        cmd.set_defaults(func=func)
        if name == "migrate":
            cmd.add_argument("--no-backup", action="store_true", help="Skip backup before migrating")

    args = parser.parse_args()
    configure_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
