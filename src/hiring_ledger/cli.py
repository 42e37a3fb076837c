"""
Command-line interface for the Hiring Ledger.

Provides CLI commands for ledger management:
- init-db: Create the SQLite schema and seed the owner
- run: Start the HTTP API
- show: Print an application and its response history
- config: Print the effective configuration

Usage:
    hiring-ledger init-db [--owner PRINCIPAL] [--db-path PATH]
    hiring-ledger run [--host HOST] [--port PORT]
    hiring-ledger show APP_ID
    hiring-ledger config

Environment Variables:
    LEDGER_OWNER: Owner seeded into a fresh ledger (default: ledger-admin)
    LEDGER_DB_PATH: SQLite database path (default: data/ledger.db)
    LEDGER_HOST / LEDGER_PORT: API bind address
"""

import argparse
import sqlite3
import sys

from hiring_ledger.config import config, configure_logging, print_config_summary


def cmd_init_db(args: argparse.Namespace) -> int:
    """
    Initialize the SQLite schema.

    A fresh database is seeded with ``--owner`` (or the configured owner). An
    existing database keeps the owner it already has.

    Returns:
        0 on success, 1 on error
    """
    from hiring_ledger.db.schema import init_database

    owner = (args.owner or config.ledger.owner).strip()
    if not owner:
        print("Error: owner must be a non-empty principal.", file=sys.stderr)
        return 1

    db_path = args.db_path or config.database.absolute_path
    try:
        created = init_database(db_path, owner=owner)
    except (sqlite3.Error, OSError) as e:
        print(f"Error initializing database: {e}", file=sys.stderr)
        return 1

    if created:
        print(f"Ledger initialized at {db_path} with owner '{owner}'.")
    else:
        print(f"Ledger at {db_path} already initialized; existing owner kept.")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run the HTTP API.

    Returns:
        0 on clean shutdown, 1 on error
    """
    from hiring_ledger.api.server import start_server

    try:
        start_server(host=args.host, port=args.port)
        return 0
    except KeyboardInterrupt:
        print("\nShutting down...")
        return 0
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        return 1


def cmd_show(args: argparse.Namespace) -> int:
    """
    Print an application and every response appended to it.

    Returns:
        0 on success, 1 if the application cannot be read
    """
    from hiring_ledger.db.backend import create_backend
    from hiring_ledger.ledger import LedgerError, LedgerStore

    try:
        store = LedgerStore(create_backend())
        application = store.get_application(args.app_id)
        responses = store.get_responses(args.app_id)
    except LedgerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Application #{application.id}")
    print(f"  Applicant: {application.applicant}")
    print(f"  Position:  {application.position}")
    print(f"  Document:  {application.document_pointer}")
    print(f"  Submitted: {application.submitted_at.isoformat()}")
    print(f"Responses ({len(responses)}):")
    for index, response in enumerate(responses):
        message = response.message or "-"
        print(
            f"  [{index}] {response.responded_at.isoformat()} "
            f"{response.status.value:<9} {response.responder}: {message}"
        )
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Print the effective configuration."""
    print_config_summary()
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="hiring-ledger",
        description="Append-only ledger of job applications and responses",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init-db", help="Initialize the database schema")
    init_parser.add_argument("--owner", help="Owner principal for a fresh ledger")
    init_parser.add_argument("--db-path", help="SQLite database file")
    init_parser.set_defaults(func=cmd_init_db)

    run_parser = subparsers.add_parser("run", help="Start the HTTP API")
    run_parser.add_argument("--host", help="Host to bind (default: config.server.host)")
    run_parser.add_argument("--port", type=int, help="Port to bind (default: config.server.port)")
    run_parser.set_defaults(func=cmd_run)

    show_parser = subparsers.add_parser("show", help="Print an application and its responses")
    show_parser.add_argument("app_id", type=int, help="Application id")
    show_parser.set_defaults(func=cmd_show)

    config_parser = subparsers.add_parser("config", help="Print the effective configuration")
    config_parser.set_defaults(func=cmd_config)

    return parser


def main() -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 1

    configure_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
