"""Summary: Command-line interface for SmartList.

Importance: Provides operator access to notes, analytics, and the HTTP server.
Alternatives: Use the HTTP API for every operation.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date, datetime

import uvicorn

from smartlist.api import create_app
from smartlist.app import AppServices, build_services
from smartlist.config import AppConfig
from smartlist.errors import SmartListError
from smartlist.models import Note


def build_parser() -> argparse.ArgumentParser:
    """Summary: Build the CLI argument parser.

    Importance: Defines supported commands for local operation.
    Alternatives: Use a CLI framework like Typer or Click.
    """

    parser = argparse.ArgumentParser(description="SmartList CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None)
    serve.add_argument("--port", type=int, default=None)

    list_notes = subparsers.add_parser("list-notes", help="List notes for an account")
    list_notes.add_argument("account_id", type=str)

    add_note = subparsers.add_parser("add-note", help="Add a note")
    add_note.add_argument("account_id", type=str)
    add_note.add_argument("title", type=str)
    add_note.add_argument("--description", type=str, default="")
    add_note.add_argument("--priority", type=str, default="medium")
    add_note.add_argument("--due", type=datetime.fromisoformat, default=None)

    toggle_note = subparsers.add_parser("toggle-note", help="Toggle note completion")
    toggle_note.add_argument("account_id", type=str)
    toggle_note.add_argument("note_id", type=str)

    delete_note = subparsers.add_parser("delete-note", help="Delete a note")
    delete_note.add_argument("account_id", type=str)
    delete_note.add_argument("note_id", type=str)

    month = subparsers.add_parser("month-analytics", help="Priority counts for a month")
    month.add_argument("account_id", type=str)
    month.add_argument("year", type=int)
    month.add_argument("month", type=int, choices=range(1, 13))

    day = subparsers.add_parser("day-tasks", help="Tasks due on a date")
    day.add_argument("account_id", type=str)
    day.add_argument("date", type=date.fromisoformat)

    get_account = subparsers.add_parser("get-account", help="Show a local account")
    get_account.add_argument("account_id", type=str)

    reset_link = subparsers.add_parser("reset-link", help="Generate a password reset link")
    reset_link.add_argument("email", type=str)

    return parser


def _format_note(note: Note) -> str:
    status = "x" if note.is_completed else " "
    due = note.due_date.isoformat() if note.due_date else "-"
    return f"[{status}] {note.id}: {note.title} ({note.priority}, due {due})"


def run_cli(argv: list[str] | None = None) -> int:
    """Summary: Execute CLI commands based on arguments.

    Importance: Drives operator workflows without a UI.
    Alternatives: Invoke services via an HTTP API.
    """

    parser = build_parser()
    args = parser.parse_args(argv)
    config = AppConfig.from_env()
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "serve":
        uvicorn.run(
            create_app(config),
            host=args.host or config.api_host,
            port=args.port or config.api_port,
        )
        return 0

    services = build_services(config)
    try:
        _dispatch(args, services)
    except SmartListError as exc:
        print(f"Error ({exc.kind.value}): {exc.message}", file=sys.stderr)
        return 1
    return 0


def _dispatch(args: argparse.Namespace, services: AppServices) -> None:
    if args.command == "list-notes":
        for note in services.notes.list_notes(args.account_id):
            print(_format_note(note))
        return

    if args.command == "add-note":
        note = services.notes.add_note(
            args.account_id,
            Note(
                title=args.title,
                description=args.description,
                priority=args.priority,
                due_date=args.due,
            ),
        )
        print(f"Added note {note.id}.")
        return

    if args.command == "toggle-note":
        note = services.notes.toggle_status(args.account_id, args.note_id)
        print(_format_note(note))
        return

    if args.command == "delete-note":
        services.notes.delete_note(args.account_id, args.note_id)
        print(f"Deleted note {args.note_id}.")
        return

    if args.command == "month-analytics":
        analytics = services.analytics.monthly_analytics(
            args.account_id, date(args.year, args.month, 1)
        )
        print(f"high: {analytics.high_priority_count}")
        print(f"medium: {analytics.medium_priority_count}")
        print(f"low: {analytics.low_priority_count}")
        print(f"tasks: {len(analytics.tasks)}")
        return

    if args.command == "day-tasks":
        for note in services.analytics.daily_tasks(args.account_id, args.date):
            print(_format_note(note))
        return

    if args.command == "get-account":
        account = services.auth.get_account(args.account_id)
        print(f"{account.id}: {account.email} ({account.display_name or '-'})")
        return

    if args.command == "reset-link":
        print(services.auth.send_password_reset(args.email))
        return


if __name__ == "__main__":
    sys.exit(run_cli())
