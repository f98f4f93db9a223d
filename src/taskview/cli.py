"""Command-line viewer for taskview data files."""

import argparse
import sys

from taskview import config, formatters
from taskview.controller import TaskListController
from taskview.errors import AppError
from taskview.logging import setup_logging
from taskview.models import FilterMode
from taskview.service import JsonDataService
from taskview.session import SessionService


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="taskview",
        description="taskview - categorize and count tasks in a data file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Everything visible to a user
  taskview show --data ~/tasks.json --user u1

  # One project, searching titles and descriptions
  taskview show -d ~/tasks.json -u u1 --filter project --project p1 --search milk

  # Paths and logging from a settings file
  taskview show --settings ~/taskview.json --user u1
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    parser_show = subparsers.add_parser("show", help="Print counts and the filtered task list")
    source = parser_show.add_mutually_exclusive_group(required=True)
    source.add_argument("--data", "-d", help="Path to data JSON file")
    source.add_argument("--settings", "-s", help="Path to settings JSON file")
    parser_show.add_argument("--user", "-u", required=True, help="Current user id")
    parser_show.add_argument(
        "--filter",
        "-f",
        default=FilterMode.ALL.value,
        choices=[mode.value for mode in FilterMode],
        help="Filter mode (default: all)",
    )
    parser_show.add_argument("--project", "-p", help="Project id for the project filter")
    parser_show.add_argument("--search", default="", help="Search text")
    parser_show.add_argument("--timezone", help="IANA timezone for due dates (default: system)")
    parser_show.add_argument("--log-file", help="Write structured logs to this file")

    return parser


def _resolve_settings(args: argparse.Namespace) -> config.Settings:
    if args.settings:
        settings = config.load_settings(args.settings)
    else:
        settings = config.Settings(data_path=config.map_path(args.data))
    if args.log_file:
        settings.log_file = config.map_path(args.log_file)
    if args.timezone:
        settings.timezone = args.timezone
    return settings


def run_show(args: argparse.Namespace) -> str:
    """Load the data file and render the requested view."""
    settings = _resolve_settings(args)
    setup_logging(settings.log_file)

    session = SessionService(settings.session_ttl_seconds)
    session.sign_in(args.user)
    controller = TaskListController(
        JsonDataService(settings.data_path),
        session,
        overdue_resolution=settings.overdue_resolution_seconds,
    )
    try:
        controller.load()
        result = controller.view(args.filter, args.project, args.search)
    finally:
        controller.close()

    tz = config.resolve_timezone(settings)
    sections = [
        formatters.format_counts(result),
        formatters.format_upcoming(result, tz),
        formatters.format_task_list(result, tz),
    ]
    return "\n\n".join(section for section in sections if section)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for taskview CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != "show":
        parser.print_help()
        return

    try:
        print(run_show(args))
    except AppError as e:
        print(f"Error: {e}")
        sys.exit(1)
