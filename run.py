#!/usr/bin/env python3
"""
Application Entry Script.

Main entry point for the notes manager. All functionality is accessible
through command-line options.

Usage:
    python run.py --help
    python run.py --action app --verbose
    python run.py --action config
    python run.py --action info
"""

import sys
from pathlib import Path

import click

# Ensure project root is in path for absolute imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from notes_app.core.logging import get_logger, setup_logging


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


@click.command()
@click.option(
    "--action",
    type=click.Choice(["app", "config", "info"]),
    default="app",
    help="Action to perform.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (INFO level logging).",
)
@click.option(
    "--debug", "-d",
    is_flag=True,
    help="Enable debug output (DEBUG level logging).",
)
def main(action: str, verbose: bool, debug: bool) -> None:
    """
    Notes Manager Entry Point.

    Start the terminal UI, view configuration, or show application info.

    Examples:

        # Start the notes app, logging requests to logs/app.jsonl
        python run.py --action app --verbose

        # View loaded configuration
        python run.py --action config

        # Show application info
        python run.py --action info
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    # The TUI owns the terminal; its records go to the log file only
    setup_logging(level=log_level, format_type="console", enable_console=action != "app")
    logger = get_logger(__name__)

    logger.debug("Starting application", action=action, log_level=log_level)

    if action == "app":
        run_app(logger)
    elif action == "config":
        show_config(logger)
    elif action == "info":
        show_info(logger)


def run_app(logger) -> None:
    """Start the Textual notes app against the configured remote service."""
    from notes_app.core.config import get_app_config, get_settings
    from notes_app.remote.supabase import create_gateway
    from notes_app.tui.app import NotesApp

    try:
        get_settings()
    except ValueError as e:
        logger.error("Remote service not configured", error=str(e))
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    app_config = get_app_config()
    logger.info("Starting notes app", theme=app_config.application.theme)

    app = NotesApp(create_gateway(), theme_name=app_config.application.theme)
    app.run()

    logger.info("Notes app stopped")


def show_config(logger) -> None:
    """Display loaded configuration. The access key is never printed."""
    click.echo("Application Configuration:\n")

    try:
        from notes_app.core.config import get_app_config

        app_config = get_app_config()

        sections = [
            ("Application Settings (from YAML)", app_config.application.model_dump()),
            ("Remote Settings (from YAML)", app_config.remote.model_dump()),
            ("Logging Settings (from YAML)", app_config.logging.model_dump()),
        ]
        for title, values in sections:
            click.echo(f"{title}:")
            click.echo("-" * 40)
            _echo_mapping(values, indent=2)
            click.echo()

        logger.info("Configuration displayed successfully")

    except (FileNotFoundError, ValueError) as e:
        logger.error("Failed to load configuration", error=str(e))
        click.echo(click.style(f"Error loading configuration: {e}", fg="red"))
        sys.exit(1)

    click.echo("Remote Service (from config/.env):")
    click.echo("-" * 40)
    try:
        from notes_app.core.config import get_settings

        settings = get_settings()
        click.echo(f"  url: {settings.notes_service_url}")
        click.echo("  key: (set)")
    except ValueError as e:
        click.echo(click.style(f"  {e}", fg="yellow"))


def _echo_mapping(values: dict, indent: int) -> None:
    pad = " " * indent
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{pad}{key}:")
            _echo_mapping(value, indent + 2)
        else:
            click.echo(f"{pad}{key}: {value}")


def show_info(logger) -> None:
    """Display application information."""
    click.echo("Notes Manager")
    click.echo("=" * 40)

    try:
        from notes_app.core.config import get_app_config
        application = get_app_config().application
        click.echo(f"Name: {application.name}")
        click.echo(f"Version: {application.version}")
        click.echo(f"Description: {application.description}")
    except (FileNotFoundError, ValueError):
        click.echo("Name: Notes")
        click.echo("Version: 0.1.0")

    click.echo()
    click.echo("Available Actions:")
    click.echo("  --action app      Start the notes app (default)")
    click.echo("  --action config   Display configuration")
    click.echo("  --action info     Show this information")
    click.echo()
    click.echo("Logging Options:")
    click.echo("  --verbose, -v     Enable INFO level logging")
    click.echo("  --debug, -d       Enable DEBUG level logging")
    click.echo()
    click.echo("Key Bindings (app):")
    click.echo("  ctrl+n  add note     ctrl+s  save        f2  edit")
    click.echo("  f8      delete       escape  cancel      ctrl+t  theme")
    click.echo("  ctrl+l  logout       ctrl+q  quit")

    logger.debug("Info displayed")


if __name__ == "__main__":
    main()
