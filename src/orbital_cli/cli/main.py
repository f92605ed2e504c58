"""Main CLI application using Typer."""

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from structlog import get_logger

from orbital_cli import __version__
from orbital_cli.cli.commands import auth, chat
from orbital_cli.config.settings import ConfigurationError, config_manager
from orbital_cli.core.logging import setup_logging


app = typer.Typer(
    name="orbital",
    help="Orbital - terminal AI assistant with device login",
    no_args_is_help=True,
)

console = Console()
logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"orbital {__version__}")
        raise typer.Exit()


@app.callback()
def app_main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            help="Path to a TOML configuration file",
            dir_okay=False,
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        ),
    ] = None,
    show_version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Load configuration and logging before any command runs."""
    load_dotenv()
    overrides = config_manager.get_cli_overrides_from_args(log_level=log_level)
    try:
        settings = config_manager.load_settings(config_path=config, cli_overrides=overrides)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    setup_logging(settings.logging.level, json_logs=settings.logging.json_logs)
    logger.debug("cli_started", version=__version__, config=str(config) if config else None)


@app.command()
def version() -> None:
    """Show orbital version."""
    console.print(f"orbital {__version__}")


app.command(name="login")(auth.login_command)
app.command(name="logout")(auth.logout_command)
app.command(name="whoami")(auth.whoami_command)
app.command(name="approve")(auth.approve_command)
app.command(name="deny")(auth.deny_command)
app.command(name="chat")(chat.chat_command)
app.add_typer(chat.app, name="conversations")


def main() -> None:
    """Entry point for the orbital script."""
    app()


if __name__ == "__main__":
    main()
