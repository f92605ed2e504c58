"""Authentication commands: login, logout, whoami, approve, deny."""

import asyncio
import webbrowser
from typing import Annotated

import typer
from rich.console import Console
from structlog import get_logger

from orbital_cli.auth.device.poller import DevicePoller, PollProgress
from orbital_cli.auth.identity import require_credential, resolve_user
from orbital_cli.auth.models import Credential, DeviceGrant, PollErrorCode
from orbital_cli.auth.storage import TokenStorage
from orbital_cli.cli.commands.display_helpers import (
    display_device_grant,
    display_user,
)
from orbital_cli.cli.helpers import get_device_client, get_token_storage
from orbital_cli.config.auth import AuthSettings
from orbital_cli.config.settings import (
    ConfigurationError,
    ConfigurationManager,
    get_settings,
)
from orbital_cli.db.engine import close_db, init_db
from orbital_cli.db.models import User
from orbital_cli.exceptions import (
    DeviceAuthorizationError,
    NotAuthenticatedError,
    OrbitalError,
)


console = Console()
logger = get_logger(__name__)


def _resolve_auth_settings(
    server_url: str | None = None, client_id: str | None = None
) -> AuthSettings:
    """Auth settings with command-line overrides applied."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    overrides = ConfigurationManager.get_cli_overrides_from_args(
        server_url=server_url, client_id=client_id
    ).get("auth", {})
    if not overrides:
        return settings.auth
    return AuthSettings.model_validate({**settings.auth.model_dump(), **overrides})


def _check_should_proceed_with_login(storage: TokenStorage) -> bool:
    """Ask before replacing a credential that is still valid.

    Returns:
        True if login should proceed, False otherwise
    """
    existing = asyncio.run(storage.load())
    if existing is None or existing.is_expired():
        return True

    console.print("[yellow]You are already logged in.[/yellow]")
    if typer.confirm("Do you want to login again?", default=False):
        return True
    console.print("Login cancelled.")
    return False


async def _perform_device_login(
    config: AuthSettings, storage: TokenStorage, open_browser: bool
) -> tuple[Credential, bool]:
    """Run the device flow and store the credential.

    Returns:
        The credential and whether it was saved
    """
    status = console.status("[cyan]Requesting device authorization...[/cyan]")

    def on_grant(grant: DeviceGrant) -> None:
        status.stop()
        display_device_grant(console, grant)
        if open_browser and typer.confirm("Open browser automatically?", default=True):
            webbrowser.open(grant.browser_url)
        console.print(
            f"[dim]Waiting for authorization "
            f"(expires in {grant.expires_in // 60} minutes)...[/dim]"
        )
        status.update("[cyan]Polling for authorization...[/cyan]")
        status.start()

    def on_progress(progress: PollProgress) -> None:
        if progress.status == PollErrorCode.SLOW_DOWN:
            console.print(
                f"[yellow]Server asked to slow down; polling every {progress.interval}s[/yellow]"
            )

    status.start()
    try:
        async with get_device_client(config) as client:
            poller = DevicePoller(client, on_progress=on_progress)
            credential = await poller.obtain_credential(
                config.client_id, config.scope, on_grant=on_grant
            )
    finally:
        status.stop()

    saved = await storage.store(credential)
    return credential, saved


def login_command(
    server_url: Annotated[
        str | None,
        typer.Option("--server-url", help="Authorization server URL"),
    ] = None,
    client_id: Annotated[
        str | None,
        typer.Option("--client-id", help="OAuth client ID"),
    ] = None,
    no_browser: Annotated[
        bool,
        typer.Option("--no-browser", help="Do not offer to open a browser"),
    ] = False,
) -> None:
    """Login with the OAuth device authorization flow.

    Shows a code to enter in a browser and waits until it is approved.

    Examples:
        orbital login
        orbital login --server-url https://auth.example.com --no-browser

    """
    console.print("[bold cyan]Orbital Login[/bold cyan]")

    config = _resolve_auth_settings(server_url, client_id)
    storage = get_token_storage(config)

    try:
        if not _check_should_proceed_with_login(storage):
            return

        _, saved = asyncio.run(
            _perform_device_login(
                config, storage, open_browser=config.open_browser and not no_browser
            )
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Login cancelled.[/yellow]")
        raise typer.Exit(1) from None
    except DeviceAuthorizationError as e:
        logger.info("login_failed", error_type=str(e.error_type))
        console.print(f"\n[red]Login failed:[/red] {e.message}")
        raise typer.Exit(1) from e

    if not saved:
        console.print("[yellow]Warning: could not save the authentication token.[/yellow]")
        console.print("[yellow]You may need to login again on next use.[/yellow]")

    console.print("[green]Login successful![/green]")
    if saved:
        console.print(f"[dim]Token saved to: {storage.get_location()}[/dim]")


def logout_command(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation"),
    ] = False,
) -> None:
    """Logout and clear the stored credential."""
    storage = get_token_storage(_resolve_auth_settings())

    if asyncio.run(storage.load()) is None:
        console.print("[yellow]You're not logged in.[/yellow]")
        return

    if not yes and not typer.confirm("Are you sure you want to logout?", default=False):
        console.print("Logout cancelled.")
        return

    if asyncio.run(storage.clear()):
        console.print("[green]Successfully logged out![/green]")
    else:
        console.print("[yellow]Could not clear token file.[/yellow]")
        raise typer.Exit(1)


async def _load_current_user(database_url: str, storage: TokenStorage) -> tuple[User, Credential]:
    credential = await require_credential(storage)
    await init_db(database_url)
    try:
        user = await resolve_user(credential)
    finally:
        await close_db()
    return user, credential


def whoami_command() -> None:
    """Show the currently authenticated user."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    storage = get_token_storage(settings.auth)
    try:
        user, credential = asyncio.run(_load_current_user(settings.database.url, storage))
    except NotAuthenticatedError as e:
        console.print(f"[red]{e.message}[/red]")
        console.print("[dim]Run [cyan]orbital login[/cyan] first.[/dim]")
        raise typer.Exit(1) from e
    except OrbitalError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    display_user(console, user, credential)


async def _decide(action: str, user_code: str, config: AuthSettings) -> None:
    credential = await require_credential(get_token_storage(config))
    async with get_device_client(config) as client:
        await client.verify_user_code(user_code)
        if action == "approve":
            await client.approve(user_code, credential.access_token)
        else:
            await client.deny(user_code, credential.access_token)


def normalize_user_code(user_code: str) -> str:
    """Codes are entered with or without the dash, in any case."""
    return user_code.strip().replace("-", "").upper()


def _run_decision(action: str, user_code: str) -> None:
    code = normalize_user_code(user_code)
    config = _resolve_auth_settings()
    try:
        asyncio.run(_decide(action, code, config))
    except NotAuthenticatedError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1) from e
    except DeviceAuthorizationError as e:
        console.print(f"[red]Failed to {action} device:[/red] {e.message}")
        raise typer.Exit(1) from e


def approve_command(
    user_code: Annotated[str, typer.Argument(help="Code shown by the device")],
) -> None:
    """Approve a pending device login as the signed-in user."""
    _run_decision("approve", user_code)
    console.print(f"[green]Device {normalize_user_code(user_code)} approved.[/green]")


def deny_command(
    user_code: Annotated[str, typer.Argument(help="Code shown by the device")],
) -> None:
    """Deny a pending device login as the signed-in user."""
    _run_decision("deny", user_code)
    console.print(f"[yellow]Device {normalize_user_code(user_code)} denied.[/yellow]")
