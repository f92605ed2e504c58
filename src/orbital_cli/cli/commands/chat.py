"""Interactive chat session and saved conversation commands."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from structlog import get_logger

from orbital_cli.auth.identity import get_current_user
from orbital_cli.cli.commands.display_helpers import (
    display_conversation_header,
    display_conversations,
    display_messages,
    display_tool_activity,
)
from orbital_cli.cli.helpers import (
    get_ai_service,
    get_chat_service,
    get_token_storage,
)
from orbital_cli.config.settings import ConfigurationError, Settings, get_settings
from orbital_cli.db.engine import close_db, init_db
from orbital_cli.db.models import ConversationMode, ConversationRead
from orbital_cli.exceptions import (
    AIServiceError,
    ConfigValidationError,
    NotAuthenticatedError,
    OrbitalError,
    PersistenceError,
)
from orbital_cli.services.agent import MIN_DESCRIPTION_LENGTH
from orbital_cli.services.ai.tools import (
    ToolConfig,
    default_tool_config,
    enable_tools,
    get_enabled_tool_names,
)
from orbital_cli.services.chat_service import ChatService
from orbital_cli.services.session import ChatSession, is_exit_command


app = typer.Typer(name="conversations", help="Manage saved conversations")

console = Console()
logger = get_logger(__name__)

SESSION_TITLES = {
    ConversationMode.CHAT: "Chat Session",
    ConversationMode.TOOL: "Tool Calling Session",
    ConversationMode.AGENT: "Agent Session",
}


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e


def select_tools(config: ToolConfig) -> ToolConfig:
    """Let the operator pick provider tools by number."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Tool", style="cyan")
    table.add_column("Description", style="dim")
    for index, tool in enumerate(config.available, start=1):
        table.add_row(str(index), tool.name, tool.description)
    console.print(table)

    answer = Prompt.ask(
        "[cyan]Tools to enable (comma-separated numbers, blank for none)[/cyan]",
        default="",
        show_default=False,
    )
    selected: list[str] = []
    for part in answer.replace(" ", "").split(","):
        if part.isdigit() and 1 <= int(part) <= len(config.available):
            selected.append(config.available[int(part) - 1].id)

    config = enable_tools(config, selected)
    names = get_enabled_tool_names(config)
    if names:
        console.print(
            Panel(
                "\n".join(f" - {name}" for name in names),
                title="Active Tools",
                border_style="green",
                expand=False,
            )
        )
    else:
        console.print("[yellow]No tools selected. AI will work without tools.[/yellow]")
    return config


async def _chat_turn(session: ChatSession, conversation: ConversationRead, text: str) -> None:
    status = console.status("[cyan]AI is thinking...[/cyan]")
    streaming = False

    def on_chunk(chunk: str) -> None:
        nonlocal streaming
        if not streaming:
            status.stop()
            console.print("\n[bold green]Assistant[/bold green]")
            streaming = True
        console.print(chunk, end="", markup=False, highlight=False)

    status.start()
    try:
        response = await session.run_turn(conversation, text, on_chunk=on_chunk)
    finally:
        status.stop()

    console.print()
    if session.tool_config.enabled:
        display_tool_activity(console, response)


async def _chat_loop(session: ChatSession, conversation: ConversationRead) -> None:
    while True:
        text = Prompt.ask("\n[bold cyan]You[/bold cyan]")
        if is_exit_command(text):
            break
        if not text.strip():
            continue
        try:
            await _chat_turn(session, conversation, text)
        except (AIServiceError, PersistenceError) as e:
            console.print(f"\n[red]Error:[/red] {e.message}")


def _prompt_description() -> str:
    while True:
        text = Prompt.ask("\n[magenta]What would you like to build?[/magenta]")
        if is_exit_command(text):
            return text
        if len(text.strip()) >= MIN_DESCRIPTION_LENGTH:
            return text.strip()
        console.print(
            f"[yellow]Please provide more details "
            f"(at least {MIN_DESCRIPTION_LENGTH} characters)[/yellow]"
        )


async def _agent_loop(
    session: ChatSession, conversation: ConversationRead, cwd: Path
) -> None:
    while True:
        description = _prompt_description()
        if is_exit_command(description):
            break

        try:
            with console.status("[magenta]Agent is generating your application...[/magenta]"):
                result = await session.run_agent_turn(conversation, description, cwd)
        except PersistenceError as e:
            error = e.message
        else:
            error = result.error

        if error is not None:
            console.print(f"\n[red]Error:[/red] {error}")
            if not Confirm.ask("Would you like to try again?", default=True):
                break
            continue

        app_info = result.application
        console.print(f"\n[green]Generated:[/green] {app_info.folder_name}")
        console.print(f"[dim]{app_info.description}[/dim]")
        for path in app_info.files:
            console.print(f"  [green]+[/green] {path}")
        console.print(f"\n[cyan]Location:[/cyan] [bold]{app_info.app_dir}[/bold]")
        if app_info.commands:
            console.print("[cyan]Next steps:[/cyan]")
            for command in app_info.commands:
                console.print(f"  {command}", markup=False)

        if not Confirm.ask("Would you like to generate another application?", default=False):
            break


async def _run_session(
    settings: Settings,
    mode: ConversationMode,
    conversation_id: str | None,
) -> None:
    ai = get_ai_service(settings)
    try:
        await init_db(settings.database.url, echo=settings.database.echo)
        with console.status("[cyan]Authenticating...[/cyan]"):
            user = await get_current_user(get_token_storage(settings.auth))
        console.print(f"[green]Welcome back, {user.name}![/green]")

        tool_config = default_tool_config()
        if mode == ConversationMode.TOOL:
            tool_config = select_tools(tool_config)
        if mode == ConversationMode.AGENT and not Confirm.ask(
            "The agent will create files and folders in the current directory. Continue?",
            default=True,
        ):
            console.print("[yellow]Agent mode cancelled.[/yellow]")
            return

        chat_service = get_chat_service()
        conversation = await chat_service.get_or_create(user.id, conversation_id, mode)

        display_conversation_header(
            console,
            conversation,
            SESSION_TITLES[mode],
            get_enabled_tool_names(tool_config) if mode == ConversationMode.TOOL else None,
        )
        display_messages(console, conversation.messages)
        console.print("[dim]Type 'exit' to end the session.[/dim]")

        session = ChatSession(chat_service, ai, tool_config)
        if mode == ConversationMode.AGENT:
            await _agent_loop(session, conversation, Path.cwd())
        else:
            await _chat_loop(session, conversation)
    finally:
        await close_db()
        await ai.aclose()


def chat_command(
    mode: Annotated[
        ConversationMode,
        typer.Option("--mode", "-m", help="Session mode", case_sensitive=False),
    ] = ConversationMode.CHAT,
    conversation_id: Annotated[
        str | None,
        typer.Option("--conversation-id", "-c", help="Resume a saved conversation"),
    ] = None,
) -> None:
    """Start an interactive AI session.

    Examples:
        orbital chat
        orbital chat --mode tool
        orbital chat --conversation-id 3k9fQ2xY8mN4pL7rT1vW6z

    """
    settings = _load_settings()
    try:
        asyncio.run(_run_session(settings, mode, conversation_id))
    except (KeyboardInterrupt, EOFError, typer.Abort):
        console.print("\n[yellow]Chat session ended.[/yellow]")
        return
    except NotAuthenticatedError as e:
        console.print(f"[red]{e.message}[/red]")
        console.print("[dim]Run [cyan]orbital login[/cyan] first.[/dim]")
        raise typer.Exit(1) from e
    except ConfigValidationError as e:
        console.print(f"[red]Configuration error:[/red] {e.message}")
        raise typer.Exit(1) from e
    except OrbitalError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    console.print("\n[yellow]Chat session ended.[/yellow]")


async def _with_user_service(settings: Settings) -> tuple[str, ChatService]:
    await init_db(settings.database.url, echo=settings.database.echo)
    user = await get_current_user(get_token_storage(settings.auth))
    return user.id, get_chat_service()


@app.command(name="list")
def list_conversations() -> None:
    """List your saved conversations, most recent first."""
    settings = _load_settings()

    async def _list() -> None:
        try:
            user_id, service = await _with_user_service(settings)
            summaries = await service.list_conversations(user_id)
        finally:
            await close_db()
        if not summaries:
            console.print("[yellow]No conversations yet.[/yellow]")
            return
        display_conversations(console, summaries)

    try:
        asyncio.run(_list())
    except OrbitalError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e


@app.command(name="delete")
def delete_conversation(
    conversation_id: Annotated[str, typer.Argument(help="Conversation ID")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation"),
    ] = False,
) -> None:
    """Delete one of your conversations and its messages."""
    settings = _load_settings()
    if not yes and not typer.confirm(
        f"Delete conversation {conversation_id}?", default=False
    ):
        console.print("Delete cancelled.")
        return

    async def _delete() -> bool:
        try:
            user_id, service = await _with_user_service(settings)
            return await service.delete(conversation_id, user_id)
        finally:
            await close_db()

    try:
        deleted = asyncio.run(_delete())
    except OrbitalError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    if not deleted:
        console.print(f"[red]Conversation {conversation_id} not found.[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Conversation {conversation_id} deleted.[/green]")
