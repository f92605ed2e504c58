"""Display helpers for CLI commands.

Formatting of grants, users and transcripts lives here to keep the command
functions short.
"""

from datetime import UTC, datetime

from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from orbital_cli.auth.models import Credential, DeviceGrant
from orbital_cli.db.models import (
    ConversationRead,
    ConversationSummary,
    MessageRead,
    MessageRole,
    User,
)
from orbital_cli.services.ai.base import AIResponse
from orbital_cli.services.chat_service import serialize_content


PREVIEW_LENGTH = 60


def format_time_remaining(expires_at: datetime) -> str:
    """Format time remaining until expiration.

    Args:
        expires_at: Expiration datetime

    Returns:
        Formatted string with time remaining or "Expired"
    """
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    time_diff = expires_at - datetime.now(UTC)

    if time_diff.total_seconds() <= 0:
        return "[red]Expired[/red]"

    days = time_diff.days
    hours = (time_diff.seconds % 86400) // 3600
    minutes = (time_diff.seconds % 3600) // 60

    return f"{days} days, {hours} hours, {minutes} minutes"


def display_device_grant(console: Console, grant: DeviceGrant) -> None:
    """Show the user code and where to enter it."""
    console.print()
    console.print(
        Panel(
            f"Please visit: [underline blue]{grant.verification_uri}[/underline blue]\n"
            f"Enter code:   [bold green]{grant.user_code}[/bold green]",
            title="Device Authorization Required",
            border_style="cyan",
            box=box.ROUNDED,
            expand=False,
        )
    )
    if grant.verification_uri_complete:
        console.print(
            f"[dim]Or open {grant.verification_uri_complete} to skip typing the code[/dim]"
        )


def display_user(console: Console, user: User, credential: Credential) -> None:
    """Show the signed-in user and credential lifetime."""
    table = Table(
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        title="Current User",
        title_style="bold white",
    )
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Name", user.name)
    table.add_row("Email", user.email)
    table.add_row("ID", user.id)
    table.add_row(
        "Session expires",
        credential.expires_at.strftime("%Y-%m-%d %H:%M:%S UTC"),
    )
    table.add_row("Time remaining", format_time_remaining(credential.expires_at))

    console.print(table)


def display_conversation_header(
    console: Console,
    conversation: ConversationRead,
    title: str,
    tool_names: list[str] | None = None,
) -> None:
    lines = [
        f"[bold]Conversation[/bold]: {conversation.title}",
        f"[dim]ID: {conversation.id}[/dim]",
        f"[dim]Mode: {conversation.mode}[/dim]",
    ]
    if tool_names is not None:
        if tool_names:
            lines.append(f"[dim]Active tools:[/dim] {', '.join(tool_names)}")
        else:
            lines.append("[dim]No tools enabled[/dim]")
    console.print(
        Panel("\n".join(lines), title=title, border_style="cyan", expand=False)
    )


def display_message(console: Console, message: MessageRead) -> None:
    """User messages as plain panels, everything else as Markdown."""
    content = serialize_content(message.content)
    if message.role == MessageRole.USER:
        console.print(
            Panel(Text(content), title="You", title_align="left", border_style="blue")
        )
    else:
        console.print(
            Panel(
                Markdown(content),
                title="Assistant",
                title_align="left",
                border_style="green",
            )
        )


def display_messages(console: Console, messages: list[MessageRead]) -> None:
    if not messages:
        return
    console.print("[yellow]Previous messages:[/yellow]\n")
    for message in messages:
        display_message(console, message)


def display_tool_activity(console: Console, response: AIResponse) -> None:
    """Summarise provider tool calls and results reported for a response."""
    for call in response.tool_calls:
        console.print(f"[magenta]Tool call:[/magenta] {call.name}")
        for key, value in call.arguments.items():
            console.print(f"  [dim]{key}:[/dim] {value}", markup=False)
    for result in response.tool_results:
        outcome = f" ({result.outcome})" if result.outcome else ""
        console.print(f"[magenta]Tool result:[/magenta] {result.name}{outcome}")
        if result.output:
            console.print(result.output, markup=False, highlight=False)


def display_conversations(console: Console, summaries: list[ConversationSummary]) -> None:
    table = Table(
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        title="Conversations",
        title_style="bold white",
    )
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Mode", style="magenta")
    table.add_column("Title", style="white")
    table.add_column("Messages", justify="right")
    table.add_column("Updated", style="dim")
    table.add_column("Last message", style="dim")

    for summary in summaries:
        preview = ""
        if summary.last_message is not None:
            preview = serialize_content(summary.last_message.content).replace("\n", " ")
            if len(preview) > PREVIEW_LENGTH:
                preview = preview[:PREVIEW_LENGTH] + "..."
        table.add_row(
            summary.id,
            str(summary.mode),
            summary.title,
            str(summary.message_count),
            summary.updated_at.strftime("%Y-%m-%d %H:%M"),
            preview,
        )

    console.print(table)
