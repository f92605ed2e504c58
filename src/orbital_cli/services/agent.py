"""Agent mode: turn a description into a generated application on disk."""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, Field
from structlog import get_logger

from orbital_cli.exceptions import AgentError
from orbital_cli.services.ai.base import ChatModel


logger = get_logger(__name__)

MIN_DESCRIPTION_LENGTH = 10

APPLICATION_PROMPT = """\
Create a complete, production-ready application for: {description}

CRITICAL REQUIREMENTS:
1. Generate ALL files needed for the application to run
2. Include package.json with all dependencies and correct versions
3. Include README.md with setup instructions
4. Include configuration files (.gitignore, etc.)
5. Write clean, well-commented, production-ready code
6. Include error handling and input validation
7. Use modern JavaScript/TypeScript best practices
8. Make sure all imports and paths are correct
9. NO PLACEHOLDERS - everything must be complete and working

Provide:
- A meaningful kebab-case folder name
- All necessary files with complete content
- Setup commands (cd folder, npm install, npm run dev, etc.)
- All dependencies with versions
"""


class ApplicationFile(BaseModel):
    """One generated file."""

    path: str = Field(description="Relative file path (e.g. src/App.jsx)")
    content: str = Field(description="Complete file content")


class ApplicationPlan(BaseModel):
    """Structured output requested from the model."""

    folder_name: str = Field(description="Kebab-case folder name for the application")
    description: str = Field(description="Brief description of what was created")
    files: list[ApplicationFile] = Field(
        description="All files needed for the application"
    )
    setup_commands: list[str] = Field(
        default_factory=list,
        description="Shell commands to set up and run (e.g. npm install, npm run dev)",
    )
    dependencies: dict[str, str] | None = Field(
        default=None, description="NPM dependencies with versions"
    )


@dataclass
class GeneratedApplication:
    """What was written to disk."""

    folder_name: str
    app_dir: Path
    description: str
    files: list[str] = field(default_factory=list)
    commands: list[str] = field(default_factory=list)


def _safe_relative(path: str) -> PurePosixPath:
    """Reject paths that would land outside the application folder."""
    candidate = PurePosixPath(path.replace("\\", "/"))
    if not path.strip() or candidate.is_absolute() or ".." in candidate.parts:
        raise AgentError(f"Refusing to write outside the application folder: {path!r}")
    return candidate


def create_application_files(base_dir: Path, plan: ApplicationPlan) -> Path:
    """Write every planned file under ``base_dir / folder_name``.

    All paths are validated before anything is written.

    Raises:
        AgentError: If a path escapes the folder or a write fails
    """
    folder = _safe_relative(plan.folder_name)
    relative_paths = [_safe_relative(f.path) for f in plan.files]

    app_dir = base_dir / folder
    try:
        app_dir.mkdir(parents=True, exist_ok=True)
        for rel, generated in zip(relative_paths, plan.files, strict=True):
            target = app_dir / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(generated.content, encoding="utf-8")
            logger.debug("agent_file_written", path=str(rel))
    except OSError as e:
        raise AgentError(f"Failed to write application files: {e}") from e
    return app_dir


async def generate_application(
    description: str, ai: ChatModel, cwd: Path | None = None
) -> GeneratedApplication:
    """Ask the model for an application plan and write it under ``cwd``.

    Raises:
        AgentError: If the plan is empty, unsafe, or cannot be written
        AIServiceError: If the model call fails
    """
    base_dir = cwd or Path.cwd()
    logger.info("agent_generation_started", description_length=len(description))

    plan = await ai.generate_object(
        APPLICATION_PROMPT.format(description=description), ApplicationPlan
    )
    if not plan.files:
        raise AgentError("No files were generated")

    app_dir = await asyncio.to_thread(create_application_files, base_dir, plan)
    logger.info(
        "agent_generation_complete",
        folder_name=plan.folder_name,
        file_count=len(plan.files),
    )
    return GeneratedApplication(
        folder_name=plan.folder_name,
        app_dir=app_dir,
        description=plan.description,
        files=[f.path for f in plan.files],
        commands=list(plan.setup_commands),
    )


def describe_application(app: GeneratedApplication) -> str:
    """Assistant message recorded for a generated application."""
    lines = [
        f"Generated application: {app.folder_name}",
        f"Files created: {len(app.files)}",
        f"Location: {app.app_dir}",
        "",
        "Setup commands:",
        *app.commands,
    ]
    return "\n".join(lines)


__all__ = [
    "ApplicationFile",
    "ApplicationPlan",
    "GeneratedApplication",
    "MIN_DESCRIPTION_LENGTH",
    "create_application_files",
    "describe_application",
    "generate_application",
]
