"""Tests for application generation."""

from pathlib import Path

import pytest

from orbital_cli.exceptions import AgentError, AIServiceError
from orbital_cli.services.agent import (
    ApplicationFile,
    ApplicationPlan,
    GeneratedApplication,
    create_application_files,
    describe_application,
    generate_application,
)


def plan(*paths: str, folder: str = "demo-app") -> ApplicationPlan:
    return ApplicationPlan(
        folder_name=folder,
        description="Demo",
        files=[ApplicationFile(path=p, content=f"// {p}") for p in paths],
        setup_commands=["cd demo-app", "npm install", "npm run dev"],
    )


def test_files_are_written_under_folder(tmp_path: Path):
    app_dir = create_application_files(tmp_path, plan("package.json", "src/App.jsx"))

    assert app_dir == tmp_path / "demo-app"
    assert (app_dir / "src" / "App.jsx").read_text() == "// src/App.jsx"


@pytest.mark.parametrize("bad", ["../escape.js", "/etc/passwd", "src/../../x", "  "])
def test_unsafe_paths_are_rejected_before_writing(tmp_path: Path, bad: str):
    with pytest.raises(AgentError):
        create_application_files(tmp_path, plan("ok.js", bad))

    assert not (tmp_path / "demo-app").exists()


def test_unsafe_folder_is_rejected(tmp_path: Path):
    with pytest.raises(AgentError):
        create_application_files(tmp_path, plan("ok.js", folder="../up"))


@pytest.mark.asyncio
async def test_generate_application(tmp_path: Path, make_ai):
    ai = make_ai()
    ai.objects.append(plan("index.js"))

    app = await generate_application("a small demo app", ai, tmp_path)

    assert app.files == ["index.js"]
    assert app.commands[-1] == "npm run dev"
    assert "a small demo app" in ai.calls[0]["prompt"]
    assert ai.calls[0]["schema"] is ApplicationPlan


@pytest.mark.asyncio
async def test_empty_plan_fails(tmp_path: Path, make_ai):
    ai = make_ai()
    ai.objects.append(plan())

    with pytest.raises(AgentError, match="No files were generated"):
        await generate_application("a small demo app", ai, tmp_path)


@pytest.mark.asyncio
async def test_model_failure_propagates(tmp_path: Path, make_ai):
    ai = make_ai()
    ai.objects.append(AIServiceError("AI request failed: HTTP 503"))

    with pytest.raises(AIServiceError):
        await generate_application("a small demo app", ai, tmp_path)


def test_describe_application(tmp_path: Path):
    app = GeneratedApplication(
        folder_name="demo-app",
        app_dir=tmp_path / "demo-app",
        description="Demo",
        files=["a", "b"],
        commands=["npm install"],
    )

    assert describe_application(app).splitlines() == [
        "Generated application: demo-app",
        "Files created: 2",
        f"Location: {tmp_path / 'demo-app'}",
        "",
        "Setup commands:",
        "npm install",
    ]
