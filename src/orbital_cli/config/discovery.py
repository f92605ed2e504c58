from pathlib import Path

from orbital_cli.core.system import get_orbital_config_dir


def find_toml_config_file() -> Path | None:
    """Find the TOML configuration file for orbital-cli.

    Searches in the following order:
    1. .orbital.toml in current directory
    2. .orbital.toml in git repository root (if in a git repo)
    3. config.toml in user config directory/orbital-cli/ (platform-specific)
    """
    candidates = [Path(".orbital.toml").resolve()]

    git_root = find_git_root()
    if git_root:
        candidates.append(git_root / ".orbital.toml")

    candidates.append(get_orbital_config_dir() / "config.toml")

    for candidate in candidates:
        if candidate.exists() and candidate.is_file():
            return candidate

    return None


def find_git_root(path: Path | None = None) -> Path | None:
    """Top-level directory of the git work tree containing ``path``, if any."""
    import subprocess  # nosec B404

    try:
        # nosec B603, B607 - fixed argv
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=path or Path.cwd(),
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None

    top = result.stdout.strip()
    if result.returncode != 0 or not top:
        return None
    return Path(top)
