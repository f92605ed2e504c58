"""Core helpers shared across the CLI."""

from orbital_cli.core.logging import setup_logging
from orbital_cli.core.system import (
    get_orbital_config_dir,
    get_orbital_data_dir,
    get_xdg_config_home,
    get_xdg_data_home,
)


__all__ = [
    "get_orbital_config_dir",
    "get_orbital_data_dir",
    "get_xdg_config_home",
    "get_xdg_data_home",
    "setup_logging",
]
