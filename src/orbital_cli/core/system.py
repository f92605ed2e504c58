from pathlib import Path

import platformdirs


APP_DIR_NAME = "orbital-cli"


def get_xdg_config_home() -> Path:
    """Get the XDG_CONFIG_HOME directory using platformdirs.

    Returns:
        Path to the user config directory (cross-platform).
    """
    return Path(platformdirs.user_config_dir())


def get_xdg_data_home() -> Path:
    """Get the XDG_DATA_HOME directory using platformdirs.

    Returns:
        Path to the user data directory (cross-platform).
    """
    return Path(platformdirs.user_data_dir())


def get_orbital_config_dir() -> Path:
    """Get the orbital-cli configuration directory."""
    return get_xdg_config_home() / APP_DIR_NAME


def get_orbital_data_dir() -> Path:
    """Get the orbital-cli data directory (database lives here)."""
    return get_xdg_data_home() / APP_DIR_NAME
