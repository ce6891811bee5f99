"""Configuration I/O utilities for reading and writing TOML config files.

Settings live in a [server] table:

    [server]
    dev_appserver = "dev_appserver.py"
    host = "localhost"
    port = 0
    admin_port = 0
    timeout = 15.0
    debug = false
"""

import os
import platform
import tomllib  # Built-in Python 3.11+
from pathlib import Path
from typing import Any

import tomli_w

from appharness.domain.config import LaunchConfig

LOCAL_CONFIG_NAME = "appharness.toml"


def get_global_config_path() -> Path:
    """Get the path to the global config file.

    The location is platform-dependent:
    - Linux/macOS: $XDG_CONFIG_HOME/appharness/config.toml or ~/.config/appharness/config.toml
    - Windows: %APPDATA%/appharness/config.toml

    Returns:
        Path to the global config file (may not exist)
    """
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "appharness" / "config.toml"
        return Path.home() / ".config" / "appharness" / "config.toml"
    xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg_config:
        return Path(xdg_config) / "appharness" / "config.toml"
    return Path.home() / ".config" / "appharness" / "config.toml"


def get_local_config_path(project_dir: Path) -> Path:
    return project_dir / LOCAL_CONFIG_NAME


def load_config_data(path: Path) -> dict[str, Any]:
    """Load raw TOML data from a config file.

    Args:
        path: Path to a TOML config file

    Returns:
        Dictionary with parsed TOML data

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in config file: {e}") from e


def server_section(data: dict[str, Any]) -> dict[str, Any]:
    """Extract the [server] table from parsed config data.

    Raises:
        ValueError: If [server] is present but not a table
    """
    section = data.get("server", {})
    if not isinstance(section, dict):
        raise ValueError("[server] must be a table")
    return section


def format_server_table(config: LaunchConfig) -> str:
    """Render the file-backed settings of config as a TOML [server] table.

    The output can be pasted into appharness.toml as is. app_dir is not
    included.
    """
    return tomli_w.dumps({"server": config.to_server_table()})


def create_default_config_file(path: Path) -> None:
    """Create a default config file with comments.

    Args:
        path: Destination path (usually <project>/appharness.toml)
    """
    # Template string so the comments survive
    template = """\
# appharness configuration
# Created by: appharness config init

[server]
# dev server executable, looked up on $PATH unless it is a path
dev_appserver = "dev_appserver.py"

# Host for both the module and admin servers
host = "localhost"

# Module and admin ports; 0 picks a free port
port = 0
admin_port = 0

# Seconds to wait for startup, and again for shutdown
timeout = 15.0

# Mirror server output and log supervisor diagnostics
debug = false
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(template)
