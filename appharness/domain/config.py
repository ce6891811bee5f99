"""Launch configuration for the supervised development server.

LaunchConfig is supplied once when a server is created and never mutated.
Layered loading (global and local TOML files) lives in the config adapter;
this module only defines and validates the resulting value.
"""

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_DEV_APPSERVER = "dev_appserver.py"
DEFAULT_HOST = "localhost"
DEFAULT_TIMEOUT = 15.0

# Keys accepted in the [server] table of a config file.
SERVER_KEYS = ("dev_appserver", "host", "port", "admin_port", "timeout", "debug")


def _check_port(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if not 0 <= value <= 65535:
        raise ValueError(f"{name} must be between 0 and 65535, got {value}")


@dataclass(frozen=True)
class LaunchConfig:
    """Configuration for one supervised dev server.

    Attributes:
        app_dir: Path of the application bundle passed to the server
        dev_appserver: Executable name or path. Bare names are looked up on
                       $PATH (default: "dev_appserver.py")
        host: Host the module and admin servers bind to (default: "localhost")
        port: Module server port. 0 lets the server pick a free port, unlike
              dev_appserver.py itself which defaults to 8080
        admin_port: Admin server port, 0 for a free port (dev_appserver.py
                    defaults to 8000)
        timeout: Seconds to wait for startup, and again for shutdown
        debug: Mirror the child's output and log supervisor diagnostics

    Raises:
        ValueError: If a value has the wrong type, a port is out of range,
                   timeout is not positive, or dev_appserver/host is empty.
    """

    app_dir: Path
    dev_appserver: str = DEFAULT_DEV_APPSERVER
    host: str = DEFAULT_HOST
    port: int = 0
    admin_port: int = 0
    timeout: float = DEFAULT_TIMEOUT
    debug: bool = False

    def __post_init__(self) -> None:
        """Validate launch config after initialization."""
        if not isinstance(self.app_dir, Path):
            object.__setattr__(self, "app_dir", Path(self.app_dir))
        if not isinstance(self.dev_appserver, str):
            raise ValueError(f"dev_appserver must be a string, got {self.dev_appserver!r}")
        if not self.dev_appserver:
            raise ValueError("dev_appserver must not be empty")
        if not isinstance(self.host, str):
            raise ValueError(f"host must be a string, got {self.host!r}")
        if not self.host:
            raise ValueError("host must not be empty")
        _check_port("port", self.port)
        _check_port("admin_port", self.admin_port)
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise ValueError(f"timeout must be a number, got {self.timeout!r}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if not isinstance(self.debug, bool):
            raise ValueError(f"debug must be true or false, got {self.debug!r}")

    def from_partial(self, data: dict[str, Any]) -> "LaunchConfig":
        """Return a copy with the given [server] values applied.

        Args:
            data: Mapping of server keys to values (e.g. a parsed [server] table)

        Returns:
            New validated LaunchConfig

        Raises:
            ValueError: If data contains unknown keys or invalid values.
        """
        unknown = sorted(set(data) - set(SERVER_KEYS))
        if unknown:
            raise ValueError(f"Unknown server config keys: {', '.join(unknown)}")
        return dataclasses.replace(self, **data)

    def to_server_table(self) -> dict[str, Any]:
        """Serialize the file-backed settings (everything but app_dir)."""
        return {key: getattr(self, key) for key in SERVER_KEYS}
