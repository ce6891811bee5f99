"""appharness - run dev_appserver.py apps under a test harness.

Starts the development server, discovers the URLs it bound to, and shuts it
down deterministically when the tests are done.
"""

from appharness.adapters.devappserver import DevAppServer, start_dev_appserver
from appharness.domain.config import LaunchConfig
from appharness.domain.entities import Endpoints, ServerState
from appharness.domain.exceptions import (
    AdminURLNotFoundError,
    APIURLNotFoundError,
    ChildExitError,
    ExecutableNotFoundError,
    HarnessError,
    LaunchError,
    MarkerNotFoundError,
    ModuleURLNotFoundError,
    QuitRequestFailedError,
    ShutdownError,
    ShutdownTimeoutError,
    SpawnFailedError,
    StartupError,
    StartupStreamError,
    StartupTimeoutError,
)

__all__ = [
    "DevAppServer",
    "start_dev_appserver",
    "LaunchConfig",
    "Endpoints",
    "ServerState",
    # Errors
    "HarnessError",
    "LaunchError",
    "ExecutableNotFoundError",
    "SpawnFailedError",
    "StartupError",
    "StartupTimeoutError",
    "StartupStreamError",
    "MarkerNotFoundError",
    "AdminURLNotFoundError",
    "ModuleURLNotFoundError",
    "APIURLNotFoundError",
    "ShutdownError",
    "QuitRequestFailedError",
    "ShutdownTimeoutError",
    "ChildExitError",
]
