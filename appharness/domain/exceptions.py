"""Exceptions raised while supervising the development server.

Every failure that reaches a caller derives from HarnessError. Startup
failures are only raised after the child's process group has been killed,
so catching one of them never leaves a process behind.
"""


class HarnessError(Exception):
    """Base exception for all harness errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


# ============================================================================
# Launch
# ============================================================================


class LaunchError(HarnessError):
    """Raised when the child process cannot be created."""

    pass


class ExecutableNotFoundError(LaunchError):
    """Raised when the dev server executable is not on the search path."""

    def __init__(self, executable: str) -> None:
        super().__init__(
            f"executable not found: {executable}",
            hint="Install the App Engine SDK or set dev_appserver in appharness.toml",
        )
        self.executable = executable


class SpawnFailedError(LaunchError):
    """Raised when the OS refuses to start the child process."""

    pass


# ============================================================================
# Startup
# ============================================================================


class StreamReadError(HarnessError):
    """Raised by the readiness scanner when stderr cannot be read."""

    pass


class StartupError(HarnessError):
    """Base exception for readiness failures."""

    pass


class StartupTimeoutError(StartupError):
    """Raised when the readiness markers do not all appear in time."""

    def __init__(self) -> None:
        super().__init__(
            "timeout starting child process",
            hint="Increase timeout or run with debug enabled to see server output",
        )


class StartupStreamError(StartupError):
    """Raised when reading the child's stderr fails during startup."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"error reading server stderr: {reason}")
        self.reason = reason


class MarkerNotFoundError(StartupError):
    """Raised when stderr ended before a readiness marker was seen."""

    pass


class AdminURLNotFoundError(MarkerNotFoundError):
    def __init__(self) -> None:
        super().__init__("unable to find admin server URL")


class ModuleURLNotFoundError(MarkerNotFoundError):
    def __init__(self) -> None:
        super().__init__("unable to find module server URL")


class APIURLNotFoundError(MarkerNotFoundError):
    def __init__(self) -> None:
        super().__init__("unable to find api server URL")


# ============================================================================
# Shutdown
# ============================================================================


class ShutdownError(HarnessError):
    """Base exception for shutdown failures."""

    pass


class QuitRequestFailedError(ShutdownError):
    """Raised when the /quit request could not be sent."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"unable to call /quit handler: {reason}")
        self.reason = reason


class ShutdownTimeoutError(ShutdownError):
    """Raised when the child did not exit in time and had to be killed."""

    def __init__(self) -> None:
        super().__init__("timeout killing child process")


class ChildExitError(ShutdownError):
    """Raised when the child exited on its own with a non-zero status."""

    def __init__(self, returncode: int) -> None:
        super().__init__(f"child process exited with status {returncode}")
        self.returncode = returncode
