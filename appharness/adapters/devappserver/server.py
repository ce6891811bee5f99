"""Supervised dev_appserver.py instance.

DevAppServer ties the launcher, readiness gate and terminator together and
tracks the lifecycle state. Typical use in a test suite:

    with DevAppServer(LaunchConfig(app_dir=app_dir)) as server:
        requests.get(server.module_url + "/")
"""

import dataclasses
import logging
import subprocess
import sys
import threading
from pathlib import Path

import requests

from appharness.adapters.devappserver.gate import wait_for_endpoints
from appharness.adapters.devappserver.launcher import Launcher
from appharness.adapters.devappserver.oneshot import run_in_background
from appharness.adapters.devappserver.process_group import default_killer
from appharness.adapters.devappserver.scanner import ReadinessScanner
from appharness.adapters.devappserver.terminator import Terminator
from appharness.adapters.devappserver.timeouts import HarnessTimeouts
from appharness.domain.config import LaunchConfig
from appharness.domain.entities import Endpoints, ServerState
from appharness.domain.exceptions import HarnessError
from appharness.ports.bundle import AppBundle
from appharness.ports.process_group import ProcessGroupKiller

logger = logging.getLogger(__name__)


class DevAppServer:
    """A dev server child process, from launch to shutdown.

    Not safe for concurrent close() calls; one fixture owns one instance.

    Args:
        config: Launch configuration
        killer: Process-group killer (default: platform default)
        session: HTTP session used for the /quit request
    """

    def __init__(
        self,
        config: LaunchConfig,
        killer: ProcessGroupKiller | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.state = ServerState.IDLE
        self.process: subprocess.Popen | None = None
        self.endpoints: Endpoints | None = None
        self._scanner = ReadinessScanner(mirror=sys.stderr if config.debug else None)
        self._terminator = Terminator(
            killer=killer or default_killer(),
            timeout=config.timeout,
            debug=config.debug,
            session=session,
        )
        self._drain_thread: threading.Thread | None = None

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def _require_endpoints(self) -> Endpoints:
        if self.endpoints is None:
            raise HarnessError(
                f"server is not ready (state: {self.state.value})",
                hint="Call start() before reading server URLs",
            )
        return self.endpoints

    @property
    def api_url(self) -> str:
        return self._require_endpoints().api_url

    @property
    def module_url(self) -> str:
        """Endpoint to run tests against."""
        return self._require_endpoints().module_url

    @property
    def admin_url(self) -> str:
        return self._require_endpoints().admin_url

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process is not None else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> Endpoints:
        """Launch the server and wait until it announces all endpoints.

        On any startup failure the child's process group is killed before
        the error is raised, and the server moves to FAILED.

        Returns:
            The discovered endpoints

        Raises:
            HarnessError: If the server was already started
            ExecutableNotFoundError: If the executable cannot be found
            SpawnFailedError: If the process cannot be started
            StartupError: If the server does not become ready
        """
        if self.state is not ServerState.IDLE:
            raise HarnessError(f"server already started (state: {self.state.value})")

        self.state = ServerState.STARTING
        try:
            self.process = Launcher(self.config).launch()
        except HarnessError:
            self.state = ServerState.FAILED
            raise

        process = self.process
        try:
            self.endpoints = wait_for_endpoints(
                process.stderr, self.config.timeout, scanner=self._scanner
            )
        except BaseException:
            # Includes KeyboardInterrupt: no failure path leaves the child running.
            self._fail_startup(process)
            raise

        self._start_drain(process)
        self.state = ServerState.READY
        logger.info(f"Dev server ready at {self.endpoints.module_url} (PID {process.pid})")
        return self.endpoints

    def _fail_startup(self, process: subprocess.Popen) -> None:
        self._terminator.kill_and_reap(process)
        self.state = ServerState.FAILED
        # An abandoned scanner may still be inside readline(); closing the
        # pipe waits for that read, so it happens off this thread.
        run_in_background(self._close_stderr, process, name="stderr-close")

    def _start_drain(self, process: subprocess.Popen) -> None:
        """Keep stderr flowing after readiness so the child never blocks on it."""
        self._drain_thread = threading.Thread(
            target=self._scanner.drain,
            args=(process.stderr,),
            name="stderr-drain",
            daemon=True,
        )
        self._drain_thread.start()

    def _close_stderr(self, process: subprocess.Popen) -> None:
        if process.stderr is None:
            return
        try:
            process.stderr.close()
        except OSError:
            logger.debug("Failed to close child stderr", exc_info=True)

    def close(self) -> None:
        """Stop the server: /quit first, SIGKILL to the group as fallback.

        Idempotent: closing a server that was never started, failed to
        start, or is already closed does nothing.

        Raises:
            QuitRequestFailedError: If /quit could not be called (group killed)
            ShutdownTimeoutError: If the server did not exit in time (group killed)
            ChildExitError: If the server exited with a non-zero status
        """
        if self.process is None or self.state is not ServerState.READY:
            return

        process = self.process
        self.state = ServerState.CLOSING
        try:
            self._terminator.close(process, self._require_endpoints().admin_url)
        finally:
            self.state = ServerState.CLOSED
            if self._drain_thread is not None:
                self._drain_thread.join(timeout=HarnessTimeouts.DRAIN_JOIN)
            if self._drain_thread is None or not self._drain_thread.is_alive():
                self._close_stderr(process)

    def __enter__(self) -> "DevAppServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"DevAppServer(app_dir={str(self.config.app_dir)!r}, "
            f"state={self.state.value}, pid={self.pid})"
        )


def start_dev_appserver(
    app: Path | str | AppBundle,
    config: LaunchConfig | None = None,
    **overrides,
) -> DevAppServer:
    """Launch a dev server for app and wait until it is ready.

    Args:
        app: Application bundle directory, or an object with a path attribute
        config: Base configuration (default: built-in defaults); its app_dir
                is replaced by app
        **overrides: LaunchConfig fields to override (e.g. debug=True)

    Returns:
        A READY DevAppServer; the caller must close() it

    Raises:
        HarnessError: If the server cannot be launched or does not become ready
    """
    app_dir = Path(app.path if hasattr(app, "path") else app)
    config = dataclasses.replace(config or LaunchConfig(app_dir=app_dir), app_dir=app_dir)
    if overrides:
        config = config.from_partial(overrides)

    server = DevAppServer(config)
    server.start()
    return server
