"""Integration tests: supervise a real child process end to end.

The child is the stand-in dev_appserver.py from tests.fixtures, so these
tests need no App Engine SDK. They rely on POSIX process groups.
"""

import os
import time
from pathlib import Path

import pytest
import requests

from appharness import (
    AdminURLNotFoundError,
    ChildExitError,
    DevAppServer,
    ExecutableNotFoundError,
    LaunchConfig,
    QuitRequestFailedError,
    ServerState,
    ShutdownTimeoutError,
    StartupTimeoutError,
    start_dev_appserver,
)
from tests.helpers import kill_if_alive, process_gone

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(os.name != "posix", reason="requires POSIX process groups"),
]


@pytest.fixture
def grandchild_pidfile(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Make the stand-in spawn a grandchild; yields a reader for its PID."""
    pidfile = tmp_path / "grandchild.pid"
    monkeypatch.setenv("FAKE_APPSERVER_GRANDCHILD_PIDFILE", str(pidfile))
    pids: list[int] = []

    def _read(timeout: float = 5.0) -> int:
        deadline = time.monotonic() + timeout
        while not pidfile.exists() or not pidfile.read_text().strip():
            assert time.monotonic() < deadline, "grandchild PID was never written"
            time.sleep(0.05)
        pid = int(pidfile.read_text())
        pids.append(pid)
        return pid

    yield _read

    for pid in pids:
        kill_if_alive(pid)


class TestStartAndClose:
    """Happy path: start, use, and stop the server."""

    def test_ready_server_reports_endpoints(self, launch_config: LaunchConfig) -> None:
        server = DevAppServer(launch_config)
        try:
            endpoints = server.start()

            assert server.state is ServerState.READY
            assert endpoints.api_url == "http://127.0.0.1:36415"
            assert endpoints.module_url == "http://127.0.0.1:0"
            assert endpoints.admin_url.startswith("http://127.0.0.1:")
        finally:
            server.close()

        assert server.state is ServerState.CLOSED

    def test_close_stops_the_process(self, launch_config: LaunchConfig) -> None:
        server = DevAppServer(launch_config)
        server.start()
        pid = server.pid

        server.close()

        assert process_gone(pid)
        assert server.process.returncode == 0

    def test_admin_server_is_reachable(self, launch_config: LaunchConfig) -> None:
        with DevAppServer(launch_config) as server:
            response = requests.get(server.admin_url + "/", timeout=5)

        assert response.status_code == 200

    def test_close_twice(self, launch_config: LaunchConfig) -> None:
        server = DevAppServer(launch_config)
        server.start()

        server.close()
        server.close()

        assert server.state is ServerState.CLOSED

    def test_start_dev_appserver(self, launch_config: LaunchConfig, app_dir: Path) -> None:
        server = start_dev_appserver(app_dir, config=launch_config)
        try:
            assert server.state is ServerState.READY
        finally:
            server.close()

    def test_debug_mirrors_server_output(
        self, launch_config: LaunchConfig, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = launch_config.from_partial({"debug": True})

        with DevAppServer(config):
            pass

        err = capsys.readouterr().err
        assert "Starting API server at:" in err
        assert "Starting admin server at:" in err

    def test_grandchildren_are_left_alone_on_clean_exit(
        self, launch_config: LaunchConfig, grandchild_pidfile
    ) -> None:
        """A clean /quit stops only what the child itself stops."""
        server = DevAppServer(launch_config)
        server.start()
        grandchild = grandchild_pidfile()

        server.close()

        assert not process_gone(grandchild, timeout=0.2)


class TestStartupFailures:
    """Startup failures never leave a process running."""

    def test_missing_executable(self, app_dir: Path) -> None:
        config = LaunchConfig(app_dir=app_dir, dev_appserver="appharness-no-such-server")
        server = DevAppServer(config)

        with pytest.raises(ExecutableNotFoundError):
            server.start()

        assert server.state is ServerState.FAILED
        assert server.process is None

    def test_silent_server_times_out(self, launch_config: LaunchConfig, fake_mode) -> None:
        fake_mode("silent")
        server = DevAppServer(launch_config.from_partial({"timeout": 0.5}))

        started = time.monotonic()
        with pytest.raises(StartupTimeoutError):
            server.start()
        elapsed = time.monotonic() - started

        assert elapsed < 5.0
        assert server.state is ServerState.FAILED
        assert process_gone(server.pid)

    def test_timeout_kills_grandchildren(
        self, launch_config: LaunchConfig, fake_mode, grandchild_pidfile
    ) -> None:
        fake_mode("silent")
        server = DevAppServer(launch_config.from_partial({"timeout": 1.0}))

        with pytest.raises(StartupTimeoutError):
            server.start()

        assert process_gone(grandchild_pidfile())

    def test_missing_admin_marker(self, launch_config: LaunchConfig, fake_mode) -> None:
        fake_mode("no-admin")
        server = DevAppServer(launch_config)

        with pytest.raises(AdminURLNotFoundError):
            server.start()

        assert server.state is ServerState.FAILED
        assert process_gone(server.pid)


class TestShutdownFailures:
    """Shutdown failures kill the whole process group."""

    def test_unreachable_admin(self, launch_config: LaunchConfig, fake_mode) -> None:
        fake_mode("unreachable-admin")
        server = DevAppServer(launch_config)
        server.start()

        with pytest.raises(QuitRequestFailedError, match="unable to call /quit handler"):
            server.close()

        assert process_gone(server.pid)

    def test_hanging_admin(self, launch_config: LaunchConfig, fake_mode) -> None:
        fake_mode("hanging-admin")
        server = DevAppServer(launch_config.from_partial({"timeout": 1.0}))
        server.start()

        with pytest.raises(QuitRequestFailedError):
            server.close()

        assert process_gone(server.pid)

    def test_ignored_quit_times_out(
        self, launch_config: LaunchConfig, fake_mode, grandchild_pidfile
    ) -> None:
        fake_mode("ignore-quit")
        server = DevAppServer(launch_config.from_partial({"timeout": 1.0}))
        server.start()
        grandchild = grandchild_pidfile()

        started = time.monotonic()
        with pytest.raises(ShutdownTimeoutError):
            server.close()
        elapsed = time.monotonic() - started

        assert elapsed >= 1.0
        assert process_gone(server.pid)
        assert process_gone(grandchild)
        assert server.state is ServerState.CLOSED

    def test_nonzero_exit(self, launch_config: LaunchConfig, fake_mode) -> None:
        fake_mode("exit-nonzero")
        server = DevAppServer(launch_config)
        server.start()

        with pytest.raises(ChildExitError) as exc_info:
            server.close()

        assert exc_info.value.returncode == 3
