"""Two-phase shutdown of the dev server.

Shutdown sequence:
1. Start waiting for the child to exit (before anything can make it exit)
2. Ask it to quit via GET <admin_url>/quit
3. Wait for the exit, up to the timeout
4. If the request fails or the timeout expires, SIGKILL the process group
"""

import contextlib
import logging
import subprocess
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError

import requests

from appharness.adapters.devappserver.oneshot import run_in_background
from appharness.adapters.devappserver.timeouts import HarnessTimeouts
from appharness.domain.exceptions import (
    ChildExitError,
    QuitRequestFailedError,
    ShutdownTimeoutError,
)
from appharness.ports.process_group import ProcessGroupKiller

logger = logging.getLogger(__name__)


class Terminator:
    """Stops a supervised process, cooperatively if possible.

    Args:
        killer: Process-group killer used as the last resort
        timeout: Seconds to wait for the quit request and for the exit
        debug: Log progress and kill failures
        session: HTTP session for the quit request (default: a new one)
    """

    def __init__(
        self,
        killer: ProcessGroupKiller,
        timeout: float,
        debug: bool = False,
        session: requests.Session | None = None,
    ) -> None:
        self.killer = killer
        self.timeout = timeout
        self.debug = debug
        self.session = session

    def kill(self, process: subprocess.Popen) -> None:
        """SIGKILL the process group. Delivery failures are never raised.

        Killing only happens on paths that are already failing, so a failed
        delivery is at most logged (in debug mode).
        """
        try:
            self.killer.kill_group(process)
        except OSError as e:
            if self.debug:
                logger.warning(f"killing process group {process.pid} failed: {e}")

    def kill_and_reap(
        self, process: subprocess.Popen, exited: "Future[int] | None" = None
    ) -> None:
        """Kill the process group, then collect the leader's exit status.

        Args:
            process: Process-group leader
            exited: Pending exit wait for process, if one is already running
        """
        self.kill(process)
        if exited is not None:
            with contextlib.suppress(FutureTimeoutError, OSError):
                exited.result(timeout=HarnessTimeouts.REAP_AFTER_KILL)
        else:
            with contextlib.suppress(subprocess.TimeoutExpired, OSError):
                process.wait(timeout=HarnessTimeouts.REAP_AFTER_KILL)

    def _request_quit(self, admin_url: str) -> None:
        """Send GET <admin_url>/quit. Any HTTP response counts as success.

        Raises:
            requests.RequestException: If the request could not be completed
        """
        getter = self.session.get if self.session is not None else requests.get
        response = getter(f"{admin_url}/quit", timeout=self.timeout)
        response.close()

    def close(self, process: subprocess.Popen, admin_url: str) -> None:
        """Shut the process down.

        Args:
            process: Process-group leader to stop
            admin_url: Admin server URL announced at startup

        Raises:
            QuitRequestFailedError: If /quit could not be called (group killed)
            ShutdownTimeoutError: If the process did not exit in time (group killed)
            ChildExitError: If the process exited with a non-zero status
            OSError: If waiting for the process failed
        """
        if self.debug:
            logger.info(f"attempting to stop process {process.pid}")

        # Started before the quit request so the exit cannot be missed.
        exited = run_in_background(process.wait, name="exit-waiter")

        if self.debug:
            logger.info("calling /quit handler on the admin server")
        try:
            self._request_quit(admin_url)
        except requests.RequestException as e:
            self.kill_and_reap(process, exited)
            raise QuitRequestFailedError(str(e)) from e

        try:
            returncode = exited.result(timeout=self.timeout)
        except FutureTimeoutError as e:
            self.kill_and_reap(process, exited)
            raise ShutdownTimeoutError() from e

        if returncode != 0:
            raise ChildExitError(returncode)
        if self.debug:
            logger.info("child process exited cleanly")
