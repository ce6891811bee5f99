"""Forced termination of the supervised process group.

On POSIX the child is started as a session (and process-group) leader, so a
single killpg reaches every process it spawned. Windows has no equivalent
signal; there the process tree is walked with psutil and killed bottom-up.
"""

import logging
import os
import signal
import subprocess

import psutil

logger = logging.getLogger(__name__)


class PosixProcessGroupKiller:
    """Kill a process group with SIGKILL."""

    def kill_group(self, process: subprocess.Popen) -> None:
        """Send SIGKILL to every process in the group led by process.

        Raises:
            OSError: If the signal could not be delivered
        """
        # The leader's pid is the group id: start_new_session=True.
        os.killpg(process.pid, signal.SIGKILL)


class ProcessTreeKiller:
    """Kill a process and all of its descendants via psutil.

    Used where process groups are not available. Children spawned between
    the enumeration and the kill can escape; the POSIX killer has no such
    gap.
    """

    def kill_group(self, process: subprocess.Popen) -> None:
        """Kill process's descendants, then process itself.

        Raises:
            OSError: If the leader could not be killed
        """
        try:
            leader = psutil.Process(process.pid)
            descendants = leader.children(recursive=True)
        except psutil.NoSuchProcess as e:
            raise ProcessLookupError(f"process {process.pid} not found") from e

        for child in reversed(descendants):
            try:
                child.kill()
            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied:
                logger.debug(f"Access denied killing descendant {child.pid}")

        try:
            leader.kill()
        except psutil.NoSuchProcess as e:
            raise ProcessLookupError(f"process {process.pid} not found") from e
        except psutil.AccessDenied as e:
            raise PermissionError(f"access denied killing process {process.pid}") from e


def default_killer() -> PosixProcessGroupKiller | ProcessTreeKiller:
    """Pick the process-group killer for the current platform."""
    if os.name == "posix":
        return PosixProcessGroupKiller()
    return ProcessTreeKiller()
