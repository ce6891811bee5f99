"""Launching dev_appserver.py as an isolated child process."""

import logging
import os
import shutil
import subprocess

from appharness.domain.config import LaunchConfig
from appharness.domain.exceptions import ExecutableNotFoundError, SpawnFailedError

logger = logging.getLogger(__name__)


class Launcher:
    """Builds the dev server invocation and starts it.

    Args:
        config: Launch configuration
    """

    def __init__(self, config: LaunchConfig) -> None:
        self.config = config

    def resolve_executable(self) -> str:
        """Find the dev server executable on $PATH.

        Returns:
            Absolute path of the executable

        Raises:
            ExecutableNotFoundError: If it cannot be found
        """
        path = shutil.which(self.config.dev_appserver)
        if path is None:
            raise ExecutableNotFoundError(self.config.dev_appserver)
        return path

    def build_args(self) -> list[str]:
        """Flags that make the server deterministic and isolated, then the app dir."""
        config = self.config
        return [
            "--automatic_restart=false",
            "--skip_sdk_update_check=true",
            "--clear_datastore=true",
            "--clear_search_indexes=true",
            "--datastore_consistency_policy=consistent",
            f"--host={config.host}",
            f"--admin_host={config.host}",
            f"--port={config.port}",
            f"--admin_port={config.admin_port}",
            str(config.app_dir),
        ]

    def build_env(self) -> dict[str, str]:
        """Child environment: ours, with unbuffered Python output.

        Unbuffered output keeps readiness lines from sitting in the child's
        buffers. A value already set by the user is kept.
        """
        env = os.environ.copy()
        env.setdefault("PYTHONUNBUFFERED", "1")
        return env

    def _session_kwargs(self) -> dict:
        """Popen arguments that make the child a process-group leader."""
        if os.name == "nt":
            return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
        return {"start_new_session": True}

    def launch(self) -> subprocess.Popen:
        """Start the dev server.

        stdout is discarded unless debug is set, in which case it goes to our
        stdout. stderr is always a text pipe for the readiness scanner.

        Returns:
            Handle of the started process (leader of a new process group)

        Raises:
            ExecutableNotFoundError: If the executable cannot be found
            SpawnFailedError: If the OS fails to start the process
        """
        cmd = [self.resolve_executable(), *self.build_args()]
        if self.config.debug:
            logger.info(f"running {cmd[0]} {cmd[1:]}")

        # None inherits our stdout.
        stdout = None if self.config.debug else subprocess.DEVNULL
        try:
            return subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=stdout,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                env=self.build_env(),
                **self._session_kwargs(),
            )
        except OSError as e:
            raise SpawnFailedError(f"failed to start {cmd[0]}: {e}") from e
