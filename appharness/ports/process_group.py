"""Port interface for forced process-group termination."""

import subprocess
from typing import Protocol


class ProcessGroupKiller(Protocol):
    """Protocol for killing a process together with everything it spawned.

    The supervised child is started as the leader of its own process group,
    so a single call must reclaim the leader and all of its descendants.
    """

    def kill_group(self, process: subprocess.Popen) -> None:
        """Forcefully kill the group led by process.

        Args:
            process: Handle of the process-group leader

        Raises:
            OSError: If the kill signal could not be delivered
        """
        ...
