"""Timing constants for supervising the dev server.

The startup and shutdown deadlines themselves come from LaunchConfig.timeout;
the values here bound the housekeeping done around them.
"""


class HarnessTimeouts:
    """Timing constants for the harness. All values are in seconds.

    Groups:
        REAP_*: Collecting a child's exit status after a forced kill
        DRAIN_*: Background stderr draining after readiness
    """

    # =========================================================================
    # Reaping
    # =========================================================================

    REAP_AFTER_KILL: float = 5.0
    """Time to wait for the exit status of a child that was sent SIGKILL.

    SIGKILL cannot be caught, so the wait normally returns at once. The bound
    only matters if the kernel is slow to tear the process down; if it
    expires the child is left for the OS to reap.
    """

    # =========================================================================
    # Draining
    # =========================================================================

    DRAIN_JOIN: float = 1.0
    """Time close() waits for the stderr drain thread to reach EOF.

    Once the child is gone its stderr pipe closes and the drain returns
    promptly. Any grandchild still holding the pipe would keep it open, so
    this is bounded and the thread is a daemon thread.
    """
