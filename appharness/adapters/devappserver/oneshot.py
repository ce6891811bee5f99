"""Single-use completion signals backed by daemon threads.

Both races in the harness (readiness scan vs. startup deadline, child exit
vs. shutdown deadline) have the same shape: a background call that may
block indefinitely on I/O, and a caller that waits for it with a timeout.
run_in_background() runs the call and publishes its outcome exactly once
through a Future, whether it returns or raises.
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_background(
    target: Callable[..., T], *args: Any, name: str | None = None
) -> "Future[T]":
    """Run target(*args) on a daemon thread.

    The thread is a daemon thread so a caller that gives up on the result
    (e.g. after a timeout) never blocks interpreter exit. A result that
    arrives after the caller stopped waiting is simply discarded.

    Args:
        target: Callable to run
        *args: Positional arguments for target
        name: Thread name, for debugging

    Returns:
        Future resolved with target's return value or exception
    """
    future: Future[T] = Future()
    future.set_running_or_notify_cancel()

    def _run() -> None:
        try:
            result = target(*args)
        except BaseException as e:
            future.set_exception(e)
            if not isinstance(e, Exception):
                raise
        else:
            future.set_result(result)

    thread = threading.Thread(target=_run, name=name, daemon=True)
    thread.start()
    logger.debug(f"Started background thread {thread.name}")
    return future
