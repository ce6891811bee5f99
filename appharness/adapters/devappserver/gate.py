"""Startup gate: readiness scan raced against the startup deadline."""

import logging
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TextIO

from appharness.adapters.devappserver.scanner import ReadinessScanner
from appharness.domain.entities import Endpoints
from appharness.domain.exceptions import (
    AdminURLNotFoundError,
    APIURLNotFoundError,
    ModuleURLNotFoundError,
    StartupStreamError,
    StartupTimeoutError,
    StreamReadError,
)

logger = logging.getLogger(__name__)

MISSING_MARKER_ERRORS = {
    "admin": AdminURLNotFoundError,
    "module": ModuleURLNotFoundError,
    "api": APIURLNotFoundError,
}


def wait_for_endpoints(
    stream: TextIO,
    timeout: float,
    scanner: ReadinessScanner | None = None,
) -> Endpoints:
    """Scan stream for the readiness markers, giving up after timeout.

    The deadline starts when scanning starts. On timeout the scanner thread
    is abandoned; the caller is expected to kill the child, which closes the
    stream and lets the thread finish on its own.

    Args:
        stream: The child's stderr
        timeout: Seconds to wait for all three markers
        scanner: Scanner to use (default: ReadinessScanner())

    Returns:
        The announced endpoints

    Raises:
        StartupTimeoutError: If the markers did not all appear in time
        StartupStreamError: If stderr could not be read
        AdminURLNotFoundError: If stderr ended without the admin marker
        ModuleURLNotFoundError: If stderr ended without the module marker
        APIURLNotFoundError: If stderr ended without the api marker
    """
    scanner = scanner or ReadinessScanner()
    completion = scanner.start(stream)

    try:
        markers = completion.result(timeout=timeout)
    except FutureTimeoutError as e:
        raise StartupTimeoutError() from e
    except StreamReadError as e:
        raise StartupStreamError(e.message) from e

    missing = markers.missing()
    if missing:
        raise MISSING_MARKER_ERRORS[missing[0]]()

    logger.debug(
        f"Server ready: api={markers.api} module={markers.module} admin={markers.admin}"
    )
    return Endpoints(api_url=markers.api, module_url=markers.module, admin_url=markers.admin)
