"""Progress reporting for the CLI.

Shows a Rich spinner while the dev server starts up.
"""

import logging
from typing import TYPE_CHECKING

from rich.progress import Progress, SpinnerColumn, TextColumn

if TYPE_CHECKING:
    from appharness.adapters.devappserver.server import DevAppServer
    from appharness.domain.entities import Endpoints

logger = logging.getLogger(__name__)


def start_with_progress(server: "DevAppServer", quiet: bool = False) -> "Endpoints":
    """Start server, showing a spinner until it is ready.

    Args:
        server: Server to start (injected dependency)
        quiet: Suppress progress output

    Returns:
        The discovered endpoints

    Raises:
        HarnessError: If the server fails to start
    """
    if quiet:
        return server.start()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
    ) as progress:
        task = progress.add_task(
            f"Starting {server.config.dev_appserver} for {server.config.app_dir}...",
            total=None,
        )
        endpoints = server.start()
        progress.update(task, description="Dev server ready")
        return endpoints
