"""Port interface for application bundles.

Building the bundle (app.yaml plus sources) is the caller's business; the
harness only needs to know where it lives on disk.
"""

from pathlib import Path
from typing import Protocol


class AppBundle(Protocol):
    """Anything that knows the directory of an application bundle."""

    @property
    def path(self) -> Path:
        """Directory containing the bundle's app.yaml."""
        ...
