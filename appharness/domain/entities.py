"""Domain entities for the supervised server lifecycle."""

from dataclasses import dataclass
from enum import Enum


class ServerState(Enum):
    """Lifecycle state of a DevAppServer.

    IDLE -> STARTING -> READY -> CLOSING -> CLOSED, with FAILED reachable
    from STARTING when readiness is never achieved.
    """

    IDLE = "idle"
    STARTING = "starting"
    READY = "ready"
    CLOSING = "closing"
    CLOSED = "closed"
    FAILED = "failed"


@dataclass(frozen=True)
class Endpoints:
    """The three URLs announced by a ready dev server."""

    api_url: str
    module_url: str
    admin_url: str


@dataclass
class ReadinessMarkers:
    """Readiness values accumulated while scanning stderr.

    Each marker keeps the first value recorded for it; later values are
    ignored.
    """

    api: str | None = None
    module: str | None = None
    admin: str | None = None

    def record(self, name: str, value: str) -> bool:
        """Record a marker value unless one was already seen.

        Args:
            name: One of "api", "module", "admin"
            value: Captured URL

        Returns:
            True if the value was stored
        """
        if getattr(self, name):
            return False
        setattr(self, name, value)
        return True

    def complete(self) -> bool:
        return bool(self.api and self.module and self.admin)

    def missing(self) -> list[str]:
        """Names of markers not yet seen, in admin, module, api order."""
        return [name for name in ("admin", "module", "api") if not getattr(self, name)]
