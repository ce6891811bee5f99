"""Readiness scanning of the dev server's stderr.

dev_appserver.py announces each listener on stderr once it is bound:

    INFO ... api_server.py:205] Starting API server at: http://localhost:36415
    INFO ... dispatcher.py:197] Starting module "default" running at: http://localhost:8080
    INFO ... admin_server.py:116] Starting admin server at: http://localhost:8000

ReadinessScanner reads stderr line by line on a background thread until it
has seen all three, or the stream ends or fails.
"""

import logging
import re
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import TextIO

from appharness.adapters.devappserver.oneshot import run_in_background
from appharness.domain.entities import ReadinessMarkers
from appharness.domain.exceptions import StreamReadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadinessPatterns:
    """The three marker patterns, each capturing a URL in group 1.

    Attributes:
        api: API server announcement
        module: Module server announcement (module name is ignored)
        admin: Admin server announcement
    """

    api: re.Pattern[str] = field(
        default_factory=lambda: re.compile(r"Starting API server at: (\S+)")
    )
    module: re.Pattern[str] = field(
        default_factory=lambda: re.compile(r'Starting module ".+" running at: (\S+)')
    )
    admin: re.Pattern[str] = field(
        default_factory=lambda: re.compile(r"Starting admin server at: (\S+)")
    )

    def items(self) -> list[tuple[str, re.Pattern[str]]]:
        return [("api", self.api), ("module", self.module), ("admin", self.admin)]


DEFAULT_PATTERNS = ReadinessPatterns()


class ReadinessScanner:
    """Scans a text stream for the three readiness markers.

    Args:
        patterns: Marker patterns to match (default: DEFAULT_PATTERNS)
        mirror: Optional stream every line read is copied to (debug mode)
    """

    def __init__(
        self,
        patterns: ReadinessPatterns = DEFAULT_PATTERNS,
        mirror: TextIO | None = None,
    ) -> None:
        self.patterns = patterns
        self.mirror = mirror

    def _mirror_line(self, line: str) -> None:
        """Copy line to the mirror. A failing mirror is dropped, never fatal."""
        if self.mirror is None:
            return
        try:
            self.mirror.write(line)
            self.mirror.flush()
        except (OSError, ValueError):
            logger.debug("Mirror stream failed, no longer mirroring", exc_info=True)
            self.mirror = None

    def match_line(self, line: str, markers: ReadinessMarkers) -> None:
        """Test a line against every pattern, recording first-seen values."""
        for name, pattern in self.patterns.items():
            match = pattern.search(line)
            if match and markers.record(name, match.group(1)):
                logger.debug(f"Found {name} marker: {match.group(1)}")

    def scan(self, stream: TextIO) -> ReadinessMarkers:
        """Read stream until all markers are found, EOF, or a read error.

        The completion check happens before each readline(), so once the
        last marker is recorded the scanner returns without waiting for a
        line that may never come.

        Args:
            stream: Text stream (the child's stderr)

        Returns:
            Markers found, possibly incomplete if the stream ended early

        Raises:
            StreamReadError: If reading the stream fails
        """
        markers = ReadinessMarkers()
        try:
            while not markers.complete():
                line = stream.readline()
                if not line:
                    logger.debug("Reached end of stderr while scanning")
                    break
                self._mirror_line(line)
                self.match_line(line, markers)
        except (OSError, ValueError) as e:
            # ValueError: read on a closed file
            raise StreamReadError(str(e)) from e
        return markers

    def start(self, stream: TextIO) -> "Future[ReadinessMarkers]":
        """Scan stream on a background thread.

        Returns:
            Future resolved exactly once with the markers or a StreamReadError
        """
        return run_in_background(self.scan, stream, name="readiness-scanner")

    def drain(self, stream: TextIO) -> None:
        """Consume the rest of stream so the child never blocks on stderr.

        Lines are copied to the mirror if one is set, discarded otherwise.
        Read errors end the drain quietly: the stream is only being emptied.
        """
        try:
            for line in stream:
                self._mirror_line(line)
        except (OSError, ValueError):
            logger.debug("Stopped draining stderr", exc_info=True)
