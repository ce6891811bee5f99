"""Supervision of a dev_appserver.py child process.

This package starts the dev server, waits for it to announce its endpoints,
and stops it again, for use as a test fixture.

Architecture:
- launcher.py: Builds the invocation and spawns the process-group leader
- scanner.py: Background scan of stderr for the readiness markers
- gate.py: Races the scan against the startup timeout
- terminator.py: /quit request, exit wait, process-group kill
- server.py: DevAppServer, the lifecycle that ties them together
"""

from appharness.adapters.devappserver.server import DevAppServer, start_dev_appserver

__all__ = ["DevAppServer", "start_dev_appserver"]
