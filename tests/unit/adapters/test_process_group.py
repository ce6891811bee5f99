"""Unit tests for process-group killers."""

import signal
from unittest.mock import MagicMock, patch

import psutil
import pytest

from appharness.adapters.devappserver.process_group import (
    PosixProcessGroupKiller,
    ProcessTreeKiller,
    default_killer,
)


def test_posix_killer_signals_group():
    process = MagicMock(pid=1234)

    with patch("os.killpg", create=True) as mock_killpg:
        PosixProcessGroupKiller().kill_group(process)

    mock_killpg.assert_called_once_with(1234, signal.SIGKILL)


def test_posix_killer_propagates_os_error():
    process = MagicMock(pid=1234)

    with patch("os.killpg", create=True, side_effect=ProcessLookupError):
        with pytest.raises(ProcessLookupError):
            PosixProcessGroupKiller().kill_group(process)


class TestProcessTreeKiller:
    """Tests for the psutil-based killer."""

    def test_kills_descendants_then_leader(self) -> None:
        calls = []
        child = MagicMock(pid=2)
        grandchild = MagicMock(pid=3)
        child.kill.side_effect = lambda: calls.append(2)
        grandchild.kill.side_effect = lambda: calls.append(3)
        leader = MagicMock(pid=1)
        leader.children.return_value = [child, grandchild]
        leader.kill.side_effect = lambda: calls.append(1)

        with patch("psutil.Process", return_value=leader):
            ProcessTreeKiller().kill_group(MagicMock(pid=1))

        leader.children.assert_called_once_with(recursive=True)
        assert calls == [3, 2, 1]

    def test_vanished_descendant_is_skipped(self) -> None:
        child = MagicMock(pid=2)
        child.kill.side_effect = psutil.NoSuchProcess(2)
        leader = MagicMock(pid=1)
        leader.children.return_value = [child]

        with patch("psutil.Process", return_value=leader):
            ProcessTreeKiller().kill_group(MagicMock(pid=1))

        leader.kill.assert_called_once()

    def test_missing_leader_is_process_lookup_error(self) -> None:
        with patch("psutil.Process", side_effect=psutil.NoSuchProcess(1)):
            with pytest.raises(ProcessLookupError):
                ProcessTreeKiller().kill_group(MagicMock(pid=1))

    def test_access_denied_is_permission_error(self) -> None:
        leader = MagicMock(pid=1)
        leader.children.return_value = []
        leader.kill.side_effect = psutil.AccessDenied(1)

        with patch("psutil.Process", return_value=leader):
            with pytest.raises(PermissionError):
                ProcessTreeKiller().kill_group(MagicMock(pid=1))


def test_default_killer_by_platform():
    with patch("os.name", "posix"):
        assert isinstance(default_killer(), PosixProcessGroupKiller)
    with patch("os.name", "nt"):
        assert isinstance(default_killer(), ProcessTreeKiller)
