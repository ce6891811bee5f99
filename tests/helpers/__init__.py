"""Test helper utilities for the appharness test suite."""

from tests.helpers.cli_assertions import (
    assert_command_failed,
    assert_command_success,
    assert_error_message,
    assert_output_contains,
    extract_url,
)
from tests.helpers.processes import kill_if_alive, process_gone

__all__ = [
    "assert_command_success",
    "assert_command_failed",
    "assert_output_contains",
    "assert_error_message",
    "extract_url",
    "process_gone",
    "kill_if_alive",
]
