"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from appharness.domain.config import LaunchConfig
from tests.fixtures.fake_dev_appserver import write_fake_dev_appserver

pytest_plugins = ["pytester"]

# ============================================================================
# Config Isolation
# ============================================================================


@pytest.fixture
def no_global_config(tmp_path: Path) -> Iterator[Path]:
    """Point the global config path at a file that does not exist.

    Tests that assert default values must use this fixture to avoid reading
    the user's ~/.config/appharness/config.toml.
    """
    nonexistent_global = tmp_path / "nonexistent_global" / "config.toml"
    with patch(
        "appharness.adapters.config.toml_config_provider.get_global_config_path",
        return_value=nonexistent_global,
    ):
        yield nonexistent_global


# ============================================================================
# Application Bundle
# ============================================================================

APP_YAML = """\
application: appharness-test
version: 1
runtime: python27
api_version: 1
threadsafe: true
handlers:
- url: /.*
  script: main.app
"""


@pytest.fixture
def app_dir(tmp_path: Path) -> Path:
    """A minimal application bundle."""
    app = tmp_path / "app"
    app.mkdir()
    (app / "app.yaml").write_text(APP_YAML)
    (app / "main.py").write_text("app = None\n")
    return app


# ============================================================================
# Stand-in Dev Server
# ============================================================================


@pytest.fixture
def fake_dev_appserver(tmp_path: Path) -> Path:
    """Executable stand-in for dev_appserver.py (see tests.fixtures)."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return write_fake_dev_appserver(bin_dir)


@pytest.fixture
def fake_mode(monkeypatch: pytest.MonkeyPatch):
    """Select the stand-in's behaviour for the next launch."""

    def _set(mode: str) -> None:
        monkeypatch.setenv("FAKE_APPSERVER_MODE", mode)

    return _set


@pytest.fixture
def launch_config(fake_dev_appserver: Path, app_dir: Path) -> LaunchConfig:
    """LaunchConfig that runs the stand-in on loopback with a short timeout."""
    return LaunchConfig(
        app_dir=app_dir,
        dev_appserver=str(fake_dev_appserver),
        host="127.0.0.1",
        timeout=5.0,
    )
