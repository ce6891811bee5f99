"""pytest plugin exposing supervised dev servers as fixtures.

Enabled automatically through the pytest11 entry point. Point it at an app
with the ``appharness_app_dir`` ini option (relative to the rootdir), or
override the ``dev_appserver_app_dir`` fixture in a conftest.py:

    def test_home_page(dev_appserver):
        response = requests.get(dev_appserver.module_url + "/")
        assert response.status_code == 200
"""

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from appharness.adapters.config.toml_config_provider import TomlConfigProvider
from appharness.adapters.devappserver.server import DevAppServer
from appharness.domain.config import LaunchConfig
from appharness.domain.exceptions import HarnessError


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("appharness", "dev_appserver test harness")
    group.addoption(
        "--appharness-debug",
        action="store_true",
        default=None,
        help="Mirror dev server output and log harness diagnostics.",
    )
    group.addoption(
        "--appharness-timeout",
        type=float,
        default=None,
        help="Seconds to wait for dev server startup and shutdown.",
    )
    parser.addini(
        "appharness_app_dir",
        "Application bundle used by the dev_appserver fixture.",
        default="",
    )


@pytest.fixture(scope="session")
def dev_appserver_app_dir(pytestconfig: pytest.Config) -> Path:
    """Application bundle directory for the dev_appserver fixture."""
    app_dir = pytestconfig.getini("appharness_app_dir")
    if not app_dir:
        pytest.skip("appharness_app_dir is not configured")
    return pytestconfig.rootpath / app_dir


def _load_config(pytestconfig: pytest.Config, app_dir: Path, **overrides) -> LaunchConfig:
    """LaunchConfig from appharness.toml, the command line, then overrides."""
    options = {
        "debug": pytestconfig.getoption("appharness_debug"),
        "timeout": pytestconfig.getoption("appharness_timeout"),
    }
    return TomlConfigProvider().load(
        app_dir,
        project_dir=pytestconfig.rootpath,
        overrides={**options, **overrides},
    )


@pytest.fixture(scope="session")
def dev_appserver_config(
    pytestconfig: pytest.Config, dev_appserver_app_dir: Path
) -> LaunchConfig:
    """LaunchConfig for the dev_appserver fixture."""
    return _load_config(pytestconfig, dev_appserver_app_dir)


@pytest.fixture(scope="session")
def dev_appserver(dev_appserver_config: LaunchConfig) -> Iterator[DevAppServer]:
    """A ready dev server shared by the whole session."""
    server = DevAppServer(dev_appserver_config)
    server.start()
    yield server
    server.close()


@pytest.fixture
def dev_appserver_factory(
    pytestconfig: pytest.Config,
) -> Iterator[Callable[..., DevAppServer]]:
    """Start ready dev servers on demand; all are closed at teardown.

    The factory takes an app directory and LaunchConfig overrides:

        server = dev_appserver_factory(tmp_path / "app", timeout=30)
    """
    started: list[DevAppServer] = []

    def _start(app_dir: Path, **overrides) -> DevAppServer:
        server = DevAppServer(_load_config(pytestconfig, Path(app_dir), **overrides))
        server.start()
        started.append(server)
        return server

    yield _start

    errors: list[HarnessError] = []
    for server in reversed(started):
        try:
            server.close()
        except HarnessError as e:
            errors.append(e)
    if errors:
        raise errors[0]
