"""appharness CLI entrypoint.

Runs an app under the harness by hand and inspects the effective config.
"""

from __future__ import annotations

import functools
import logging
import threading
from pathlib import Path

import click

from appharness.core.errors import HarnessCliError
from appharness.domain.exceptions import HarnessError
from appharness.version import __version__


def handle_cli_errors(command_name: str):
    """Decorator to handle common CLI errors.

    HarnessError becomes HarnessCliError (keeping its hint). ValueError,
    raised for invalid configuration, gets a config hint. Anything else is
    reported as unexpected, with a traceback in verbose mode.

    Args:
        command_name: Name of the command for error messages.

    Returns:
        Decorated function with error handling.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (HarnessCliError, click.exceptions.Exit, click.Abort):
                raise
            except HarnessError as e:
                raise HarnessCliError(e.message, hint=e.hint) from e
            except ValueError as e:
                raise HarnessCliError(
                    f"Invalid configuration: {e}",
                    hint="Check appharness.toml or the command-line options",
                ) from e
            except Exception as e:
                ctx = click.get_current_context()
                if ctx.obj.get("verbose", False):
                    import traceback

                    traceback.print_exc()
                raise HarnessCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _wait_for_interrupt() -> None:
    """Block until Ctrl-C raises KeyboardInterrupt."""
    threading.Event().wait()


def _load_config(app_dir: Path, project_dir: Path | None, overrides: dict):
    """Load the merged configuration for app_dir."""
    from appharness.adapters.config.toml_config_provider import TomlConfigProvider

    return TomlConfigProvider().load(app_dir, project_dir=project_dir, overrides=overrides)


@click.group()
@click.version_option(version=__version__, prog_name="appharness")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-essential output.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """appharness - run dev_appserver.py apps under a test harness."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    _configure_logging(verbose)


@cli.command()
@click.argument(
    "app_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--dev-appserver", "dev_appserver", help="dev server executable or path.")
@click.option("--host", help="Host for the module and admin servers.")
@click.option("--port", type=click.IntRange(0, 65535), help="Module server port.")
@click.option("--admin-port", type=click.IntRange(0, 65535), help="Admin server port.")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), help="Startup/shutdown timeout in seconds.")
@click.option("--debug", is_flag=True, default=None, help="Mirror server output.")
@click.option(
    "--project-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory holding appharness.toml (default: current directory).",
)
@click.pass_context
@handle_cli_errors("run")
def run(
    ctx: click.Context,
    app_dir: Path,
    dev_appserver: str | None,
    host: str | None,
    port: int | None,
    admin_port: int | None,
    timeout: float | None,
    debug: bool | None,
    project_dir: Path | None,
) -> None:
    """Run APP_DIR under the harness until interrupted."""
    from appharness.adapters.devappserver.server import DevAppServer
    from appharness.core.progress import start_with_progress

    config = _load_config(
        app_dir,
        project_dir,
        {
            "dev_appserver": dev_appserver,
            "host": host,
            "port": port,
            "admin_port": admin_port,
            "timeout": timeout,
            "debug": debug,
        },
    )
    quiet = ctx.obj.get("quiet", False)

    server = DevAppServer(config)
    endpoints = start_with_progress(server, quiet=quiet or config.debug)
    try:
        click.echo(f"Module server: {endpoints.module_url}")
        click.echo(f"Admin server:  {endpoints.admin_url}")
        click.echo(f"API server:    {endpoints.api_url}")
        if not quiet:
            click.echo("Press Ctrl-C to stop.", err=True)
        _wait_for_interrupt()
    except KeyboardInterrupt:
        if not quiet:
            click.echo("\nStopping dev server...", err=True)
    finally:
        server.close()
    if not quiet:
        click.echo("✓ Dev server stopped", err=True)


@cli.group()
def config() -> None:
    """Inspect and create appharness configuration."""
    pass


@config.command(name="show")
@click.option(
    "--project-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory holding appharness.toml (default: current directory).",
)
@handle_cli_errors("config show")
def config_show(project_dir: Path | None) -> None:
    """Show the effective [server] settings."""
    from appharness.shared.config_io import (
        format_server_table,
        get_global_config_path,
        get_local_config_path,
    )

    project_dir = project_dir or Path.cwd()
    effective = _load_config(Path("."), project_dir, {})

    global_path = get_global_config_path()
    local_path = get_local_config_path(project_dir)
    click.echo(f"# global: {global_path}{'' if global_path.exists() else ' (not found)'}")
    click.echo(f"# local:  {local_path}{'' if local_path.exists() else ' (not found)'}")
    click.echo()
    click.echo(format_server_table(effective), nl=False)


@config.command(name="init")
@click.option(
    "--project-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory to create appharness.toml in (default: current directory).",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file.")
@handle_cli_errors("config init")
def config_init(project_dir: Path | None, force: bool) -> None:
    """Create a default appharness.toml."""
    from appharness.shared.config_io import create_default_config_file, get_local_config_path

    path = get_local_config_path(project_dir or Path.cwd())
    if path.exists() and not force:
        raise HarnessCliError(
            f"Config file already exists: {path}",
            hint="Use --force to overwrite it",
        )
    create_default_config_file(path)
    click.echo(f"✓ Created {path}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
