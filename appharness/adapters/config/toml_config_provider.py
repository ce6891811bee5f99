"""TOML-based configuration provider.

Config loading priority (highest to lowest):
1. Explicit overrides (CLI options, fixture arguments)
2. Local: <project>/appharness.toml
3. Global: ~/.config/appharness/config.toml
4. Built-in defaults
"""

import logging
from pathlib import Path
from typing import Any

from appharness.domain.config import LaunchConfig
from appharness.shared.config_io import (
    get_global_config_path,
    get_local_config_path,
    load_config_data,
    server_section,
)

logger = logging.getLogger(__name__)


class TomlConfigProvider:
    """Configuration provider that loads from TOML files.

    Implements config cascade:
    1. Load global config if present
    2. Load local config if present
    3. Local values override global values (key-level merge)
    4. Missing values fall back to built-in defaults

    Gracefully handles missing or invalid configs with warnings.
    """

    def _apply_file(self, config: LaunchConfig, path: Path, label: str) -> LaunchConfig:
        if not path.exists():
            return config
        try:
            data = load_config_data(path)
            config = config.from_partial(server_section(data))
            logger.debug("Loaded %s config from %s", label, path)
        except (FileNotFoundError, ValueError, TypeError) as e:
            logger.warning(
                "Failed to parse %s config at %s: %s. Ignoring it.", label, path, e
            )
        return config

    def load(
        self,
        app_dir: Path,
        project_dir: Path | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> LaunchConfig:
        """Load configuration for app_dir.

        Args:
            app_dir: Application bundle directory
            project_dir: Directory holding appharness.toml (default: cwd)
            overrides: Values that win over every file; None values are skipped

        Returns:
            Merged LaunchConfig

        Raises:
            ValueError: If overrides contain unknown keys or invalid values
        """
        project_dir = project_dir or Path.cwd()
        config = LaunchConfig(app_dir=app_dir)
        config = self._apply_file(config, get_global_config_path(), "global")
        config = self._apply_file(config, get_local_config_path(project_dir), "local")

        if overrides:
            explicit = {key: value for key, value in overrides.items() if value is not None}
            config = config.from_partial(explicit)
        return config
