"""Hierarchical configuration.

Settings are merged from, lowest priority first:

1. User config: ``~/.honorer/config.yaml``
2. Project config: ``./honorer.yaml``
3. Explicit config: ``--config file.yaml``
4. Environment variables: ``HONORER_<FIELD>``
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from loguru import logger
from pydantic import ValidationError

from ..errors import ConfigurationError
from .loader import ConfigurationLoader
from .settings import HonorerSettings

ENV_PREFIX = "HONORER_"


class ConfigurationManager:
    """Loads and validates :class:`HonorerSettings` from files and the environment."""

    def __init__(
        self,
        user_config_path: Optional[Path] = None,
        project_config_path: Optional[Path] = None,
        command_config_path: Optional[Union[str, Path]] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        """Initialize configuration manager.

        Args:
            user_config_path: Path to user config file
            project_config_path: Path to project config file
            command_config_path: Explicit config file; must exist when given
            environ: Environment to read overrides from (defaults to ``os.environ``)
        """
        self.loader = ConfigurationLoader()

        self.user_config_path = user_config_path or Path.home() / ".honorer" / "config.yaml"
        self.project_config_path = project_config_path or Path.cwd() / "honorer.yaml"
        self.command_config_path = Path(command_config_path) if command_config_path else None
        self.environ = os.environ if environ is None else environ

        self._settings_cache: Optional[HonorerSettings] = None

    def load_configuration(self) -> Dict[str, Any]:
        """Load the merged configuration dictionary."""
        config = self.loader.load_multiple([self.user_config_path, self.project_config_path])

        if self.command_config_path is not None:
            if not self.command_config_path.exists():
                raise ConfigurationError(
                    f"Configuration file not found: {self.command_config_path}",
                    config_path=self.command_config_path,
                )
            config = self.loader.merge_configs(config, self.loader.load(self.command_config_path))
            logger.debug(f"Loaded configuration from {self.command_config_path}")

        return self._apply_env_overrides(config)

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply ``HONORER_*`` overrides, e.g. ``HONORER_DEBUG=true`` -> ``debug = True``."""
        overrides = {
            key[len(ENV_PREFIX):].lower(): self._convert_env_value(value)
            for key, value in self.environ.items()
            if key.startswith(ENV_PREFIX) and key[len(ENV_PREFIX):].lower() in HonorerSettings.model_fields
        }
        return self.loader.merge_configs(config, overrides)

    def _convert_env_value(self, value: str) -> Union[str, int, float, bool]:
        if value.lower() in ("true", "false"):
            return value.lower() == "true"
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            pass
        return value

    def load_settings(self) -> HonorerSettings:
        """Load and validate settings, cached after the first call.

        Raises:
            ConfigurationError: If the merged configuration is invalid
        """
        if self._settings_cache is not None:
            return self._settings_cache

        config = self.load_configuration()
        try:
            settings = HonorerSettings.model_validate(config)
        except ValidationError as e:
            error = ConfigurationError(f"Invalid configuration: {e.error_count()} error(s)", cause=e)
            for issue in e.errors(include_url=False):
                error.with_suggestion(f"{'.'.join(str(p) for p in issue['loc'])}: {issue['msg']}")
            raise error from e

        self._settings_cache = settings
        return settings

    def reload(self) -> HonorerSettings:
        self._settings_cache = None
        return self.load_settings()


def load_settings(config_path: Optional[Union[str, Path]] = None) -> HonorerSettings:
    """Load settings the default way, with an optional explicit config file."""
    return ConfigurationManager(command_config_path=config_path).load_settings()
