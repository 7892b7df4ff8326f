"""Configuration file loading.

YAML and JSON files are parsed into plain mappings and deep-merged in
order, so a project file can override a user file key by key.
"""

import copy
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple, Type, Union

import yaml
from loguru import logger

from ..errors import ConfigurationError

PathLike = Union[str, Path]

_YAML = (yaml.safe_load, yaml.YAMLError, "YAML", "a mapping")
_JSON = (json.load, json.JSONDecodeError, "JSON", "an object")


class ConfigurationLoader:
    """Reads configuration files into dictionaries."""

    def _read(
        self,
        path: PathLike,
        parser: Tuple[Callable[[Any], Any], Type[Exception], str, str],
    ) -> Dict[str, Any]:
        parse, parse_error, kind, expected = parser
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r", encoding="utf-8") as stream:
            try:
                content = parse(stream)
            except parse_error as e:
                raise ConfigurationError.invalid_file(path, f"invalid {kind} ({e})") from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigurationError.invalid_file(path, f"expected {expected}")
        return content

    def load_yaml(self, path: PathLike) -> Dict[str, Any]:
        """Load a YAML file. An empty file is an empty mapping.

        Raises:
            FileNotFoundError: If file doesn't exist
            ConfigurationError: If the YAML is invalid or not a mapping
        """
        return self._read(path, _YAML)

    def load_json(self, path: PathLike) -> Dict[str, Any]:
        return self._read(path, _JSON)

    def load(self, path: PathLike) -> Dict[str, Any]:
        """Load a YAML or JSON file, chosen by extension."""
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix in (".yaml", ".yml"):
            return self.load_yaml(path)
        if suffix == ".json":
            return self.load_json(path)
        raise ConfigurationError(
            f"Unsupported configuration file format: {path}",
            config_path=path,
        )

    def merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Return ``base`` updated by ``override``; nested mappings merge recursively.

        Neither argument is mutated.
        """
        merged = copy.deepcopy(base)
        for key, value in override.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = self.merge_configs(current, value)
            else:
                merged[key] = copy.deepcopy(value)
        return merged

    def load_multiple(self, paths: List[PathLike]) -> Dict[str, Any]:
        """Load and merge configuration files; later files win, missing ones are skipped."""
        config: Dict[str, Any] = {}
        for candidate in map(Path, paths):
            if not candidate.exists():
                continue
            config = self.merge_configs(config, self.load(candidate))
            logger.debug(f"Loaded configuration from {candidate}")
        return config
