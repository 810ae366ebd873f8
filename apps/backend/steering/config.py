"""
Steering Configuration Loader
=============================

Loads and manages steering configuration from the project's .steering directory.
Supports JSON and YAML config formats with schema validation.

Configuration files searched in order:
1. .steering/steering.json
2. .steering/steering.yaml
3. .steering/steering.yml

Project configuration merges with defaults, with project settings
taking precedence.

Usage:
    from steering.config import load_steering_config

    config = load_steering_config(project_dir=Path("/path/to/project"))
    print(f"Documents: {config.documents_path(project_dir)}")
"""

from __future__ import annotations

import json
from pathlib import Path

import yaml

from .models import SteeringConfig


# =============================================================================
# CONFIG FILE NAMES
# =============================================================================

CONFIG_FILENAMES = [
    "steering.json",
    "steering.yaml",
    "steering.yml",
]

STEERING_DIR = ".steering"


# =============================================================================
# CONFIG SCHEMA DEFINITION
# =============================================================================

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "documents_dir": {"type": "string"},
        "extensions": {"type": "array", "items": {"type": "string"}},
        "recursive": {"type": "boolean"},
        "strict": {"type": "boolean"},
        "default_budget": {"type": ["integer", "null"], "minimum": 0},
        "min_term_length": {"type": "integer", "minimum": 1},
        "stop_words": {"type": "array", "items": {"type": "string"}},
        "version": {"type": "string"},
    },
    "additionalProperties": False,
}


def _is_int(value) -> bool:
    # bool is an int subclass
    return isinstance(value, int) and not isinstance(value, bool)


# =============================================================================
# CONFIG LOADER
# =============================================================================

class SteeringConfigLoader:
    """
    Loads steering configuration from a project directory.

    Attributes:
        project_dir: Root directory of the project
        config_dir: Path to .steering directory
        config_file: Path to the config file (if found)
        config: Loaded configuration (SteeringConfig)
    """

    def __init__(self, project_dir: Path):
        """
        Initialize config loader.

        Args:
            project_dir: Root directory of the project
        """
        self.project_dir = Path(project_dir).resolve()
        self.config_dir = self.project_dir / STEERING_DIR
        self.config_file: Path | None = None
        self.config: SteeringConfig | None = None

    def load(self) -> SteeringConfig:
        """
        Load configuration from .steering directory.

        Returns:
            SteeringConfig with defaults merged with project config

        Raises:
            ValueError: If the config file cannot be parsed or fails validation
        """
        self.config_file = self._find_config_file()

        if self.config_file is None:
            self.config = SteeringConfig()
            return self.config

        config_data = self._read_config_file(self.config_file)

        if not isinstance(config_data, dict):
            raise ValueError(
                f"Config file {self.config_file.name} must contain an object, "
                f"got {type(config_data).__name__}"
            )

        validation_errors = self._validate_config(config_data)
        if validation_errors:
            error_msg = f"Config validation errors in {self.config_file.name}:\n"
            error_msg += "\n".join(f"  - {err}" for err in validation_errors)
            raise ValueError(error_msg)

        self.config = SteeringConfig.from_dict(config_data)
        return self.config

    def _find_config_file(self) -> Path | None:
        """Find the first existing config file."""
        if not self.config_dir.exists():
            return None

        for filename in CONFIG_FILENAMES:
            config_path = self.config_dir / filename
            if config_path.exists():
                return config_path

        return None

    def _read_config_file(self, config_path: Path) -> dict:
        """
        Read and parse config file based on extension.

        Raises:
            ValueError: If file format is not supported or parsing fails
        """
        suffix = config_path.suffix.lower()

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                if suffix == ".json":
                    return json.load(f)
                elif suffix in (".yaml", ".yml"):
                    return yaml.safe_load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {suffix}")
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ValueError(f"Invalid {suffix.lstrip('.').upper()} in {config_path.name}: {e}")
        except OSError as e:
            raise ValueError(f"Failed to read {config_path.name}: {e}")

    def _validate_config(self, config_data: dict) -> list[str]:
        """
        Validate config data against schema.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        valid_keys = set(CONFIG_SCHEMA["properties"].keys())
        unknown_keys = {str(k) for k in config_data.keys()} - valid_keys
        if unknown_keys:
            errors.append(f"Unknown keys: {', '.join(sorted(unknown_keys))}")

        if "documents_dir" in config_data:
            value = config_data["documents_dir"]
            if not isinstance(value, str) or not value.strip():
                errors.append("'documents_dir' must be a non-empty string")

        for key in ("extensions", "stop_words"):
            if key in config_data:
                if not isinstance(config_data[key], list):
                    errors.append(f"'{key}' must be a list")
                else:
                    for i, item in enumerate(config_data[key]):
                        if not isinstance(item, str):
                            errors.append(f"'{key}[{i}]' must be a string")

        if "extensions" in config_data and config_data["extensions"] == []:
            errors.append("'extensions' must not be empty")

        for key in ("recursive", "strict"):
            if key in config_data and not isinstance(config_data[key], bool):
                errors.append(f"'{key}' must be a boolean")

        if "default_budget" in config_data:
            budget = config_data["default_budget"]
            if budget is not None and (not _is_int(budget) or budget < 0):
                errors.append("'default_budget' must be a non-negative integer or null")

        if "min_term_length" in config_data:
            length = config_data["min_term_length"]
            if not _is_int(length) or length < 1:
                errors.append("'min_term_length' must be a positive integer")

        if "version" in config_data and not isinstance(config_data["version"], str):
            errors.append("'version' must be a string")

        return errors

    def has_config_file(self) -> bool:
        """Check if a config file exists."""
        return self.config_file is not None


# =============================================================================
# CONFIG CACHE
# =============================================================================

_config_cache: dict[str, SteeringConfig] = {}


def load_steering_config(project_dir: Path) -> SteeringConfig:
    """
    Load steering configuration for a project.

    Results are cached by resolved project directory.

    Raises:
        ValueError: If config file has validation errors
    """
    project_dir = Path(project_dir).resolve()
    cache_key = str(project_dir)

    if cache_key in _config_cache:
        return _config_cache[cache_key]

    loader = SteeringConfigLoader(project_dir)
    config = loader.load()

    _config_cache[cache_key] = config
    return config


def get_steering_config(project_dir: Path) -> SteeringConfig | None:
    """
    Get cached steering configuration for a project.

    Returns None if configuration hasn't been loaded yet.
    """
    project_dir = Path(project_dir).resolve()
    return _config_cache.get(str(project_dir))


def clear_config_cache(project_dir: Path | None = None) -> None:
    """
    Clear cached configuration.

    Args:
        project_dir: If provided, only clear cache for this project.
                     If None, clear all cached configurations.
    """
    if project_dir is None:
        _config_cache.clear()
    else:
        project_dir = Path(project_dir).resolve()
        _config_cache.pop(str(project_dir), None)


def get_config_file_path(project_dir: Path) -> Path | None:
    """Get the path to the config file for a project (if it exists)."""
    loader = SteeringConfigLoader(project_dir)
    return loader._find_config_file()
