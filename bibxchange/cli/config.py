"""Configuration management for the CLI."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from bibxchange.core.options import ExportOptions, ImportOptions

logger = logging.getLogger(__name__)

# Environment variable -> (section, option, converter)
ENV_OVERRIDES = {
    "BIBXCHANGE_BATCH_SIZE": ("import", "batch_size", int),
    "BIBXCHANGE_CHECK_DUPLICATES": ("import", "check_duplicates", "bool"),
    "BIBXCHANGE_UPDATE_EXISTING": ("import", "update_existing", "bool"),
    "BIBXCHANGE_CSV_DELIMITER": ("export", "csv_delimiter", str),
    "BIBXCHANGE_EXPORTED_BY": ("export", "exported_by", str),
}

TRUE_VALUES = {"1", "true", "yes", "on"}


class Config:
    """Configuration management for the CLI application."""

    @staticmethod
    def from_file(path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file.

        Raises:
            ValueError: If the file cannot be read or is not a YAML mapping.
        """
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}") from e
        except OSError as e:
            raise ValueError(f"Error reading config file: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return data

    @staticmethod
    def get_config_paths() -> list[Path]:
        """Get the default configuration file paths to check."""
        paths = []

        # User config
        xdg_config_home = Path(
            os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        )
        paths.append(xdg_config_home / "bibxchange" / "config.yaml")

        # Project config
        paths.append(Path(".bibxchange.yaml"))
        paths.append(Path("bibxchange.yaml"))

        return paths

    @staticmethod
    def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
        """Merge multiple configuration dictionaries."""
        result: dict[str, Any] = {}
        for config in configs:
            result = _deep_merge(result, config)
        return result


def get_config_paths() -> list[Path]:
    """Get configuration paths in precedence order."""
    return Config.get_config_paths()


def env_overrides() -> dict[str, Any]:
    """Collect ``BIBXCHANGE_*`` overrides from the environment."""
    overrides: dict[str, Any] = {}
    for name, (section, option, convert) in ENV_OVERRIDES.items():
        raw = os.environ.get(name)
        if raw is None:
            continue
        if convert == "bool":
            value = raw.strip().lower() in TRUE_VALUES
        else:
            try:
                value = convert(raw)
            except ValueError:
                logger.warning(f"Ignoring {name}={raw!r}: not a valid {option}")
                continue
        overrides.setdefault(section, {})[option] = value
    return overrides


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from files and environment variables.

    Default locations are merged in order, so later files win. An explicit
    ``path`` is merged last and its errors propagate.
    """
    config: dict[str, Any] = {}

    for candidate in get_config_paths():
        if candidate.exists():
            try:
                config = Config.merge_configs(config, Config.from_file(candidate))
            except ValueError as e:
                logger.warning(f"Skipping config file {candidate}: {e}")

    if path is not None:
        config = Config.merge_configs(config, Config.from_file(path))

    return Config.merge_configs(config, env_overrides())


def import_options(config: dict[str, Any]) -> ImportOptions:
    """Build import options from the ``import`` section."""
    return ImportOptions.from_mapping(config.get("import"))


def export_options(config: dict[str, Any], **overrides: Any) -> ExportOptions:
    """Build export options from the ``export`` section plus overrides."""
    section = dict(config.get("export") or {})
    section.update({k: v for k, v in overrides.items() if v is not None})
    return ExportOptions.from_mapping(section)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
