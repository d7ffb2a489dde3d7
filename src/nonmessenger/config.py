"""
NonMessenger - Configuration Management

Settings are read from ~/.nonmessenger/config.toml, layered over built-in
defaults, then overridden by NONMESSENGER_<SECTION>_<KEY> environment
variables (for example NONMESSENGER_LOGGING_LEVEL=DEBUG).

Only presentation and logging settings live here. Cryptographic
parameters are constants because they are part of the compatibility
contract between peers.

Author: NonMessenger Team
Version: 1.0.0
"""

import copy
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .constants import (
    CONFIG_FILENAME,
    DEFAULT_DATA_DIR,
    QR_BORDER,
    QR_BOX_SIZE,
    QR_ERROR_CORRECTION,
)
from .errors import ConfigError, ErrorCode

ENV_PREFIX = "NONMESSENGER"
TRUE_VALUES = ("true", "1", "yes", "on")

DEFAULT_CONFIG: Dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "file_logging": False,
        "console_logging": True,
    },
    "qr": {
        "error_correction": QR_ERROR_CORRECTION,
        "box_size": QR_BOX_SIZE,
        "border": QR_BORDER,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return base with override merged in, recursing into nested tables."""
    merged = dict(base)
    for name, value in override.items():
        current = merged.get(name)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[name] = _deep_merge(current, value)
        else:
            merged[name] = value
    return merged


def _coerce(raw: str, template: Any) -> Any:
    """Convert an environment string to the type of the default it replaces."""
    if isinstance(template, bool):
        return raw.strip().lower() in TRUE_VALUES
    if isinstance(template, int):
        return int(raw)
    if isinstance(template, float):
        return float(raw)
    return raw


def _toml_value(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return None


def _dump_toml(out: TextIO, data: Dict[str, Any]) -> None:
    """Write one level of [section] tables; unsupported values are skipped."""
    for section, table in data.items():
        if not isinstance(table, dict):
            continue
        out.write(f"[{section}]\n")
        for name, value in table.items():
            rendered = _toml_value(value)
            if rendered is not None:
                out.write(f"{name} = {rendered}\n")
        out.write("\n")


class Config:
    """Configuration manager for NonMessenger.

    Attributes:
        config_path: Path to the configuration file
        data: Effective settings (defaults, then file, then environment)
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Load settings.

        Args:
            config_path: Configuration file; defaults to ~/.nonmessenger/config.toml
        """
        if config_path is None:
            config_path = Path(DEFAULT_DATA_DIR).expanduser() / CONFIG_FILENAME

        self.config_path = Path(config_path)
        self.data = self._apply_env_overrides(_deep_merge(copy.deepcopy(DEFAULT_CONFIG), self._read_file()))

    def _read_file(self) -> Dict[str, Any]:
        """Parse the TOML file, or return an empty table if it does not exist.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, "rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigError(
                ErrorCode.E701_CONFIG_LOAD_FAILED,
                f"Failed to read configuration file: {e}",
                {"path": str(self.config_path), "error": str(e)},
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(
                ErrorCode.E704_CONFIG_PARSE_ERROR,
                f"Failed to parse configuration file: {e}",
                {"path": str(self.config_path), "error": str(e)},
            ) from e

    @staticmethod
    def _apply_env_overrides(settings: Dict[str, Any]) -> Dict[str, Any]:
        """Override known keys from NONMESSENGER_<SECTION>_<KEY> variables.

        Raises:
            ConfigError: If a variable does not convert to the setting's type
        """
        result = copy.deepcopy(settings)
        for section, table in settings.items():
            if not isinstance(table, dict):
                continue
            for name, current in table.items():
                variable = f"{ENV_PREFIX}_{section.upper()}_{name.upper()}"
                raw = os.environ.get(variable)
                if raw is None:
                    continue
                try:
                    result[section][name] = _coerce(raw, current)
                except ValueError as e:
                    raise ConfigError(
                        ErrorCode.E703_INVALID_CONFIG,
                        f"Invalid value for {variable}: {raw!r}",
                        {"variable": variable, "error": str(e)},
                    ) from e
        return result

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Return a setting, or ``default`` when the section or key is absent."""
        return self.data.get(section, {}).get(key, default)

    def set(self, section: str, key: str, value: Any) -> None:
        """Change a setting in memory; call save() to persist it."""
        self.data.setdefault(section, {})[key] = value

    def save(self) -> None:
        """Write the current settings to config_path.

        Raises:
            ConfigError: If saving fails
        """
        self._write(self.config_path, self.data)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.data)

    @classmethod
    def create_example(cls, path: Path) -> None:
        """Write a commented configuration file holding the defaults.

        Raises:
            ConfigError: If file creation fails
        """
        header = "# NonMessenger Configuration File\n# Generated example configuration\n\n"
        cls._write(Path(path), DEFAULT_CONFIG, header)

    @staticmethod
    def _write(path: Path, data: Dict[str, Any], header: str = "") -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(header)
                _dump_toml(f, data)
        except OSError as e:
            raise ConfigError(
                ErrorCode.E702_CONFIG_SAVE_FAILED,
                f"Failed to save configuration: {e}",
                {"path": str(path), "error": str(e)},
            ) from e
