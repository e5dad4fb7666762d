"""
Config system - Layered fault handling configuration.

Merge precedence (later overrides earlier):
defaults < config files (YAML/JSON) < .env file < environment variables < overrides
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional
import json
import os

import yaml
from dotenv import dotenv_values

from .core import Severity


ENV_PREFIX = "FAULTLINE_"


class ConfigError(Exception):
    """Raised when configuration validation fails."""
    pass


@dataclass
class FaultsConfig:
    """
    Fault dispatcher settings.

    Attributes:
        display_errors: Register the display handler as a callback
        display_priority: Priority of the display callback
        error_reporting: Severity mask of recoverable faults escalated to exceptions
        log_faults: Register a LoggingHandler as a callback
        log_priority: Priority of the logging callback
        logger_name: Root name of the dispatcher's loggers
        trace_depth: Nesting cap for exception arguments in reconstructed traces
    """

    display_errors: bool = False
    display_priority: int = 10
    error_reporting: int = 0
    log_faults: bool = False
    log_priority: int = 100
    logger_name: str = "faultline"
    trace_depth: int = 5

    def __post_init__(self):
        for name in ("display_priority", "error_reporting", "log_priority", "trace_depth"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
        for name in ("display_errors", "log_faults"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be a boolean, got {getattr(self, name)!r}")
        if self.trace_depth < 0:
            raise ConfigError(f"trace_depth must not be negative, got {self.trace_depth}")
        if not self.logger_name:
            raise ConfigError("logger_name must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def parse_severity_mask(text: str) -> int:
    """
    Parse a severity mask such as ``"WARNING|USER_WARNING"`` or ``"ALL"``.

    Names are case-insensitive; plain integers are accepted as terms.
    """
    mask = 0
    for term in text.split("|"):
        term = term.strip()
        if not term:
            continue
        if term.upper() in Severity.__members__:
            mask |= Severity[term.upper()]
            continue
        try:
            mask |= int(term, 0) if not term.isdigit() else int(term)
        except ValueError:
            raise ConfigError(f"Unknown severity in mask: {term!r}") from None
    return mask


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > config files > defaults
    """

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[list[str]] = None,
        env_prefix: str = ENV_PREFIX,
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from all sources.

        Args:
            paths: Config file paths (glob patterns supported)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        from glob import glob

        for path_str in sorted(glob(pattern)):
            path = Path(path_str)

            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)
            else:
                raise ConfigError(f"Unsupported config file type: {path}")

    def _load_json_file(self, path: Path):
        """Load config from JSON file."""
        with open(path) as f:
            data = json.load(f)
            self._merge_section(data, path)

    def _load_yaml_file(self, path: Path):
        """Load config from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
            if data:
                self._merge_section(data, path)

    def _merge_section(self, data: Any, path: Path):
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        # Files may nest settings under a "faults" key.
        section = data.get("faults", data)
        self._merge_dict(self.config_data, section)

    def _load_env_file(self, path: str):
        """Load config from .env file."""
        if not Path(path).exists():
            return

        for key, value in dotenv_values(path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert FAULTLINE_SECTION__KEY to nested dict."""
        key = key[len(self.env_prefix):]
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off", ""):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value, 0)
        except ValueError:
            pass

        # int(..., 0) rejects zero-padded decimals such as "010".
        try:
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def to_faults_config(self) -> FaultsConfig:
        """
        Build a validated FaultsConfig from the merged data.

        Unknown keys are ignored. Flags given as integers (``1``/``0``) are
        accepted for boolean fields.

        Raises:
            ConfigError: If a value has the wrong type
        """
        kwargs: Dict[str, Any] = {}
        for f in fields(FaultsConfig):
            if f.name not in self.config_data:
                continue
            value = self.config_data[f.name]
            if f.type in (bool, "bool") and isinstance(value, int) and value in (0, 1):
                value = bool(value)
            if f.name == "error_reporting" and isinstance(value, str):
                value = parse_severity_mask(value)
            kwargs[f.name] = value
        return FaultsConfig(**kwargs)


def load_config(
    paths: Optional[list[str]] = None,
    env_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    env_prefix: str = ENV_PREFIX,
) -> FaultsConfig:
    """Load a FaultsConfig from files, .env, environment and overrides."""
    return ConfigLoader.load(
        paths=paths,
        env_prefix=env_prefix,
        env_file=env_file,
        overrides=overrides,
    ).to_faults_config()
