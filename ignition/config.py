"""
Config system - run configuration for the service scheduler.

A run is configured by a mapping of service declarations plus the
startup and shutdown timeouts (milliseconds). ``ConfigLoader`` builds
that mapping from several sources, merged with precedence:
overrides > environment variables > .env file > config file > defaults
"""

from typing import Any, Dict, Mapping, Optional
from dataclasses import dataclass, field
from pathlib import Path
import json
import os

import yaml
from dotenv import dotenv_values

from .faults import ConfigInvalidFault, ConfigMissingFault
from .options import deep_merge


DEFAULT_STARTUP_TIMEOUT = 5000
DEFAULT_SHUTDOWN_TIMEOUT = 5000


def _timeout(key: str, value: Any, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigInvalidFault(key, f"expected milliseconds as a number, got {value!r}")
    if value <= 0:
        raise ConfigInvalidFault(key, f"must be positive, got {value!r}")
    return value


@dataclass
class IgnitionConfig:
    """
    Run configuration.

    Attributes:
        services: Service name -> declaration (mapping or ServiceSpec)
        startup_timeout: Per-service activation timeout in milliseconds
        shutdown_timeout: Global teardown timeout in milliseconds
        base_path: Directory that relative service paths are resolved against
    """

    services: Dict[str, Any] = field(default_factory=dict)
    startup_timeout: float = DEFAULT_STARTUP_TIMEOUT
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT
    base_path: str = "."

    def __post_init__(self):
        if self.services is None:
            self.services = {}
        if not isinstance(self.services, Mapping):
            raise ConfigInvalidFault("services", "expected a mapping of service name to declaration")
        self.startup_timeout = _timeout("startup_timeout", self.startup_timeout, DEFAULT_STARTUP_TIMEOUT)
        self.shutdown_timeout = _timeout("shutdown_timeout", self.shutdown_timeout, DEFAULT_SHUTDOWN_TIMEOUT)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "IgnitionConfig":
        """Build config from a plain mapping; unknown top-level keys are ignored."""
        if isinstance(data, IgnitionConfig):
            return data

        data = data or {}
        return cls(
            services=data.get("services") or {},
            startup_timeout=data.get("startup_timeout"),
            shutdown_timeout=data.get("shutdown_timeout"),
            base_path=data.get("base_path") or ".",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "services": dict(self.services),
            "startup_timeout": self.startup_timeout,
            "shutdown_timeout": self.shutdown_timeout,
            "base_path": self.base_path,
        }


class ConfigLoader:
    """
    Loads and merges run configuration from multiple sources.

    Environment variables use a prefix and double underscores for nesting:
    ``IGN_STARTUP_TIMEOUT=2000`` sets ``startup_timeout`` and
    ``IGN_SERVICES__DB__OPTIONS__HOST=db.local`` sets
    ``services.db.options.host``.
    """

    def __init__(self, env_prefix: str = "IGN_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        path: Optional[str] = None,
        env_file: Optional[str] = None,
        env_prefix: str = "IGN_",
        overrides: Optional[Dict[str, Any]] = None,
    ) -> IgnitionConfig:
        """
        Load configuration from all sources.

        Merge order (later overrides earlier):
        1. Config file (YAML or JSON)
        2. .env file
        3. Environment variables
        4. Manual overrides

        Relative ``base_path`` values are resolved against the config
        file's directory (the directory itself when none is given).

        Raises:
            ConfigMissingFault: If ``path`` or ``env_file`` does not exist
            ConfigInvalidFault: If a source cannot be parsed or validated
        """
        loader = cls(env_prefix=env_prefix)

        config_dir = Path(".")
        if path:
            config_path = Path(path)
            loader._load_file(config_path)
            config_dir = config_path.parent

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader.config_data = deep_merge(loader.config_data, overrides)

        base_path = Path(loader.config_data.get("base_path") or ".")
        if not base_path.is_absolute():
            base_path = config_dir / base_path
        loader.config_data["base_path"] = os.path.normpath(str(base_path))

        return IgnitionConfig.from_mapping(loader.config_data)

    def _load_file(self, path: Path):
        """Load config from YAML or JSON file."""
        if not path.exists():
            raise ConfigMissingFault(str(path))

        try:
            with open(path) as f:
                if path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                elif path.suffix == ".json":
                    data = json.load(f)
                else:
                    raise ConfigInvalidFault(str(path), f"unsupported config format '{path.suffix}'")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigInvalidFault(str(path), str(e)) from e

        if data is None:
            return
        if not isinstance(data, dict):
            raise ConfigInvalidFault(str(path), "top level must be a mapping")

        self.config_data = deep_merge(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        if not Path(path).exists():
            raise ConfigMissingFault(path)

        for key, value in dotenv_values(path).items():
            if key.startswith(self.env_prefix) and value is not None:
                self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert IGN_SERVICES__DB__IGNORE to a nested dict entry."""
        key = key[len(self.env_prefix):]
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    @staticmethod
    def _parse_value(value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value
