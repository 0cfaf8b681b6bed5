"""Configuration for the device simulator server.

This module defines the SimulatorConfig dataclass and its loaders. Values
come from defaults, a YAML mapping, ``SHELLY_SIM_*`` environment variables
and finally command line flags, in increasing priority.

Example:
    >>> config = SimulatorConfig.from_env()
    >>> config.port = 8081
    >>> config.validate()
"""

import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

from shellysim.server.exceptions import ConfigError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")

ENV_PREFIX = "SHELLY_SIM_"

_TRUE_STRINGS = ("1", "true", "yes", "on")


@dataclass
class SimulatorConfig:
    """Device simulator configuration.

    Attributes:
        host: Listener bind address.
        port: Listener port; 0 picks an ephemeral port.
        fixtures_path: Path of the fixture file to load (CLI only).
        log_level: Logging level name.
        log_format: Log output format, "text" or "json".
        enable_metrics: Serve Prometheus metrics on ``/metrics``.
        request_log: Log every request at INFO instead of DEBUG.

    Example:
        >>> config = SimulatorConfig(port=8081, log_format="json")
        >>> config.validate()
    """

    host: str = "127.0.0.1"
    port: int = 0
    fixtures_path: Optional[str] = None
    log_level: str = "INFO"
    log_format: str = "text"
    enable_metrics: bool = True
    request_log: bool = False

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigError: If configuration is invalid.
        """
        if not isinstance(self.port, int) or self.port < 0 or self.port > 65535:
            raise ConfigError(f"Invalid port number: {self.port}")

        if not self.host:
            raise ConfigError("Host must not be empty")

        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Invalid log_level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ConfigError(f"Invalid log_format: {self.log_format}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SimulatorConfig":
        """Create configuration from a mapping, e.g. a parsed YAML file.

        Accepts either a flat mapping or one nested under a ``simulator``
        key. Unknown keys are rejected.

        Raises:
            ConfigError: If a key is unknown or a value has the wrong type.
        """
        if "simulator" in data and isinstance(data["simulator"], Mapping):
            data = data["simulator"]

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        config = cls()
        for key, value in data.items():
            config.apply(key, value)
        return config

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SimulatorConfig":
        """Create configuration from ``SHELLY_SIM_*`` environment variables.

        Args:
            environ: Environment mapping. Defaults to ``os.environ``.
        """
        env = os.environ if environ is None else environ
        config = cls()
        for f in fields(cls):
            name = "FIXTURES" if f.name == "fixtures_path" else f.name.upper()
            value = env.get(ENV_PREFIX + name)
            if value is not None and value != "":
                config.apply(f.name, value)
        return config

    def apply(self, key: str, value: Any) -> None:
        """Set one field, converting strings to the field's type.

        Raises:
            ConfigError: If the value cannot be converted.
        """
        if key == "port":
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise ConfigError(f"Invalid {key}: {value!r}") from None
        elif key in ("enable_metrics", "request_log"):
            if isinstance(value, str):
                value = value.strip().lower() in _TRUE_STRINGS
            elif not isinstance(value, bool):
                raise ConfigError(f"Invalid {key}: {value!r}")
        elif value is not None:
            value = str(value)
        setattr(self, key, value)

    def merge(self, overrides: Dict[str, Any]) -> "SimulatorConfig":
        """Apply non-None overrides (e.g. CLI flags) and return self."""
        for key, value in overrides.items():
            if value is not None:
                self.apply(key, value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
