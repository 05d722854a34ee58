# fleet_dump/G_config/dump_config.py
"""
Dump configuration: Fleet connection settings and output options.

Settings are read from G_config/config.yaml (or an explicit path), then
overridden by environment variables. A ``.env`` file in the current
directory is loaded first, so credentials can stay out of config.yaml.

Usage:
    from fleet_dump.G_config import load_config

    config = load_config()
    print(config.kibana_host, config.output_dir)

Environment overrides:
    ELASTIC_PACKAGE_KIBANA_HOST              -> kibana_host
    ELASTIC_PACKAGE_ELASTICSEARCH_USERNAME   -> username
    ELASTIC_PACKAGE_ELASTICSEARCH_PASSWORD   -> password
    ELASTIC_PACKAGE_ELASTICSEARCH_API_KEY    -> api_key
    ELASTIC_PACKAGE_CA_CERT                  -> ca_cert
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from fleet_dump.A_core.A02_exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

ENV_KIBANA_HOST = "ELASTIC_PACKAGE_KIBANA_HOST"
ENV_USERNAME = "ELASTIC_PACKAGE_ELASTICSEARCH_USERNAME"
ENV_PASSWORD = "ELASTIC_PACKAGE_ELASTICSEARCH_PASSWORD"
ENV_API_KEY = "ELASTIC_PACKAGE_ELASTICSEARCH_API_KEY"
ENV_CA_CERT = "ELASTIC_PACKAGE_CA_CERT"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class DumpConfig:
    """Fleet connection and output settings for one dump run."""

    # Fleet / Kibana connection
    kibana_host: str = "https://127.0.0.1:5601"
    username: Optional[str] = "elastic"
    password: Optional[str] = "changeme"
    api_key: Optional[str] = None
    ca_cert: Optional[Path] = None
    verify_ssl: bool = True
    timeout_seconds: float = 30
    per_page: int = 20

    # Output
    output_dir: Path = Path("package-dump")

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    def __post_init__(self):
        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)
        if isinstance(self.ca_cert, str):
            self.ca_cert = Path(self.ca_cert)
        if isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)
        self.log_level = str(self.log_level).upper()

    def validate(self) -> "DumpConfig":
        """Check value ranges. Returns self for chaining."""
        if not self.kibana_host:
            raise ConfigurationError("Kibana host must be set", config_key="fleet.kibana_host")
        if self.timeout_seconds <= 0:
            raise ConfigurationError(
                "Timeout must be positive",
                config_key="fleet.timeout_seconds",
                actual_value=self.timeout_seconds,
            )
        if self.per_page <= 0:
            raise ConfigurationError(
                "Page size must be positive",
                config_key="fleet.per_page",
                actual_value=self.per_page,
            )
        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level, expected one of {', '.join(VALID_LOG_LEVELS)}",
                config_key="logging.level",
                actual_value=self.log_level,
            )
        return self

    @property
    def numeric_log_level(self) -> int:
        return getattr(logging, self.log_level)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DumpConfig":
        """
        Build configuration from the parsed config.yaml structure.

        Expected sections: ``fleet``, ``dump`` and ``logging``. Missing keys
        keep their defaults.
        """
        fleet = d.get("fleet") or {}
        dump = d.get("dump") or {}
        log_cfg = d.get("logging") or {}

        for section_name, section in (("fleet", fleet), ("dump", dump), ("logging", log_cfg)):
            if not isinstance(section, dict):
                raise ConfigurationError(
                    "Config section must be a mapping",
                    config_key=section_name,
                    actual_value=section,
                )

        defaults = cls()
        return cls(
            kibana_host=str(fleet.get("kibana_host", defaults.kibana_host)).rstrip("/"),
            username=fleet.get("username", defaults.username),
            password=fleet.get("password", defaults.password),
            api_key=fleet.get("api_key", defaults.api_key),
            ca_cert=fleet.get("ca_cert", defaults.ca_cert),
            verify_ssl=bool(fleet.get("verify_ssl", defaults.verify_ssl)),
            timeout_seconds=_as_number(fleet, "timeout_seconds", defaults.timeout_seconds, float),
            per_page=_as_number(fleet, "per_page", defaults.per_page, int),
            output_dir=dump.get("output_dir", defaults.output_dir),
            log_level=log_cfg.get("level", defaults.log_level),
            log_dir=log_cfg.get("directory", defaults.log_dir),
        )

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "DumpConfig":
        """
        Load configuration from a YAML file.

        A missing file is not an error: defaults are used and a warning is
        logged. A file that cannot be parsed raises ConfigurationError.
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH
        config_path = Path(config_path)

        if not config_path.exists():
            logger.warning(f"Config file not found: {config_path}, using defaults")
            return cls()

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                full_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse {config_path}: {e}") from e

        if not isinstance(full_config, dict):
            raise ConfigurationError(
                f"Top level of {config_path} must be a mapping",
                actual_value=type(full_config).__name__,
            )

        return cls.from_dict(full_config)

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> "DumpConfig":
        """Override connection settings from environment variables."""
        env = os.environ if environ is None else environ

        if env.get(ENV_KIBANA_HOST):
            self.kibana_host = env[ENV_KIBANA_HOST].rstrip("/")
        if env.get(ENV_USERNAME):
            self.username = env[ENV_USERNAME]
        if env.get(ENV_PASSWORD):
            self.password = env[ENV_PASSWORD]
        if env.get(ENV_API_KEY):
            self.api_key = env[ENV_API_KEY]
        if env.get(ENV_CA_CERT):
            self.ca_cert = Path(env[ENV_CA_CERT])
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Configuration as a dictionary, secrets masked."""
        return {
            "kibana_host": self.kibana_host,
            "username": self.username,
            "password": "***" if self.password else None,
            "api_key": "***" if self.api_key else None,
            "ca_cert": str(self.ca_cert) if self.ca_cert else None,
            "verify_ssl": self.verify_ssl,
            "timeout_seconds": self.timeout_seconds,
            "per_page": self.per_page,
            "output_dir": str(self.output_dir),
            "log_level": self.log_level,
            "log_dir": str(self.log_dir) if self.log_dir else None,
        }

    def __str__(self) -> str:
        return f"DumpConfig(kibana_host={self.kibana_host}, output_dir={self.output_dir})"


def _as_number(section: Dict[str, Any], key: str, default: Any, cast: type) -> Any:
    value = section.get(key, default)
    # yaml turns `yes`/`no` into booleans
    if isinstance(value, bool):
        raise ConfigurationError("Expected a number", config_key=f"fleet.{key}", actual_value=value)
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            "Expected a number", config_key=f"fleet.{key}", actual_value=value
        ) from e


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    use_dotenv: bool = True,
) -> DumpConfig:
    """
    Load and validate the dump configuration.

    This is the recommended way to get the configuration: config.yaml first,
    then ``.env`` and process environment overrides.

    Args:
        config_path: Optional path to a YAML file. Defaults to G_config/config.yaml.
        environ: Environment mapping to read overrides from. Defaults to os.environ.
        use_dotenv: Load a ``.env`` file into os.environ before reading overrides.

    Example:
        from fleet_dump.G_config import load_config
        config = load_config()
    """
    if use_dotenv and environ is None:
        load_dotenv()
    config = DumpConfig.from_yaml(config_path)
    config.apply_env(environ)
    return config.validate()
