"""YAML and environment configuration loading for the worker.

Configuration file structure (every field optional):
    output_dir: ./notemark-output
    max_attempts: 3
    base_delay_seconds: 1.0
    max_delay_seconds: 60.0
    processing_timeout_seconds: 30.0
    batch_size: 10
    dead_letter_prefix: dead-letter-queue
    include_front_matter: true
"""

import dataclasses
import logging
import os
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError, ConfigFilesystemError
from .models import WorkerConfig

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads, validates and saves WorkerConfig."""

    # Fields that must be integers >= 1
    POSITIVE_INT_FIELDS = ("max_attempts", "batch_size")

    # Fields that must be numbers; timeout must also be > 0
    NON_NEGATIVE_FLOAT_FIELDS = ("base_delay_seconds", "max_delay_seconds")
    POSITIVE_FLOAT_FIELDS = ("processing_timeout_seconds",)

    NON_EMPTY_STR_FIELDS = ("output_dir", "dead_letter_prefix")
    BOOL_FIELDS = ("include_front_matter",)

    # Environment variable overrides
    ENV_VARS = {
        "NOTEMARK_OUTPUT_DIR": "output_dir",
        "NOTEMARK_MAX_ATTEMPTS": "max_attempts",
        "NOTEMARK_BASE_DELAY_SECONDS": "base_delay_seconds",
        "NOTEMARK_MAX_DELAY_SECONDS": "max_delay_seconds",
        "NOTEMARK_PROCESSING_TIMEOUT_SECONDS": "processing_timeout_seconds",
        "NOTEMARK_BATCH_SIZE": "batch_size",
    }

    @classmethod
    def load(cls, config_path: str) -> WorkerConfig:
        """Load and validate configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            WorkerConfig with file values over defaults

        Raises:
            ConfigFilesystemError: If the file cannot be read
            ConfigError: If the configuration is invalid or malformed
        """
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            raise ConfigFilesystemError(config_path, "read", "Configuration file not found")
        except PermissionError:
            raise ConfigFilesystemError(config_path, "read", "Permission denied")
        except OSError as e:
            raise ConfigFilesystemError(config_path, "read", str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        # An empty file means all defaults
        if config_dict is None:
            config_dict = {}

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        config = cls.from_dict(config_dict)
        logger.debug(f"Loaded configuration from {config_path}")
        return config

    @classmethod
    def save(cls, config_path: str, config: WorkerConfig) -> None:
        """Save configuration to a YAML file.

        Raises:
            ConfigFilesystemError: If the file cannot be written
        """
        yaml_str = yaml.safe_dump(
            dataclasses.asdict(config),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )

        config_dir = os.path.dirname(config_path)
        if config_dir:
            try:
                os.makedirs(config_dir, exist_ok=True)
            except OSError as e:
                raise ConfigFilesystemError(config_dir, "create_directory", str(e))

        try:
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(yaml_str)
        except PermissionError:
            raise ConfigFilesystemError(config_path, "write", "Permission denied")
        except OSError as e:
            raise ConfigFilesystemError(config_path, "write", str(e))

    @classmethod
    def from_env(
        cls,
        base: Optional[WorkerConfig] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> WorkerConfig:
        """Overlay NOTEMARK_* environment variables on a configuration.

        A ``.env`` file in the working directory is loaded first (existing
        environment variables take precedence over it).

        Args:
            base: Configuration to start from (defaults if None)
            environ: Environment mapping to read instead of os.environ

        Returns:
            New WorkerConfig with environment overrides applied

        Raises:
            ConfigError: If an environment value is invalid
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        values = dataclasses.asdict(base or WorkerConfig())
        for env_var, field_name in cls.ENV_VARS.items():
            raw = environ.get(env_var)
            if raw is None or raw == "":
                continue
            values[field_name] = cls._coerce_env_value(env_var, field_name, raw)
            logger.debug(f"Using {env_var} for {field_name}")

        return cls.from_dict(values)

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> WorkerConfig:
        """Validate a configuration mapping.

        Raises:
            ConfigError: If a field is unknown or has an invalid value
        """
        known_fields = {f.name for f in dataclasses.fields(WorkerConfig)}
        unknown = set(config_dict) - known_fields
        if unknown:
            raise ConfigError(f"Unknown fields: {', '.join(sorted(map(str, unknown)))}")

        values: Dict[str, Any] = dataclasses.asdict(WorkerConfig())
        values.update(config_dict)

        for name in cls.POSITIVE_INT_FIELDS:
            value = values[name]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"must be an integer, got {value!r}", name)
            if value < 1:
                raise ConfigError(f"must be at least 1, got {value}", name)

        for name in cls.NON_NEGATIVE_FLOAT_FIELDS + cls.POSITIVE_FLOAT_FIELDS:
            value = values[name]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"must be a number, got {value!r}", name)
            if value < 0:
                raise ConfigError(f"must not be negative, got {value}", name)
            if name in cls.POSITIVE_FLOAT_FIELDS and value == 0:
                raise ConfigError("must be greater than 0", name)
            values[name] = float(value)

        for name in cls.NON_EMPTY_STR_FIELDS:
            value = values[name]
            if not isinstance(value, str) or not value.strip():
                raise ConfigError("must be a non-empty string", name)

        for name in cls.BOOL_FIELDS:
            if not isinstance(values[name], bool):
                raise ConfigError(f"must be true or false, got {values[name]!r}", name)

        if values["max_delay_seconds"] < values["base_delay_seconds"]:
            raise ConfigError(
                "must not be smaller than base_delay_seconds", "max_delay_seconds"
            )

        return WorkerConfig(**values)

    @classmethod
    def _coerce_env_value(cls, env_var: str, field_name: str, raw: str) -> Any:
        if field_name in cls.POSITIVE_INT_FIELDS:
            try:
                return int(raw)
            except ValueError:
                raise ConfigError(f"{env_var} must be an integer, got {raw!r}", field_name)
        if field_name in cls.NON_NEGATIVE_FLOAT_FIELDS + cls.POSITIVE_FLOAT_FIELDS:
            try:
                return float(raw)
            except ValueError:
                raise ConfigError(f"{env_var} must be a number, got {raw!r}", field_name)
        return raw
