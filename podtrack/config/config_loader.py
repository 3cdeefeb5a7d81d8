"""Configuration loader for PodTrack."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import ruamel.yaml

DEFAULT_CONFIG_PATH = "config.yml"


class ConfigLoader:
    """Loads and manages application configuration from YAML files."""

    def __init__(self, config_path: Optional[str] = None) -> None:
        """Initialize the configuration loader.

        Args:
            config_path: Path to the main configuration file. Falls back to
                ``PODTRACK_CONFIG`` and then ``config.yml``.
        """
        self.config_path = Path(
            config_path or os.environ.get("PODTRACK_CONFIG", DEFAULT_CONFIG_PATH)
        )
        self.config: Dict[str, Any] = {}
        self.validated_config = None
        self.validation_error: Optional[Exception] = None
        self.load()

    def load(self) -> None:
        """Load configuration from the YAML file.

        A missing file is not an error: every section then takes its
        validated defaults.
        """
        raw: Dict[str, Any] = {}
        if self.config_path.exists():
            yaml_loader = ruamel.yaml.YAML(typ="safe")
            with open(self.config_path, "r", encoding="utf-8") as f:
                raw = yaml_loader.load(f) or {}

        self.config = dict(raw)
        self._validate_config()

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., "silence.threshold").
            default: Default value if key not found.

        Returns:
            Configuration value or default.
        """
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., "recording.flush_timeout_seconds").
            value: Value to set.
        """
        keys = key.split(".")
        config_ref = self.config

        for k in keys[:-1]:
            if k not in config_ref or not isinstance(config_ref[k], dict):
                config_ref[k] = {}
            config_ref = config_ref[k]

        config_ref[keys[-1]] = value

    def get_all(self) -> Dict[str, Any]:
        """Get the entire configuration dictionary.

        Returns:
            Complete configuration dictionary.
        """
        return self.config.copy()

    def _validate_config(self) -> None:
        """Validate the loaded configuration and fill in section defaults."""
        from .validators import validate_config

        try:
            self.validated_config = validate_config(self.config)
        except Exception as e:
            # Continue with the unvalidated config; the error is logged once
            # the logger is importable.
            self.validated_config = None
            self.validation_error = e
            return

        self.validation_error = None
        self.config = self.validated_config.model_dump()


# Global config instance
config = ConfigLoader()

if config.validation_error is not None:
    from podtrack.utils.logger import setup_logger

    setup_logger(__name__).error(f"Configuration validation failed: {config.validation_error}")
