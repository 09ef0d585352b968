"""Configuration loading.

Defaults are overridden by ~/.azdelete/config.yaml (or $AZDELETE_CONFIG), then
by environment variables, then by CLI options.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from azdelete.deletion.confirmation import DEFAULT_CONFIRMATION_TOKEN
from azdelete.deletion.deleter import MAX_RETRIES, MIN_RETRIES

DEFAULT_CONFIG_PATH = Path.home() / ".azdelete" / "config.yaml"

ENV_OVERRIDES = {
    "AZURE_SUBSCRIPTION_ID": "subscription_id",
    "AZDELETE_LOG_LEVEL": "log_level",
    "AZDELETE_LOG_DIR": "log_dir",
    "AZDELETE_AUDIT_DIR": "audit_dir",
    "AZDELETE_MAX_RETRIES": "max_retries",
}

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(Exception):
    """Raised when configuration values are invalid."""


@dataclass
class Config:
    """Tool configuration.

    Attributes:
        subscription_id: Subscription to operate on (default: first enabled)
        log_level: Python log level name
        log_dir: Directory for audit log files
        audit_dir: Directory for YAML run records (default: ~/.azdelete/audit-logs)
        max_retries: Maximum delete attempts per resource (1-10)
        settle_seconds: Wait between delete and verification
        backoff_unit_seconds: Seconds per backoff time unit
        confirmation_token: Literal the operator types to start a batch
    """

    subscription_id: Optional[str] = None
    log_level: str = "INFO"
    log_dir: str = "logs"
    audit_dir: Optional[str] = None
    max_retries: int = 3
    settle_seconds: float = 5.0
    backoff_unit_seconds: float = 1.0
    confirmation_token: str = DEFAULT_CONFIRMATION_TOKEN

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> Config:
        """Load configuration from file and environment.

        Args:
            config_path: Path to YAML config file (default: $AZDELETE_CONFIG or ~/.azdelete/config.yaml)

        Returns:
            Validated Config

        Raises:
            ConfigError: If the file is malformed or a value is invalid
        """
        path = Path(config_path or os.environ.get("AZDELETE_CONFIG") or DEFAULT_CONFIG_PATH)
        values: dict = {}

        if path.exists():
            try:
                with open(path, "r") as f:
                    loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid config file {path}: {e}") from e

            if not isinstance(loaded, dict):
                raise ConfigError(f"Config file {path} must contain a mapping")

            known = {f.name for f in fields(cls)}
            unknown = set(loaded) - known
            if unknown:
                raise ConfigError(f"Unknown config keys in {path}: {', '.join(sorted(unknown))}")
            values.update(loaded)

        for env_var, key in ENV_OVERRIDES.items():
            if os.environ.get(env_var):
                values[key] = os.environ[env_var]

        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> None:
        """Coerce and validate values.

        Raises:
            ConfigError: If any value is invalid
        """
        try:
            self.max_retries = int(self.max_retries)
            self.settle_seconds = float(self.settle_seconds)
            self.backoff_unit_seconds = float(self.backoff_unit_seconds)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric config value: {e}") from e

        if not MIN_RETRIES <= self.max_retries <= MAX_RETRIES:
            raise ConfigError(f"max_retries must be between {MIN_RETRIES} and {MAX_RETRIES}")

        if self.settle_seconds < 0 or self.backoff_unit_seconds < 0:
            raise ConfigError("Wait durations cannot be negative")

        self.log_level = str(self.log_level).upper()
        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigError(f"Invalid log_level: {self.log_level}")

        # YAML loads bare numbers as int; typed responses are always str
        if self.confirmation_token is None or not str(self.confirmation_token).strip():
            raise ConfigError("confirmation_token cannot be empty")
        self.confirmation_token = str(self.confirmation_token)
