# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""
Configuration class for OpenGuard.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

from ..core.exceptions import ConfigurationError
from ..core.models import Severity
from .constants import OpenGuardConstants

logger = logging.getLogger(__name__)

# Environment variable -> Config field
_ENV_FIELDS = {
    "OPENGUARD_RULES_DIR": "rules_dir",
    "OPENGUARD_OVERRIDE_RULES_DIR": "override_rules_dir",
    "OPENGUARD_MAX_FILE_SIZE_BYTES": "max_file_size_bytes",
    "OPENGUARD_WORKERS": "max_workers",
    "OPENGUARD_POLICY_SEVERITY_THRESHOLD": "policy_severity_threshold",
    "OPENGUARD_LOG_LEVEL": "log_level",
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """
    Configuration for OpenGuard scans.

    Explicit arguments win. Fields left at their defaults are filled from
    ``OPENGUARD_*`` environment variables.
    """

    # Rule catalogs
    rules_dir: Path = OpenGuardConstants.RULES_DIR
    override_rules_dir: Path | None = None

    # Discovery
    max_file_size_bytes: int = OpenGuardConstants.DEFAULT_MAX_FILE_SIZE_BYTES

    # Rule evaluation worker pool (1 = serial)
    max_workers: int = 1

    # Policy inference
    policy_severity_threshold: str = OpenGuardConstants.DEFAULT_POLICY_SEVERITY_THRESHOLD

    # Output Options
    log_level: str = "WARNING"

    def __post_init__(self):
        """Load configuration from environment variables if not provided."""
        defaults = Config.__dataclass_fields__
        env = {key: value for key, value in os.environ.items() if key in _ENV_FIELDS}
        for key, value in env.items():
            name = _ENV_FIELDS[key]
            if getattr(self, name) == defaults[name].default:
                self._set(name, value)
        self._normalize()

    def _set(self, name: str, value: str) -> None:
        if name in ("rules_dir", "override_rules_dir"):
            setattr(self, name, Path(value) if value else None)
        elif name in ("max_file_size_bytes", "max_workers"):
            try:
                setattr(self, name, int(value))
            except ValueError:
                raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None
        else:
            setattr(self, name, value)

    def _normalize(self) -> None:
        if self.rules_dir is None:
            self.rules_dir = OpenGuardConstants.RULES_DIR
        self.rules_dir = Path(self.rules_dir)
        if self.override_rules_dir is not None:
            self.override_rules_dir = Path(self.override_rules_dir)

        if self.max_file_size_bytes <= 0:
            raise ConfigurationError("max_file_size_bytes must be positive")
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")

        self.policy_severity_threshold = self.policy_severity_threshold.lower()
        if self.policy_severity_threshold not in {s.value for s in Severity}:
            raise ConfigurationError(
                f"policy_severity_threshold must be one of "
                f"{', '.join(s.value for s in Severity)}, got {self.policy_severity_threshold!r}"
            )

        self.log_level = self.log_level.upper()
        if self.log_level not in _LOG_LEVELS:
            raise ConfigurationError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")

    @property
    def severity_threshold(self) -> Severity:
        """The policy severity threshold as a ``Severity``."""
        return Severity(self.policy_severity_threshold)

    def validate_paths(self) -> None:
        """Check that configured rule directories exist."""
        if not self.rules_dir.is_dir():
            raise ConfigurationError(f"Rules directory not found: {self.rules_dir}")
        if self.override_rules_dir is not None and not self.override_rules_dir.is_dir():
            raise ConfigurationError(f"Override rules directory not found: {self.override_rules_dir}")

    def apply(self, values: Mapping[str, str | None]) -> None:
        """Apply ``OPENGUARD_*`` keyed values over the current settings."""
        for key, value in values.items():
            if key in _ENV_FIELDS and value is not None:
                self._set(_ENV_FIELDS[key], value)
        self._normalize()

    @classmethod
    def from_env(cls) -> Config:
        """
        Create configuration from environment variables.

        Returns:
            Config instance with values from environment
        """
        return cls()

    @classmethod
    def from_file(cls, config_file: Path) -> Config:
        """
        Load configuration from a .env file.

        Values in the file apply over the defaults; variables already set in
        the process environment take precedence over the file.

        Args:
            config_file: Path to .env file

        Returns:
            Config instance
        """
        config = cls.from_env()
        config_file = Path(config_file)
        if not config_file.exists():
            logger.debug("Config file %s not found, using environment only", config_file)
            return config

        values = dotenv_values(config_file)
        config.apply({key: value for key, value in values.items() if key not in os.environ})
        return config
