"""
Runtime settings read from the environment.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("console", "json")


@dataclass
class Settings:
    log_level: str = "INFO"
    log_format: str = "console"
    pool_capacity: Optional[int] = None

    def __post_init__(self):
        self.log_level = self.log_level.upper()
        self.log_format = self.log_format.lower()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")
        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Invalid log format: {self.log_format}")
        if self.pool_capacity is not None and self.pool_capacity <= 0:
            raise ValueError(f"Invalid pool capacity: {self.pool_capacity}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from INSNCTX_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Settings with defaults for every unset variable
        """
        env = os.environ if environ is None else environ
        capacity = env.get("INSNCTX_POOL_CAPACITY")
        return cls(
            log_level=env.get("INSNCTX_LOG_LEVEL", "INFO"),
            log_format=env.get("INSNCTX_LOG_FORMAT", "console"),
            pool_capacity=int(capacity) if capacity else None,
        )
