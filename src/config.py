import logging
import os
from dataclasses import dataclass

LOG_LEVEL_ENV = "TOY_PAYMENTS_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class EngineConfig:
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build config from environment variables, ignoring unknown values."""
        level = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            level = DEFAULT_LOG_LEVEL
        return cls(log_level=level)
