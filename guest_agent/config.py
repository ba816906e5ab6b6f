from pydantic import BaseModel, Field, field_validator
import logging
import os
import tempfile
from functools import lru_cache

VERSION = "1.0.0"

# Polling UIs refresh faster than this, so a stored sample younger than the
# threshold is a usable baseline.
DEFAULT_FRESHNESS_SECONDS = 30.0

# Cold-start wait between the two /proc/stat samples.
DEFAULT_SAMPLE_INTERVAL_SECONDS = 1.0


class Settings(BaseModel):
    # CPU usage baseline
    state_dir: str = Field(
        default_factory=tempfile.gettempdir,
        description="Directory holding the per-user CPU sample files",
    )
    state_prefix: str = Field(
        default="pvy_cpu_stats",
        description="File name prefix of the CPU sample files, suffixed with _<uid>",
    )
    proc_stat_path: str = Field(
        default="/proc/stat",
        description="Kernel CPU counter file, first line is the aggregate row",
    )
    freshness_seconds: float = Field(
        default=DEFAULT_FRESHNESS_SECONDS,
        gt=0,
        description="Maximum age of a stored sample still used for a cheap delta",
    )
    sample_interval_seconds: float = Field(
        default=DEFAULT_SAMPLE_INTERVAL_SECONDS,
        ge=0,
        description="Wait between the two samples when no fresh state exists",
    )

    # Diagnostics (stderr)
    log_level: str = Field(
        default="WARNING",
        description="Level of the diagnostic stream, e.g. DEBUG or INFO",
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @classmethod
    def from_env(cls) -> "Settings":
        values = {
            "state_dir": os.getenv("GUEST_AGENT_STATE_DIR"),
            "state_prefix": os.getenv("GUEST_AGENT_STATE_PREFIX"),
            "proc_stat_path": os.getenv("GUEST_AGENT_PROC_STAT"),
            "freshness_seconds": os.getenv("GUEST_AGENT_FRESHNESS_SECONDS"),
            "sample_interval_seconds": os.getenv("GUEST_AGENT_SAMPLE_INTERVAL"),
            "log_level": os.getenv("GUEST_AGENT_LOG_LEVEL"),
        }
        # Unset or empty variables keep the field default
        return cls(**{key: value for key, value in values.items() if value})


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()

