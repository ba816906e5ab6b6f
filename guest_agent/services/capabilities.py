from typing import Optional

from guest_agent.config import Settings, get_settings
from guest_agent.models.cpu import Capabilities
from guest_agent.services.cpu_stats import CPU_MARKER


def detect_capabilities(settings: Optional[Settings] = None) -> Capabilities:
    """
    Probe what the host offers for enhanced measurement.

    Counter based CPU usage needs a readable counter file whose first line
    is the aggregate "cpu" row.
    """
    settings = settings or get_settings()
    try:
        with open(settings.proc_stat_path, "r", encoding="utf-8") as handle:
            first_line = handle.readline()
    except (OSError, UnicodeDecodeError):
        return Capabilities(counters_available=False)

    tokens = first_line.split()
    return Capabilities(counters_available=bool(tokens) and tokens[0] == CPU_MARKER)
