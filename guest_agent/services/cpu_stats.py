import logging
from typing import List

from guest_agent.models.cpu import CpuSample

logger = logging.getLogger(__name__)

# Marker token of the aggregate row in /proc/stat and in the state file
CPU_MARKER = "cpu"

# Order of the counters after the marker, as the kernel prints them.
# The state file stores the first eight of them in the same order.
_COUNTER_FIELDS: List[str] = [
    "user",
    "nice",
    "system",
    "idle",
    "iowait",
    "irq",
    "softirq",
    "steal",
    "guest",
    "guest_nice",
]

STATE_FIELDS = _COUNTER_FIELDS[:8]


def _parse_counter(token: str) -> int:
    try:
        value = int(token)
    except ValueError:
        return 0
    return value if value >= 0 else 0


def parse_cpu_line(line: str) -> CpuSample:
    """
    Parse an aggregate counter row into a CpuSample.

    Accepts both the kernel format ("cpu  4705 356 584 ...") and the state
    file format written by format_state_line. The first token is the marker
    and is not checked. Missing or malformed counters become 0, so this
    never raises.
    """
    tokens = line.split()[1:]
    values = {}
    for index, name in enumerate(_COUNTER_FIELDS):
        values[name] = _parse_counter(tokens[index]) if index < len(tokens) else 0
    return CpuSample(**values)


def read_cpu_sample(path: str = "/proc/stat") -> CpuSample:
    """
    Capture the aggregate counter row from the kernel.

    Sandboxed environments without /proc yield an all-zero sample, which the
    estimator turns into 0.0 percent.
    """
    try:
        with open(path, "r", encoding="utf-8") as handle:
            line = handle.readline()
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("CPU counters unavailable at %s: %s", path, exc)
        return CpuSample.zero()

    return parse_cpu_line(line)


def format_state_line(sample: CpuSample) -> str:
    counters = " ".join(str(getattr(sample, name)) for name in STATE_FIELDS)
    return f"{CPU_MARKER} {counters}\n"
