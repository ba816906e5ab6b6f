import logging
import time
from functools import partial
from typing import Callable, Optional

from guest_agent.config import (
    DEFAULT_FRESHNESS_SECONDS,
    DEFAULT_SAMPLE_INTERVAL_SECONDS,
    Settings,
    get_settings,
)
from guest_agent.models.cpu import CpuSample
from guest_agent.services.cpu_stats import read_cpu_sample
from guest_agent.services.state_store import FileStateStore, StateStore, current_identity

logger = logging.getLogger(__name__)


def compute_utilization(previous: CpuSample, current: CpuSample) -> float:
    """
    Derive the busy share of CPU time between two samples, in percent.

    Returns 0.0 when no active time elapsed (identical samples, counter
    reset) and when the idle counters went back far enough to make the
    window empty. The result is rounded to one decimal and stays within
    0.0 to 100.0.
    """
    total_delta = current.active - previous.active
    idle_delta = current.idle_total - previous.idle_total

    if total_delta <= 0:
        return 0.0

    window = total_delta + idle_delta
    if window <= 0:
        return 0.0

    return round(min(total_delta / window * 100, 100.0), 1)


def format_utilization(value: float) -> str:
    return f"{value:.1f}"


class CpuUsageEstimator:
    """
    Estimate CPU utilisation since the previous invocation.

    A stored sample younger than freshness_seconds serves as the baseline and
    only one new sample is taken. Otherwise two samples are taken
    sample_interval_seconds apart. The current sample is stored afterwards
    for the next invocation.
    """

    def __init__(
        self,
        store: StateStore,
        read_sample: Callable[[], CpuSample] = read_cpu_sample,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        freshness_seconds: float = DEFAULT_FRESHNESS_SECONDS,
        sample_interval_seconds: float = DEFAULT_SAMPLE_INTERVAL_SECONDS,
        identity: Optional[str] = None,
    ) -> None:
        self.store = store
        self.read_sample = read_sample
        self.clock = clock
        self.sleep = sleep
        self.freshness_seconds = freshness_seconds
        self.sample_interval_seconds = sample_interval_seconds
        self.identity = identity

    def _samples(self, identity: str):
        state = self.store.load(identity)
        now = self.clock()

        if state is not None and state.is_fresh(now, self.freshness_seconds):
            logger.info(
                "cached-delta: stored sample is %.1fs old", state.age(now)
            )
            return state.sample, self.read_sample()

        if state is None:
            reason = "no stored sample"
        else:
            reason = f"stored sample age {state.age(now):.1f}s outside [0, {self.freshness_seconds:g})"
        logger.info(
            "fresh-dual-sample: %s, sampling twice %.1fs apart",
            reason,
            self.sample_interval_seconds,
        )
        previous = self.read_sample()
        self.sleep(self.sample_interval_seconds)
        return previous, self.read_sample()

    def estimate(self) -> str:
        identity = self.identity or current_identity()
        previous, current = self._samples(identity)

        utilization = compute_utilization(previous, current)
        logger.debug(
            "active %d -> %d, idle %d -> %d, total_delta=%d idle_delta=%d, utilization=%.1f",
            previous.active,
            current.active,
            previous.idle_total,
            current.idle_total,
            current.active - previous.active,
            current.idle_total - previous.idle_total,
            utilization,
        )

        try:
            self.store.store(identity, current)
        except OSError as exc:
            logger.warning("Could not persist CPU sample for uid %s: %s", identity, exc)

        return format_utilization(utilization)


def estimate_cpu_usage(settings: Optional[Settings] = None) -> str:
    """Run the estimator with the configured state location and counter file."""
    settings = settings or get_settings()
    estimator = CpuUsageEstimator(
        store=FileStateStore(settings.state_dir, settings.state_prefix),
        read_sample=partial(read_cpu_sample, settings.proc_stat_path),
        freshness_seconds=settings.freshness_seconds,
        sample_interval_seconds=settings.sample_interval_seconds,
    )
    return estimator.estimate()
