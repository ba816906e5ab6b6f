from pydantic import BaseModel, ConfigDict, Field


class CpuSample(BaseModel):
    """Cumulative tick counters of the aggregate CPU row since boot."""

    model_config = ConfigDict(frozen=True)

    user: int = Field(0, ge=0, description="Time spent in user mode")
    nice: int = Field(0, ge=0, description="Time spent in user mode with low priority")
    system: int = Field(0, ge=0, description="Time spent in kernel mode")
    idle: int = Field(0, ge=0, description="Time spent in the idle task")
    iowait: int = Field(0, ge=0, description="Time waiting for I/O to complete")
    irq: int = Field(0, ge=0, description="Time servicing hardware interrupts")
    softirq: int = Field(0, ge=0, description="Time servicing softirqs")
    steal: int = Field(0, ge=0, description="Time stolen by the hypervisor")
    guest: int = Field(0, ge=0, description="Time running a guest, not used for utilisation")
    guest_nice: int = Field(0, ge=0, description="Time running a niced guest, not used for utilisation")

    @classmethod
    def zero(cls) -> "CpuSample":
        return cls()

    @property
    def active(self) -> int:
        return self.user + self.nice + self.system + self.irq + self.softirq + self.steal

    @property
    def idle_total(self) -> int:
        return self.idle + self.iowait


class PersistedState(BaseModel):
    """A stored CpuSample and the modification time of its file."""

    model_config = ConfigDict(frozen=True)

    sample: CpuSample
    modified_at: float = Field(
        ...,
        description="Modification time of the state file, seconds since the epoch",
    )

    def age(self, now: float) -> float:
        return now - self.modified_at

    def is_fresh(self, now: float, threshold: float) -> bool:
        """
        True if the state is younger than the threshold.

        A negative age means the stored timestamp lies in the future (clock
        skew); such a state is never trusted.
        """
        age = self.age(now)
        return 0 <= age < threshold


class Capabilities(BaseModel):
    """What this host supports, detected once per invocation."""

    counters_available: bool = Field(
        ...,
        description="True if kernel CPU counters can be read for delta measurement",
    )

    @property
    def enhanced_flag(self) -> str:
        return "true" if self.counters_available else "false"
