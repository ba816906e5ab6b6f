from pydantic import BaseModel, Field


class HostFacts(BaseModel):
    """Domain model describing one snapshot of the guest."""

    version: str = Field(..., description="guest-agent version")
    os: str = Field(..., description="PRETTY_NAME from /etc/os-release")
    kernel: str = Field(..., description="Kernel release, as printed by uname -r")
    uptime: str = Field(..., description="Human readable uptime, e.g. 'up 3 hours, 2 minutes'")
    memory: str = Field(
        ...,
        description="Memory totals in kB: 'total:<kB> used:<kB> available:<kB>'",
    )
    cpu: str = Field(..., description="CPU model and core count: 'model:<name> cores:<n>'")
    cpu_usage: str = Field(
        ...,
        pattern=r"^-?\d+\.\d$",
        description="CPU utilisation in percent with one decimal digit, without the % sign",
    )
    enhanced_cpu_support: bool = Field(
        ...,
        description="True if counter based CPU measurement is available",
    )
    disk: str = Field(..., description="Root filesystem 'size used avail pcent' in GiB")
    network: str = Field(..., description="Addresses and hostname: 'ip:<addrs> hostname:<name>'")
    containers: str = Field(
        ...,
        description="Container runtimes: 'podman:<version> docker:<version>'",
    )
