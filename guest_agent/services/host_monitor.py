import logging
import platform
import shlex
import shutil
import socket
import subprocess
import time
from typing import List, Optional

import psutil

from guest_agent.config import VERSION, Settings, get_settings
from guest_agent.models.cpu import Capabilities
from guest_agent.models.host import HostFacts
from guest_agent.services.cpu_usage import estimate_cpu_usage

logger = logging.getLogger(__name__)

_NOT_AVAILABLE = "N/A"

# Timeout for `<runtime> --version`; a hung daemon must not stall the snapshot
_RUNTIME_VERSION_TIMEOUT_SECONDS = 5

_GIB = 1024 ** 3


def get_os_info(os_release_path: str = "/etc/os-release") -> str:
    """Return PRETTY_NAME from os-release, or 'Unknown Linux'."""
    try:
        with open(os_release_path, "r", encoding="utf-8") as handle:
            lines = handle.read().splitlines()
    except (OSError, UnicodeDecodeError):
        return "Unknown Linux"

    for line in lines:
        if not line.startswith("PRETTY_NAME="):
            continue
        value = line.split("=", 1)[1]
        # Values may be shell quoted: PRETTY_NAME="Ubuntu 24.04 LTS"
        try:
            parts = shlex.split(value)
        except ValueError:
            parts = [value.strip("\"'")]
        return " ".join(parts) or "Unknown Linux"

    return "Unknown Linux"


def get_kernel_version() -> str:
    return platform.release() or "unknown"


def _format_duration(seconds: int) -> str:
    minutes = seconds // 60
    days, minutes = divmod(minutes, 24 * 60)
    hours, minutes = divmod(minutes, 60)

    parts: List[str] = []
    for value, unit in ((days, "day"), (hours, "hour"), (minutes, "minute")):
        if value:
            parts.append(f"{value} {unit}" + ("s" if value != 1 else ""))
    if not parts:
        parts.append("0 minutes")
    return "up " + ", ".join(parts)


def get_uptime() -> str:
    """Uptime in the style of `uptime -p`, e.g. 'up 2 days, 3 hours, 4 minutes'."""
    try:
        boot_time = psutil.boot_time()
    except (OSError, RuntimeError) as exc:
        logger.debug("Boot time unavailable: %s", exc)
        return _NOT_AVAILABLE
    return _format_duration(max(int(time.time() - boot_time), 0))


def get_memory_info() -> str:
    """Memory totals in kB, used meaning total minus available."""
    try:
        memory = psutil.virtual_memory()
    except (OSError, RuntimeError) as exc:
        logger.debug("Memory totals unavailable: %s", exc)
        return _NOT_AVAILABLE

    total = memory.total // 1024
    available = memory.available // 1024
    used = total - available
    return f"total:{total} used:{used} available:{available}"


def _read_cpu_model(cpuinfo_path: str = "/proc/cpuinfo") -> str:
    try:
        with open(cpuinfo_path, "r", encoding="utf-8") as handle:
            for line in handle:
                if line.startswith("model name"):
                    return line.split(":", 1)[1].strip()
    except (OSError, UnicodeDecodeError):
        pass
    return platform.processor()


def get_cpu_info() -> str:
    model = _read_cpu_model()
    cores = psutil.cpu_count() or 0
    return f"model:{model} cores:{cores}"


def get_disk_info(mountpoint: str = "/") -> str:
    """Usage of the root filesystem, shaped like `df -BG --output=size,used,avail,pcent`."""
    try:
        usage = psutil.disk_usage(mountpoint)
    except OSError as exc:
        logger.debug("Disk usage for %s unavailable: %s", mountpoint, exc)
        return _NOT_AVAILABLE

    def to_gib(value: int) -> str:
        # df rounds up to the next full unit
        return f"{-(-value // _GIB)}G"

    # df: used / (used + avail), rounded up; reserved blocks are left out
    capacity = usage.used + usage.free
    percent = -(-usage.used * 100 // capacity) if capacity else 0

    return (
        f"{to_gib(usage.total)} {to_gib(usage.used)} {to_gib(usage.free)} "
        f"{percent}%"
    )


def _list_addresses() -> List[str]:
    addresses: List[str] = []
    for snics in psutil.net_if_addrs().values():
        for snic in snics:
            if snic.family not in (socket.AF_INET, socket.AF_INET6):
                continue
            address = snic.address.split("%", 1)[0]
            if address.startswith("127.") or address == "::1" or address.startswith("fe80:"):
                continue
            if address not in addresses:
                addresses.append(address)
    return addresses


def get_network_info() -> str:
    try:
        addresses = _list_addresses()
    except OSError as exc:
        logger.debug("Interface addresses unavailable: %s", exc)
        addresses = []

    ip = " ".join(addresses) or _NOT_AVAILABLE

    try:
        hostname = socket.gethostname() or _NOT_AVAILABLE
    except OSError as exc:
        logger.debug("Hostname unavailable: %s", exc)
        hostname = _NOT_AVAILABLE
    return f"ip:{ip} hostname:{hostname}"


def _runtime_version(binary: str) -> Optional[str]:
    """
    Return the first line of `<binary> --version`, or None if the runtime is
    not installed or does not answer.
    """
    if shutil.which(binary) is None:
        return None

    try:
        result = subprocess.run(
            [binary, "--version"],
            check=True,
            capture_output=True,
            text=True,
            timeout=_RUNTIME_VERSION_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("%s --version failed: %s", binary, exc)
        return None

    output = result.stdout.strip()
    return output.splitlines()[0] if output else None


def get_container_info() -> str:
    podman = _runtime_version("podman") or _NOT_AVAILABLE
    docker = _runtime_version("docker") or _NOT_AVAILABLE
    return f"podman:{podman} docker:{docker}"


def get_host_facts(
    capabilities: Capabilities, settings: Optional[Settings] = None
) -> HostFacts:
    """
    Collect one snapshot of the guest and return it as a HostFacts object.

    This function runs every collector, including the CPU usage estimator,
    so that the CLI only needs to pick an output format.
    """
    settings = settings or get_settings()

    return HostFacts(
        version=VERSION,
        os=get_os_info(),
        kernel=get_kernel_version(),
        uptime=get_uptime(),
        memory=get_memory_info(),
        cpu=get_cpu_info(),
        cpu_usage=estimate_cpu_usage(settings),
        enhanced_cpu_support=capabilities.counters_available,
        disk=get_disk_info(),
        network=get_network_info(),
        containers=get_container_info(),
    )
