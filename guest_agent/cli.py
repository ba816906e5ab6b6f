"""
guest-agent command line.

Prints a snapshot of the guest as KEY=value lines (default) or JSON. Single
facts can be queried by name. Diagnostics go to stderr; stdout carries only
the requested output.
"""

import argparse
import sys
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from guest_agent.config import VERSION, Settings, get_settings
from guest_agent.logging_config import configure_logging
from guest_agent.output import render_json, render_plain
from guest_agent.services import host_monitor
from guest_agent.services.capabilities import detect_capabilities
from guest_agent.services.cpu_usage import estimate_cpu_usage

# Commands that print one bare fact
_SINGLE_FACTS: Dict[str, Callable[[], str]] = {
    "os": host_monitor.get_os_info,
    "kernel": host_monitor.get_kernel_version,
    "uptime": host_monitor.get_uptime,
    "memory": host_monitor.get_memory_info,
    "disk": host_monitor.get_disk_info,
    "network": host_monitor.get_network_info,
    "containers": host_monitor.get_container_info,
}

COMMANDS: List[str] = ["all", "json", "cpu", "version", *_SINGLE_FACTS]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="guest-agent",
        description="Print OS, memory, CPU, disk, network and container facts of this guest.",
        epilog=(
            "CPU usage baseline is kept in $GUEST_AGENT_STATE_DIR/pvy_cpu_stats_<uid> "
            "(default: the system temp directory)."
        ),
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="all",
        choices=COMMANDS,
        help="Fact to print (default: all, as KEY=value lines; json: all, as JSON)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Write diagnostic trace lines to stderr",
    )
    return parser.parse_args(argv)


def _cpu_lines(settings: Settings) -> str:
    capabilities = detect_capabilities(settings)
    return (
        f"CPU={host_monitor.get_cpu_info()}\n"
        f"CPU_USAGE={estimate_cpu_usage(settings)}%\n"
        f"ENHANCED_CPU_SUPPORTED={capabilities.enhanced_flag}\n"
    )


def run(command: str, settings: Settings) -> str:
    """Produce the stdout text for a command."""
    if command in ("all", "json"):
        capabilities = detect_capabilities(settings)
        facts = host_monitor.get_host_facts(capabilities, settings)
        return render_json(facts) if command == "json" else render_plain(facts)
    if command == "cpu":
        return _cpu_lines(settings)
    if command == "version":
        return f"{VERSION}\n"
    return f"{_SINGLE_FACTS[command]()}\n"


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"guest-agent: invalid configuration: {exc}", file=sys.stderr)
        return 1

    configure_logging("DEBUG" if args.verbose else settings.log_level)

    sys.stdout.write(run(args.command, settings))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
