import json
from typing import Dict, List, Tuple

from guest_agent.models.host import HostFacts


def _fact_pairs(facts: HostFacts) -> List[Tuple[str, str]]:
    # (json key, value) in output order; plain keys are the upper-cased json
    # keys except for ENHANCED_CPU_SUPPORTED
    return [
        ("version", facts.version),
        ("os", facts.os),
        ("kernel", facts.kernel),
        ("uptime", facts.uptime),
        ("memory", facts.memory),
        ("cpu", facts.cpu),
        ("cpu_usage", f"{facts.cpu_usage}%"),
        ("enhanced_cpu_support", "true" if facts.enhanced_cpu_support else "false"),
        ("disk", facts.disk),
        ("network", facts.network),
        ("containers", facts.containers),
    ]


_PLAIN_KEYS: Dict[str, str] = {"enhanced_cpu_support": "ENHANCED_CPU_SUPPORTED"}


def plain_key(key: str) -> str:
    return _PLAIN_KEYS.get(key, key.upper())


def render_plain(facts: HostFacts) -> str:
    """Render the snapshot as KEY=value lines."""
    lines = [f"{plain_key(key)}={value}" for key, value in _fact_pairs(facts)]
    return "\n".join(lines) + "\n"


def render_json(facts: HostFacts) -> str:
    """
    Render the snapshot as a JSON object.

    All values are strings, cpu_usage keeps its % sign, so consumers of the
    plain format can read the same values.
    """
    payload = dict(_fact_pairs(facts))
    return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"
