from typing import Any, Iterable, List

SIGNATURE_FIELDS = (
    ("panel", "panel"),
    ("test_name", "testName"),
    ("collected_at", "collectedAt"),
    ("value_raw", "valueRaw"),
    ("unit", "unit"),
    ("lowest_value", "lowestValue"),
    ("highest_value", "highestValue"),
    ("qualifier", "qualifier"),
)
SEPARATOR = "\x1f"


def _field(obs: Any, attr: str, alias: str):
    if isinstance(obs, dict):
        return obs.get(alias, obs.get(attr))
    return getattr(obs, attr, None)


def observation_signature(obs) -> str:
    """Structural identity of an observation; works on models and stored camelCase dicts."""
    parts = []
    for attr, alias in SIGNATURE_FIELDS:
        v = _field(obs, attr, alias)
        parts.append("" if v is None else str(v))
    return SEPARATOR.join(parts)


def merge_observations(existing: Iterable, incoming: Iterable) -> List:
    """Existing entries first, then new ones; first occurrence of a signature wins."""
    seen = set()
    merged = []
    for obs in list(existing) + list(incoming):
        sig = observation_signature(obs)
        if sig in seen:
            continue
        seen.add(sig)
        merged.append(obs)
    return merged
