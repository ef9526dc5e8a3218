"""
Field extraction helpers shared by the collectors.

Registries rename fields between schema versions and mix strings, numbers and
currency-formatted text for the same value. Each logical field is read through
an ordered list of candidate names; the first populated one wins.
"""
import re
from typing import Any, Dict, Iterable, Optional

_CURRENCY_RE = re.compile(r"[$,\s]")


def pick(record: Dict[str, Any], names: Iterable[str], default: Any = None) -> Any:
    """Return the first value under `names` that is neither missing, None nor ''."""
    for name in names:
        value = record.get(name)
        if value is not None and value != "":
            return value
    return default


def pick_str(record: Dict[str, Any], names: Iterable[str], default: str = "") -> str:
    value = pick(record, names)
    return default if value is None else str(value)


def to_float(value: Any, default: float = 0.0) -> float:
    """Parse numbers and currency strings like '$1,250.00'."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(_CURRENCY_RE.sub("", str(value)))
    except ValueError:
        return default


def to_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(to_float(value, default=float(default)))
    except (ValueError, OverflowError):
        return default


def dig(data: Any, *path: str) -> Optional[Any]:
    """Walk nested dicts, returning None as soon as a level is missing."""
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a calculator: 0.5 always goes up (Python's round() goes to even)."""
    factor = 10 ** digits
    return int(value * factor + 0.5) / factor if value >= 0 else -int(-value * factor + 0.5) / factor
