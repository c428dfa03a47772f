from __future__ import annotations

import math
import re

# Leading float prefix, read the way a browser's parseFloat reads "85 kg".
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

TRUE_STRINGS = {"true", "1", "yes"}


def normalize_number(value) -> float:
    """Coerce any raw value to a float. Never raises; unreadable input is 0."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0
    if isinstance(value, str):
        match = _FLOAT_PREFIX.match(value)
        if not match:
            return 0.0
        try:
            number = float(match.group(1))
        except ValueError:
            return 0.0
        return number if math.isfinite(number) else 0.0
    return 0.0


def normalize_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def normalize_string(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


_NORMALIZERS = {
    "number": normalize_number,
    "boolean": normalize_bool,
    "string": normalize_string,
}


def normalize(value, kind: str):
    try:
        fn = _NORMALIZERS[kind]
    except KeyError:
        raise ValueError(f"kind must be one of: {', '.join(sorted(_NORMALIZERS))}") from None
    return fn(value)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like Math.round / toFixed do for display (halves go up)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
