"""
Helpers for reading values out of raw spreadsheet rows.

Spreadsheet exports sometimes carry a leading space in column headers
(" FK location field model"), so header lookups try the exact name first and
then the single-leading-space variant.
"""

import math
import re
from typing import Any, Mapping, Optional

MISSING = object()

_INT_PATTERN = re.compile(r"^[+-]?\d+(\.0+)?$")


def lookup_field(record: Mapping[str, Any], name: str, default: Any = None) -> Any:
    """Value under name, or under " " + name, else default."""
    value = record.get(name, MISSING)
    if value is MISSING or value is None:
        spaced = record.get(f" {name}", MISSING)
        if spaced is not MISSING and spaced is not None:
            return spaced
    if value is MISSING:
        return default
    return value


def is_blank(value: Any) -> bool:
    """None, empty string or NaN."""
    if value is None:
        return True
    if isinstance(value, str) and value == "":
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def coerce_int(value: Any) -> Optional[int]:
    """
    Integer form of value when it is integral, else None.

    Accepts ints, integral floats (spreadsheet numbers) and numeric strings.
    Booleans are never treated as numbers.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, str):
        text = value.strip()
        if _INT_PATTERN.match(text):
            return int(text.split(".")[0])
    return None
