from __future__ import annotations

import json
import math
import re
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import List, Optional, Sequence

from docmeta.core.config import settings
from docmeta.domain.metadata import MetadataMap

_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1


def to_json(value: Optional[str]) -> str:
    """Render a string as a JSON string literal (``null`` for None)."""
    return json.dumps(value, ensure_ascii=False)


def metadata_to_json(metadata: MetadataMap) -> str:
    """Serialize metadata as a JSON object with keys in sorted order.

    Single values that parse completely as numbers are written as JSON numbers,
    multi-valued keys are written as arrays of strings, and keys whose value is
    blank are left out.
    """
    fields: List[str] = []
    for name in sorted(metadata.names()):
        if metadata.is_multi_valued(name):
            rendered = _render_values(metadata.get_values(name))
        else:
            rendered = _render_value(metadata.get(name))
        if rendered is None:
            continue
        fields.append(f"{to_json(name)}:{rendered}")
    if not fields:
        return "{ }"
    return "{ " + ", ".join(fields) + " }"


def _render_value(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    number = parse_number(value)
    if number is not None:
        return number
    return to_json(value)


def _render_values(values: Sequence[str]) -> Optional[str]:
    # Array elements stay strings even when they look numeric.
    if not values:
        return None
    return json.dumps(list(values), ensure_ascii=False, separators=(",", ":"))


@lru_cache(maxsize=8)
def _number_pattern(decimal_sep: str, group_sep: str) -> "re.Pattern[str]":
    d = re.escape(decimal_sep)
    g = re.escape(group_sep)
    return re.compile(rf"-?(?:\d+(?:{g}\d+)*)?(?:{d}\d*)?")


def is_numeric(value: Optional[str]) -> bool:
    return parse_number(value) is not None


def parse_number(
    value: Optional[str],
    decimal_sep: Optional[str] = None,
    group_sep: Optional[str] = None,
) -> Optional[str]:
    """Parse a locale-formatted number and return its canonical text.

    Returns None unless the whole string is consumed. Integral values within
    64-bit range come back without a fraction (``"1,234.0"`` -> ``"1234"``).
    """
    if not value:
        return None
    decimal_sep = decimal_sep or settings.number_decimal_separator
    group_sep = group_sep or settings.number_group_separator
    match = _number_pattern(decimal_sep, group_sep).fullmatch(value)
    if match is None or not any(ch.isdigit() for ch in value):
        return None

    negative = value.startswith("-")
    body = value[1:] if negative else value
    int_part, _, frac_part = body.partition(decimal_sep)
    digits = "".join(str(int(ch)) for ch in int_part.replace(group_sep, "")) or "0"
    frac = "".join(str(int(ch)) for ch in frac_part)
    try:
        number = Decimal(f"{'-' if negative else ''}{digits}.{frac or '0'}")
    except InvalidOperation:
        return None

    if number == number.to_integral_value() and not (number.is_zero() and negative):
        as_int = int(number)
        if _LONG_MIN <= as_int <= _LONG_MAX:
            return str(as_int)
    as_float = float(number)
    if not math.isfinite(as_float):
        # Beyond double range; keep it a string rather than emit inf.
        return None
    return repr(as_float)
