"""
Lenient number and rate parsing.

Shared by the input models and the normalizer, so that a rate reaches the
engines as a fraction whichever path it came in through.
"""

import math
import re
from typing import Any, Optional

_THOUSANDS_GROUPED = re.compile(r"^-?[1-9]\d{0,2}(\.\d{3})+$")
_NON_NUMERIC = re.compile(r"[^\d.,-]")


def to_number(value: Any, fallback: Optional[float] = 0.0) -> Optional[float]:
    """
    Parse a number leniently.

    Accepts ints, floats and strings such as ``"1.234,56"``, ``"R$ 5.000"``
    or ``"0.10"``. A comma marks the decimal separator; a dot is a thousands
    separator when it groups digits in threes (``"5.000"``), otherwise a
    decimal point.

    Args:
        value: Raw value
        fallback: Returned for None, NaN, infinities and unparseable input

    Returns:
        The parsed float or the fallback
    """
    if value is None:
        return fallback
    if isinstance(value, str):
        text = _NON_NUMERIC.sub("", value)
        if "," in text:
            text = text.replace(".", "").replace(",", ".")
        elif text.count(".") > 1 or _THOUSANDS_GROUPED.match(text):
            text = text.replace(".", "")
        try:
            number = float(text)
        except ValueError:
            return fallback
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return fallback
    return number if math.isfinite(number) else fallback


def normalize_rate(value: Any, fallback: Optional[float] = 0.0) -> Optional[float]:
    """Interpret magnitudes above 1 as percentages (10 -> 0.10)."""
    number = to_number(value, None)
    if number is None:
        return fallback
    if abs(number) > 1:
        return number / 100
    return number

