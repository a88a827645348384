"""Yen amount helpers: rounding and user-input normalization"""

import math
import re
from decimal import Decimal
from typing import Union

Number = Union[int, float, Decimal]

# Full-width ASCII block (！ .. ～) maps onto ASCII by a fixed codepoint offset
_FULL_WIDTH_OFFSET = 0xFEE0
_FULL_WIDTH_TABLE = {code: code - _FULL_WIDTH_OFFSET for code in range(0xFF01, 0xFF5F)}

_CURRENCY_GLYPHS = re.compile(r"[¥￥円]")
_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")


def round_yen(value: Number) -> int:
    """
    Round half toward positive infinity.

    Every amount in the ledger is rounded this way (2.5 -> 3, -2.5 -> -2), so
    Python's banker's rounding is never used for money.
    """
    return int(math.floor(value + (Decimal("0.5") if isinstance(value, Decimal) else 0.5)))


def normalize_numeric_input(value: Union[Number, str, None]) -> int:
    """
    Convert user or CSV input into an integer yen amount.

    Steps:
    - numbers pass through (floats are rounded)
    - full-width characters become half-width
    - ¥, ￥ and 円 are removed
    - everything except digits, '.' and '-' is removed
    - the leading numeric prefix is parsed and rounded

    None and unparseable input give 0.

    Example:
        "¥1,234,567" -> 1234567
        "１２３円"    -> 123
        "abc"        -> 0
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        if not math.isfinite(value):
            return 0
        return round_yen(value)

    text = str(value).translate(_FULL_WIDTH_TABLE)
    text = _CURRENCY_GLYPHS.sub("", text)
    text = _NON_NUMERIC.sub("", text)

    match = _LEADING_NUMBER.match(text)
    if not match:
        return 0
    parsed = float(match.group(0))
    return round_yen(parsed) if math.isfinite(parsed) else 0


def basis_points_to_rate(basis_points: int) -> float:
    """8000 -> 0.8"""
    return basis_points / 10000
