"""Utility functions for the projection engines.

This module provides the parse-or-default helpers applied at every engine's
input boundary, the currency rounding used when year records are emitted, and
helpers that turn engine output into JSON-serialisable structures. Engine
bodies never see a raw user value: everything passes through
``parse_numeric_or_default`` first.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from decimal import ROUND_FLOOR, Decimal, InvalidOperation, getcontext
from typing import Any, Dict, Mapping, Optional

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

# Currency symbols, grouping commas, percent signs and whitespace.
_FORMATTING = re.compile(r"[$€£¥,%\s]")


def parse_numeric_or_default(value: Any, default: Any = 0) -> Decimal:
    """Convert user input into a ``Decimal``, falling back to ``default``.

    Accepts ints, floats, ``Decimal`` and strings. Strings may carry currency
    formatting ("$1,200.50", "4.5%"); currency symbols, commas, ``%`` and
    whitespace are stripped before parsing, and any other stray character
    makes the value invalid. ``None``, empty strings, NaN,
    infinities and unparseable values all produce ``default``.
    """
    fallback = default if isinstance(default, Decimal) else Decimal(str(default))
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = _FORMATTING.sub("", value)
        if not cleaned:
            return fallback
        try:
            result = Decimal(cleaned)
        except InvalidOperation:
            return fallback
    else:
        return fallback
    if not result.is_finite():
        return fallback
    return result


def parse_int_or_default(value: Any, default: int = 0) -> int:
    """Parse an integer the way ``parseInt`` does: truncate toward zero."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    parsed = parse_numeric_or_default(value, default=Decimal("NaN"))
    if not parsed.is_finite():
        return default
    return int(parsed)


def parse_flag(value: Any, default: bool = False) -> bool:
    """Interpret a checkbox-style value (bool, "true"/"false", 0/1)."""
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def parse_offset_map(raw: Optional[Mapping[Any, Any]]) -> Dict[int, Decimal]:
    """Return a ``{year_offset: Decimal}`` map from a sparse JSON object.

    JSON object keys arrive as strings; keys that are not integers and values
    that are empty or unparseable are dropped rather than coerced to zero, so
    an absent override stays absent.
    """
    result: Dict[int, Decimal] = {}
    if not raw:
        return result
    for key, value in raw.items():
        offset = parse_int_or_default(key, default=-1)
        if offset < 0:
            logger.debug("Ignoring override with invalid year offset %r", key)
            continue
        parsed = parse_numeric_or_default(value, default=Decimal("NaN"))
        if not parsed.is_finite():
            continue
        result[offset] = parsed
    return result


def percent(value: Decimal) -> Decimal:
    """Convert a percentage (4.5) into a fraction (0.045)."""
    return value / HUNDRED


def compound(base: Decimal, rate: Decimal, periods: Any) -> Decimal:
    """Return ``base * (1 + rate) ** periods``.

    A rate of -100 % wipes the base out after the first period; offset 0
    still returns ``base``.
    """
    factor = ONE + rate
    if factor == 0:
        return base if periods == 0 else ZERO
    return base * factor ** periods


def round_currency(value: Decimal) -> Decimal:
    """Round to the nearest whole currency unit, halves toward +infinity.

    This mirrors ``Math.round`` so emitted figures match the browser
    calculators cent for cent.
    """
    return (value + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR)


def jsonable(value: Any) -> Any:
    """Convert engine output (dataclasses, Decimals, dicts) for ``json.dump``."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, dict):
        return {str(k): jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    return value
