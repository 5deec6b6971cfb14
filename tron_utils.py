"""
Unit conversion and JSON formatting helpers.

1 TRX = 1,000,000 sun. Token amounts use the token's own ``decimals``.
"""

from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from typing import Any

SUN_PER_TRX = Decimal("1000000")
TRX_DECIMALS = 6

# Largest integer a JSON consumer using IEEE doubles can hold exactly.
MAX_SAFE_INTEGER = 2**53 - 1


def _format_decimal(value: Decimal) -> str:
    if value == 0:
        return "0"
    return format(value.normalize(), "f")


def _parse_decimal(value: Any, field_name: str) -> Decimal:
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid {field_name}. Must be a number.") from exc
    if not parsed.is_finite():
        raise ValueError(f"Invalid {field_name}. Must be a number.")
    return parsed


def to_sun(trx: Any) -> int:
    """Convert a TRX amount (number or decimal string) to integer sun."""
    sun = _parse_decimal(trx, "TRX amount") * SUN_PER_TRX
    if sun != sun.to_integral_value():
        raise ValueError(f"TRX amount {trx} has more than {TRX_DECIMALS} decimal places.")
    return int(sun)


def from_sun(sun: Any) -> str:
    """Convert integer sun to a TRX decimal string."""
    return _format_decimal(Decimal(int(str(sun))) / SUN_PER_TRX)


def format_units(value: Any, decimals: int) -> str:
    """Render a raw token amount as a decimal string with ``decimals`` places shifted."""
    return _format_decimal(Decimal(int(str(value))).scaleb(-int(decimals)))


def parse_units(amount: Any, decimals: int) -> int:
    """Inverse of ``format_units``; rejects amounts finer than the token allows."""
    raw = _parse_decimal(amount, "amount").scaleb(int(decimals))
    if raw != raw.to_integral_value():
        raise ValueError(f"Amount {amount} has more than {decimals} decimal places.")
    return int(raw)


def format_number(value: Any) -> str:
    return f"{_parse_decimal(value, 'number'):,}"


def hex_to_number(value: str) -> int:
    return int(value, 16)


def number_to_hex(value: int) -> str:
    return hex(value)


def to_jsonable(obj: Any) -> Any:
    """
    Convert chain data into something ``json.dumps`` renders losslessly.

    Integers beyond the safe double range become strings, bytes become
    0x-hex, Decimals become strings and tuples become lists.
    """
    if isinstance(obj, bool) or obj is None:
        return obj
    if isinstance(obj, int):
        return str(obj) if abs(obj) > MAX_SAFE_INTEGER else obj
    if isinstance(obj, Decimal):
        return _format_decimal(obj)
    if isinstance(obj, (bytes, bytearray)):
        return "0x" + bytes(obj).hex()
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    return obj


def format_json(obj: Any) -> str:
    return json.dumps(to_jsonable(obj), indent=2, default=str)
