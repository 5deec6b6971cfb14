"""
TRON address conversion between Base58Check ("T...") and hex ("41...").

A 20-byte EVM-style hex address, with or without ``0x``, is treated as the
same account once the 0x41 version byte is prepended. Validation itself is
left to tronpy.
"""

from __future__ import annotations

from typing import Any

from tronpy import keys

TRON_ADDRESS_PREFIX = "41"


def _normalize_hex(address: str) -> str:
    clean = address[2:] if address[:2].lower() == "0x" else address
    if len(clean) == 40:
        clean = TRON_ADDRESS_PREFIX + clean
    return clean.lower()


def is_base58(address: str) -> bool:
    if not address or not address.startswith("T"):
        return False
    try:
        return keys.is_base58check_address(address)
    except ValueError:
        return False


def is_hex(address: str) -> bool:
    if not address or address.startswith("T"):
        return False
    try:
        return keys.is_hex_address(_normalize_hex(address))
    except ValueError:
        return False


def is_address(address: str) -> bool:
    return is_base58(address) or is_hex(address)


def to_hex_address(address: str) -> str:
    """Return the 41-prefixed hex form. Unrecognized input is returned unchanged."""
    if address.startswith("T"):
        return keys.to_hex_address(address)
    if is_hex(address):
        return _normalize_hex(address)
    return address


def to_base58_address(address: str) -> str:
    """Return the Base58Check form. Unrecognized input is returned unchanged."""
    if address.startswith("T"):
        return keys.to_base58check_address(address)
    if is_hex(address):
        return keys.to_base58check_address(_normalize_hex(address))
    return address


def to_evm_address(address: str) -> str:
    """Return the 0x-prefixed 20-byte form used inside ABI encodings."""
    return "0x" + to_hex_address(resolve_address(address))[2:]


def resolve_address(name_or_address: str) -> str:
    """Return a Base58 address, or raise for anything that is not an address."""
    if is_address(name_or_address):
        return to_base58_address(name_or_address)
    # No TRON name service lookups.
    raise ValueError(f"Invalid address or unsupported name service: {name_or_address}")


def convert_address(address: str) -> dict[str, Any]:
    valid = is_address(address)
    return {
        "original": address,
        "base58": to_base58_address(address) if valid else None,
        "hex": to_hex_address(address) if valid else None,
        "isValid": valid,
    }
