"""
Smart contract helpers: ABI lookup, call encoding/decoding, reads and writes.

Reads are encoded with eth_abi and sent as constant calls
(``wallet/triggerconstantcontract``) through tronpy. Writes go through
tronpy's ``Contract`` so the transaction is built, signed and broadcast by
the same client that signs it.
"""

from __future__ import annotations

import json
import os
import re
from typing import Any, Callable

from eth_abi import decode, encode
from eth_utils import keccak
from tronpy import Tron
from tronpy.contract import Contract

from tron_address import resolve_address, to_base58_address, to_evm_address
from tron_clients import ClientCache
from tron_networks import DEFAULT_NETWORK
from tron_wallet import get_configured_wallet

# Owner used for constant calls; no key is needed to simulate a read.
ZERO_ADDRESS = "T9yD14Nj9j7xAB4dbGeiX9h8unkKHxuWwb"

DEFAULT_FEE_LIMIT_SUN = 150_000_000

_INT_ALIAS = re.compile(r"^(u?int)(\[.*)?$")


def get_fee_limit_sun() -> int:
    raw = (os.getenv("TRON_FEE_LIMIT_SUN") or "").strip()
    if not raw:
        return DEFAULT_FEE_LIMIT_SUN
    try:
        fee_limit = int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid TRON_FEE_LIMIT_SUN={raw!r}. Must be an integer.") from exc
    if fee_limit <= 0:
        raise ValueError(f"Invalid TRON_FEE_LIMIT_SUN={raw!r}. Must be greater than zero.")
    return fee_limit


# ---------------------------------------------------------------------------
# ABI table
# ---------------------------------------------------------------------------


def parse_abi(abi_json: str | list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Accept an ABI as a JSON string or an already-parsed list."""
    abi = json.loads(abi_json) if isinstance(abi_json, str) else abi_json
    if isinstance(abi, dict) and "entrys" in abi:
        abi = abi["entrys"]
    if not isinstance(abi, list):
        raise ValueError("ABI must be a JSON array of entries.")
    return abi


def _is_function(entry: dict[str, Any]) -> bool:
    # Node-returned ABIs use "Function"; solc output uses "function".
    return str(entry.get("type", "function")).lower() == "function"


def get_function_from_abi(abi: list[dict[str, Any]], function_name: str) -> dict[str, Any]:
    for entry in abi:
        if _is_function(entry) and entry.get("name") == function_name:
            return entry
    raise ValueError(f"Function {function_name} not found in ABI")


def get_readable_functions(abi: list[dict[str, Any]]) -> list[str]:
    """Render each function entry as ``name(type arg, ...) -> (type name, ...)``."""
    readable: list[str] = []
    for entry in abi:
        if not _is_function(entry):
            continue
        inputs = ", ".join(f"{i.get('type')} {i.get('name', '')}" for i in entry.get("inputs") or [])
        outputs = ", ".join(
            f"{o.get('type')} {o.get('name') or ''}" for o in entry.get("outputs") or []
        )
        readable.append(f"{entry.get('name')}({inputs}) -> ({outputs})")
    return readable


def fetch_contract_abi(
    clients: ClientCache, contract_address: str, network: str | None = DEFAULT_NETWORK
) -> list[dict[str, Any]]:
    """Fetch the ABI stored on chain for a deployed contract."""
    try:
        return _fetch_abi(clients.get_client(network), resolve_address(contract_address))
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch ABI: {exc}") from exc


def _fetch_abi(client: Tron, contract_address: str) -> list[dict[str, Any]]:
    contract = client.get_contract(contract_address)
    abi = list(getattr(contract, "abi", None) or [])
    if not abi:
        raise ValueError("ABI not found in contract data")
    return abi


# ---------------------------------------------------------------------------
# Encoding / decoding
# ---------------------------------------------------------------------------


def _canonical_type(param: dict[str, Any]) -> str:
    typ = str(param.get("type", ""))
    if typ.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components") or [])
        return f"({inner}){typ[len('tuple'):]}"
    match = _INT_ALIAS.match(typ)
    if match:
        return f"{match.group(1)}256{match.group(2) or ''}"
    return typ


def function_signature(fn: dict[str, Any]) -> str:
    types = ",".join(_canonical_type(p) for p in fn.get("inputs") or [])
    return f"{fn['name']}({types})"


def function_selector(fn: dict[str, Any]) -> bytes:
    return keccak(text=function_signature(fn))[:4]


def _array_element(param: dict[str, Any]) -> dict[str, Any]:
    typ = param["type"]
    return dict(param, type=typ[: typ.rindex("[")])


def _coerce_value(param: dict[str, Any], value: Any, to_address: Callable[[str], str]) -> Any:
    typ = str(param.get("type", ""))
    if typ.endswith("]"):
        if isinstance(value, str):
            value = json.loads(value)
        element = _array_element(param)
        return [_coerce_value(element, v, to_address) for v in value]
    if typ == "tuple":
        components = param.get("components") or []
        if isinstance(value, str):
            value = json.loads(value)
        if isinstance(value, dict):
            value = [value[c["name"]] for c in components]
        return tuple(_coerce_value(c, v, to_address) for c, v in zip(components, value))
    if typ == "address":
        return to_address(str(value))
    if typ == "bool":
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1")
        return bool(value)
    if typ.startswith(("uint", "int")):
        if isinstance(value, str):
            text = value.strip()
            return int(text, 16) if text.lower().startswith("0x") else int(text)
        return int(value)
    if typ.startswith("bytes"):
        if isinstance(value, str):
            text = value[2:] if value.startswith("0x") else value
            return bytes.fromhex(text)
        return bytes(value)
    if typ == "string":
        return str(value)
    return value


def coerce_arguments(
    inputs: list[dict[str, Any]],
    args: list[Any] | None,
    to_address: Callable[[str], str] = to_evm_address,
) -> list[Any]:
    """Convert JSON-ish tool arguments to the Python values an ABI encoder expects."""
    args = list(args or [])
    if len(args) != len(inputs):
        raise ValueError(f"Expected {len(inputs)} arguments, got {len(args)}")
    return [_coerce_value(p, v, to_address) for p, v in zip(inputs, args)]


def encode_arguments(fn: dict[str, Any], args: list[Any] | None) -> bytes:
    inputs = fn.get("inputs") or []
    types = [_canonical_type(p) for p in inputs]
    return encode(types, coerce_arguments(inputs, args))


def encode_call(fn: dict[str, Any], args: list[Any] | None) -> bytes:
    return function_selector(fn) + encode_arguments(fn, args)


def _normalize_output(param: dict[str, Any], value: Any) -> Any:
    typ = str(param.get("type", ""))
    if typ.endswith("]"):
        element = _array_element(param)
        return [_normalize_output(element, v) for v in value]
    if typ == "tuple":
        components = param.get("components") or []
        items = [_normalize_output(c, v) for c, v in zip(components, value)]
        if components and all(c.get("name") for c in components):
            return {c["name"]: v for c, v in zip(components, items)}
        return items
    if typ == "address":
        return to_base58_address(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return value


def decode_output(fn: dict[str, Any], data: bytes) -> Any:
    """
    Decode return data for ``fn``.

    A single unnamed output collapses to its value and a single named output
    to ``{name: value}``. Several outputs become a dict when all are named,
    otherwise a list. Addresses come back in Base58.
    """
    outputs = fn.get("outputs") or []
    if not outputs:
        return None
    decoded = decode([_canonical_type(o) for o in outputs], data)
    values = [_normalize_output(o, v) for o, v in zip(outputs, decoded)]
    names = [o.get("name") or "" for o in outputs]
    if len(values) == 1:
        return {names[0]: values[0]} if names[0] else values[0]
    if all(names):
        return dict(zip(names, values))
    return values


def call_constant(client: Tron, contract_address: str, fn: dict[str, Any], parameter: bytes) -> bytes:
    """Simulate ``fn`` against ``contract_address`` and return the raw result bytes."""
    result = client.trigger_const_smart_contract_function(
        ZERO_ADDRESS,
        to_base58_address(contract_address),
        function_signature(fn),
        parameter.hex(),
    )
    return bytes.fromhex(result[2:] if result.startswith("0x") else result)


# ---------------------------------------------------------------------------
# Read / write
# ---------------------------------------------------------------------------


def read_contract(
    clients: ClientCache,
    contract_address: str,
    function_name: str,
    args: list[Any] | None = None,
    abi: str | list[dict[str, Any]] | None = None,
    network: str | None = DEFAULT_NETWORK,
) -> Any:
    """Call a view/pure function. Without ``abi`` the on-chain ABI is fetched."""
    try:
        client = clients.get_client(network)
        address = resolve_address(contract_address)
        contract_abi = parse_abi(abi) if abi else _fetch_abi(client, address)
        fn = get_function_from_abi(contract_abi, function_name)
        raw = call_constant(client, address, fn, encode_arguments(fn, args))
        return decode_output(fn, raw)
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Read contract failed: {exc}") from exc


def write_contract(
    clients: ClientCache,
    contract_address: str,
    function_name: str,
    args: list[Any] | None = None,
    value: int | str | None = None,
    abi: str | list[dict[str, Any]] | None = None,
    network: str | None = DEFAULT_NETWORK,
    fee_limit: int | None = None,
) -> str:
    """
    Build, sign and broadcast a contract call with the configured wallet.

    ``value`` is the call value in sun. Returns the transaction id as soon as
    the node accepts it; confirmation is a separate step.
    """
    wallet = get_configured_wallet()
    signer = clients.get_signing_client(wallet.private_key, network)
    try:
        address = resolve_address(contract_address)
        contract_abi = parse_abi(abi) if abi else _fetch_abi(signer.client, address)
        fn = get_function_from_abi(contract_abi, function_name)
        contract = Contract(addr=address, abi=contract_abi, client=signer.client)
        method = contract.functions[function_name]
        method.with_owner(signer.address)
        if value:
            method.with_transfer(int(value))
        call_args = coerce_arguments(fn.get("inputs") or [], args, to_address=resolve_address)
        txn = (
            method(*call_args)
            .fee_limit(fee_limit or get_fee_limit_sun())
            .build()
            .sign(signer.private_key)
        )
        return txn.broadcast().txid
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Write contract failed: {exc}") from exc
