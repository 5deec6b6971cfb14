"""
Batch several contract reads into one call.

With a Multicall contract address the reads are packed into a single
``aggregate3`` (v3) or ``tryAggregate`` (v2) constant call. Without one, or
if the batched call fails for any reason, each read is issued on its own in
parallel. Either way the results line up one-to-one with the input calls.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any

from eth_abi import decode, encode
from tronpy import Tron

from tron_address import to_evm_address
from tron_clients import ClientCache
from tron_contracts import (
    call_constant,
    decode_output,
    encode_call,
    get_function_from_abi,
    parse_abi,
    read_contract,
)
from tron_networks import DEFAULT_NETWORK

logger = logging.getLogger(__name__)

AGGREGATE3 = {
    "type": "function",
    "name": "aggregate3",
    "stateMutability": "payable",
    "inputs": [
        {
            "name": "calls",
            "type": "tuple[]",
            "components": [
                {"name": "target", "type": "address"},
                {"name": "allowFailure", "type": "bool"},
                {"name": "callData", "type": "bytes"},
            ],
        }
    ],
}

TRY_AGGREGATE = {
    "type": "function",
    "name": "tryAggregate",
    "stateMutability": "nonpayable",
    "inputs": [
        {"name": "requireSuccess", "type": "bool"},
        {
            "name": "calls",
            "type": "tuple[]",
            "components": [
                {"name": "target", "type": "address"},
                {"name": "callData", "type": "bytes"},
            ],
        },
    ],
}

SUPPORTED_VERSIONS = (2, 3)


@dataclass
class CallDescriptor:
    """
    One read in a batch. ``abi`` and ``args`` are kept as given; ``resolved``
    validates them so a bad entry fails on its own instead of sinking the batch.
    """

    address: str
    function_name: str
    abi: str | list[dict[str, Any]] | None = None
    args: Any = field(default_factory=list)
    allow_failure: bool | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CallDescriptor:
        address = data.get("address") or data.get("contractAddress")
        function_name = data.get("functionName") or data.get("function_name")
        if not address or not function_name:
            raise ValueError("Each call needs an address and a functionName.")
        args = data.get("args")
        return cls(
            address=str(address),
            function_name=str(function_name),
            abi=data.get("abi") or None,
            args=[] if args is None else args,
            allow_failure=data.get("allowFailure"),
        )

    def resolved(self) -> CallDescriptor:
        """Return a copy with a parsed ABI; raises ValueError for malformed abi or args."""
        if not isinstance(self.args, list):
            raise ValueError("Invalid args. Expected an array.")
        abi = parse_abi(self.abi) if self.abi else None
        return replace(self, abi=abi, args=list(self.args))


@dataclass
class CallResult:
    success: bool
    result: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "result": self.result}
        return {"success": False, "error": self.error}


async def multicall(
    clients: ClientCache,
    calls: list[CallDescriptor],
    multicall_address: str | None = None,
    version: int = 3,
    allow_failure: bool = True,
    network: str | None = DEFAULT_NETWORK,
) -> list[CallResult]:
    if version not in SUPPORTED_VERSIONS:
        raise ValueError(f"Unsupported multicall version: {version}. Use 2 or 3.")
    results: list[CallResult | None] = [None] * len(calls)
    positions: list[int] = []
    ready: list[CallDescriptor] = []
    for index, call in enumerate(calls):
        try:
            ready.append(call.resolved())
            positions.append(index)
        except ValueError as exc:
            results[index] = CallResult(
                False, error=f"Invalid call to {call.function_name}: {exc}"
            )
    if ready:
        for index, result in zip(
            positions,
            await _run(clients, ready, multicall_address, version, allow_failure, network),
        ):
            results[index] = result
    return [r for r in results if r is not None]


async def _run(
    clients: ClientCache,
    calls: list[CallDescriptor],
    multicall_address: str | None,
    version: int,
    allow_failure: bool,
    network: str | None,
) -> list[CallResult]:
    if not multicall_address:
        return await _simulate(clients, calls, network)
    try:
        client = clients.get_client(network)
        return await asyncio.to_thread(
            _aggregate, client, calls, multicall_address, version, allow_failure
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("Multicall failed, falling back to simulation: %s", exc)
        return await _simulate(clients, calls, network)


def _aggregate(
    client: Tron,
    calls: list[CallDescriptor],
    multicall_address: str,
    version: int,
    allow_failure: bool,
) -> list[CallResult]:
    functions = []
    entries = []
    for call in calls:
        if not call.abi:
            raise ValueError(f"No ABI supplied for {call.function_name} on {call.address}")
        fn = get_function_from_abi(call.abi, call.function_name)
        target = to_evm_address(call.address)
        call_data = encode_call(fn, call.args)
        if version == 3:
            flag = allow_failure if call.allow_failure is None else bool(call.allow_failure)
            entries.append((target, flag, call_data))
        else:
            entries.append((target, call_data))
        functions.append(fn)

    if version == 3:
        batch_fn = AGGREGATE3
        parameter = encode(["(address,bool,bytes)[]"], [entries])
    else:
        batch_fn = TRY_AGGREGATE
        parameter = encode(["bool", "(address,bytes)[]"], [not allow_failure, entries])

    raw = call_constant(client, multicall_address, batch_fn, parameter)
    # Both conventions return Result[]; unwrap the one-element outer tuple.
    (results,) = decode(["(bool,bytes)[]"], raw)
    if len(results) != len(calls):
        raise ValueError(f"Multicall returned {len(results)} results for {len(calls)} calls")

    out: list[CallResult] = []
    for call, fn, (ok, return_data) in zip(calls, functions, results):
        if not ok:
            out.append(
                CallResult(False, error=f"Call to {call.function_name} failed in multicall")
            )
            continue
        try:
            out.append(CallResult(True, result=decode_output(fn, return_data)))
        except Exception as exc:  # noqa: BLE001
            out.append(CallResult(False, error=f"Failed to decode {call.function_name}: {exc}"))
    return out


async def _simulate(
    clients: ClientCache, calls: list[CallDescriptor], network: str | None
) -> list[CallResult]:
    settled = await asyncio.gather(
        *(
            asyncio.to_thread(
                read_contract, clients, c.address, c.function_name, c.args, c.abi, network
            )
            for c in calls
        ),
        return_exceptions=True,
    )
    results: list[CallResult] = []
    for call, outcome in zip(calls, settled):
        if isinstance(outcome, BaseException):
            results.append(
                CallResult(False, error=f"Call to {call.function_name} failed: {outcome}")
            )
        else:
            results.append(CallResult(True, result=outcome))
    return results
