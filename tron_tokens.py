"""
Standard TRC20 / TRC721 / TRC1155 ABI fragments and token metadata reads.
"""

from __future__ import annotations

import asyncio
from typing import Any

from tron_clients import ClientCache
from tron_contracts import read_contract
from tron_networks import DEFAULT_NETWORK
from tron_utils import format_units


def _view(name: str, inputs: list[tuple[str, str]], output: str) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": "", "type": output}],
    }


def _nonpayable(name: str, inputs: list[tuple[str, str]], output: str) -> dict[str, Any]:
    entry = _view(name, inputs, output)
    entry["stateMutability"] = "nonpayable"
    return entry


TRC20_ABI: list[dict[str, Any]] = [
    _view("name", [], "string"),
    _view("symbol", [], "string"),
    _view("decimals", [], "uint8"),
    _view("totalSupply", [], "uint256"),
    _view("balanceOf", [("account", "address")], "uint256"),
    _view("allowance", [("owner", "address"), ("spender", "address")], "uint256"),
    _nonpayable("transfer", [("to", "address"), ("amount", "uint256")], "bool"),
    _nonpayable("approve", [("spender", "address"), ("amount", "uint256")], "bool"),
]

TRC721_ABI: list[dict[str, Any]] = [
    _view("name", [], "string"),
    _view("symbol", [], "string"),
    _view("tokenURI", [("tokenId", "uint256")], "string"),
    _view("balanceOf", [("owner", "address")], "uint256"),
    _view("ownerOf", [("tokenId", "uint256")], "address"),
]

TRC1155_ABI: list[dict[str, Any]] = [
    _view("uri", [("id", "uint256")], "string"),
    _view("balanceOf", [("account", "address"), ("id", "uint256")], "uint256"),
]


async def read_many(
    clients: ClientCache,
    contract_address: str,
    abi: list[dict[str, Any]],
    calls: list[tuple[str, list[Any]]],
    network: str | None = DEFAULT_NETWORK,
) -> list[Any]:
    """Run several reads against one contract concurrently; the first failure propagates."""
    return list(
        await asyncio.gather(
            *(
                asyncio.to_thread(
                    read_contract, clients, contract_address, name, args, abi, network
                )
                for name, args in calls
            )
        )
    )


async def get_trc20_token_info(
    clients: ClientCache, token_address: str, network: str | None = DEFAULT_NETWORK
) -> dict[str, Any]:
    try:
        name, symbol, decimals, total_supply = await read_many(
            clients,
            token_address,
            TRC20_ABI,
            [("name", []), ("symbol", []), ("decimals", []), ("totalSupply", [])],
            network,
        )
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch token info: {exc}") from exc
    return {
        "name": name,
        "symbol": symbol,
        "decimals": int(decimals),
        "totalSupply": total_supply,
        "formattedTotalSupply": format_units(total_supply, int(decimals)),
    }


async def get_trc721_token_metadata(
    clients: ClientCache,
    token_address: str,
    token_id: int | str,
    network: str | None = DEFAULT_NETWORK,
) -> dict[str, Any]:
    try:
        name, symbol, token_uri = await read_many(
            clients,
            token_address,
            TRC721_ABI,
            [("name", []), ("symbol", []), ("tokenURI", [token_id])],
            network,
        )
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch NFT metadata: {exc}") from exc
    return {"name": name, "symbol": symbol, "tokenURI": token_uri}


def get_trc1155_token_uri(
    clients: ClientCache,
    token_address: str,
    token_id: int | str,
    network: str | None = DEFAULT_NETWORK,
) -> str:
    try:
        return read_contract(clients, token_address, "uri", [token_id], TRC1155_ABI, network)
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch TRC1155 token URI: {exc}") from exc
