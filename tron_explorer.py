"""
Block and chain-level lookups.
"""

from __future__ import annotations

from typing import Any

from tron_clients import ClientCache
from tron_networks import DEFAULT_NETWORK, resolve_network


def _looks_like_hash(identifier: str) -> bool:
    return identifier.startswith("0x") or (len(identifier) > 20 and not identifier.isdigit())


def get_block_by_number(
    clients: ClientCache, block_number: int, network: str | None = DEFAULT_NETWORK
) -> dict[str, Any]:
    return clients.get_client(network).get_block(int(block_number))


def get_block_by_hash(
    clients: ClientCache, block_hash: str, network: str | None = DEFAULT_NETWORK
) -> dict[str, Any]:
    clean = block_hash[2:] if block_hash.startswith("0x") else block_hash
    return clients.get_client(network).get_block(clean)


def get_block(
    clients: ClientCache, block_identifier: str | int, network: str | None = DEFAULT_NETWORK
) -> dict[str, Any]:
    """Fetch a block by number or by hash; the form is inferred from the identifier."""
    identifier = str(block_identifier).strip()
    try:
        if _looks_like_hash(identifier):
            return get_block_by_hash(clients, identifier, network)
        return get_block_by_number(clients, int(identifier), network)
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch block: {exc}") from exc


def get_latest_block(clients: ClientCache, network: str | None = DEFAULT_NETWORK) -> dict[str, Any]:
    try:
        return clients.get_client(network).get_latest_block()
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch latest block: {exc}") from exc


def get_block_number(clients: ClientCache, network: str | None = DEFAULT_NETWORK) -> int:
    block = get_latest_block(clients, network)
    return int(block["block_header"]["raw_data"]["number"])


def get_chain_info(clients: ClientCache, network: str | None = DEFAULT_NETWORK) -> dict[str, Any]:
    cfg = resolve_network(network)
    try:
        block_number = get_block_number(clients, cfg.id)
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch chain info: {exc}") from exc
    return {
        "network": cfg.id,
        "chainId": cfg.chain_id,
        "blockNumber": block_number,
        "rpcUrl": cfg.full_node,
        "explorer": cfg.explorer,
    }


def get_chain_parameters(
    clients: ClientCache, network: str | None = DEFAULT_NETWORK
) -> dict[str, Any]:
    """Energy and bandwidth unit prices (sun) plus the raw parameter list."""
    cfg = resolve_network(network)
    try:
        parameters = clients.get_client(cfg.id).get_chain_parameters()
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch chain parameters: {exc}") from exc
    by_key = {p["key"]: p.get("value") for p in parameters if p.get("key")}
    return {
        "network": cfg.id,
        "energy_price_sun": by_key.get("getEnergyFee"),
        "bandwidth_price_sun": by_key.get("getTransactionFee"),
        "all_parameters": parameters,
    }
