"""
TRON network definitions.

Static table of the supported networks (mainnet, Nile and Shasta testnets)
with their TronGrid endpoints and explorer URLs.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NetworkConfig:
    """Endpoints for one TRON network."""

    id: str
    name: str
    full_node: str
    solidity_node: str
    event_server: str
    explorer: str
    chain_id: int


class UnsupportedNetworkError(ValueError):
    """Raised for network identifiers that are neither known nor aliases."""


NETWORKS: dict[str, NetworkConfig] = {
    "mainnet": NetworkConfig(
        id="mainnet",
        name="Mainnet",
        full_node="https://api.trongrid.io",
        solidity_node="https://api.trongrid.io",
        event_server="https://api.trongrid.io",
        explorer="https://tronscan.org",
        chain_id=0x2B6653DC,
    ),
    "nile": NetworkConfig(
        id="nile",
        name="Nile",
        full_node="https://nile.trongrid.io",
        solidity_node="https://nile.trongrid.io",
        event_server="https://nile.trongrid.io",
        explorer="https://nile.tronscan.org",
        chain_id=0xCD8690DC,
    ),
    "shasta": NetworkConfig(
        id="shasta",
        name="Shasta",
        full_node="https://api.shasta.trongrid.io",
        solidity_node="https://api.shasta.trongrid.io",
        event_server="https://api.shasta.trongrid.io",
        explorer="https://shasta.tronscan.org",
        chain_id=0x94A9059E,
    ),
}

DEFAULT_NETWORK = "mainnet"

# "testnet" is pinned to Nile.
NETWORK_ALIASES: dict[str, str] = {
    "tron": "mainnet",
    "trx": "mainnet",
    "testnet": "nile",
}


def resolve_network(network: str | None = None) -> NetworkConfig:
    """Return the config for a network id or alias. Defaults to mainnet."""
    if network is None:
        network = DEFAULT_NETWORK
    normalized = str(network).strip().lower()
    if normalized in NETWORKS:
        return NETWORKS[normalized]
    if normalized in NETWORK_ALIASES:
        return NETWORKS[NETWORK_ALIASES[normalized]]
    raise UnsupportedNetworkError(f"Unsupported network: {network}")


def get_supported_networks() -> list[str]:
    return list(NETWORKS.keys())


def get_rpc_url(network: str | None = None) -> str:
    return resolve_network(network).full_node


def get_chain_id(network: str | None = None) -> int:
    return resolve_network(network).chain_id
