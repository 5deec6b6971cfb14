"""
Balance lookups for TRX and TRC20 / TRC721 / TRC1155 tokens.
"""

from __future__ import annotations

import logging
from typing import Any

from tronpy.exceptions import AddressNotFound

from tron_address import resolve_address, to_base58_address
from tron_clients import ClientCache
from tron_contracts import read_contract
from tron_networks import DEFAULT_NETWORK
from tron_tokens import TRC20_ABI, TRC721_ABI, TRC1155_ABI, read_many
from tron_utils import format_units, from_sun

logger = logging.getLogger(__name__)


def get_trx_balance(
    clients: ClientCache, address: str, network: str | None = DEFAULT_NETWORK
) -> dict[str, Any]:
    """
    Return ``{"sun": int, "trx": str}`` for ``address``.

    Accounts that were never activated report zero, the same as an empty one.
    """
    try:
        owner = resolve_address(address)
        try:
            account = clients.get_client(network).get_account(owner)
        except AddressNotFound:
            account = {}
        sun = int(account.get("balance", 0))
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch balance: {exc}") from exc
    return {"sun": sun, "trx": from_sun(sun)}


async def get_trc20_balance(
    clients: ClientCache,
    token_address: str,
    owner_address: str,
    network: str | None = DEFAULT_NETWORK,
) -> dict[str, Any]:
    try:
        owner = resolve_address(owner_address)
        balance, symbol, decimals = await read_many(
            clients,
            token_address,
            TRC20_ABI,
            [("balanceOf", [owner]), ("symbol", []), ("decimals", [])],
            network,
        )
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch token balance: {exc}") from exc
    decimals = int(decimals)
    return {
        "raw": balance,
        "formatted": format_units(balance, decimals),
        "token": {"symbol": symbol, "decimals": decimals},
    }


def get_trc721_balance(
    clients: ClientCache,
    token_address: str,
    owner_address: str,
    network: str | None = DEFAULT_NETWORK,
) -> int:
    try:
        owner = resolve_address(owner_address)
        return int(read_contract(clients, token_address, "balanceOf", [owner], TRC721_ABI, network))
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch NFT balance: {exc}") from exc


def is_nft_owner(
    clients: ClientCache,
    token_address: str,
    owner_address: str,
    token_id: int | str,
    network: str | None = DEFAULT_NETWORK,
) -> bool:
    """True when ``ownerOf(token_id)`` is ``owner_address``. Lookup failures count as not owned."""
    try:
        owner = to_base58_address(resolve_address(owner_address))
    except ValueError as exc:
        raise RuntimeError(f"Failed to check NFT ownership: {exc}") from exc
    try:
        actual = read_contract(clients, token_address, "ownerOf", [token_id], TRC721_ABI, network)
    except RuntimeError as exc:
        logger.warning("Error checking NFT ownership: %s", exc)
        return False
    return str(actual) == owner


def get_trc1155_balance(
    clients: ClientCache,
    token_address: str,
    owner_address: str,
    token_id: int | str,
    network: str | None = DEFAULT_NETWORK,
) -> int:
    try:
        owner = resolve_address(owner_address)
        return int(
            read_contract(
                clients, token_address, "balanceOf", [owner, token_id], TRC1155_ABI, network
            )
        )
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch TRC1155 balance: {exc}") from exc
