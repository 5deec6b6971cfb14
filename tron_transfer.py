"""
TRX and TRC20 transfers, TRC20 approvals.

TRX amounts are decimal TRX and converted to sun here. TRC20 amounts are raw
integer units; the token's symbol and decimals are read afterwards only to
format the response.
"""

from __future__ import annotations

import asyncio
from typing import Any

from tron_address import resolve_address
from tron_clients import ClientCache
from tron_contracts import write_contract
from tron_networks import DEFAULT_NETWORK
from tron_tokens import TRC20_ABI, read_many
from tron_utils import format_units, to_sun
from tron_wallet import TronConfigError, get_configured_wallet


def transfer_trx(
    clients: ClientCache, to: str, amount: Any, network: str | None = DEFAULT_NETWORK
) -> str:
    """Send ``amount`` TRX to ``to``. Returns the transaction id."""
    wallet = get_configured_wallet()
    signer = clients.get_signing_client(wallet.private_key, network)
    try:
        amount_sun = to_sun(amount)
        if amount_sun <= 0:
            raise ValueError("Invalid amount. Must be greater than zero.")
        txn = (
            signer.client.trx.transfer(signer.address, resolve_address(to), amount_sun)
            .build()
            .sign(signer.private_key)
        )
        return txn.broadcast().txid
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to transfer TRX: {exc}") from exc


def _raw_amount(amount: Any) -> int:
    text = str(amount).strip()
    if not text.isdigit():
        raise ValueError("Invalid amount. Must be a non-negative integer in the token's base units.")
    return int(text)


async def transfer_trc20(
    clients: ClientCache,
    token_address: str,
    to: str,
    amount: Any,
    network: str | None = DEFAULT_NETWORK,
) -> dict[str, Any]:
    try:
        raw = _raw_amount(amount)
        if raw == 0:
            raise ValueError("Invalid amount. Must be greater than zero.")
        tx_hash = await asyncio.to_thread(
            write_contract,
            clients,
            token_address,
            "transfer",
            [to, raw],
            abi=TRC20_ABI,
            network=network,
        )
        symbol, decimals = await read_many(
            clients, token_address, TRC20_ABI, [("symbol", []), ("decimals", [])], network
        )
    except TronConfigError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to transfer TRC20: {exc}") from exc
    decimals = int(decimals)
    return {
        "txHash": tx_hash,
        "amount": {"raw": str(raw), "formatted": format_units(raw, decimals)},
        "token": {"symbol": symbol, "decimals": decimals},
    }


def approve_trc20(
    clients: ClientCache,
    token_address: str,
    spender_address: str,
    amount: Any,
    network: str | None = DEFAULT_NETWORK,
) -> str:
    try:
        return write_contract(
            clients,
            token_address,
            "approve",
            [spender_address, _raw_amount(amount)],
            abi=TRC20_ABI,
            network=network,
        )
    except TronConfigError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to approve TRC20: {exc}") from exc
