"""
Transaction lookups and confirmation polling.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable

import requests
from tronpy.exceptions import TransactionNotFound

from tron_clients import ClientCache
from tron_networks import DEFAULT_NETWORK

logger = logging.getLogger(__name__)


class ConfirmationTimeout(TimeoutError):
    """The poll policy was exhausted without a confirmed receipt."""


class ConfirmationCancelled(RuntimeError):
    """The caller abandoned the wait."""


def _has_id(info: dict[str, Any]) -> bool:
    return bool(info and info.get("id"))


@dataclass(frozen=True)
class PollPolicy:
    """Fixed-count, fixed-interval polling. No backoff."""

    max_attempts: int = 30
    interval_seconds: float = 2.0
    is_confirmed: Callable[[dict[str, Any]], bool] = _has_id

    def __post_init__(self):
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be greater than zero.")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative.")

    @property
    def bound_ms(self) -> int:
        return int(self.max_attempts * self.interval_seconds * 1000)

    @classmethod
    def from_env(cls) -> PollPolicy:
        attempts_raw = (os.getenv("TRON_CONFIRM_MAX_ATTEMPTS") or "30").strip()
        interval_raw = (os.getenv("TRON_CONFIRM_INTERVAL_SECONDS") or "2").strip()
        try:
            max_attempts = int(attempts_raw)
        except ValueError as exc:
            raise ValueError(
                f"Invalid TRON_CONFIRM_MAX_ATTEMPTS={attempts_raw!r}. Must be an integer."
            ) from exc
        try:
            interval_seconds = float(interval_raw)
        except ValueError as exc:
            raise ValueError(
                f"Invalid TRON_CONFIRM_INTERVAL_SECONDS={interval_raw!r}. Must be a number."
            ) from exc
        if max_attempts <= 0:
            raise ValueError("TRON_CONFIRM_MAX_ATTEMPTS must be greater than zero.")
        if interval_seconds < 0:
            raise ValueError("TRON_CONFIRM_INTERVAL_SECONDS must not be negative.")
        return cls(max_attempts=max_attempts, interval_seconds=interval_seconds)


def get_transaction(
    clients: ClientCache, tx_hash: str, network: str | None = DEFAULT_NETWORK
) -> dict[str, Any]:
    try:
        return clients.get_client(network).get_transaction(tx_hash)
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch transaction: {exc}") from exc


def get_transaction_info(
    clients: ClientCache, tx_hash: str, network: str | None = DEFAULT_NETWORK
) -> dict[str, Any]:
    """Receipt-like record: result, fee, energy and bandwidth usage, logs."""
    try:
        return clients.get_client(network).get_transaction_info(tx_hash)
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to fetch transaction info: {exc}") from exc


get_transaction_receipt = get_transaction_info


async def wait_for_transaction(
    clients: ClientCache,
    tx_hash: str,
    network: str | None = DEFAULT_NETWORK,
    policy: PollPolicy | None = None,
    cancel: asyncio.Event | None = None,
) -> dict[str, Any]:
    """
    Poll ``get_transaction_info`` until ``policy.is_confirmed`` accepts it.

    Not-found and HTTP errors between attempts are retried. Setting ``cancel``
    stops the wait at the next attempt boundary or mid-sleep.
    """
    policy = policy or PollPolicy.from_env()
    client = clients.get_client(network)

    for attempt in range(1, policy.max_attempts + 1):
        if cancel is not None and cancel.is_set():
            raise ConfirmationCancelled(f"Wait for transaction {tx_hash} cancelled")
        try:
            info = await asyncio.to_thread(client.get_transaction_info, tx_hash)
        except (TransactionNotFound, requests.RequestException) as exc:
            logger.debug("Attempt %d/%d for %s: %s", attempt, policy.max_attempts, tx_hash, exc)
            info = None
        if info and policy.is_confirmed(info):
            return info
        if attempt == policy.max_attempts:
            break

        if cancel is None:
            await asyncio.sleep(policy.interval_seconds)
            continue
        try:
            await asyncio.wait_for(cancel.wait(), timeout=policy.interval_seconds)
        except asyncio.TimeoutError:
            continue
        raise ConfirmationCancelled(f"Wait for transaction {tx_hash} cancelled")

    raise ConfirmationTimeout(
        f"Transaction {tx_hash} not confirmed after {policy.bound_ms}ms"
    )
