"""
Per-network tronpy client cache.

One read-only ``Tron`` client per resolved network id, created lazily and
kept for the lifetime of the cache. Signing clients are built per call and
never stored, so key material does not outlive the operation that needs it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Callable

from tronpy import Tron
from tronpy.keys import PrivateKey
from tronpy.providers import HTTPProvider

from tron_networks import DEFAULT_NETWORK, NetworkConfig, resolve_network

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


@dataclass
class SigningClient:
    """A client bundled with the key that signs its transactions."""

    client: Tron
    private_key: PrivateKey
    address: str


class ClientCache:
    """
    Cache of ``Tron`` clients keyed by resolved network id.

    Aliases share an entry ("testnet" and "nile" return the same client).
    There is no lock: two concurrent first accesses may both build a client
    and the later one wins, which is harmless since they are equivalent.
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client_factory: Callable[[NetworkConfig], Tron] | None = None,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self._client_factory = client_factory or self._build_client
        self._clients: dict[str, Tron] = {}

    @classmethod
    def from_env(cls) -> ClientCache:
        return cls(api_key=os.getenv("TRONGRID_API_KEY") or None)

    def _build_client(self, cfg: NetworkConfig) -> Tron:
        provider = HTTPProvider(cfg.full_node, timeout=self.timeout, api_key=self.api_key)
        return Tron(provider=provider)

    def get_client(self, network: str | None = DEFAULT_NETWORK) -> Tron:
        cfg = resolve_network(network)
        client = self._clients.get(cfg.id)
        if client is None:
            client = self._client_factory(cfg)
            self._clients[cfg.id] = client
        return client

    def get_signing_client(
        self, private_key: str, network: str | None = DEFAULT_NETWORK
    ) -> SigningClient:
        cfg = resolve_network(network)
        clean_key = private_key[2:] if private_key.startswith("0x") else private_key
        key = PrivateKey(bytes.fromhex(clean_key))
        return SigningClient(
            client=self._client_factory(cfg),
            private_key=key,
            address=key.public_key.to_base58check_address(),
        )

    def shutdown(self) -> None:
        """Close provider sessions and drop every cached client."""
        for network_id, client in self._clients.items():
            session = getattr(getattr(client, "provider", None), "sess", None)
            if session is not None:
                session.close()
            logger.debug("Closed TRON client for %s", network_id)
        self._clients.clear()

    def __contains__(self, network: str) -> bool:
        return resolve_network(network).id in self._clients

    def __len__(self) -> int:
        return len(self._clients)
