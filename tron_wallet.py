"""
Wallet resolution and message signing for the configured TRON account.

Key material comes from the environment (or a .env file):
- TRON_PRIVATE_KEY: hex private key, with or without a 0x prefix.
- TRON_MNEMONIC: BIP-39 phrase (12 or 24 words), derived at
  m/44'/195'/0'/0/{TRON_ACCOUNT_INDEX}.
- TRON_ACCOUNT_INDEX: optional derivation index (default 0).
- TRON_CREDENTIAL_SOURCE: optional, "private_key" or "mnemonic". When unset
  the private key wins if both secrets are present.

Nothing is cached: every call re-reads the environment and re-derives.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Literal

from bip_utils import (
    Bip39MnemonicValidator,
    Bip39SeedGenerator,
    Bip44,
    Bip44Changes,
    Bip44Coins,
)
from tronpy.exceptions import BadKey
from tronpy.keys import PrivateKey, hash_message

from tron_clients import ClientCache
from tron_networks import DEFAULT_NETWORK

CredentialSource = Literal["private_key", "mnemonic"]

TRON_DERIVATION_PATH = "m/44'/195'/0'/0"

_CREDENTIAL_SOURCES = ("private_key", "mnemonic")


class TronConfigError(Exception):
    """Configuration or key-material error for the TRON wallet."""

    pass


@dataclass
class ConfiguredWallet:
    private_key: str
    address: str
    source: CredentialSource
    derivation_path: str | None = None


def _account_index_from_env() -> int:
    raw = os.getenv("TRON_ACCOUNT_INDEX", "0").strip() or "0"
    try:
        index = int(raw, 10)
    except ValueError:
        index = -1
    if index < 0:
        raise TronConfigError(
            f'Invalid TRON_ACCOUNT_INDEX: "{raw}". Must be a non-negative integer.'
        )
    return index


def _credential_source_from_env() -> CredentialSource | None:
    raw = (os.getenv("TRON_CREDENTIAL_SOURCE") or "").strip().lower()
    if not raw:
        return None
    if raw not in _CREDENTIAL_SOURCES:
        raise TronConfigError(
            f"Invalid TRON_CREDENTIAL_SOURCE={raw!r}. Expected 'private_key' or 'mnemonic'."
        )
    return raw  # type: ignore[return-value]


def _wallet_from_private_key(private_key: str) -> ConfiguredWallet:
    clean_key = private_key.strip()
    if clean_key.startswith("0x"):
        clean_key = clean_key[2:]
    try:
        key = PrivateKey(bytes.fromhex(clean_key))
    except (ValueError, BadKey) as exc:
        raise TronConfigError("Invalid private key provided in TRON_PRIVATE_KEY") from exc
    return ConfiguredWallet(
        private_key=clean_key.lower(),
        address=key.public_key.to_base58check_address(),
        source="private_key",
    )


def _wallet_from_mnemonic(mnemonic: str, account_index: int) -> ConfiguredWallet:
    phrase = " ".join(mnemonic.split())
    if not Bip39MnemonicValidator().IsValid(phrase):
        raise TronConfigError("Invalid mnemonic provided in TRON_MNEMONIC")

    try:
        seed_bytes = Bip39SeedGenerator(phrase).Generate()
        ctx = (
            Bip44.FromSeed(seed_bytes, Bip44Coins.TRON)
            .Purpose()
            .Coin()
            .Account(0)
            .Change(Bip44Changes.CHAIN_EXT)
            .AddressIndex(account_index)
        )
        private_key_hex = ctx.PrivateKey().Raw().ToHex()
    except Exception as exc:  # noqa: BLE001
        raise TronConfigError("Failed to derive private key from mnemonic") from exc
    if not private_key_hex:
        raise TronConfigError("Failed to derive private key from mnemonic")

    key = PrivateKey(bytes.fromhex(private_key_hex))
    return ConfiguredWallet(
        private_key=private_key_hex,
        address=key.public_key.to_base58check_address(),
        source="mnemonic",
        derivation_path=f"{TRON_DERIVATION_PATH}/{account_index}",
    )


def get_configured_wallet() -> ConfiguredWallet:
    """Resolve the wallet from the environment, raising TronConfigError when unusable."""
    account_index = _account_index_from_env()
    source = _credential_source_from_env()
    private_key = os.getenv("TRON_PRIVATE_KEY") or ""
    mnemonic = os.getenv("TRON_MNEMONIC") or ""

    if source is None:
        if private_key:
            source = "private_key"
        elif mnemonic:
            source = "mnemonic"

    if source == "private_key":
        if not private_key:
            raise TronConfigError(
                "TRON_CREDENTIAL_SOURCE is 'private_key' but TRON_PRIVATE_KEY is not set."
            )
        return _wallet_from_private_key(private_key)
    if source == "mnemonic":
        if not mnemonic:
            raise TronConfigError(
                "TRON_CREDENTIAL_SOURCE is 'mnemonic' but TRON_MNEMONIC is not set."
            )
        return _wallet_from_mnemonic(mnemonic, account_index)

    raise TronConfigError(
        "Neither TRON_PRIVATE_KEY nor TRON_MNEMONIC environment variable is set. "
        "Configure one of them to enable write operations.\n"
        "- TRON_PRIVATE_KEY: Your private key in hex format\n"
        "- TRON_MNEMONIC: Your 12 or 24 word mnemonic phrase\n"
        "- TRON_ACCOUNT_INDEX: (Optional) Account index for HD wallet (default: 0)"
    )


def get_configured_private_key() -> str:
    return get_configured_wallet().private_key


def get_wallet_address() -> str:
    return get_configured_wallet().address


def validate_environment() -> None:
    """
    Check the wallet settings that are fatal when malformed.

    A missing secret is not an error here; the server then runs read-only.
    """
    _account_index_from_env()
    _credential_source_from_env()


def tron_message_hash(message: str | bytes) -> bytes:
    """keccak256 over the TRON signed-message prefix, byte length and message."""
    data = message.encode("utf-8") if isinstance(message, str) else bytes(message)
    return hash_message(data)


def sign_message(clients: ClientCache, message: str) -> dict[str, str]:
    """Sign ``message`` with the configured key. Returns the 0x signature and signer."""
    wallet = get_configured_wallet()
    signer = clients.get_signing_client(wallet.private_key, DEFAULT_NETWORK)
    try:
        raw = bytes.fromhex(signer.private_key.sign_msg(message.encode("utf-8")).hex())
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to sign message: {exc}") from exc
    # tronpy yields a 0/1 recovery id; wallets expect 27/28.
    v = raw[64] if raw[64] >= 27 else raw[64] + 27
    return {"signature": "0x" + raw[:64].hex() + format(v, "02x"), "signer": signer.address}


def sign_typed_data(
    clients: ClientCache,
    domain: dict[str, Any],
    types: dict[str, Any],
    value: dict[str, Any],
) -> dict[str, str]:
    wallet = get_configured_wallet()
    signer = clients.get_signing_client(wallet.private_key, DEFAULT_NETWORK)
    sign_fn = getattr(signer.private_key, "sign_typed_data", None)
    if not callable(sign_fn):
        raise RuntimeError(
            "signTypedData not supported by the installed tronpy version or configuration"
        )
    try:
        signature = sign_fn(domain, types, value)
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to sign typed data: {exc}") from exc
    if isinstance(signature, (bytes, bytearray)):
        signature = "0x" + bytes(signature).hex()
    return {"signature": str(signature), "signer": signer.address}
