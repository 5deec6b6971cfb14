import sys
from pathlib import Path

import coincurve
import pytest
from eth_utils import keccak
from tronpy.keys import PrivateKey

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

import tron_wallet  # noqa: E402
from tron_clients import ClientCache  # noqa: E402
from tron_wallet import TronConfigError  # noqa: E402

TEST_KEY = "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
ENV_VARS = ("TRON_PRIVATE_KEY", "TRON_MNEMONIC", "TRON_ACCOUNT_INDEX", "TRON_CREDENTIAL_SOURCE")


def _address_for(key_hex):
    return PrivateKey(bytes.fromhex(key_hex)).public_key.to_base58check_address()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _clients():
    return ClientCache(client_factory=lambda cfg: object())


# ---------------------------------------------------------------------------
# Wallet resolution
# ---------------------------------------------------------------------------


def test_private_key_wallet(monkeypatch):
    monkeypatch.setenv("TRON_PRIVATE_KEY", "0x" + TEST_KEY.upper())
    wallet = tron_wallet.get_configured_wallet()
    assert wallet.source == "private_key"
    assert wallet.private_key == TEST_KEY
    assert wallet.address == _address_for(TEST_KEY)
    assert wallet.derivation_path is None
    assert tron_wallet.get_configured_private_key() == TEST_KEY
    assert tron_wallet.get_wallet_address() == wallet.address


def test_private_key_wins_when_both_are_set(monkeypatch):
    monkeypatch.setenv("TRON_PRIVATE_KEY", TEST_KEY)
    monkeypatch.setenv("TRON_MNEMONIC", TEST_MNEMONIC)
    assert tron_wallet.get_configured_wallet().source == "private_key"


def test_explicit_credential_source_overrides_precedence(monkeypatch):
    monkeypatch.setenv("TRON_PRIVATE_KEY", TEST_KEY)
    monkeypatch.setenv("TRON_MNEMONIC", TEST_MNEMONIC)
    monkeypatch.setenv("TRON_CREDENTIAL_SOURCE", "Mnemonic")
    wallet = tron_wallet.get_configured_wallet()
    assert wallet.source == "mnemonic"
    assert wallet.derivation_path == "m/44'/195'/0'/0/0"


def test_explicit_source_without_secret_raises(monkeypatch):
    monkeypatch.setenv("TRON_MNEMONIC", TEST_MNEMONIC)
    monkeypatch.setenv("TRON_CREDENTIAL_SOURCE", "private_key")
    with pytest.raises(TronConfigError, match="TRON_PRIVATE_KEY is not set"):
        tron_wallet.get_configured_wallet()


def test_invalid_credential_source(monkeypatch):
    monkeypatch.setenv("TRON_CREDENTIAL_SOURCE", "ledger")
    with pytest.raises(TronConfigError, match="TRON_CREDENTIAL_SOURCE"):
        tron_wallet.validate_environment()


def test_mnemonic_wallet_uses_account_index(monkeypatch):
    monkeypatch.setenv("TRON_MNEMONIC", TEST_MNEMONIC)
    first = tron_wallet.get_configured_wallet()
    monkeypatch.setenv("TRON_ACCOUNT_INDEX", "1")
    second = tron_wallet.get_configured_wallet()

    assert first.source == second.source == "mnemonic"
    assert first.address != second.address
    assert second.derivation_path == "m/44'/195'/0'/0/1"
    assert second.address == _address_for(second.private_key)
    assert second.address.startswith("T")


def test_mnemonic_whitespace_is_normalized(monkeypatch):
    monkeypatch.setenv("TRON_MNEMONIC", TEST_MNEMONIC)
    expected = tron_wallet.get_configured_wallet().address
    monkeypatch.setenv("TRON_MNEMONIC", "  " + TEST_MNEMONIC.replace(" ", "   ") + "\n")
    assert tron_wallet.get_configured_wallet().address == expected


def test_invalid_mnemonic(monkeypatch):
    monkeypatch.setenv("TRON_MNEMONIC", "abandon " * 11 + "abandon")
    with pytest.raises(TronConfigError, match="Invalid mnemonic provided in TRON_MNEMONIC"):
        tron_wallet.get_configured_wallet()


def test_invalid_private_key(monkeypatch):
    monkeypatch.setenv("TRON_PRIVATE_KEY", "not-hex")
    with pytest.raises(TronConfigError, match="Invalid private key provided in TRON_PRIVATE_KEY"):
        tron_wallet.get_configured_wallet()


@pytest.mark.parametrize("raw", ["-1", "abc", "1.5"])
def test_invalid_account_index(monkeypatch, raw):
    monkeypatch.setenv("TRON_PRIVATE_KEY", TEST_KEY)
    monkeypatch.setenv("TRON_ACCOUNT_INDEX", raw)
    with pytest.raises(TronConfigError, match=f'Invalid TRON_ACCOUNT_INDEX: "{raw}"'):
        tron_wallet.get_configured_wallet()


def test_missing_credentials_message():
    with pytest.raises(TronConfigError) as excinfo:
        tron_wallet.get_configured_wallet()
    message = str(excinfo.value)
    assert "Neither TRON_PRIVATE_KEY nor TRON_MNEMONIC" in message
    assert "TRON_ACCOUNT_INDEX" in message


def test_validate_environment_allows_read_only_mode():
    tron_wallet.validate_environment()


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


def test_message_hash_uses_tron_prefix():
    digest = tron_wallet.tron_message_hash("hello")
    assert len(digest) == 32
    assert digest == tron_wallet.tron_message_hash(b"hello")
    assert digest != tron_wallet.tron_message_hash("hello!")
    assert digest == keccak(b"\x19TRON Signed Message:\n" + b"5" + b"hello")


def test_sign_message_recovers_to_signer(monkeypatch):
    monkeypatch.setenv("TRON_PRIVATE_KEY", TEST_KEY)
    signed = tron_wallet.sign_message(_clients(), "hello tron")

    signature = bytes.fromhex(signed["signature"][2:])
    assert len(signature) == 65
    assert signature[64] in (27, 28)
    assert signed["signer"] == _address_for(TEST_KEY)

    recoverable = signature[:64] + bytes([signature[64] - 27])
    recovered = coincurve.PublicKey.from_signature_and_message(
        recoverable, tron_wallet.tron_message_hash("hello tron"), hasher=None
    )
    expected = coincurve.PrivateKey(bytes.fromhex(TEST_KEY)).public_key
    assert recovered.format() == expected.format()


def test_sign_message_delegates_to_tronpy(monkeypatch):
    monkeypatch.setenv("TRON_PRIVATE_KEY", TEST_KEY)
    seen = []

    class _Signature:
        def hex(self):
            return "11" * 64 + "01"

    def fake_sign_msg(self, message):
        seen.append(message)
        return _Signature()

    monkeypatch.setattr(PrivateKey, "sign_msg", fake_sign_msg)
    signed = tron_wallet.sign_message(_clients(), "hello tron")
    assert seen == [b"hello tron"]
    assert signed["signature"] == "0x" + "11" * 64 + "1c"


def test_sign_message_requires_wallet():
    with pytest.raises(TronConfigError):
        tron_wallet.sign_message(_clients(), "hello")


def test_sign_typed_data_unsupported(monkeypatch):
    monkeypatch.setenv("TRON_PRIVATE_KEY", TEST_KEY)
    monkeypatch.delattr(PrivateKey, "sign_typed_data", raising=False)
    with pytest.raises(RuntimeError, match="signTypedData not supported"):
        tron_wallet.sign_typed_data(_clients(), {}, {}, {})


def test_sign_typed_data_delegates_to_key(monkeypatch):
    monkeypatch.setenv("TRON_PRIVATE_KEY", TEST_KEY)
    seen = {}

    def fake_sign(self, domain, types, value):
        seen["args"] = (domain, types, value)
        return b"\xab" * 65

    monkeypatch.setattr(PrivateKey, "sign_typed_data", fake_sign, raising=False)
    result = tron_wallet.sign_typed_data(_clients(), {"name": "d"}, {"T": []}, {"v": 1})
    assert result["signature"] == "0x" + "ab" * 65
    assert result["signer"] == _address_for(TEST_KEY)
    assert seen["args"] == ({"name": "d"}, {"T": []}, {"v": 1})
