import asyncio
import json
import sys
from pathlib import Path

import pytest
from eth_abi import encode
from tronpy.keys import PrivateKey

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

import tron_mcp_cli  # noqa: E402
import tron_prompts  # noqa: E402
import tron_wallet_mcp_server as server  # noqa: E402
from tron_clients import ClientCache  # noqa: E402
from tron_tokens import TRC20_ABI  # noqa: E402

USDT = "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t"
ZERO = "T9yD14Nj9j7xAB4dbGeiX9h8unkKHxuWwb"
TEST_KEY = "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_ADDRESS = PrivateKey(bytes.fromhex(TEST_KEY)).public_key.to_base58check_address()
ENV_VARS = (
    "TRON_PRIVATE_KEY",
    "TRON_MNEMONIC",
    "TRON_ACCOUNT_INDEX",
    "TRON_CREDENTIAL_SOURCE",
    "TRON_FEE_LIMIT_SUN",
    "TRON_CONFIRM_MAX_ATTEMPTS",
    "TRON_CONFIRM_INTERVAL_SECONDS",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeTron:
    def __init__(self):
        self.account = {"balance": 2**60}
        self.tx_info = {"id": "aa", "receipt": {"result": "SUCCESS"}}

    def trigger_const_smart_contract_function(self, owner, contract, signature, parameter):
        table = {
            "balanceOf(address)": (["uint256"], [1234]),
            "symbol()": (["string"], ["USDT"]),
            "decimals()": (["uint8"], [2]),
        }
        if signature not in table:
            raise ValueError(f"REVERT {signature}")
        types, values = table[signature]
        return encode(types, values).hex()

    def get_account(self, address):
        return self.account

    def get_latest_block(self):
        return {"blockID": "00", "block_header": {"raw_data": {"number": 77}}}

    def get_transaction_info(self, tx_hash):
        return self.tx_info

    def get_contract(self, address):
        return type("C", (), {"abi": TRC20_ABI})()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake(monkeypatch):
    tron = FakeTron()
    monkeypatch.setattr(server, "clients", ClientCache(client_factory=lambda cfg: tron))
    return tron


def _parse(response):
    return json.loads(response[0].text)


def _call(name, arguments=None):
    return _parse(asyncio.run(server.call_tool(name, arguments)))


# ---------------------------------------------------------------------------
# Tool listing & dispatch
# ---------------------------------------------------------------------------


def test_list_tools_includes_every_tool():
    tools = asyncio.run(server.list_tools())
    names = {tool.name for tool in tools}
    assert names == {
        "get_wallet_address",
        "get_chain_info",
        "get_supported_networks",
        "get_chain_parameters",
        "convert_address",
        "get_block",
        "get_latest_block",
        "get_balance",
        "get_token_balance",
        "get_token_info",
        "get_nft_balance",
        "check_nft_ownership",
        "get_nft_metadata",
        "get_trc1155_balance",
        "get_transaction",
        "get_transaction_info",
        "wait_for_transaction",
        "read_contract",
        "get_contract_abi",
        "write_contract",
        "multicall",
        "transfer_trx",
        "transfer_trc20",
        "approve_trc20",
        "sign_message",
        "sign_typed_data",
    }
    assert len(tools) == 26


def test_write_tools_are_annotated_as_writes():
    tools = {tool.name: tool for tool in asyncio.run(server.list_tools())}
    assert tools["get_balance"].annotations.readOnlyHint is True
    assert tools["transfer_trx"].annotations.readOnlyHint is False
    assert tools["transfer_trx"].annotations.destructiveHint is True


def test_unknown_tool():
    assert _call("nope", {}) == {"success": False, "error": "Unknown tool: nope"}


def test_missing_required_arguments():
    payload = _call("transfer_trc20", {"to": USDT})
    assert payload["success"] is False
    assert payload["error"] == "Missing required argument(s): tokenAddress, amount"


def test_non_object_arguments():
    payload = _call("get_balance", ["x"])
    assert payload == {"success": False, "error": "Invalid arguments. Expected an object."}


def test_errors_are_returned_as_envelopes(fake):
    payload = _call("get_balance", {"address": USDT, "network": "moon"})
    assert payload["success"] is False
    assert "Unsupported network: moon" in payload["error"]


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def test_get_wallet_address(monkeypatch):
    monkeypatch.setenv("TRON_PRIVATE_KEY", TEST_KEY)
    payload = _call("get_wallet_address")
    assert payload["success"] is True
    assert payload["address"] == TEST_ADDRESS
    assert payload["base58"] == TEST_ADDRESS
    assert payload["hex"].startswith("41")
    assert payload["source"] == "private_key"


def test_get_wallet_address_without_credentials():
    payload = _call("get_wallet_address")
    assert payload["success"] is False
    assert "Neither TRON_PRIVATE_KEY nor TRON_MNEMONIC" in payload["error"]


def test_get_supported_networks():
    payload = _call("get_supported_networks")
    assert payload["supportedNetworks"] == ["mainnet", "nile", "shasta"]
    assert payload["defaultNetwork"] == "mainnet"


def test_convert_address():
    payload = _call("convert_address", {"address": " " + USDT + " "})
    assert payload["base58"] == USDT
    assert payload["isValid"] is True


def test_get_chain_info(fake):
    payload = _call("get_chain_info", {"network": "nile"})
    assert payload["network"] == "nile"
    assert payload["blockNumber"] == 77


def test_get_balance_keeps_large_values_exact(fake):
    payload = _call("get_balance", {"address": USDT})
    assert payload["network"] == "mainnet"
    assert payload["balance"]["sun"] == str(2**60)
    assert payload["balance"]["trx"] == "1152921504606.846976"


def test_get_token_balance(fake):
    payload = _call("get_token_balance", {"tokenAddress": USDT, "address": ZERO})
    assert payload["balance"] == {
        "raw": "1234",
        "formatted": "12.34",
        "symbol": "USDT",
        "decimals": 2,
    }


def test_read_contract(fake):
    payload = _call(
        "read_contract",
        {"contractAddress": USDT, "functionName": "balanceOf", "args": [ZERO]},
    )
    assert payload["result"] == 1234
    assert payload["args"] == [ZERO]


def test_read_contract_rejects_non_list_args(fake):
    payload = _call(
        "read_contract", {"contractAddress": USDT, "functionName": "balanceOf", "args": ZERO}
    )
    assert payload == {"success": False, "error": "Invalid args. Expected an array."}


def test_get_contract_abi(fake):
    payload = _call("get_contract_abi", {"contractAddress": USDT})
    assert "symbol() -> (string )" in payload["functions"]
    assert len(payload["abi"]) == len(TRC20_ABI)


def test_multicall_tool(fake):
    payload = _call(
        "multicall",
        {
            "calls": [
                {"address": USDT, "functionName": "symbol", "abi": TRC20_ABI},
                {"address": USDT, "functionName": "name", "abi": TRC20_ABI},
            ]
        },
    )
    assert payload["results"][0] == {"success": True, "result": "USDT"}
    assert payload["results"][1]["success"] is False


def test_multicall_tool_isolates_malformed_abi(fake):
    payload = _call(
        "multicall",
        {
            "calls": [
                {"address": USDT, "functionName": "symbol", "abi": TRC20_ABI},
                {"address": USDT, "functionName": "symbol", "abi": "not json"},
            ]
        },
    )
    assert payload["success"] is True
    assert len(payload["results"]) == 2
    assert payload["results"][0] == {"success": True, "result": "USDT"}
    assert payload["results"][1]["success"] is False
    assert "Invalid call to symbol" in payload["results"][1]["error"]


def test_multicall_tool_rejects_non_list_args_per_call(fake):
    payload = _call(
        "multicall",
        {
            "calls": [
                {"address": USDT, "functionName": "balanceOf", "abi": TRC20_ABI, "args": ZERO},
                {"address": USDT, "functionName": "decimals", "abi": TRC20_ABI},
            ]
        },
    )
    assert payload["results"][0]["success"] is False
    assert "Expected an array" in payload["results"][0]["error"]
    assert payload["results"][1] == {"success": True, "result": 2}


def test_wait_for_transaction(fake):
    payload = _call("wait_for_transaction", {"txHash": "aa", "maxAttempts": 2, "intervalSeconds": 0})
    assert payload["confirmed"] is True
    assert payload["info"]["id"] == "aa"


def test_wait_for_transaction_timeout(fake):
    fake.tx_info = {}
    payload = _call("wait_for_transaction", {"txHash": "aa", "maxAttempts": 2, "intervalSeconds": 0})
    assert payload == {"success": False, "error": "Transaction aa not confirmed after 0ms"}


@pytest.mark.parametrize(
    "overrides",
    [{"maxAttempts": 0}, {"maxAttempts": -1}, {"intervalSeconds": -1}],
)
def test_wait_for_transaction_rejects_bad_overrides(fake, overrides):
    payload = _call("wait_for_transaction", {"txHash": "aa", **overrides})
    assert payload["success"] is False
    assert "must" in payload["error"]


def test_transfer_trx(monkeypatch):
    monkeypatch.setenv("TRON_PRIVATE_KEY", TEST_KEY)
    monkeypatch.setattr(server, "transfer_trx", lambda clients, to, amount, network: "ab" * 32)
    payload = _call("transfer_trx", {"to": USDT, "amount": "1.5"})
    assert payload["from"] == TEST_ADDRESS
    assert payload["amount"] == "1.5 TRX"
    assert payload["txHash"] == "ab" * 32
    assert payload["message"] == server.TX_SENT_MESSAGE


def test_transfer_trc20(monkeypatch):
    monkeypatch.setenv("TRON_PRIVATE_KEY", TEST_KEY)

    async def fake_transfer(clients, token, to, amount, network):
        return {
            "txHash": "cd" * 32,
            "amount": {"raw": "150", "formatted": "1.5"},
            "token": {"symbol": "USDT", "decimals": 2},
        }

    monkeypatch.setattr(server, "transfer_trc20", fake_transfer)
    payload = _call("transfer_trc20", {"tokenAddress": USDT, "to": ZERO, "amount": "150"})
    assert payload["amount"] == "1.5"
    assert payload["rawAmount"] == "150"
    assert payload["symbol"] == "USDT"
    assert payload["txHash"] == "cd" * 32


def test_write_contract_reports_value(monkeypatch):
    monkeypatch.setenv("TRON_PRIVATE_KEY", TEST_KEY)
    seen = {}

    def fake_write(clients, address, fn, args, value, abi, network, fee_limit):
        seen.update(fn=fn, args=args, value=value, fee_limit=fee_limit)
        return "ef" * 32

    monkeypatch.setattr(server, "write_contract", fake_write)
    payload = _call(
        "write_contract",
        {
            "contractAddress": USDT,
            "functionName": "deposit",
            "value": "1000",
            "feeLimit": "5000000",
        },
    )
    assert payload["value"] == "1000"
    assert payload["from"] == TEST_ADDRESS
    assert seen == {"fn": "deposit", "args": [], "value": "1000", "fee_limit": 5_000_000}


def test_sign_message(monkeypatch, fake):
    monkeypatch.setenv("TRON_PRIVATE_KEY", TEST_KEY)
    payload = _call("sign_message", {"message": "hi"})
    assert payload["signer"] == TEST_ADDRESS
    assert payload["messageType"] == "personal_sign"
    assert payload["signature"].startswith("0x")
    assert len(payload["signature"]) == 132


# ---------------------------------------------------------------------------
# Prompts & resources
# ---------------------------------------------------------------------------


def test_list_prompts():
    prompts = asyncio.run(server.list_prompts())
    assert {p.name for p in prompts} == {
        "prepare_transfer",
        "interact_with_contract",
        "diagnose_transaction",
        "explain_tron_concept",
        "analyze_wallet",
        "check_network_status",
    }


def test_prepare_transfer_prompt_for_trc20():
    result = asyncio.run(
        server.get_prompt(
            "prepare_transfer",
            {"tokenType": "trc20", "recipient": ZERO, "amount": "100", "tokenAddress": USDT},
        )
    )
    text = result.messages[0].content.text
    assert result.messages[0].role == "user"
    assert f'tokenAddress="{USDT}"' in text
    assert "on mainnet" in text


def test_prepare_transfer_requires_token_address_for_trc20():
    with pytest.raises(ValueError, match="tokenAddress is required"):
        tron_prompts.render_prompt(
            "prepare_transfer", {"tokenType": "trc20", "recipient": ZERO, "amount": "1"}
        )


def test_prompt_missing_arguments_and_unknown():
    with pytest.raises(ValueError, match="Missing required argument\\(s\\) for diagnose_transaction"):
        tron_prompts.render_prompt("diagnose_transaction", {})
    with pytest.raises(ValueError, match="Unknown prompt: nope"):
        tron_prompts.render_prompt("nope", {})


def test_analyze_wallet_prompt_lists_tokens():
    result = tron_prompts.render_prompt(
        "analyze_wallet", {"address": ZERO, "network": "nile", "tokens": f"{USDT}, "}
    )
    text = result.messages[0].content.text
    assert f"  * {USDT}" in text
    assert "on nile" in text


def test_networks_resource():
    resources = asyncio.run(server.list_resources())
    assert str(resources[0].uri).rstrip("/") == "tron://networks"

    contents = asyncio.run(server.read_resource("tron://networks"))
    document = json.loads(contents[0].content)
    assert contents[0].mime_type == "application/json"
    assert [n["id"] for n in document["supportedNetworks"]] == ["mainnet", "nile", "shasta"]
    assert document["supportedNetworks"][0]["chainId"] == "0x2b6653dc"

    with pytest.raises(ValueError, match="Unknown resource"):
        asyncio.run(server.read_resource("tron://other"))


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


def test_startup_rejects_bad_config(monkeypatch):
    monkeypatch.setenv("TRON_ACCOUNT_INDEX", "-3")
    assert server.run([]) == 1


def test_startup_rejects_bad_fee_limit(monkeypatch):
    monkeypatch.setenv("TRON_FEE_LIMIT_SUN", "zero")
    with pytest.raises(ValueError):
        server.validate_startup_config()


def test_run_http_uses_uvicorn(monkeypatch):
    seen = {}

    def fake_run(app, host, port, log_level):
        seen.update(host=host, port=port)

    monkeypatch.setattr(server.uvicorn, "run", fake_run)
    assert server.run(["--http", "--host", "0.0.0.0", "--port", "4000"]) == 0
    assert seen == {"host": "0.0.0.0", "port": 4000}


def test_http_app_routes():
    app = server.build_http_app()
    paths = {route.path for route in app.routes}
    assert "/sse" in paths
    assert "/messages" in paths


# ---------------------------------------------------------------------------
# Launcher
# ---------------------------------------------------------------------------


def test_cli_build_command():
    assert tron_mcp_cli.build_command() == [sys.executable, "-m", "tron_wallet_mcp_server"]
    assert tron_mcp_cli.build_command(True, "0.0.0.0", 8080)[3:] == [
        "--http",
        "--host",
        "0.0.0.0",
        "--port",
        "8080",
    ]
    # Host and port only matter in HTTP mode.
    assert tron_mcp_cli.build_command(False, "0.0.0.0", 8080)[3:] == []


class _FakeProc:
    def __init__(self, returncode):
        self.returncode = returncode
        self.terminated = False

    def poll(self):
        return self.returncode

    def wait(self):
        return self.returncode

    def send_signal(self, signum):
        pass

    def terminate(self):
        self.terminated = True


def test_cli_propagates_exit_code(monkeypatch, capsys):
    monkeypatch.setattr(tron_mcp_cli.subprocess, "Popen", lambda cmd: _FakeProc(3))
    assert tron_mcp_cli.main(["--http"]) == 3
    assert "Starting TRON MCP Server in HTTP mode..." in capsys.readouterr().err


def test_cli_reports_signal_exit(monkeypatch):
    monkeypatch.setattr(tron_mcp_cli.subprocess, "Popen", lambda cmd: _FakeProc(-15))
    assert tron_mcp_cli.main([]) == 143


def test_cli_spawn_failure(monkeypatch, capsys):
    def boom(cmd):
        raise OSError("no python")

    monkeypatch.setattr(tron_mcp_cli.subprocess, "Popen", boom)
    assert tron_mcp_cli.main([]) == 1
    assert "Failed to start server: no python" in capsys.readouterr().err
