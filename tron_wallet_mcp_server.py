#!/usr/bin/env python3
"""
MCP server for TRON wallet and chain operations.

Read-only tools cover networks, addresses, blocks, balances, tokens, NFTs,
transactions and contract reads (single and batched via Multicall). Write
tools (contract writes, TRX / TRC20 transfers, approvals, message signing)
use the wallet configured through TRON_PRIVATE_KEY or TRON_MNEMONIC; secrets
are never accepted as tool arguments.

Also exposes guided-workflow prompts and the ``tron://networks`` resource.
Runs over stdio by default, or HTTP/SSE with ``--http``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, List

import uvicorn
from dotenv import load_dotenv
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server
from mcp.types import (
    GetPromptResult,
    Prompt,
    Resource,
    TextContent,
    Tool,
    ToolAnnotations,
)
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Mount, Route

# Load .env from the server directory or its parent
SERVER_DIR = Path(__file__).resolve().parent
load_dotenv(SERVER_DIR / ".env")
load_dotenv(SERVER_DIR.parent / ".env")

from tron_address import convert_address, to_base58_address, to_hex_address  # noqa: E402
from tron_balance import (  # noqa: E402
    get_trc20_balance,
    get_trc721_balance,
    get_trc1155_balance,
    get_trx_balance,
    is_nft_owner,
)
from tron_clients import ClientCache  # noqa: E402
from tron_contracts import (  # noqa: E402
    fetch_contract_abi,
    get_fee_limit_sun,
    get_readable_functions,
    read_contract,
    write_contract,
)
from tron_explorer import (  # noqa: E402
    get_block,
    get_chain_info,
    get_chain_parameters,
    get_latest_block,
)
from tron_multicall import CallDescriptor, multicall  # noqa: E402
from tron_networks import (  # noqa: E402
    DEFAULT_NETWORK,
    NETWORKS,
    get_supported_networks,
)
from tron_prompts import list_prompts as _prompt_list  # noqa: E402
from tron_prompts import render_prompt  # noqa: E402
from tron_tokens import (  # noqa: E402
    get_trc20_token_info,
    get_trc721_token_metadata,
    get_trc1155_token_uri,
)
from tron_transactions import (  # noqa: E402
    PollPolicy,
    get_transaction,
    get_transaction_info,
    wait_for_transaction,
)
from tron_transfer import approve_trc20, transfer_trc20, transfer_trx  # noqa: E402
from tron_utils import format_json, to_jsonable  # noqa: E402
from tron_wallet import (  # noqa: E402
    get_configured_wallet,
    sign_message,
    sign_typed_data,
    validate_environment,
)

__version__ = "1.1.1"

logger = logging.getLogger(__name__)

NETWORKS_RESOURCE_URI = "tron://networks"
TX_SENT_MESSAGE = "Transaction sent. Use wait_for_transaction or get_transaction_info to check confirmation."

app = Server("tron_wallet")
clients = ClientCache.from_env()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _ok_response(data: dict[str, Any]) -> List[TextContent]:
    data["success"] = True
    return [TextContent(type="text", text=json.dumps(to_jsonable(data), default=str))]


def _error_response(message: str) -> List[TextContent]:
    return [TextContent(type="text", text=json.dumps({"success": False, "error": message}))]


def _network(arguments: dict[str, Any]) -> str:
    return arguments.get("network") or DEFAULT_NETWORK


def _args_list(arguments: dict[str, Any]) -> list[Any]:
    args = arguments.get("args")
    if args is None:
        return []
    if not isinstance(args, list):
        raise ValueError("Invalid args. Expected an array.")
    return args


_NETWORK_PROP = {
    "type": "string",
    "description": "Network name (mainnet, nile, shasta). Defaults to mainnet.",
}
_ARGS_PROP = {
    "type": "array",
    "items": {"type": ["string", "number", "boolean", "array", "object"]},
    "description": "Function arguments, in ABI order",
}
_ABI_PROP = {
    "type": ["array", "string"],
    "description": "Optional ABI (JSON array or string). Fetched from chain when omitted.",
}


def _annotations(
    title: str,
    read_only: bool,
    destructive: bool = False,
    idempotent: bool = True,
    open_world: bool = True,
) -> ToolAnnotations:
    return ToolAnnotations(
        title=title,
        readOnlyHint=read_only,
        destructiveHint=destructive,
        idempotentHint=idempotent,
        openWorldHint=open_world,
    )


def _schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


TOOLS: List[Tool] = [
    # -- Wallet --
    Tool(
        name="get_wallet_address",
        description=(
            "Get the address of the configured wallet. Use this to verify which wallet is active."
        ),
        inputSchema=_schema({}),
        annotations=_annotations("Get Wallet Address", True, open_world=False),
    ),
    # -- Network --
    Tool(
        name="get_chain_info",
        description="Get information about a TRON network: chain id, current block number and RPC endpoint.",
        inputSchema=_schema({"network": _NETWORK_PROP}),
        annotations=_annotations("Get Chain Info", True),
    ),
    Tool(
        name="get_supported_networks",
        description="Get a list of all supported TRON networks.",
        inputSchema=_schema({}),
        annotations=_annotations("Get Supported Networks", True, open_world=False),
    ),
    Tool(
        name="get_chain_parameters",
        description=(
            "Get current chain parameters including Energy and Bandwidth unit prices (in sun)."
        ),
        inputSchema=_schema({"network": _NETWORK_PROP}),
        annotations=_annotations("Get Chain Parameters", True, idempotent=False),
    ),
    # -- Address --
    Tool(
        name="convert_address",
        description="Convert addresses between Hex and Base58 formats.",
        inputSchema=_schema(
            {"address": {"type": "string", "description": "Address to convert (Hex or Base58)"}},
            ["address"],
        ),
        annotations=_annotations("Convert Address", True, open_world=False),
    ),
    # -- Blocks --
    Tool(
        name="get_block",
        description="Get block details by block number or hash.",
        inputSchema=_schema(
            {
                "blockIdentifier": {
                    "type": "string",
                    "description": "Block number (as string) or block hash",
                },
                "network": _NETWORK_PROP,
            },
            ["blockIdentifier"],
        ),
        annotations=_annotations("Get Block", True),
    ),
    Tool(
        name="get_latest_block",
        description="Get the latest block from the network.",
        inputSchema=_schema({"network": _NETWORK_PROP}),
        annotations=_annotations("Get Latest Block", True, idempotent=False),
    ),
    # -- Balances & tokens --
    Tool(
        name="get_balance",
        description="Get the TRX balance for an address.",
        inputSchema=_schema(
            {
                "address": {"type": "string", "description": "The wallet address (Base58)"},
                "network": _NETWORK_PROP,
            },
            ["address"],
        ),
        annotations=_annotations("Get TRX Balance", True),
    ),
    Tool(
        name="get_token_balance",
        description="Get the TRC20 token balance for an address.",
        inputSchema=_schema(
            {
                "address": {"type": "string", "description": "The wallet address"},
                "tokenAddress": {
                    "type": "string",
                    "description": "The TRC20 token contract address",
                },
                "network": _NETWORK_PROP,
            },
            ["address", "tokenAddress"],
        ),
        annotations=_annotations("Get TRC20 Token Balance", True),
    ),
    Tool(
        name="get_token_info",
        description="Get TRC20 token metadata: name, symbol, decimals and total supply.",
        inputSchema=_schema(
            {
                "tokenAddress": {
                    "type": "string",
                    "description": "The TRC20 token contract address",
                },
                "network": _NETWORK_PROP,
            },
            ["tokenAddress"],
        ),
        annotations=_annotations("Get TRC20 Token Info", True),
    ),
    Tool(
        name="get_nft_balance",
        description="Get the number of TRC721 NFTs an address holds in a collection.",
        inputSchema=_schema(
            {
                "tokenAddress": {"type": "string", "description": "The TRC721 contract address"},
                "ownerAddress": {"type": "string", "description": "The owner address"},
                "network": _NETWORK_PROP,
            },
            ["tokenAddress", "ownerAddress"],
        ),
        annotations=_annotations("Get NFT Balance", True),
    ),
    Tool(
        name="check_nft_ownership",
        description="Check whether an address owns a specific TRC721 token id.",
        inputSchema=_schema(
            {
                "tokenAddress": {"type": "string", "description": "The TRC721 contract address"},
                "ownerAddress": {"type": "string", "description": "The address to check"},
                "tokenId": {"type": "string", "description": "The token id"},
                "network": _NETWORK_PROP,
            },
            ["tokenAddress", "ownerAddress", "tokenId"],
        ),
        annotations=_annotations("Check NFT Ownership", True),
    ),
    Tool(
        name="get_nft_metadata",
        description="Get TRC721 collection name, symbol and the token URI for a token id.",
        inputSchema=_schema(
            {
                "tokenAddress": {"type": "string", "description": "The TRC721 contract address"},
                "tokenId": {"type": "string", "description": "The token id"},
                "network": _NETWORK_PROP,
            },
            ["tokenAddress", "tokenId"],
        ),
        annotations=_annotations("Get NFT Metadata", True),
    ),
    Tool(
        name="get_trc1155_balance",
        description="Get the TRC1155 balance of a token id for an address, plus its URI.",
        inputSchema=_schema(
            {
                "tokenAddress": {"type": "string", "description": "The TRC1155 contract address"},
                "ownerAddress": {"type": "string", "description": "The owner address"},
                "tokenId": {"type": "string", "description": "The token id"},
                "network": _NETWORK_PROP,
            },
            ["tokenAddress", "ownerAddress", "tokenId"],
        ),
        annotations=_annotations("Get TRC1155 Balance", True),
    ),
    # -- Transactions --
    Tool(
        name="get_transaction",
        description="Get transaction details by transaction hash.",
        inputSchema=_schema(
            {
                "txHash": {"type": "string", "description": "Transaction hash"},
                "network": _NETWORK_PROP,
            },
            ["txHash"],
        ),
        annotations=_annotations("Get Transaction", True),
    ),
    Tool(
        name="get_transaction_info",
        description="Get transaction info (receipt/confirmation status, energy usage, logs).",
        inputSchema=_schema(
            {
                "txHash": {"type": "string", "description": "Transaction hash"},
                "network": _NETWORK_PROP,
            },
            ["txHash"],
        ),
        annotations=_annotations("Get Transaction Info", True),
    ),
    Tool(
        name="wait_for_transaction",
        description=(
            "Poll until a transaction is confirmed and return its info. "
            "Times out after maxAttempts x intervalSeconds (default 30 x 2s)."
        ),
        inputSchema=_schema(
            {
                "txHash": {"type": "string", "description": "Transaction hash"},
                "maxAttempts": {"type": "integer", "description": "Optional attempt count"},
                "intervalSeconds": {
                    "type": "number",
                    "description": "Optional delay between attempts",
                },
                "network": _NETWORK_PROP,
            },
            ["txHash"],
        ),
        annotations=_annotations("Wait For Transaction", True, idempotent=False),
    ),
    # -- Contracts --
    Tool(
        name="read_contract",
        description="Call read-only functions on a smart contract.",
        inputSchema=_schema(
            {
                "contractAddress": {"type": "string", "description": "The contract address"},
                "functionName": {
                    "type": "string",
                    "description": "Function name (e.g., 'name', 'symbol', 'balanceOf')",
                },
                "args": _ARGS_PROP,
                "abi": _ABI_PROP,
                "network": _NETWORK_PROP,
            },
            ["contractAddress", "functionName"],
        ),
        annotations=_annotations("Read Smart Contract", True),
    ),
    Tool(
        name="get_contract_abi",
        description="Fetch the on-chain ABI of a contract and list its functions.",
        inputSchema=_schema(
            {
                "contractAddress": {"type": "string", "description": "The contract address"},
                "network": _NETWORK_PROP,
            },
            ["contractAddress"],
        ),
        annotations=_annotations("Get Contract ABI", True),
    ),
    Tool(
        name="write_contract",
        description=(
            "Execute state-changing functions on a smart contract. Requires configured wallet."
        ),
        inputSchema=_schema(
            {
                "contractAddress": {"type": "string", "description": "The contract address"},
                "functionName": {"type": "string", "description": "Function name to call"},
                "args": _ARGS_PROP,
                "value": {"type": "string", "description": "TRX value to send (in sun)"},
                "abi": _ABI_PROP,
                "feeLimit": {
                    "type": "integer",
                    "description": "Optional fee limit in sun (default from TRON_FEE_LIMIT_SUN)",
                },
                "network": _NETWORK_PROP,
            },
            ["contractAddress", "functionName"],
        ),
        annotations=_annotations(
            "Write to Smart Contract", False, destructive=True, idempotent=False
        ),
    ),
    Tool(
        name="multicall",
        description=(
            "Execute several read calls in one request via a Multicall contract (v2 or v3). "
            "Falls back to parallel individual reads when no Multicall address is given or "
            "the batched call fails. Results keep the input order."
        ),
        inputSchema=_schema(
            {
                "calls": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "address": {"type": "string"},
                            "functionName": {"type": "string"},
                            "args": _ARGS_PROP,
                            "abi": {"type": "array"},
                            "allowFailure": {"type": "boolean"},
                        },
                        "required": ["address", "functionName", "abi"],
                    },
                },
                "multicallAddress": {
                    "type": "string",
                    "description": "Multicall contract address",
                },
                "version": {"type": "integer", "enum": [2, 3], "description": "Default 3"},
                "allowFailure": {
                    "type": "boolean",
                    "description": "Default per-call failure tolerance (default true)",
                },
                "network": _NETWORK_PROP,
            },
            ["calls"],
        ),
        annotations=_annotations("Multicall", True),
    ),
    # -- Transfers --
    Tool(
        name="transfer_trx",
        description="Transfer TRX to an address.",
        inputSchema=_schema(
            {
                "to": {"type": "string", "description": "Recipient address"},
                "amount": {
                    "type": "string",
                    "description": "Amount to send in TRX (e.g., '10.5')",
                },
                "network": _NETWORK_PROP,
            },
            ["to", "amount"],
        ),
        annotations=_annotations("Transfer TRX", False, destructive=True, idempotent=False),
    ),
    Tool(
        name="transfer_trc20",
        description="Transfer TRC20 tokens to an address.",
        inputSchema=_schema(
            {
                "tokenAddress": {
                    "type": "string",
                    "description": "The TRC20 token contract address",
                },
                "to": {"type": "string", "description": "Recipient address"},
                "amount": {
                    "type": "string",
                    "description": "Amount to send (raw amount with decimals)",
                },
                "network": _NETWORK_PROP,
            },
            ["tokenAddress", "to", "amount"],
        ),
        annotations=_annotations(
            "Transfer TRC20 Tokens", False, destructive=True, idempotent=False
        ),
    ),
    Tool(
        name="approve_trc20",
        description="Approve a spender to transfer TRC20 tokens on behalf of the wallet.",
        inputSchema=_schema(
            {
                "tokenAddress": {
                    "type": "string",
                    "description": "The TRC20 token contract address",
                },
                "spender": {"type": "string", "description": "Spender address"},
                "amount": {
                    "type": "string",
                    "description": "Allowance (raw amount with decimals)",
                },
                "network": _NETWORK_PROP,
            },
            ["tokenAddress", "spender", "amount"],
        ),
        annotations=_annotations(
            "Approve TRC20 Spending", False, destructive=True, idempotent=False
        ),
    ),
    # -- Signing --
    Tool(
        name="sign_message",
        description="Sign an arbitrary message using the configured wallet.",
        inputSchema=_schema(
            {"message": {"type": "string", "description": "The message to sign"}},
            ["message"],
        ),
        annotations=_annotations("Sign Message", False, open_world=False),
    ),
    Tool(
        name="sign_typed_data",
        description="Sign typed structured data (TIP-712) using the configured wallet.",
        inputSchema=_schema(
            {
                "domain": {"type": "object", "description": "Domain separator fields"},
                "types": {"type": "object", "description": "Type definitions"},
                "value": {"type": "object", "description": "The data to sign"},
            },
            ["domain", "types", "value"],
        ),
        annotations=_annotations("Sign Typed Data", False, open_world=False),
    ),
]

_TOOLS_BY_NAME = {tool.name: tool for tool in TOOLS}


@app.list_tools()
async def list_tools() -> List[Tool]:
    return TOOLS


def _missing_required(name: str, arguments: dict[str, Any]) -> list[str]:
    required = _TOOLS_BY_NAME[name].inputSchema.get("required", [])
    return [field for field in required if arguments.get(field) in (None, "")]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> List[TextContent]:
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        return _error_response("Invalid arguments. Expected an object.")
    if name not in _TOOLS_BY_NAME:
        return _error_response(f"Unknown tool: {name}")
    missing = _missing_required(name, arguments)
    if missing:
        return _error_response(f"Missing required argument(s): {', '.join(missing)}")

    try:
        # Wallet
        if name == "get_wallet_address":
            return await _handle_get_wallet_address()

        # Network
        if name == "get_chain_info":
            return await _handle_get_chain_info(arguments)
        if name == "get_supported_networks":
            return await _handle_get_supported_networks()
        if name == "get_chain_parameters":
            return await _handle_get_chain_parameters(arguments)

        # Address
        if name == "convert_address":
            return await _handle_convert_address(arguments)

        # Blocks
        if name == "get_block":
            return await _handle_get_block(arguments)
        if name == "get_latest_block":
            return await _handle_get_latest_block(arguments)

        # Balances & tokens
        if name == "get_balance":
            return await _handle_get_balance(arguments)
        if name == "get_token_balance":
            return await _handle_get_token_balance(arguments)
        if name == "get_token_info":
            return await _handle_get_token_info(arguments)
        if name == "get_nft_balance":
            return await _handle_get_nft_balance(arguments)
        if name == "check_nft_ownership":
            return await _handle_check_nft_ownership(arguments)
        if name == "get_nft_metadata":
            return await _handle_get_nft_metadata(arguments)
        if name == "get_trc1155_balance":
            return await _handle_get_trc1155_balance(arguments)

        # Transactions
        if name == "get_transaction":
            return await _handle_get_transaction(arguments)
        if name == "get_transaction_info":
            return await _handle_get_transaction_info(arguments)
        if name == "wait_for_transaction":
            return await _handle_wait_for_transaction(arguments)

        # Contracts
        if name == "read_contract":
            return await _handle_read_contract(arguments)
        if name == "get_contract_abi":
            return await _handle_get_contract_abi(arguments)
        if name == "write_contract":
            return await _handle_write_contract(arguments)
        if name == "multicall":
            return await _handle_multicall(arguments)

        # Transfers
        if name == "transfer_trx":
            return await _handle_transfer_trx(arguments)
        if name == "transfer_trc20":
            return await _handle_transfer_trc20(arguments)
        if name == "approve_trc20":
            return await _handle_approve_trc20(arguments)

        # Signing
        if name == "sign_message":
            return await _handle_sign_message(arguments)
        if name == "sign_typed_data":
            return await _handle_sign_typed_data(arguments)
    except Exception as exc:  # noqa: BLE001
        return _error_response(str(exc))

    return _error_response(f"Unknown tool: {name}")


# ---------------------------------------------------------------------------
# Wallet & network handlers
# ---------------------------------------------------------------------------


async def _handle_get_wallet_address() -> List[TextContent]:
    wallet = await asyncio.to_thread(get_configured_wallet)
    return _ok_response(
        {
            "address": wallet.address,
            "base58": to_base58_address(wallet.address),
            "hex": to_hex_address(wallet.address),
            "source": wallet.source,
            "derivationPath": wallet.derivation_path,
            "message": "This is the wallet that will be used for all transactions",
        }
    )


async def _handle_get_chain_info(arguments: dict[str, Any]) -> List[TextContent]:
    result = await asyncio.to_thread(get_chain_info, clients, _network(arguments))
    return _ok_response(result)


async def _handle_get_supported_networks() -> List[TextContent]:
    return _ok_response(
        {"supportedNetworks": get_supported_networks(), "defaultNetwork": DEFAULT_NETWORK}
    )


async def _handle_get_chain_parameters(arguments: dict[str, Any]) -> List[TextContent]:
    result = await asyncio.to_thread(get_chain_parameters, clients, _network(arguments))
    return _ok_response(result)


async def _handle_convert_address(arguments: dict[str, Any]) -> List[TextContent]:
    return _ok_response(convert_address(str(arguments["address"]).strip()))


async def _handle_get_block(arguments: dict[str, Any]) -> List[TextContent]:
    block = await asyncio.to_thread(
        get_block, clients, arguments["blockIdentifier"], _network(arguments)
    )
    return _ok_response({"network": _network(arguments), "block": block})


async def _handle_get_latest_block(arguments: dict[str, Any]) -> List[TextContent]:
    block = await asyncio.to_thread(get_latest_block, clients, _network(arguments))
    return _ok_response({"network": _network(arguments), "block": block})


# ---------------------------------------------------------------------------
# Balance & token handlers
# ---------------------------------------------------------------------------


async def _handle_get_balance(arguments: dict[str, Any]) -> List[TextContent]:
    network = _network(arguments)
    address = arguments["address"]
    balance = await asyncio.to_thread(get_trx_balance, clients, address, network)
    return _ok_response(
        {
            "network": network,
            "address": address,
            "balance": {"sun": str(balance["sun"]), "trx": balance["trx"]},
        }
    )


async def _handle_get_token_balance(arguments: dict[str, Any]) -> List[TextContent]:
    network = _network(arguments)
    token_address = arguments["tokenAddress"]
    address = arguments["address"]
    balance = await get_trc20_balance(clients, token_address, address, network)
    return _ok_response(
        {
            "network": network,
            "tokenAddress": token_address,
            "address": address,
            "balance": {
                "raw": str(balance["raw"]),
                "formatted": balance["formatted"],
                "symbol": balance["token"]["symbol"],
                "decimals": balance["token"]["decimals"],
            },
        }
    )


async def _handle_get_token_info(arguments: dict[str, Any]) -> List[TextContent]:
    network = _network(arguments)
    info = await get_trc20_token_info(clients, arguments["tokenAddress"], network)
    info["totalSupply"] = str(info["totalSupply"])
    return _ok_response({"network": network, "tokenAddress": arguments["tokenAddress"], **info})


async def _handle_get_nft_balance(arguments: dict[str, Any]) -> List[TextContent]:
    network = _network(arguments)
    count = await asyncio.to_thread(
        get_trc721_balance,
        clients,
        arguments["tokenAddress"],
        arguments["ownerAddress"],
        network,
    )
    return _ok_response(
        {
            "network": network,
            "tokenAddress": arguments["tokenAddress"],
            "ownerAddress": arguments["ownerAddress"],
            "balance": str(count),
        }
    )


async def _handle_check_nft_ownership(arguments: dict[str, Any]) -> List[TextContent]:
    network = _network(arguments)
    owns = await asyncio.to_thread(
        is_nft_owner,
        clients,
        arguments["tokenAddress"],
        arguments["ownerAddress"],
        arguments["tokenId"],
        network,
    )
    return _ok_response(
        {
            "network": network,
            "tokenAddress": arguments["tokenAddress"],
            "ownerAddress": arguments["ownerAddress"],
            "tokenId": str(arguments["tokenId"]),
            "isOwner": owns,
        }
    )


async def _handle_get_nft_metadata(arguments: dict[str, Any]) -> List[TextContent]:
    network = _network(arguments)
    metadata = await get_trc721_token_metadata(
        clients, arguments["tokenAddress"], arguments["tokenId"], network
    )
    return _ok_response(
        {
            "network": network,
            "tokenAddress": arguments["tokenAddress"],
            "tokenId": str(arguments["tokenId"]),
            **metadata,
        }
    )


async def _handle_get_trc1155_balance(arguments: dict[str, Any]) -> List[TextContent]:
    network = _network(arguments)
    token_address = arguments["tokenAddress"]
    token_id = arguments["tokenId"]
    balance, uri = await asyncio.gather(
        asyncio.to_thread(
            get_trc1155_balance,
            clients,
            token_address,
            arguments["ownerAddress"],
            token_id,
            network,
        ),
        asyncio.to_thread(get_trc1155_token_uri, clients, token_address, token_id, network),
    )
    return _ok_response(
        {
            "network": network,
            "tokenAddress": token_address,
            "ownerAddress": arguments["ownerAddress"],
            "tokenId": str(token_id),
            "balance": str(balance),
            "uri": uri,
        }
    )


# ---------------------------------------------------------------------------
# Transaction handlers
# ---------------------------------------------------------------------------


async def _handle_get_transaction(arguments: dict[str, Any]) -> List[TextContent]:
    tx = await asyncio.to_thread(
        get_transaction, clients, arguments["txHash"], _network(arguments)
    )
    return _ok_response({"network": _network(arguments), "transaction": tx})


async def _handle_get_transaction_info(arguments: dict[str, Any]) -> List[TextContent]:
    info = await asyncio.to_thread(
        get_transaction_info, clients, arguments["txHash"], _network(arguments)
    )
    return _ok_response({"network": _network(arguments), "info": info})


async def _handle_wait_for_transaction(arguments: dict[str, Any]) -> List[TextContent]:
    policy = PollPolicy.from_env()
    max_attempts = arguments.get("maxAttempts")
    interval_seconds = arguments.get("intervalSeconds")
    if max_attempts is not None or interval_seconds is not None:
        policy = PollPolicy(
            max_attempts=policy.max_attempts if max_attempts is None else int(max_attempts),
            interval_seconds=(
                policy.interval_seconds if interval_seconds is None else float(interval_seconds)
            ),
        )
    info = await wait_for_transaction(
        clients, arguments["txHash"], _network(arguments), policy=policy
    )
    return _ok_response({"network": _network(arguments), "confirmed": True, "info": info})


# ---------------------------------------------------------------------------
# Contract handlers
# ---------------------------------------------------------------------------


async def _handle_read_contract(arguments: dict[str, Any]) -> List[TextContent]:
    args = _args_list(arguments)
    result = await asyncio.to_thread(
        read_contract,
        clients,
        arguments["contractAddress"],
        arguments["functionName"],
        args,
        arguments.get("abi"),
        _network(arguments),
    )
    payload: dict[str, Any] = {
        "contractAddress": arguments["contractAddress"],
        "function": arguments["functionName"],
        "result": result,
    }
    if args:
        payload["args"] = args
    return _ok_response(payload)


async def _handle_get_contract_abi(arguments: dict[str, Any]) -> List[TextContent]:
    abi = await asyncio.to_thread(
        fetch_contract_abi, clients, arguments["contractAddress"], _network(arguments)
    )
    return _ok_response(
        {
            "contractAddress": arguments["contractAddress"],
            "functions": get_readable_functions(abi),
            "abi": abi,
        }
    )


async def _handle_write_contract(arguments: dict[str, Any]) -> List[TextContent]:
    network = _network(arguments)
    args = _args_list(arguments)
    value = arguments.get("value")
    fee_limit = arguments.get("feeLimit")
    wallet = await asyncio.to_thread(get_configured_wallet)
    tx_hash = await asyncio.to_thread(
        write_contract,
        clients,
        arguments["contractAddress"],
        arguments["functionName"],
        args,
        value,
        arguments.get("abi"),
        network,
        int(fee_limit) if fee_limit is not None else None,
    )
    payload: dict[str, Any] = {
        "network": network,
        "contractAddress": arguments["contractAddress"],
        "function": arguments["functionName"],
        "from": wallet.address,
        "txHash": tx_hash,
        "message": TX_SENT_MESSAGE,
    }
    if args:
        payload["args"] = args
    if value:
        payload["value"] = str(value)
    return _ok_response(payload)


async def _handle_multicall(arguments: dict[str, Any]) -> List[TextContent]:
    raw_calls = arguments["calls"]
    if not isinstance(raw_calls, list):
        return _error_response("Invalid calls. Expected an array.")
    calls = [CallDescriptor.from_dict(c) for c in raw_calls]
    results = await multicall(
        clients,
        calls,
        multicall_address=arguments.get("multicallAddress"),
        version=int(arguments.get("version") or 3),
        allow_failure=bool(arguments.get("allowFailure", True)),
        network=_network(arguments),
    )
    return _ok_response(
        {"network": _network(arguments), "results": [r.to_dict() for r in results]}
    )


# ---------------------------------------------------------------------------
# Transfer & signing handlers
# ---------------------------------------------------------------------------


async def _handle_transfer_trx(arguments: dict[str, Any]) -> List[TextContent]:
    network = _network(arguments)
    amount = str(arguments["amount"]).strip()
    wallet = await asyncio.to_thread(get_configured_wallet)
    tx_hash = await asyncio.to_thread(transfer_trx, clients, arguments["to"], amount, network)
    return _ok_response(
        {
            "network": network,
            "from": wallet.address,
            "to": arguments["to"],
            "amount": f"{amount} TRX",
            "txHash": tx_hash,
            "message": TX_SENT_MESSAGE,
        }
    )


async def _handle_transfer_trc20(arguments: dict[str, Any]) -> List[TextContent]:
    network = _network(arguments)
    wallet = await asyncio.to_thread(get_configured_wallet)
    result = await transfer_trc20(
        clients, arguments["tokenAddress"], arguments["to"], arguments["amount"], network
    )
    return _ok_response(
        {
            "network": network,
            "tokenAddress": arguments["tokenAddress"],
            "from": wallet.address,
            "to": arguments["to"],
            "amount": result["amount"]["formatted"],
            "rawAmount": result["amount"]["raw"],
            "symbol": result["token"]["symbol"],
            "decimals": result["token"]["decimals"],
            "txHash": result["txHash"],
            "message": TX_SENT_MESSAGE,
        }
    )


async def _handle_approve_trc20(arguments: dict[str, Any]) -> List[TextContent]:
    network = _network(arguments)
    wallet = await asyncio.to_thread(get_configured_wallet)
    tx_hash = await asyncio.to_thread(
        approve_trc20,
        clients,
        arguments["tokenAddress"],
        arguments["spender"],
        arguments["amount"],
        network,
    )
    return _ok_response(
        {
            "network": network,
            "tokenAddress": arguments["tokenAddress"],
            "owner": wallet.address,
            "spender": arguments["spender"],
            "amount": str(arguments["amount"]),
            "txHash": tx_hash,
            "message": TX_SENT_MESSAGE,
        }
    )


async def _handle_sign_message(arguments: dict[str, Any]) -> List[TextContent]:
    message = str(arguments["message"])
    signed = await asyncio.to_thread(sign_message, clients, message)
    return _ok_response(
        {
            "message": message,
            "signature": signed["signature"],
            "signer": signed["signer"],
            "messageType": "personal_sign",
        }
    )


async def _handle_sign_typed_data(arguments: dict[str, Any]) -> List[TextContent]:
    signed = await asyncio.to_thread(
        sign_typed_data, clients, arguments["domain"], arguments["types"], arguments["value"]
    )
    return _ok_response(signed)


# ---------------------------------------------------------------------------
# Prompts & resources
# ---------------------------------------------------------------------------


@app.list_prompts()
async def list_prompts() -> List[Prompt]:
    return _prompt_list()


@app.get_prompt()
async def get_prompt(name: str, arguments: dict[str, str] | None) -> GetPromptResult:
    return render_prompt(name, arguments)


def _networks_document() -> dict[str, Any]:
    return {
        "supportedNetworks": [
            {
                "id": cfg.id,
                "name": cfg.name,
                "fullNode": cfg.full_node,
                "solidityNode": cfg.solidity_node,
                "eventServer": cfg.event_server,
                "explorer": cfg.explorer,
                "chainId": hex(cfg.chain_id),
            }
            for cfg in NETWORKS.values()
        ],
        "defaultNetwork": DEFAULT_NETWORK,
    }


@app.list_resources()
async def list_resources() -> List[Resource]:
    return [
        Resource(
            uri=NETWORKS_RESOURCE_URI,
            name="supported_networks",
            description="Get list of all supported TRON networks and their configuration",
            mimeType="application/json",
        )
    ]


@app.read_resource()
async def read_resource(uri: Any) -> List[ReadResourceContents]:
    if str(uri).rstrip("/") != NETWORKS_RESOURCE_URI:
        raise ValueError(f"Unknown resource: {uri}")
    return [
        ReadResourceContents(
            content=format_json(_networks_document()), mime_type="application/json"
        )
    ]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def validate_startup_config() -> None:
    """Raise on malformed settings that make the server unusable."""
    validate_environment()
    get_fee_limit_sun()
    PollPolicy.from_env()


async def main() -> None:
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def build_http_app() -> Starlette:
    """Starlette app exposing the server over SSE (GET /sse, POST /messages/)."""
    sse = SseServerTransport("/messages/")

    async def handle_sse(request: Request) -> Response:
        async with sse.connect_sse(request.scope, request.receive, request._send) as streams:
            await app.run(streams[0], streams[1], app.create_initialization_options())
        return Response()

    return Starlette(
        routes=[
            Route("/sse", endpoint=handle_sse, methods=["GET"]),
            Mount("/messages/", app=sse.handle_post_message),
        ]
    )


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tron-mcp-server", description="MCP server for TRON wallet and chain operations."
    )
    parser.add_argument("--http", action="store_true", help="Serve over HTTP/SSE instead of stdio")
    parser.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "3001")))
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        validate_startup_config()
    except Exception as exc:  # noqa: BLE001
        logger.error("Error starting MCP server: %s", exc)
        return 1

    logger.info(
        "tron-wallet-mcp v%s starting (%s transport, %d networks)",
        __version__,
        "http" if args.http else "stdio",
        len(get_supported_networks()),
    )
    try:
        if args.http:
            uvicorn.run(build_http_app(), host=args.host, port=args.port, log_level="info")
        else:
            asyncio.run(main())
    except KeyboardInterrupt:
        pass
    finally:
        clients.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(run())
