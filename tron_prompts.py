"""
Guided-workflow prompt templates.

Each prompt renders a single user message that walks the calling agent
through a task using this server's tools. Rendering never touches the chain.
"""

from __future__ import annotations

from typing import Any, Callable

from mcp.types import GetPromptResult, Prompt, PromptArgument, PromptMessage, TextContent

from tron_networks import DEFAULT_NETWORK


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _prepare_transfer(args: dict[str, str]) -> str:
    token_type = args["tokenType"].lower()
    if token_type not in ("trx", "trc20"):
        raise ValueError("tokenType must be 'trx' or 'trc20'.")
    recipient = args["recipient"]
    amount = args["amount"]
    network = args.get("network") or DEFAULT_NETWORK
    token_address = args.get("tokenAddress")
    if token_type == "trc20" and not token_address:
        raise ValueError("tokenAddress is required for TRC20 transfers.")

    if token_type == "trx":
        label = "TRX"
        balance_step = "- Call `get_balance` to verify the TRX balance"
        steps = (
            "1. Summarize: sender address, recipient, amount and estimated cost\n"
            "2. Request confirmation from the user\n"
            f'3. Call `transfer_trx` with to="{recipient}", amount="{amount}", network="{network}"\n'
            "4. Return the transaction hash to the user\n"
            "5. Call `wait_for_transaction` or `get_transaction_info` to confirm completion"
        )
    else:
        label = "TRC20 tokens"
        balance_step = (
            f"- Call `get_token_balance` with tokenAddress={token_address} to verify the balance"
        )
        steps = (
            "1. Summarize: sender, recipient, token and amount (raw base units)\n"
            "2. Request confirmation from the user\n"
            f'3. Call `transfer_trc20` with tokenAddress="{token_address}", to="{recipient}", '
            f'amount="{amount}", network="{network}"\n'
            "4. Wait for confirmation with `wait_for_transaction`"
        )

    return f"""# Token Transfer Task

**Objective**: Safely transfer {amount} {label} to {recipient} on {network}

## Validation & Checks
Before executing any transfer:
1. **Wallet Verification**: Call `get_wallet_address` to confirm the sending wallet
2. **Balance Check**:
   {balance_step}
3. **Resource Analysis**: Call `get_chain_parameters` to assess current Energy/Bandwidth prices

## Execution Steps
{steps}

## Output Format
- **Transaction Hash**: Clear hex value
- **Status**: Pending or Confirmed
- **User Confirmation**: Always ask before sending

## Safety Considerations
- Never send more than the available balance
- Double-check the recipient address
- Explain any approval requirements
"""


def _interact_with_contract(args: dict[str, str]) -> str:
    contract = args["contractAddress"]
    function_name = args["functionName"]
    arg_list = _split_list(args.get("args"))
    value = args.get("value")
    network = args.get("network") or DEFAULT_NETWORK
    shown_args = ", ".join(arg_list) if arg_list else "None"
    call_lines = [
        f'- contractAddress: "{contract}"',
        f'- functionName: "{function_name}"',
    ]
    if arg_list:
        call_lines.append(f"- args: {arg_list!r}")
    if value:
        call_lines.append(f'- value: "{value}"')
    call_lines.append(f'- network: "{network}"')
    call_block = "\n".join(call_lines)
    value_line = f"- **Value**: {value} sun\n" if value else ""

    return f"""# Smart Contract Interaction

**Objective**: Safely execute {function_name} on contract {contract} on {network}

## Prerequisites Check

### 1. Wallet Verification
- Call `get_wallet_address` to confirm the wallet that will sign this transaction

### 2. Contract Analysis
- Call `get_contract_abi` to list the contract's functions and parameter types
- View/Pure functions are read-only: use `read_contract` instead
- Payable functions can accept TRX through `value`

### 3. Parameter Validation
Arguments provided: {shown_args}
- Verify parameter types match the ABI
- Validate addresses (Base58 or Hex) with `convert_address`
- Check numeric values are in base units

### 4. Pre-execution Checks
- Call `get_balance` to verify enough TRX for fees plus value
- Call `get_chain_parameters` to check current Energy and Bandwidth prices

## Execution Process

### 1. Present Summary to User
- **Contract**: {contract}
- **Network**: {network}
- **Function**: {function_name}
- **Arguments**: {shown_args}
{value_line}- **From**: [wallet address from step 1]

### 2. Request User Confirmation
Always ask the user to confirm before executing a write operation.

### 3. Execute Transaction
Only after the user confirms, call `write_contract` with:
{call_block}

### 4. Monitor Transaction
1. Return the transaction hash to the user
2. Call `wait_for_transaction` to verify success
3. If it failed, use the `diagnose_transaction` prompt

## Safety Considerations
- Most blockchain transactions cannot be undone
- Failed transactions still consume Energy and Bandwidth
- Be careful with unlimited approvals
"""


def _diagnose_transaction(args: dict[str, str]) -> str:
    tx_hash = args["txHash"]
    network = args.get("network") or DEFAULT_NETWORK
    return f"""# Transaction Diagnosis

**Objective**: Analyze transaction {tx_hash} on {network} and identify any issues

## Investigation Process

### 1. Gather Transaction Data
- Call `get_transaction` to fetch the transaction details
- Call `get_transaction_info` to get the result and Energy/Bandwidth used

### 2. Status Assessment
- **Pending**: no receipt yet
- **Confirmed**: contractRet is SUCCESS
- **Failed**: contractRet is REVERT, OUT_OF_ENERGY or another error

### 3. Failure Analysis
**Out of Energy**: compare energy usage with the fee limit; suggest a higher limit.
**Contract Revert**: check the function, its parameters, balances and approvals.

### 4. Resource Analysis
- Compute the Energy/Bandwidth cost
- Compare with `get_chain_parameters`

## Output Format
- **Status**: Pending/Confirmed/Failed with reason
- **Transaction Hash**: {tx_hash}
- **From/To**: Addresses involved
- **Resource Usage**: Energy / Bandwidth used
- **Issue (if failed)**: Root cause
- **Recommended Actions**: Next steps
"""


def _explain_tron_concept(args: dict[str, str]) -> str:
    concept = args["concept"]
    return f"""# Concept Explanation: {concept}

**Objective**: Provide a clear, practical explanation of "{concept}"

## Explanation Structure
1. **Definition**: what it is, in one sentence, with the technical name
2. **How It Works**: mechanics and how it relates to the TRON resource model
3. **Real-World Analogy**: e.g. Bandwidth like mobile data, Energy like CPU time
4. **Practical Examples**: concrete numbers where they help (a TRX transfer costs about 300 Bandwidth)
5. **Relevance to Users**: cost impact, how to optimize (staking for resources), common mistakes

## Output Format
**What is {concept}?**
**How Does It Work?**
**Example**
**Key Takeaways**
**Common Questions**

Start with plain language, then move to technical detail.
"""


def _analyze_wallet(args: dict[str, str]) -> str:
    address = args["address"]
    network = args.get("network") or DEFAULT_NETWORK
    tokens = _split_list(args.get("tokens"))
    if tokens:
        token_step = "- Call `get_token_balance` for each token:\n" + "\n".join(
            f"  * {token}" for token in tokens
        )
    else:
        token_step = "- If specific tokens are provided: call `get_token_balance` for each"

    return f"""# Wallet Analysis

**Objective**: Provide a complete asset overview for {address} on {network}

## Information Gathering

### 1. Address Resolution
- Call `convert_address` to get both Hex and Base58 formats

### 2. Native Token Balance
- Call `get_balance` and report both sun and TRX

### 3. Token Balances
{token_step}

## Output Format

**Wallet Overview**
- Address (Base58), Address (Hex), Network

**TRX Balance**
- TRX and sun

**Token Holdings** (if requested)
- Token, Symbol, Balance, Decimals

**Summary**
- Primary holdings and notable observations
"""


def _check_network_status(args: dict[str, str]) -> str:
    network = args.get("network") or DEFAULT_NETWORK
    return f"""# Network Status Check

**Objective**: Assess health and current conditions of {network}

## Status Assessment

### 1. Gather Current Data
- `get_chain_info` for chain ID and current block number
- `get_latest_block` for block details and timing
- `get_chain_parameters` for current resource costs

### 2. Network Health Analysis
- Block production: current block, block time (normally about 3 seconds)
- Resource market: Energy fee, Bandwidth fee

## Output Format

**Network Status Report: {network}**
- Operational Status: Online/Degraded/Offline
- Current Block and Network Time
- Block Time, Energy Fee, Bandwidth Fee
- Recommendation for sending transactions now: Green/Yellow/Red
"""


def _arg(name: str, description: str, required: bool = False) -> PromptArgument:
    return PromptArgument(name=name, description=description, required=required)


_NETWORK_ARG = _arg("network", "Network name (default: mainnet)")

PROMPTS: dict[str, tuple[Prompt, Callable[[dict[str, str]], str]]] = {
    "prepare_transfer": (
        Prompt(
            name="prepare_transfer",
            description="Safely prepare and execute a token transfer with validation checks",
            arguments=[
                _arg("tokenType", "Token type: 'trx' for native or 'trc20' for contract tokens", True),
                _arg("recipient", "Recipient address", True),
                _arg("amount", "Amount to transfer (TRX, or raw token units)", True),
                _NETWORK_ARG,
                _arg("tokenAddress", "Token contract address (required for TRC20)"),
            ],
        ),
        _prepare_transfer,
    ),
    "interact_with_contract": (
        Prompt(
            name="interact_with_contract",
            description=(
                "Safely execute write operations on a smart contract with validation "
                "and confirmation"
            ),
            arguments=[
                _arg("contractAddress", "Contract address to interact with", True),
                _arg("functionName", "Function to call (e.g., 'mint', 'swap', 'stake')", True),
                _arg("args", "Comma-separated function arguments"),
                _arg("value", "Call value in sun (for payable functions)"),
                _NETWORK_ARG,
            ],
        ),
        _interact_with_contract,
    ),
    "diagnose_transaction": (
        Prompt(
            name="diagnose_transaction",
            description="Analyze transaction status, failures, and provide debugging insights",
            arguments=[_arg("txHash", "Transaction hash to diagnose", True), _NETWORK_ARG],
        ),
        _diagnose_transaction,
    ),
    "explain_tron_concept": (
        Prompt(
            name="explain_tron_concept",
            description="Explain TRON and blockchain concepts with examples",
            arguments=[
                _arg(
                    "concept",
                    "Concept to explain (Energy, Bandwidth, Super Representative, TRC20, ...)",
                    True,
                )
            ],
        ),
        _explain_tron_concept,
    ),
    "analyze_wallet": (
        Prompt(
            name="analyze_wallet",
            description="Get comprehensive overview of wallet assets, balances, and activity",
            arguments=[
                _arg("address", "Wallet address to analyze", True),
                _NETWORK_ARG,
                _arg("tokens", "Comma-separated token addresses to check"),
            ],
        ),
        _analyze_wallet,
    ),
    "check_network_status": (
        Prompt(
            name="check_network_status",
            description="Check current network health and conditions",
            arguments=[_NETWORK_ARG],
        ),
        _check_network_status,
    ),
}


def list_prompts() -> list[Prompt]:
    return [prompt for prompt, _ in PROMPTS.values()]


def render_prompt(name: str, arguments: dict[str, Any] | None) -> GetPromptResult:
    """Render prompt ``name``; raises ValueError for unknown prompts or missing arguments."""
    if name not in PROMPTS:
        raise ValueError(f"Unknown prompt: {name}")
    prompt, render = PROMPTS[name]
    args = {k: str(v) for k, v in (arguments or {}).items() if v is not None}
    missing = [a.name for a in prompt.arguments or [] if a.required and not args.get(a.name)]
    if missing:
        raise ValueError(f"Missing required argument(s) for {name}: {', '.join(missing)}")
    return GetPromptResult(
        description=prompt.description,
        messages=[
            PromptMessage(role="user", content=TextContent(type="text", text=render(args)))
        ],
    )
