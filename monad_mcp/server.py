"""Monad MCP server implementation using FastMCP."""

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, AsyncIterator, List, Optional

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.sse import SseServerTransport
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

from monad_mcp import __version__
from monad_mcp.abi import (
    ContractFunction, coerce_argument, decode_calldata, find_function, to_jsonable
)
from monad_mcp.chain_client import MonadClient, get_chain_client
from monad_mcp.config import get_analysis_config, get_registry_config, get_server_config
from monad_mcp.constants import COMMON_CONTRACTS, DEFAULT_DECIMALS, UNKNOWN_NAME, UNKNOWN_SYMBOL
from monad_mcp.convert import convert_value
from monad_mcp.docs import docs_index, docs_section
from monad_mcp.logging_config import configure_logging
from monad_mcp.services.contract_analyzer.analyzer import ContractAnalyzer
from monad_mcp.services.contract_analyzer.candidates import BALANCE_OF, DECIMALS, NAME, SYMBOL
from monad_mcp.services.contract_analyzer.formatter import format_report
from monad_mcp.services.registry_service import VerificationRegistryService
from monad_mcp.utils.errors import MonadMCPError
from monad_mcp.utils.formatting import format_ether, format_gwei, format_units, hex_to_int
from monad_mcp.utils.validation import normalize_address, validate_transaction_hash

logger = logging.getLogger(__name__)

AVAILABLE_TOOLS = [
    "get-mon-balance",
    "get-erc20-balance",
    "get-transaction",
    "get-tx-receipt",
    "get-block",
    "decode-calldata",
    "get-contract-source",
    "readContract",
    "estimate-priority-fee",
    "get-monad-constants",
    "convert",
    "monad-docs",
    "read-monad-docs",
]


@dataclass
class AppContext:
    """Application context for the Monad MCP server."""

    chain_client: MonadClient
    registry: VerificationRegistryService
    analyzer: ContractAnalyzer


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Manage application lifecycle with type-safe context.

    Args:
        server: The FastMCP server instance.

    Yields:
        The application context.
    """
    logger.info("Starting Monad MCP server lifespan...")
    registry = VerificationRegistryService(get_registry_config())
    try:
        async with get_chain_client() as chain_client:
            analyzer = ContractAnalyzer(chain_client, registry, config=get_analysis_config())
            logger.info(f"Monad client initialized for {chain_client.config.rpc_url}")
            yield AppContext(chain_client=chain_client, registry=registry, analyzer=analyzer)
    except Exception as e:
        logger.error(f"Error during application startup: {str(e)}", exc_info=True)
        raise
    finally:
        await registry.close()
        logger.info("Application shutdown complete")


# Create the FastMCP server with the Monad lifespan
app = FastMCP(
    "monad-testnet",
    lifespan=app_lifespan
)


def _lifespan(ctx: Context) -> AppContext:
    return ctx.request_context.lifespan_context


def _error_text(action: str, error: Exception) -> str:
    if isinstance(error, MonadMCPError):
        return f"Failed to {action}: {error.message}"
    return f"Failed to {action}: {str(error) or type(error).__name__}"


def _parse_block_number(value: str) -> int:
    value = value.strip()
    number = int(value, 16) if value.lower().startswith("0x") else int(value)
    if number < 0:
        raise ValueError(f"Block number must not be negative: {value}")
    return number


def _iso_timestamp(seconds: int) -> str:
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


async def _call_or_default(chain: MonadClient, address: str, function: ContractFunction, default: Any) -> Any:
    try:
        return await chain.call_function(address, function)
    except Exception as e:
        logger.debug(f"{function.signature} on {address} failed, using {default!r}: {str(e)}")
        return default


# -------------------------------------------
# Account Tools
# -------------------------------------------

@app.tool(name="get-mon-balance", description="Get MON balance for an address on Monad testnet")
async def get_mon_balance(ctx: Context, address: str) -> str:
    """Get the native balance of an address.

    Args:
        ctx: The request context
        address: Monad testnet address to check balance for

    Returns:
        Balance formatted in MON
    """
    chain = _lifespan(ctx).chain_client
    try:
        checksummed = normalize_address(address)
        balance = await chain.get_balance(checksummed)
        return f"Balance for {address}: {format_ether(balance)} {chain.config.native_symbol}"
    except Exception as e:
        return _error_text("retrieve balance", e)


@app.tool(
    name="get-erc20-balance",
    description="Check ERC20 token balances with automatic token information retrieval"
)
async def get_erc20_balance(ctx: Context, address: str, token_address: str) -> str:
    """Get a wallet's balance of an ERC-20 token.

    Token metadata is best effort: name, symbol and decimals fall back to
    ``Unknown``, ``UNKNOWN`` and 18.

    Args:
        ctx: The request context
        address: Wallet address
        token_address: ERC20 token contract address

    Returns:
        Token name, symbol and formatted balance
    """
    chain = _lifespan(ctx).chain_client
    try:
        owner = normalize_address(address)
        token = normalize_address(token_address)

        balance, name, symbol, decimals = await asyncio.gather(
            chain.call_function(token, BALANCE_OF, (owner,)),
            _call_or_default(chain, token, NAME, UNKNOWN_NAME),
            _call_or_default(chain, token, SYMBOL, UNKNOWN_SYMBOL),
            _call_or_default(chain, token, DECIMALS, DEFAULT_DECIMALS),
        )
        return (
            f"Token: {name} ({symbol})\n"
            f"Balance: {format_units(balance, decimals)} {symbol}\n"
            f"Token Address: {token_address}"
        )
    except Exception as e:
        return _error_text("retrieve token balance", e)


# -------------------------------------------
# Transaction and Block Tools
# -------------------------------------------

@app.tool(name="get-transaction", description="Retrieve detailed transaction information by hash")
async def get_transaction(ctx: Context, tx_hash: str) -> str:
    """Get a transaction by hash.

    Args:
        ctx: The request context
        tx_hash: Transaction hash

    Returns:
        Formatted transaction details
    """
    chain = _lifespan(ctx).chain_client
    try:
        tx = await chain.get_transaction(validate_transaction_hash(tx_hash))
        if not tx:
            raise MonadMCPError("Transaction not found")

        block_number = tx.get("blockNumber")
        return "\n".join([
            "Transaction Details:",
            f"- Hash: {tx.get('hash')}",
            f"- From: {tx.get('from')}",
            f"- To: {tx.get('to') or 'Contract Creation'}",
            f"- Value: {format_ether(hex_to_int(tx.get('value')))} {chain.config.native_symbol}",
            f"- Gas Price: {format_gwei(hex_to_int(tx.get('gasPrice')))} Gwei",
            f"- Gas: {hex_to_int(tx.get('gas'))}",
            f"- Nonce: {hex_to_int(tx.get('nonce'))}",
            f"- Block Number: {hex_to_int(block_number) if block_number else 'Pending'}",
            f"- Block Hash: {tx.get('blockHash') or 'Pending'}",
            f"- Explorer: {chain.config.tx_url(tx.get('hash'))}",
        ])
    except Exception as e:
        return _error_text("retrieve transaction", e)


@app.tool(name="get-tx-receipt", description="Get transaction receipts with gas usage and status details")
async def get_tx_receipt(ctx: Context, tx_hash: str) -> str:
    """Get a transaction receipt.

    Args:
        ctx: The request context
        tx_hash: Transaction hash

    Returns:
        Formatted receipt with status and cost
    """
    chain = _lifespan(ctx).chain_client
    try:
        receipt = await chain.get_transaction_receipt(validate_transaction_hash(tx_hash))
        if not receipt:
            raise MonadMCPError("Transaction receipt not found")

        gas_used = hex_to_int(receipt.get("gasUsed"))
        gas_price = hex_to_int(receipt.get("effectiveGasPrice"))
        succeeded = hex_to_int(receipt.get("status")) == 1
        return "\n".join([
            "Transaction Receipt:",
            f"- Status: {'✅ Success' if succeeded else '❌ Failed'}",
            f"- Block Number: {hex_to_int(receipt.get('blockNumber'))}",
            f"- Gas Used: {gas_used}",
            f"- Effective Gas Price: {format_gwei(gas_price)} Gwei",
            f"- Total Cost: {format_ether(gas_used * gas_price)} {chain.config.native_symbol}",
            f"- Contract Address: {receipt.get('contractAddress') or 'N/A'}",
            f"- Logs: {len(receipt.get('logs') or [])} events emitted",
        ])
    except Exception as e:
        return _error_text("retrieve receipt", e)


@app.tool(name="get-block", description="Fetch block information by number or get latest block")
async def get_block(ctx: Context, block_number: Optional[str] = None) -> str:
    """Get a block by number, or the latest block.

    Args:
        ctx: The request context
        block_number: Block number (decimal or 0x hex); latest when omitted

    Returns:
        Formatted block summary
    """
    chain = _lifespan(ctx).chain_client
    try:
        number = _parse_block_number(block_number) if block_number else None
        block = await chain.get_block(number)
        if not block:
            raise MonadMCPError(f"Block {block_number} not found")

        return "\n".join([
            "Block Information:",
            f"- Number: {hex_to_int(block.get('number'))}",
            f"- Hash: {block.get('hash')}",
            f"- Parent Hash: {block.get('parentHash')}",
            f"- Timestamp: {_iso_timestamp(hex_to_int(block.get('timestamp')))}",
            f"- Gas Used: {hex_to_int(block.get('gasUsed'))}",
            f"- Gas Limit: {hex_to_int(block.get('gasLimit'))}",
            f"- Base Fee: {format_gwei(hex_to_int(block.get('baseFeePerGas')))} Gwei",
            f"- Transactions: {len(block.get('transactions') or [])}",
            f"- Miner: {block.get('miner')}",
        ])
    except Exception as e:
        return _error_text("retrieve block", e)


# -------------------------------------------
# Contract Tools
# -------------------------------------------

@app.tool(name="decode-calldata", description="Decode transaction calldata to human-readable function calls")
async def decode_calldata_tool(ctx: Context, data: str, abi: str) -> str:
    """Decode calldata against a contract ABI.

    Args:
        ctx: The request context
        data: Calldata to decode (hex string)
        abi: Contract ABI as JSON string

    Returns:
        Function name and decoded arguments
    """
    try:
        function, args = decode_calldata(data, abi)
        return (
            "Decoded Function Call:\n"
            f"- Function: {function.name}\n"
            f"- Arguments: {json.dumps(to_jsonable(args), indent=2)}"
        )
    except Exception as e:
        return _error_text("decode calldata", e)


@app.tool(
    name="get-contract-source",
    description=(
        "Retrieve contract source code and ABI from Monad testnet, "
        "with fallback to basic contract analysis"
    )
)
async def get_contract_source(ctx: Context, contract_address: str) -> str:
    """Analyze an address: account kind, token type and verification status.

    Args:
        ctx: The request context
        contract_address: Contract address

    Returns:
        Human-readable analysis report
    """
    context = _lifespan(ctx)
    try:
        report = await context.analyzer.analyze(contract_address)
    except Exception as e:
        return (
            f"{_error_text('analyze contract', e)}\n\n"
            "Make sure:\n"
            "- The address format is valid\n"
            "- You have internet connectivity\n"
            "- The Monad testnet RPC is accessible"
        )
    chain_config = context.chain_client.config
    return format_report(report, chain_id=chain_config.chain_id, symbol=chain_config.native_symbol)


@app.tool(name="readContract", description="Read data from any contract function with custom ABI support")
async def read_contract(
    ctx: Context,
    contract_address: str,
    function_name: str,
    abi: str,
    args: Optional[List[str]] = None
) -> str:
    """Call a view function described by an ABI.

    Args:
        ctx: The request context
        contract_address: Contract address
        function_name: Function name to call
        abi: Function ABI as JSON string
        args: Function arguments as strings

    Returns:
        The decoded result as JSON
    """
    chain = _lifespan(ctx).chain_client
    args = args or []
    try:
        address = normalize_address(contract_address)
        function = find_function(abi, function_name, len(args))
        values = [coerce_argument(t, v) for t, v in zip(function.inputs, args)]
        result = await chain.call_function(address, function, values)
        return (
            "Contract Read Result:\n"
            f"- Contract: {contract_address}\n"
            f"- Function: {function_name}\n"
            f"- Result: {json.dumps(to_jsonable(result), indent=2)}"
        )
    except Exception as e:
        return _error_text("read contract", e)


# -------------------------------------------
# Network Tools
# -------------------------------------------

@app.tool(name="estimate-priority-fee", description="Get current gas price and priority fee estimates")
async def estimate_priority_fee(ctx: Context) -> str:
    """Estimate gas and priority fees from the latest block.

    Returns:
        Gas price, base fee, priority fee and a recommended gas price in gwei
    """
    chain = _lifespan(ctx).chain_client
    try:
        gas_price, block = await asyncio.gather(chain.get_gas_price(), chain.get_block())
        base_fee = hex_to_int((block or {}).get("baseFeePerGas"))
        priority_fee = gas_price - base_fee
        # Integer halving truncates toward zero
        half_priority = priority_fee // 2 if priority_fee >= 0 else -(-priority_fee // 2)
        return "\n".join([
            "Gas Estimates:",
            f"- Current Gas Price: {format_gwei(gas_price)} Gwei",
            f"- Base Fee: {format_gwei(base_fee)} Gwei",
            f"- Priority Fee: {format_gwei(priority_fee)} Gwei",
            f"- Recommended Gas Price: {format_gwei(gas_price + half_priority)} Gwei",
        ])
    except Exception as e:
        return _error_text("estimate gas", e)


@app.tool(name="get-monad-constants", description="Access network information and common contract addresses")
async def get_monad_constants(ctx: Context) -> str:
    """Report chain id, head block, endpoints and common contracts."""
    chain = _lifespan(ctx).chain_client
    try:
        chain_id, block_number = await asyncio.gather(
            chain.get_chain_id(), chain.get_block_number()
        )
        contracts = "\n".join(f"- {name}: {address}" for name, address in COMMON_CONTRACTS.items())
        return (
            "Monad Network Information:\n"
            f"- Chain ID: {chain_id}\n"
            f"- Current Block: {block_number}\n"
            f"- RPC URL: {chain.config.rpc_url}\n"
            f"- Block Explorer: {chain.config.explorer_url or 'N/A'}\n\n"
            f"Common Contracts:\n{contracts}"
        )
    except Exception as e:
        return _error_text("get constants", e)


# -------------------------------------------
# Utility Tools
# -------------------------------------------

@app.tool(name="convert", description="Convert between different data formats (hex, string, number, keccak256)")
async def convert(ctx: Context, input: str, from_format: str, to_format: str) -> str:
    """Convert a value between formats.

    Args:
        ctx: The request context
        input: Input value to convert
        from_format: Input format (hex, string, number, text)
        to_format: Output format (hex, string, number, keccak256, address)

    Returns:
        The conversion result
    """
    try:
        result = convert_value(input, from_format, to_format)
    except Exception as e:
        return f"Conversion failed: {e.message if isinstance(e, MonadMCPError) else str(e)}"
    return (
        "Conversion Result:\n"
        f"- Input: {input}\n"
        f"- From: {from_format}\n"
        f"- To: {to_format}\n"
        f"- Result: {result}"
    )


@app.tool(name="monad-docs", description="Access Monad developer documentation directly")
async def monad_docs(ctx: Context, query: Optional[str] = None) -> str:
    """Return the documentation index or a search link."""
    try:
        return docs_index(query)
    except Exception as e:
        return _error_text("access docs", e)


@app.tool(name="read-monad-docs", description="Read specific sections of Monad documentation")
async def read_monad_docs(ctx: Context, section: str) -> str:
    """Return the link to a documentation section.

    Args:
        ctx: The request context
        section: Documentation section path (e.g. 'getting-started/installation')
    """
    try:
        return docs_section(section)
    except Exception as e:
        return _error_text("read docs section", e)


# -------------------------------------------
# Server Runner
# -------------------------------------------

async def health_check(request):
    """Health check endpoint"""
    return JSONResponse({"status": "healthy", "service": "monad-mcp", "version": __version__})


def create_sse_app(debug: bool = False) -> Starlette:
    """Build the Starlette application serving the SSE transport."""
    sse = SseServerTransport("/messages/")

    async def handle_sse(request):
        async with sse.connect_sse(
            request.scope, request.receive, request._send
        ) as streams:
            await app._mcp_server.run(
                streams[0], streams[1], app._mcp_server.create_initialization_options()
            )
        return Response()

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        ),
    ]

    return Starlette(
        debug=debug,
        middleware=middleware,
        routes=[
            Route("/sse", endpoint=handle_sse),
            Mount("/messages/", app=sse.handle_post_message),
            Route("/health", health_check),
        ],
    )


def run_server(
    transport: Optional[str] = None,
    port: Optional[int] = None,
    host: Optional[str] = None,
) -> None:
    """Run the Monad MCP server.

    Args:
        transport: Transport type. Defaults to environment setting or "stdio".
        port: Port to listen on for SSE transport. Defaults to environment setting or 8000.
        host: Host to bind to for SSE transport. Defaults to environment setting or "0.0.0.0".
    """
    overrides = {"transport": transport, "port": port, "host": host}
    # CLI overrides apply to a copy of the cached config
    config = replace(
        get_server_config(),
        **{name: value for name, value in overrides.items() if value}
    )

    # stdout carries protocol frames on stdio
    configure_logging(
        config.log_level,
        stream=sys.stderr if config.transport == "stdio" else None
    )
    logger.info(f"Monad MCP Server v{__version__} starting on {config.transport}")
    logger.info(f"Available tools: {', '.join(AVAILABLE_TOOLS)}")

    if config.transport == "sse":
        import uvicorn
        uvicorn.run(
            create_sse_app(debug=config.debug),
            host=config.host,
            port=config.port
        )
    else:
        app.run(transport="stdio")
