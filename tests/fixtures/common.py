"""Common test fixtures for Monad MCP tests.

This module provides fixtures that can be reused across different test modules.
"""

from typing import Any, Callable, Dict, Optional
from unittest.mock import AsyncMock

import httpx
import pytest

from monad_mcp.chain_client import MonadClient
from monad_mcp.config import AnalysisConfig, ChainConfig, RegistryConfig
from monad_mcp.services.contract_analyzer.models import RegistryLookup, VerificationStatus
from monad_mcp.services.registry_service import VerificationRegistryService
from monad_mcp.utils.errors import RpcError

# Digit-only addresses are their own EIP-55 checksum form
WALLET_ADDRESS = "0x1111111111111111111111111111111111111111"
TOKEN_ADDRESS = "0x2222222222222222222222222222222222222222"
NFT_ADDRESS = "0x3333333333333333333333333333333333333333"

# EIP-55 reference vector
CHECKSUMMED_ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"

ONE_MON = 10 ** 18
TOKEN_BYTECODE = bytes.fromhex("6080604052348015600f57600080fd5b50")

ERC20_RESPONSES = {
    "totalSupply()": 1_000 * ONE_MON,
    "balanceOf(address)": 0,
    "name()": "Test Token",
    "symbol()": "TT",
    "decimals()": 18,
}

ERC721_RESPONSES = {
    "supportsInterface(bytes4)": lambda args: args[0] == bytes.fromhex("80ac58cd"),
    "balanceOf(address)": RpcError("execution reverted: ERC721: address zero is not a valid owner"),
    "name()": "Test Collection",
    "symbol()": "TC",
}


def make_chain(
    code: bytes = b"",
    balance: int = 0,
    responses: Optional[Dict[str, Any]] = None,
    config: Optional[ChainConfig] = None
) -> AsyncMock:
    """Build a mock chain client answering contract calls by function signature.

    A response may be a value, an exception instance to raise, or a callable
    receiving the call arguments. Signatures without a response revert.
    """
    responses = responses or {}
    client = AsyncMock(spec=MonadClient)
    client.config = config or ChainConfig(rpc_url="http://rpc.test")
    client.get_code.return_value = code
    client.get_balance.return_value = balance

    def call_function(address, function, args=(), block=None):
        if function.signature not in responses:
            raise RpcError("execution reverted")
        response = responses[function.signature]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(tuple(args))
        return response

    client.call_function.side_effect = call_function
    return client


def make_registry_response(
    source: str = "pragma solidity ^0.8.20; contract TestToken {}",
    status: str = "1",
    **overrides: Any
) -> Dict[str, Any]:
    """Build a ``getsourcecode`` response body."""
    entry = {
        "SourceCode": source,
        "ABI": '[{"type":"function","name":"totalSupply","inputs":[],"outputs":[{"type":"uint256"}]}]',
        "ContractName": "TestToken",
        "CompilerVersion": "v0.8.20+commit.a1b79de6",
        "OptimizationUsed": "1",
        "Runs": "200",
    }
    entry.update(overrides)
    return {"status": status, "message": "OK", "result": [entry]}


def registry_with_handler(handler: Callable, timeout: float = 1.0) -> VerificationRegistryService:
    """Build a registry client served by an ``httpx.MockTransport`` handler."""
    config = RegistryConfig(api_url="https://registry.test/api", timeout=timeout)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return VerificationRegistryService(config, http_client=http_client)


@pytest.fixture
def chain_config():
    """Chain configuration pointing at a fake endpoint."""
    return ChainConfig(rpc_url="http://rpc.test")


@pytest.fixture
def analysis_config():
    """Short timeouts for analysis tests."""
    return AnalysisConfig(call_timeout=1.0, probe_timeout=0.5)


@pytest.fixture
def mock_registry():
    """Create a mock verification registry reporting an unverified contract."""
    registry = AsyncMock(spec=VerificationRegistryService)
    registry.lookup.return_value = RegistryLookup(status=VerificationStatus.NOT_VERIFIED)
    return registry


@pytest.fixture
def erc20_chain():
    """Chain with a deployed, fully standard ERC-20 token."""
    return make_chain(code=TOKEN_BYTECODE, balance=0, responses=dict(ERC20_RESPONSES))


@pytest.fixture
def erc721_chain():
    """Chain with a deployed ERC-721 collection declaring ERC-165 support."""
    return make_chain(code=TOKEN_BYTECODE, balance=0, responses=dict(ERC721_RESPONSES))


@pytest.fixture
def eoa_chain():
    """Chain where the address has no code and holds 5 MON."""
    return make_chain(code=b"", balance=5 * ONE_MON)
