"""Async JSON-RPC client for EVM-compatible Monad nodes."""

# Standard library imports
import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence, Union

# Third-party library imports
import httpx

# Internal imports
from monad_mcp.abi import ContractFunction
from monad_mcp.config import ChainConfig, get_chain_config
from monad_mcp.logging_config import get_logger
from monad_mcp.utils.errors import RpcError, RpcTimeoutError
from monad_mcp.utils.formatting import hex_to_int
from monad_mcp.utils.validation import normalize_address, validate_transaction_hash

# Get logger
logger = get_logger(__name__)

BlockId = Union[int, str]


def _block_param(block: Optional[BlockId]) -> str:
    if block is None:
        return "latest"
    if isinstance(block, int):
        return hex(block)
    return block


class MonadClient:
    """Client for read-only queries against a Monad JSON-RPC endpoint."""

    def __init__(self, config: Optional[ChainConfig] = None,
                 http_client: Optional[httpx.AsyncClient] = None):
        """Initialize the client.

        Args:
            config: Chain configuration. Defaults to environment-based config.
            http_client: Optional pre-built HTTP client (used by tests)
        """
        self.config = config or get_chain_config()
        self.headers = {"Content-Type": "application/json"}
        self._http_client = http_client
        self._request_id = 0

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.config.timeout,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20)
            )
        return self._http_client

    async def _make_request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Make a JSON-RPC request to the node.

        Args:
            method: The RPC method to call
            params: The parameters to pass to the method

        Returns:
            The ``result`` member of the JSON-RPC response

        Raises:
            RpcError: If the node returns an error or cannot be reached
            RpcTimeoutError: If the request times out
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or []
        }

        initial_retry_delay = 0.5
        max_retry_delay = 5.0
        retriable_status_codes = {408, 429, 500, 502, 503, 504}
        max_retries = self.config.max_retries

        for retry_count in range(max_retries + 1):
            if retry_count > 0:
                wait_time = min(initial_retry_delay * (2 ** (retry_count - 1)), max_retry_delay)
                logger.info(f"Retry attempt {retry_count}/{max_retries} for {method} in {wait_time}s")
                await asyncio.sleep(wait_time)

            try:
                response = await self._client().post(
                    self.config.rpc_url,
                    headers=self.headers,
                    json=payload
                )
                if response.status_code in retriable_status_codes and retry_count < max_retries:
                    logger.warning(f"HTTP status {response.status_code} for {method}")
                    continue
                response.raise_for_status()
                result = response.json()
            except httpx.TimeoutException as e:
                if retry_count < max_retries:
                    logger.warning(f"Timeout calling {method}: {str(e)}")
                    continue
                raise RpcTimeoutError(f"RPC {method} timed out", timeout=self.config.timeout) from e
            except (httpx.HTTPError, json.JSONDecodeError) as e:
                if retry_count < max_retries:
                    logger.warning(f"Request for {method} failed: {str(e)}")
                    continue
                raise RpcError(f"RPC {method} failed: {str(e)}") from e

            if "error" in result:
                error = result["error"] or {}
                message = f"RPC error: {error.get('message', 'Unknown error')}"
                if error.get("data"):
                    message += f" - {json.dumps(error['data'])}"
                raise RpcError(message, error)

            return result.get("result")

        raise RpcError(f"RPC {method} failed after {max_retries} retries")

    async def get_code(self, address: str, block: Optional[BlockId] = None) -> bytes:
        """Get the deployed bytecode at an address (empty for accounts)."""
        address = normalize_address(address)
        code = await self._make_request("eth_getCode", [address, _block_param(block)])
        if not code or code == "0x":
            return b""
        return bytes.fromhex(code[2:])

    async def get_balance(self, address: str, block: Optional[BlockId] = None) -> int:
        """Get the native balance of an address in wei."""
        address = normalize_address(address)
        balance = await self._make_request("eth_getBalance", [address, _block_param(block)])
        return hex_to_int(balance)

    async def call(self, address: str, data: str, block: Optional[BlockId] = None) -> str:
        """Execute ``eth_call`` with raw calldata and return the raw result."""
        address = normalize_address(address)
        return await self._make_request(
            "eth_call",
            [{"to": address, "data": data}, _block_param(block)]
        )

    async def call_function(
        self,
        address: str,
        function: ContractFunction,
        args: Sequence[Any] = (),
        block: Optional[BlockId] = None
    ) -> Any:
        """Invoke a view function and decode its result.

        Raises:
            AbiError: If the arguments or the return data do not match the ABI
            RpcError: If the call reverts or the node fails
        """
        data = function.encode_call(args)
        raw = await self.call(address, data, block)
        return function.decode_output(raw or "0x")

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Get a transaction by hash."""
        return await self._make_request(
            "eth_getTransactionByHash", [validate_transaction_hash(tx_hash)]
        )

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Get a transaction receipt by hash."""
        return await self._make_request(
            "eth_getTransactionReceipt", [validate_transaction_hash(tx_hash)]
        )

    async def get_block(self, block: Optional[BlockId] = None,
                        full_transactions: bool = False) -> Optional[Dict[str, Any]]:
        """Get a block by number, or the latest block."""
        return await self._make_request(
            "eth_getBlockByNumber", [_block_param(block), full_transactions]
        )

    async def get_block_number(self) -> int:
        return hex_to_int(await self._make_request("eth_blockNumber"))

    async def get_chain_id(self) -> int:
        return hex_to_int(await self._make_request("eth_chainId"))

    async def get_gas_price(self) -> int:
        return hex_to_int(await self._make_request("eth_gasPrice"))

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the client and release resources."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None


@asynccontextmanager
async def get_chain_client(config: Optional[ChainConfig] = None):
    """Get a Monad client as an async context manager.

    Yields:
        MonadClient: An initialized client.
    """
    client = MonadClient(config)
    try:
        yield client
    finally:
        await client.close()
