"""
Verification registry client.

Looks up developer-submitted source code and compiler metadata in an
Etherscan-compatible explorer API. The registry is advisory: every failure
resolves to "no record" instead of an exception.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from monad_mcp.config import RegistryConfig, get_registry_config
from monad_mcp.services.base_service import BaseService
from monad_mcp.services.contract_analyzer.models import (
    RegistryLookup, VerificationRecord, VerificationStatus
)
from monad_mcp.utils.errors import MonadMCPError, RegistryUnavailableError

logger = logging.getLogger(__name__)

_NOT_VERIFIED_ABI = "Contract source code not verified"


def _parse_runs(value: Any) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def parse_source_entry(entry: Dict[str, Any]) -> Optional[VerificationRecord]:
    """Build a record from one ``getsourcecode`` result entry.

    Returns:
        The record, or None when the entry carries no source code
    """
    source = entry.get("SourceCode") or ""
    if not source.strip():
        return None
    abi = entry.get("ABI") or ""
    return VerificationRecord(
        contract_name=entry.get("ContractName") or "Unknown",
        compiler_version=entry.get("CompilerVersion") or "Unknown",
        optimization_enabled=str(entry.get("OptimizationUsed", "")) == "1",
        runs=_parse_runs(entry.get("Runs")),
        abi_available=bool(abi) and abi != _NOT_VERIFIED_ABI,
        source_size=len(source),
    )


class VerificationRegistryService(BaseService):
    """Client for the explorer's contract source API."""

    def __init__(
        self,
        config: Optional[RegistryConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config or get_registry_config()
        super().__init__(timeout=self.config.timeout, logger=logger)
        self._http_client = http_client

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.config.timeout)
        return self._http_client

    async def _fetch(self, address: str) -> Dict[str, Any]:
        params = {
            "module": "contract",
            "action": "getsourcecode",
            "address": address,
        }
        if self.config.api_key:
            params["apikey"] = self.config.api_key

        try:
            response = await self._client().get(self.config.api_url, params=params)
        except httpx.HTTPError as e:
            raise RegistryUnavailableError(f"Registry request failed: {str(e)}")
        if not response.is_success:
            raise RegistryUnavailableError(
                f"Registry returned HTTP {response.status_code}",
                status_code=response.status_code
            )
        try:
            data = response.json()
        except ValueError as e:
            raise RegistryUnavailableError(f"Registry returned invalid JSON: {str(e)}")
        if not isinstance(data, dict):
            raise RegistryUnavailableError("Registry response is not an object")
        return data

    async def lookup(self, address: str) -> RegistryLookup:
        """Look up an address, keeping the reason when no record exists.

        Args:
            address: Checksummed contract address

        Returns:
            ``VERIFIED`` with a record, ``NOT_VERIFIED`` when the registry
            answered without source, ``UNAVAILABLE`` otherwise
        """
        try:
            async with self.log_timing(f"registry lookup {address}"):
                data = await self.with_timeout(self._fetch(address), operation="registry lookup")
        except MonadMCPError as e:
            self.logger.warning(f"Verification registry unavailable for {address}: {e.message}")
            return RegistryLookup(status=VerificationStatus.UNAVAILABLE)

        if str(data.get("status")) != "1":
            # "0" with "Contract source code not verified" or an API error message
            self.logger.info(f"Registry status {data.get('status')!r} for {address}: {data.get('result')!r}")
            return RegistryLookup(status=VerificationStatus.UNAVAILABLE)

        results = data.get("result")
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            return RegistryLookup(status=VerificationStatus.UNAVAILABLE)

        record = parse_source_entry(results[0])
        if record is None:
            return RegistryLookup(status=VerificationStatus.NOT_VERIFIED)
        return RegistryLookup(status=VerificationStatus.VERIFIED, record=record)

    async def lookup_verification(self, address: str) -> Optional[VerificationRecord]:
        """Return the verification record for an address, or None."""
        return (await self.lookup(address)).record

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
