"""Contract analyzer: answers "what is this address?"."""

import asyncio
import logging
from typing import Optional, Tuple

from monad_mcp.chain_client import MonadClient
from monad_mcp.config import AnalysisConfig, ChainConfig, get_analysis_config
from monad_mcp.services.base_service import BaseService
from monad_mcp.services.contract_analyzer.classifier import ContractClassifier
from monad_mcp.services.contract_analyzer.models import (
    AccountKind, AnalysisReport, ClassificationResult, RegistryLookup,
    VerificationStatus
)
from monad_mcp.services.registry_service import VerificationRegistryService
from monad_mcp.utils.errors import ChainUnavailableError, MonadMCPError
from monad_mcp.utils.formatting import format_units
from monad_mcp.utils.validation import normalize_address

logger = logging.getLogger(__name__)


class ContractAnalyzer(BaseService):
    """Builds an ``AnalysisReport`` for an arbitrary address.

    Only two failures escape ``analyze``: ``InvalidAddressError`` before any
    network call, and ``ChainUnavailableError`` when the code or balance of
    the address cannot be read. Classification and registry problems degrade
    their part of the report instead.
    """

    def __init__(
        self,
        chain: MonadClient,
        registry: VerificationRegistryService,
        classifier: Optional[ContractClassifier] = None,
        config: Optional[AnalysisConfig] = None,
        chain_config: Optional[ChainConfig] = None
    ):
        self.config = config or get_analysis_config()
        super().__init__(timeout=self.config.call_timeout, logger=logger)
        self.chain = chain
        self.chain_config = chain_config or chain.config
        self.registry = registry
        self.classifier = classifier or ContractClassifier(
            chain, call_timeout=self.config.probe_timeout
        )

    async def _read(self, coro, operation: str, address: str):
        try:
            return await self.with_timeout(coro, operation=operation)
        except MonadMCPError as e:
            raise ChainUnavailableError(
                f"Could not {operation} for {address}: {e.message}",
                operation=operation,
                address=address
            ) from e

    async def resolve_kind(self, address: str) -> Tuple[AccountKind, int]:
        """Decide whether an address holds code.

        Returns:
            The account kind and the deployed bytecode size in bytes

        Raises:
            ChainUnavailableError: If the code could not be read
        """
        code = await self._read(self.chain.get_code(address), "read code", address)
        if not code:
            return AccountKind.EXTERNALLY_OWNED, 0
        return AccountKind.CONTRACT, len(code)

    async def get_balance(self, address: str) -> int:
        """Read the native balance.

        Raises:
            ChainUnavailableError: If the balance could not be read
        """
        return await self._read(self.chain.get_balance(address), "read balance", address)

    async def _lookup_registry(self, address: str) -> RegistryLookup:
        return await self.execute_with_fallback(
            self.registry.lookup(address),
            fallback_value=RegistryLookup(status=VerificationStatus.UNAVAILABLE),
            error_message=f"Registry lookup for {address} failed"
        )

    async def _classify(self, address: str) -> ClassificationResult:
        return await self.execute_with_fallback(
            self.classifier.classify(address),
            fallback_value=ClassificationResult(),
            error_message=f"Classification of {address} failed"
        )

    def _report(self, address: str, kind: AccountKind, balance_wei: int, size: int,
                classification: Optional[ClassificationResult],
                lookup: RegistryLookup) -> AnalysisReport:
        return AnalysisReport(
            address=address,
            kind=kind,
            balance_wei=balance_wei,
            balance=format_units(balance_wei, self.chain_config.native_decimals),
            bytecode_size_bytes=size,
            classification=classification,
            verification=lookup.record,
            verification_status=lookup.status,
            explorer_url=self.chain_config.address_url(address),
        )

    async def analyze(self, address: str) -> AnalysisReport:
        """Analyze an address and report what it is.

        Args:
            address: Address string as supplied by the caller

        Returns:
            The assembled report

        Raises:
            InvalidAddressError: If the address is malformed
            ChainUnavailableError: If the chain could not be read
        """
        address = normalize_address(address)

        async with self.log_timing(f"analyze {address}"):
            kind, size = await self.resolve_kind(address)

            if kind is AccountKind.EXTERNALLY_OWNED:
                balance_wei = await self.get_balance(address)
                return self._report(
                    address, kind, balance_wei, 0, None,
                    RegistryLookup(status=VerificationStatus.NOT_CHECKED)
                )

            balance_wei, classification, lookup = await asyncio.gather(
                self.get_balance(address),
                self._classify(address),
                self._lookup_registry(address)
            )

        self.logger.info(
            f"Analyzed {address}: kind={kind.value}, size={size}, "
            f"match={classification.matched_candidate.name if classification.is_match else None}, "
            f"verification={lookup.status.value}"
        )
        return self._report(address, kind, balance_wei, size, classification, lookup)
