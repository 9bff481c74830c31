"""First-match classification of a contract over the candidate list."""

from typing import Optional, Sequence

from monad_mcp.chain_client import MonadClient
from monad_mcp.logging_config import get_logger, log_with_context
from monad_mcp.services.contract_analyzer.candidates import INTERFACE_CANDIDATES
from monad_mcp.services.contract_analyzer.models import (
    ClassificationResult, InterfaceCandidate
)
from monad_mcp.services.contract_analyzer.probe import InterfaceProbe

logger = get_logger(__name__)


class ContractClassifier:
    """Reports a contract as the first candidate whose probe is satisfied.

    Candidates are tried strictly in order, so a contract that satisfies
    several of them is reported under the highest-priority one only.
    """

    def __init__(
        self,
        chain: MonadClient,
        candidates: Sequence[InterfaceCandidate] = INTERFACE_CANDIDATES,
        probe: Optional[InterfaceProbe] = None,
        call_timeout: float = 5.0
    ):
        self.candidates = tuple(candidates)
        self.probe = probe or InterfaceProbe(chain, call_timeout=call_timeout)

    async def classify(self, address: str) -> ClassificationResult:
        """Classify a contract address.

        Args:
            address: Checksummed address known to hold code

        Returns:
            The matched candidate and its extracted fields, or an empty
            result when no candidate's required functions all succeeded
        """
        for candidate in self.candidates:
            result = await self.probe.probe(address, candidate)
            if result.satisfied:
                log_with_context(
                    logger, "info", "Contract classified",
                    address=address, candidate=candidate.name,
                    declared=result.declared_by_interface
                )
                return ClassificationResult(
                    matched_candidate=candidate,
                    extracted_fields=dict(result.extracted_fields),
                    declared_by_interface=result.declared_by_interface,
                )

        log_with_context(logger, "info", "Contract matched no candidate", address=address)
        return ClassificationResult()
