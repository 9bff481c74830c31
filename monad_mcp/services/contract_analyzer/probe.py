"""Speculative invocation of a candidate interface's view functions."""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from monad_mcp.chain_client import MonadClient
from monad_mcp.logging_config import get_logger
from monad_mcp.services.base_service import BaseService
from monad_mcp.services.contract_analyzer.candidates import SUPPORTS_INTERFACE
from monad_mcp.services.contract_analyzer.models import (
    InterfaceCandidate, ProbeCall, ProbeOutcome, ProbeResult
)
from monad_mcp.utils.errors import ProbeError

logger = get_logger(__name__)


class InterfaceProbe(BaseService):
    """Calls a candidate's functions against an address and records each outcome.

    No exception raised by an individual call ever leaves the probe: reverts,
    missing selectors, undecodable return data, node errors and timeouts all
    become failed ``ProbeOutcome`` values.
    """

    def __init__(self, chain: MonadClient, call_timeout: float = 5.0):
        super().__init__(timeout=call_timeout, logger=logger)
        self.chain = chain

    async def invoke(self, address: str, call: ProbeCall) -> ProbeOutcome:
        """Invoke one function, capturing failure as a value."""
        try:
            value = await self.with_timeout(
                self.chain.call_function(address, call.function, call.args),
                operation=f"eth_call {call.signature}"
            )
        except Exception as e:
            error = ProbeError(str(e) or type(e).__name__, function=call.signature)
            self.logger.debug(f"Probe of {call.signature} on {address} failed: {error.message}")
            return ProbeOutcome(function=call.signature, succeeded=False, error=error.message)
        return ProbeOutcome(function=call.signature, succeeded=True, value=value)

    async def _invoke_all(self, address: str, calls: Tuple[ProbeCall, ...]) -> List[ProbeOutcome]:
        return list(await asyncio.gather(*(self.invoke(address, call) for call in calls)))

    async def _declared_support(
        self, address: str, candidate: InterfaceCandidate
    ) -> Tuple[Optional[bool], Optional[ProbeOutcome]]:
        if candidate.interface_id is None:
            return None, None
        outcome = await self.invoke(
            address, ProbeCall(SUPPORTS_INTERFACE, args=(candidate.interface_id,))
        )
        if outcome.succeeded and isinstance(outcome.value, bool):
            return outcome.value, outcome
        return None, outcome

    async def probe(self, address: str, candidate: InterfaceCandidate) -> ProbeResult:
        """Probe one candidate.

        Args:
            address: Checksummed contract address
            candidate: Interface to test

        Returns:
            Per-function outcomes, whether the candidate is satisfied and the
            fields extracted from it
        """
        outcomes: List[ProbeOutcome] = []

        declared, declaration = await self._declared_support(address, candidate)
        if declaration is not None:
            outcomes.append(declaration)

        if declared is not None:
            satisfied = declared
            extracted: Dict[str, Any] = {}
        else:
            required = await self._invoke_all(address, candidate.required_functions)
            outcomes.extend(required)
            satisfied = all(o.succeeded for o in required)
            extracted = {
                call.field: outcome.value
                for call, outcome in zip(candidate.required_functions, required)
                if call.field and outcome.succeeded
            }

        if satisfied:
            optional = await self._invoke_all(address, candidate.sufficient_functions)
            outcomes.extend(optional)
            for call, outcome in zip(candidate.sufficient_functions, optional):
                if call.field and call.field not in extracted:
                    extracted[call.field] = outcome.value if outcome.succeeded else call.default

        self.logger.debug(
            f"Probe {candidate.name} on {address}: satisfied={satisfied}, "
            f"{sum(o.succeeded for o in outcomes)}/{len(outcomes)} calls succeeded"
        )
        return ProbeResult(
            candidate=candidate,
            satisfied=satisfied,
            outcomes=tuple(outcomes),
            extracted_fields=extracted if satisfied else {},
            declared_by_interface=declared is True,
        )
