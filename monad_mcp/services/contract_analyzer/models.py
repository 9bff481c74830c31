"""Data models for contract introspection and classification."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from monad_mcp.abi import ContractFunction


class AccountKind(str, Enum):
    """Whether an address holds deployed code."""

    EXTERNALLY_OWNED = "externally_owned"
    CONTRACT = "contract"


class TokenStandard(str, Enum):
    """Token families a contract can be classified into."""

    FUNGIBLE = "fungible"
    NON_FUNGIBLE = "non_fungible"


class VerificationStatus(str, Enum):
    """Outcome of the verification registry lookup."""

    VERIFIED = "verified"
    NOT_VERIFIED = "not_verified"  # registry answered, no source published
    UNAVAILABLE = "unavailable"  # registry failed or timed out
    NOT_CHECKED = "not_checked"  # externally owned accounts are never looked up


@dataclass(frozen=True)
class ProbeCall:
    """One function invoked while probing a candidate interface."""

    function: ContractFunction
    args: Tuple[Any, ...] = ()
    # Key under which the decoded value is reported, if any
    field: Optional[str] = None
    # Value reported when a best-effort call fails
    default: Any = None

    @property
    def signature(self) -> str:
        return self.function.signature


@dataclass(frozen=True)
class InterfaceCandidate:
    """A token standard to test an address against.

    ``required_functions`` must all succeed for the candidate to be
    satisfied. ``sufficient_functions`` are only called once it is, and
    fall back to their defaults on failure. When ``interface_id`` is set,
    an ERC-165 ``supportsInterface`` answer decides the candidate on its own.
    """

    name: str
    standard: TokenStandard
    required_functions: Tuple[ProbeCall, ...]
    sufficient_functions: Tuple[ProbeCall, ...] = ()
    interface_id: Optional[bytes] = None


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of a single speculative call."""

    function: str
    succeeded: bool
    value: Any = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ProbeResult:
    """Everything learned by probing one candidate."""

    candidate: InterfaceCandidate
    satisfied: bool
    outcomes: Tuple[ProbeOutcome, ...] = ()
    extracted_fields: Dict[str, Any] = field(default_factory=dict)
    declared_by_interface: bool = False


@dataclass(frozen=True)
class ClassificationResult:
    """Best-fit classification of a contract."""

    matched_candidate: Optional[InterfaceCandidate] = None
    extracted_fields: Dict[str, Any] = field(default_factory=dict)
    declared_by_interface: bool = False

    @property
    def is_match(self) -> bool:
        return self.matched_candidate is not None

    def to_dict(self) -> Dict[str, Any]:
        candidate = self.matched_candidate
        return {
            "matched_candidate": candidate.name if candidate else None,
            "standard": candidate.standard.value if candidate else None,
            "declared_by_interface": self.declared_by_interface,
            "extracted_fields": {
                key: str(value) if isinstance(value, int) and not isinstance(value, bool) else value
                for key, value in self.extracted_fields.items()
            },
        }


@dataclass(frozen=True)
class VerificationRecord:
    """Verified source metadata published in the registry."""

    contract_name: str
    compiler_version: str
    optimization_enabled: bool
    runs: Optional[int] = None
    abi_available: bool = False
    source_size: int = 0
    source_available: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_available": self.source_available,
            "contract_name": self.contract_name,
            "compiler_version": self.compiler_version,
            "optimization_enabled": self.optimization_enabled,
            "runs": self.runs,
            "abi_available": self.abi_available,
            "source_size": self.source_size,
        }


@dataclass(frozen=True)
class RegistryLookup:
    """Registry answer with the reason a record is missing."""

    status: VerificationStatus
    record: Optional[VerificationRecord] = None


@dataclass(frozen=True)
class AnalysisReport:
    """Terminal result of analyzing one address."""

    address: str
    kind: AccountKind
    balance_wei: int
    balance: str
    bytecode_size_bytes: int
    classification: Optional[ClassificationResult]
    verification: Optional[VerificationRecord]
    verification_status: VerificationStatus
    explorer_url: str

    @property
    def is_contract(self) -> bool:
        return self.kind is AccountKind.CONTRACT

    def to_dict(self) -> Dict[str, Any]:
        """Convert the report to JSON-compatible data."""
        return {
            "address": self.address,
            "kind": self.kind.value,
            "balance_wei": str(self.balance_wei),
            "balance": self.balance,
            "bytecode_size_bytes": self.bytecode_size_bytes,
            "classification": self.classification.to_dict() if self.classification else None,
            "verification_status": self.verification_status.value,
            "verification": self.verification.to_dict() if self.verification else None,
            "explorer_url": self.explorer_url,
        }
