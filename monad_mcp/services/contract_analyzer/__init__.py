"""Contract introspection and classification.

The entry point is ``analyzer.ContractAnalyzer.analyze``; reports render to
text with ``format_report``.
"""

from monad_mcp.services.contract_analyzer.formatter import format_report
from monad_mcp.services.contract_analyzer.models import (
    AccountKind, AnalysisReport, ClassificationResult, InterfaceCandidate,
    ProbeOutcome, ProbeResult, VerificationRecord, VerificationStatus
)

__all__ = [
    "format_report",
    "AccountKind",
    "AnalysisReport",
    "ClassificationResult",
    "InterfaceCandidate",
    "ProbeOutcome",
    "ProbeResult",
    "VerificationRecord",
    "VerificationStatus",
]
