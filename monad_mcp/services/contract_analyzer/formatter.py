"""Human-readable rendering of an ``AnalysisReport``."""

from typing import Any, List

from monad_mcp.constants import LARGE_SOURCE_THRESHOLD, UNAVAILABLE, VERIFIER_URL
from monad_mcp.services.contract_analyzer.models import (
    AnalysisReport, ClassificationResult, TokenStandard, VerificationRecord,
    VerificationStatus
)
from monad_mcp.utils.formatting import format_units


def _show(value: Any) -> str:
    return UNAVAILABLE if value is None else str(value)


def _token_amount(amount: Any, decimals: Any) -> str:
    if not isinstance(amount, int) or isinstance(amount, bool):
        return UNAVAILABLE
    if isinstance(decimals, int) and not isinstance(decimals, bool):
        return format_units(amount, decimals)
    return str(amount)


def _classification_lines(classification: ClassificationResult) -> List[str]:
    fields = classification.extracted_fields
    candidate = classification.matched_candidate

    if candidate is None:
        return [
            "🔧 Smart Contract (Unknown Type)",
            "- Could be: DeFi protocol, custom contract, proxy, etc.",
        ]

    symbol = _show(fields.get("symbol"))
    if candidate.standard is TokenStandard.FUNGIBLE:
        return [
            f"🪙 {candidate.name} Token Detected:",
            f"- Name: {_show(fields.get('name'))}",
            f"- Symbol: {symbol}",
            f"- Decimals: {_show(fields.get('decimals'))}",
            f"- Total Supply: {_token_amount(fields.get('totalSupply'), fields.get('decimals'))} {symbol}",
        ]

    lines = [
        f"🖼️ {candidate.name} NFT Detected:",
        f"- Name: {_show(fields.get('name'))}",
        f"- Symbol: {symbol}",
    ]
    if fields.get("totalSupply") is not None:
        lines.append(f"- Total Supply: {fields['totalSupply']}")
    return lines


def _verified_lines(record: VerificationRecord, explorer_url: str) -> List[str]:
    if record.source_size > LARGE_SOURCE_THRESHOLD:
        source = "Available (large file)"
    else:
        source = "Available"
    return [
        "✅ Verified Source Code Available:",
        f"📄 Contract Name: {record.contract_name}",
        f"🔧 Compiler: {record.compiler_version}",
        f"⚡ Optimization: {'Enabled' if record.optimization_enabled else 'Disabled'}",
        f"🏃 Runs: {record.runs if record.runs is not None else 'N/A'}",
        "",
        f"📋 ABI Available: {'Yes' if record.abi_available else 'No'}",
        f"💻 Source Code: {source}",
        "",
        f"🔗 View Source: {explorer_url}#code",
    ]


def _unverified_lines(address: str, explorer_url: str, chain_id: int) -> List[str]:
    return [
        "❌ Source Code Not Verified",
        "The contract exists and functions, but source code hasn't been verified on Monadscan.",
        "",
        "To verify (if you're the developer):",
        f"- Foundry: forge verify-contract {address} [ContractName] --chain {chain_id} "
        f"--verifier sourcify --verifier-url {VERIFIER_URL}",
        f"- Hardhat: npx hardhat verify {address} --network monadTestnet",
        "- Manual: Use Monadscan's verification interface",
        "",
        f"🔗 View Contract: {explorer_url}",
    ]


def format_report(report: AnalysisReport, chain_id: int = 10143, symbol: str = "MON") -> str:
    """Render a report as the text returned by the ``get-contract-source`` tool.

    Args:
        report: Report to render
        chain_id: Chain id quoted in the verification instructions
        symbol: Native currency symbol

    Returns:
        Multi-line report text
    """
    lines = [f"📋 Contract Analysis for {report.address}", ""]

    if not report.is_contract:
        lines += [
            "❌ This is not a contract - it's an Externally Owned Account (EOA)",
            f"💰 Balance: {report.balance} {symbol}",
            "",
            f"🔗 View on Monadscan: {report.explorer_url}",
        ]
        return "\n".join(lines)

    lines += [
        "✅ Contract Information:",
        f"💰 Balance: {report.balance} {symbol}",
        f"📦 Bytecode Size: {report.bytecode_size_bytes:,} bytes",
        "",
    ]
    lines += _classification_lines(report.classification or ClassificationResult())
    lines.append("")

    status = report.verification_status
    if status is VerificationStatus.VERIFIED and report.verification is not None:
        lines += _verified_lines(report.verification, report.explorer_url)
    elif status is VerificationStatus.UNAVAILABLE:
        lines += [
            "⚠️ Verification Status Unavailable",
            "The verification registry could not be reached, so it is unknown whether "
            "the source code has been verified.",
            "",
            f"🔗 View Contract: {report.explorer_url}",
        ]
    else:
        lines += _unverified_lines(report.address, report.explorer_url, chain_id)

    return "\n".join(lines)
