"""Unit tests for ContractAnalyzer."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from monad_mcp.chain_client import MonadClient
from monad_mcp.services.contract_analyzer.analyzer import ContractAnalyzer
from monad_mcp.services.contract_analyzer.candidates import ERC20
from monad_mcp.services.contract_analyzer.classifier import ContractClassifier
from monad_mcp.services.contract_analyzer.formatter import format_report
from monad_mcp.services.contract_analyzer.models import (
    AccountKind, RegistryLookup, VerificationRecord, VerificationStatus
)
from monad_mcp.services.registry_service import VerificationRegistryService
from monad_mcp.utils.errors import ChainUnavailableError, InvalidAddressError, RpcError
from tests.fixtures.common import (
    CHECKSUMMED_ADDRESS, ERC20_RESPONSES, ONE_MON, TOKEN_ADDRESS, TOKEN_BYTECODE,
    WALLET_ADDRESS, make_chain, make_registry_response, registry_with_handler
)


class TestContractAnalyzer:
    """Test suite for ContractAnalyzer."""

    @pytest.mark.parametrize("address", ["0x123", "hello", "", "0x" + "g" * 40])
    @pytest.mark.asyncio
    async def test_invalid_address_makes_no_calls(self, address, mock_registry, analysis_config):
        """Malformed input fails before any collaborator is touched."""
        chain = AsyncMock(spec=MonadClient)
        classifier = AsyncMock(spec=ContractClassifier)
        analyzer = ContractAnalyzer(
            chain, mock_registry, classifier=classifier, config=analysis_config,
            chain_config=make_chain().config
        )

        with pytest.raises(InvalidAddressError):
            await analyzer.analyze(address)

        assert chain.method_calls == []
        assert not mock_registry.lookup.called
        assert not classifier.classify.called

    @pytest.mark.asyncio
    async def test_eoa_short_circuits(self, eoa_chain, mock_registry, analysis_config):
        """An address without code is never classified nor looked up."""
        classifier = AsyncMock(spec=ContractClassifier)
        analyzer = ContractAnalyzer(
            eoa_chain, mock_registry, classifier=classifier, config=analysis_config
        )

        report = await analyzer.analyze(WALLET_ADDRESS)

        assert report.kind is AccountKind.EXTERNALLY_OWNED
        assert not report.is_contract
        assert report.balance == "5"
        assert report.balance_wei == 5 * ONE_MON
        assert report.bytecode_size_bytes == 0
        assert report.classification is None
        assert report.verification is None
        assert report.verification_status is VerificationStatus.NOT_CHECKED
        assert report.explorer_url == f"https://testnet.monadscan.com/address/{WALLET_ADDRESS}"
        assert not classifier.classify.called
        assert not mock_registry.lookup.called

    @pytest.mark.asyncio
    async def test_address_is_checksummed(self, eoa_chain, mock_registry, analysis_config):
        analyzer = ContractAnalyzer(eoa_chain, mock_registry, config=analysis_config)

        report = await analyzer.analyze(CHECKSUMMED_ADDRESS.lower())

        assert report.address == CHECKSUMMED_ADDRESS
        eoa_chain.get_code.assert_awaited_once_with(CHECKSUMMED_ADDRESS)

    @pytest.mark.asyncio
    async def test_erc20_end_to_end(self, erc20_chain, analysis_config):
        """A verified ERC-20 token is fully described."""
        registry = registry_with_handler(
            lambda request: httpx.Response(200, json=make_registry_response())
        )
        analyzer = ContractAnalyzer(erc20_chain, registry, config=analysis_config)

        report = await analyzer.analyze(TOKEN_ADDRESS)

        assert report.kind is AccountKind.CONTRACT
        assert report.bytecode_size_bytes == len(TOKEN_BYTECODE)
        assert report.balance == "0"
        assert report.classification.matched_candidate is ERC20
        assert report.classification.extracted_fields == {
            "totalSupply": 1_000 * ONE_MON,
            "name": "Test Token",
            "symbol": "TT",
            "decimals": 18,
        }
        assert report.verification_status is VerificationStatus.VERIFIED
        assert report.verification.contract_name == "TestToken"
        await registry.close()

    @pytest.mark.asyncio
    async def test_token_with_four_metadata_functions(self, mock_registry, analysis_config):
        """name, symbol, decimals and totalSupply alone identify a fungible token."""
        chain = make_chain(code=TOKEN_BYTECODE, responses={
            "name()": "Test Token",
            "symbol()": "TT",
            "decimals()": 18,
            "totalSupply()": 1_000 * ONE_MON,
        })
        analyzer = ContractAnalyzer(chain, mock_registry, config=analysis_config)

        report = await analyzer.analyze(TOKEN_ADDRESS)

        assert report.kind is AccountKind.CONTRACT
        assert report.classification.matched_candidate is ERC20
        assert report.classification.extracted_fields == {
            "totalSupply": 1_000 * ONE_MON,
            "name": "Test Token",
            "symbol": "TT",
            "decimals": 18,
        }
        assert "🪙 ERC-20 Token Detected:" in format_report(report)

    @pytest.mark.asyncio
    async def test_unknown_contract(self, mock_registry, analysis_config):
        chain = make_chain(code=TOKEN_BYTECODE, balance=ONE_MON // 2)
        analyzer = ContractAnalyzer(chain, mock_registry, config=analysis_config)

        report = await analyzer.analyze(TOKEN_ADDRESS)

        assert report.is_contract
        assert report.balance == "0.5"
        assert report.classification is not None
        assert report.classification.matched_candidate is None
        assert report.verification_status is VerificationStatus.NOT_VERIFIED

    @pytest.mark.asyncio
    async def test_erc20_wins_over_erc721(self, mock_registry, analysis_config):
        responses = dict(ERC20_RESPONSES)
        responses["supportsInterface(bytes4)"] = True
        chain = make_chain(code=TOKEN_BYTECODE, responses=responses)
        analyzer = ContractAnalyzer(chain, mock_registry, config=analysis_config)

        report = await analyzer.analyze(TOKEN_ADDRESS)

        assert report.classification.matched_candidate.name == "ERC-20"

    @pytest.mark.asyncio
    async def test_registry_timeout_keeps_chain_data(self, erc20_chain, analysis_config):
        """A slow registry only affects the verification part of the report."""
        async def slow_handler(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json=make_registry_response())

        registry = registry_with_handler(slow_handler, timeout=0.05)
        analyzer = ContractAnalyzer(erc20_chain, registry, config=analysis_config)

        report = await analyzer.analyze(TOKEN_ADDRESS)

        assert report.verification is None
        assert report.verification_status is VerificationStatus.UNAVAILABLE
        assert report.classification.matched_candidate is ERC20
        assert report.balance == "0"

    @pytest.mark.asyncio
    async def test_registry_status_zero_keeps_chain_data(self, erc20_chain, analysis_config):
        registry = registry_with_handler(
            lambda request: httpx.Response(200, json={"status": "0", "message": "NOTOK", "result": ""})
        )
        analyzer = ContractAnalyzer(erc20_chain, registry, config=analysis_config)

        report = await analyzer.analyze(TOKEN_ADDRESS)

        assert report.verification_status is VerificationStatus.UNAVAILABLE
        assert report.classification.extracted_fields["name"] == "Test Token"

    @pytest.mark.asyncio
    async def test_registry_exception_is_contained(self, erc20_chain, analysis_config):
        registry = AsyncMock(spec=VerificationRegistryService)
        registry.lookup.side_effect = RuntimeError("unexpected")
        analyzer = ContractAnalyzer(erc20_chain, registry, config=analysis_config)
        analyzer.logger = MagicMock()

        report = await analyzer.analyze(TOKEN_ADDRESS)

        assert report.verification_status is VerificationStatus.UNAVAILABLE
        assert report.classification.is_match
        analyzer.logger.warning.assert_called_once_with(
            f"Registry lookup for {TOKEN_ADDRESS} failed: unexpected"
        )

    @pytest.mark.asyncio
    async def test_classifier_exception_is_contained(self, erc20_chain, mock_registry, analysis_config):
        classifier = AsyncMock(spec=ContractClassifier)
        classifier.classify.side_effect = RuntimeError("unexpected")
        analyzer = ContractAnalyzer(
            erc20_chain, mock_registry, classifier=classifier, config=analysis_config
        )

        report = await analyzer.analyze(TOKEN_ADDRESS)

        assert report.classification is not None
        assert not report.classification.is_match
        assert report.verification_status is VerificationStatus.NOT_VERIFIED

    @pytest.mark.asyncio
    async def test_code_read_failure_is_fatal(self, mock_registry, analysis_config):
        chain = make_chain()
        chain.get_code.side_effect = RpcError("RPC eth_getCode failed: connection refused")
        analyzer = ContractAnalyzer(chain, mock_registry, config=analysis_config)

        with pytest.raises(ChainUnavailableError) as exc_info:
            await analyzer.analyze(TOKEN_ADDRESS)

        assert exc_info.value.operation == "read code"
        assert not mock_registry.lookup.called

    @pytest.mark.asyncio
    async def test_balance_read_failure_is_fatal(self, erc20_chain, mock_registry, analysis_config):
        erc20_chain.get_balance.side_effect = RpcError("RPC eth_getBalance failed")
        analyzer = ContractAnalyzer(erc20_chain, mock_registry, config=analysis_config)

        with pytest.raises(ChainUnavailableError) as exc_info:
            await analyzer.analyze(TOKEN_ADDRESS)

        assert exc_info.value.operation == "read balance"

    @pytest.mark.asyncio
    async def test_code_read_timeout_is_fatal(self, mock_registry, analysis_config):
        chain = make_chain()

        async def slow_code(*args, **kwargs):
            await asyncio.sleep(1)
            return b""

        chain.get_code.side_effect = slow_code
        analysis_config.call_timeout = 0.05
        analyzer = ContractAnalyzer(chain, mock_registry, config=analysis_config)

        with pytest.raises(ChainUnavailableError):
            await analyzer.analyze(TOKEN_ADDRESS)

    @pytest.mark.asyncio
    async def test_reports_are_idempotent(self, erc20_chain, analysis_config):
        """Analyzing the same unchanged address twice yields equal reports."""
        registry = AsyncMock(spec=VerificationRegistryService)
        registry.lookup.return_value = RegistryLookup(
            status=VerificationStatus.VERIFIED,
            record=VerificationRecord(
                contract_name="TestToken",
                compiler_version="v0.8.20+commit.a1b79de6",
                optimization_enabled=True,
                runs=200,
                abi_available=True,
                source_size=1200,
            ),
        )
        analyzer = ContractAnalyzer(erc20_chain, registry, config=analysis_config)

        first = await analyzer.analyze(TOKEN_ADDRESS)
        second = await analyzer.analyze(TOKEN_ADDRESS)

        assert first == second
        assert first.to_dict() == second.to_dict()
        assert format_report(first) == format_report(second)

    @pytest.mark.asyncio
    async def test_report_to_dict(self, erc20_chain, mock_registry, analysis_config):
        analyzer = ContractAnalyzer(erc20_chain, mock_registry, config=analysis_config)

        data = (await analyzer.analyze(TOKEN_ADDRESS)).to_dict()

        assert data["kind"] == "contract"
        assert data["balance_wei"] == "0"
        assert data["verification_status"] == "not_verified"
        assert data["verification"] is None
        assert data["classification"]["matched_candidate"] == "ERC-20"
