"""Unit tests for InterfaceProbe."""

import asyncio

import pytest

from monad_mcp.services.contract_analyzer.candidates import ERC20, ERC721, TOTAL_SUPPLY
from monad_mcp.services.contract_analyzer.models import ProbeCall
from monad_mcp.services.contract_analyzer.probe import InterfaceProbe
from monad_mcp.utils.errors import AbiError, RpcTimeoutError
from tests.fixtures.common import (
    ERC20_RESPONSES, ERC721_RESPONSES, NFT_ADDRESS, ONE_MON, TOKEN_ADDRESS,
    TOKEN_BYTECODE, make_chain
)


class TestInterfaceProbe:
    """Test suite for InterfaceProbe."""

    @pytest.mark.asyncio
    async def test_erc20_satisfied_with_all_fields(self, erc20_chain):
        """A standard token satisfies ERC-20 and reports its metadata."""
        probe = InterfaceProbe(erc20_chain)

        result = await probe.probe(TOKEN_ADDRESS, ERC20)

        assert result.satisfied
        assert not result.declared_by_interface
        assert result.extracted_fields == {
            "totalSupply": 1_000 * ONE_MON,
            "name": "Test Token",
            "symbol": "TT",
            "decimals": 18,
        }
        assert all(outcome.succeeded for outcome in result.outcomes)
        assert len(result.outcomes) == 4

    @pytest.mark.asyncio
    async def test_erc20_without_balance_of(self):
        """A token answering only name, symbol, decimals and totalSupply is ERC-20."""
        chain = make_chain(code=TOKEN_BYTECODE, responses={
            "name()": "Bare Token",
            "symbol()": "BARE",
            "decimals()": 8,
            "totalSupply()": 21 * 10 ** 14,
        })

        result = await InterfaceProbe(chain).probe(TOKEN_ADDRESS, ERC20)

        assert result.satisfied
        assert result.extracted_fields == {
            "totalSupply": 21 * 10 ** 14,
            "decimals": 8,
            "name": "Bare Token",
            "symbol": "BARE",
        }
        called = {c.args[1].signature for c in chain.call_function.await_args_list}
        assert "balanceOf(address)" not in called

    @pytest.mark.asyncio
    async def test_required_failure_leaves_candidate_unsatisfied(self):
        """One failing required function is enough to reject the candidate."""
        responses = dict(ERC20_RESPONSES)
        del responses["decimals()"]
        chain = make_chain(code=TOKEN_BYTECODE, responses=responses)

        result = await InterfaceProbe(chain).probe(TOKEN_ADDRESS, ERC20)

        assert not result.satisfied
        assert result.extracted_fields == {}
        failed = [o for o in result.outcomes if not o.succeeded]
        assert [o.function for o in failed] == ["decimals()"]
        assert failed[0].error == "execution reverted"
        # Metadata is never requested for an unsatisfied candidate
        called = {c.args[1].signature for c in chain.call_function.await_args_list}
        assert called == {"totalSupply()", "decimals()"}

    @pytest.mark.asyncio
    async def test_sufficient_failures_use_defaults(self):
        """Missing name and symbol degrade to their defaults."""
        chain = make_chain(code=TOKEN_BYTECODE, responses={
            "totalSupply()": 500,
            "decimals()": 6,
        })

        result = await InterfaceProbe(chain).probe(TOKEN_ADDRESS, ERC20)

        assert result.satisfied
        assert result.extracted_fields == {
            "totalSupply": 500,
            "name": "Unknown",
            "symbol": "UNKNOWN",
            "decimals": 6,
        }

    @pytest.mark.asyncio
    async def test_every_failure_kind_is_captured(self):
        """Reverts, decoding errors, timeouts and unexpected errors become outcomes."""
        chain = make_chain(code=TOKEN_BYTECODE, responses={
            "totalSupply()": AbiError("totalSupply() returned no data"),
            "decimals()": RpcTimeoutError("RPC eth_call timed out", timeout=1.0),
        })
        probe = InterfaceProbe(chain)

        outcome = await probe.invoke(TOKEN_ADDRESS, ProbeCall(TOTAL_SUPPLY))
        assert not outcome.succeeded
        assert outcome.error == "totalSupply() returned no data"

        chain.call_function.side_effect = RuntimeError("boom")
        outcome = await probe.invoke(TOKEN_ADDRESS, ProbeCall(TOTAL_SUPPLY))
        assert not outcome.succeeded
        assert outcome.error == "boom"

    @pytest.mark.asyncio
    async def test_slow_call_times_out_as_failure(self):
        """A call exceeding the probe timeout is a failed outcome, not an exception."""
        chain = make_chain(code=TOKEN_BYTECODE)

        async def slow_call(*args, **kwargs):
            await asyncio.sleep(1)
            return 1

        chain.call_function.side_effect = slow_call
        probe = InterfaceProbe(chain, call_timeout=0.05)

        outcome = await probe.invoke(TOKEN_ADDRESS, ProbeCall(TOTAL_SUPPLY))

        assert not outcome.succeeded
        assert "timed out" in outcome.error

    @pytest.mark.asyncio
    async def test_erc721_declared_support_is_authoritative(self, erc721_chain):
        """supportsInterface(0x80ac58cd) == true satisfies ERC-721 without fallback calls."""
        result = await InterfaceProbe(erc721_chain).probe(NFT_ADDRESS, ERC721)

        assert result.satisfied
        assert result.declared_by_interface
        assert result.extracted_fields == {
            "name": "Test Collection",
            "symbol": "TC",
            "totalSupply": None,
        }
        called = [c.args[1].signature for c in erc721_chain.call_function.await_args_list]
        assert "balanceOf(address)" not in called
        assert "isApprovedForAll(address,address)" not in called

    @pytest.mark.asyncio
    async def test_erc721_declared_false_rejects(self):
        """A contract answering false is not ERC-721 even if the fallback would pass."""
        chain = make_chain(code=TOKEN_BYTECODE, responses={
            "supportsInterface(bytes4)": False,
            "balanceOf(address)": 0,
            "isApprovedForAll(address,address)": False,
        })

        result = await InterfaceProbe(chain).probe(NFT_ADDRESS, ERC721)

        assert not result.satisfied
        assert not result.declared_by_interface
        assert result.extracted_fields == {}

    @pytest.mark.asyncio
    async def test_erc721_fallback_without_erc165(self):
        """Without ERC-165 the required functions decide."""
        chain = make_chain(code=TOKEN_BYTECODE, responses={
            "balanceOf(address)": 3,
            "isApprovedForAll(address,address)": False,
            "totalSupply()": 10,
        })

        result = await InterfaceProbe(chain).probe(NFT_ADDRESS, ERC721)

        assert result.satisfied
        assert not result.declared_by_interface
        assert result.extracted_fields == {
            "name": "Unknown",
            "symbol": "UNKNOWN",
            "totalSupply": 10,
        }
        assert result.outcomes[0].function == "supportsInterface(bytes4)"
        assert not result.outcomes[0].succeeded

    @pytest.mark.asyncio
    async def test_erc721_probes_with_interface_id(self, erc721_chain):
        await InterfaceProbe(erc721_chain).probe(NFT_ADDRESS, ERC721)

        first = erc721_chain.call_function.await_args_list[0]
        assert first.args[1].signature == "supportsInterface(bytes4)"
        assert first.args[2] == (bytes.fromhex("80ac58cd"),)
