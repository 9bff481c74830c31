"""Interface candidates tried by the classifier, in priority order."""

from typing import Tuple

from monad_mcp.abi import ContractFunction
from monad_mcp.constants import (
    ERC721_INTERFACE_ID, PROBE_ADDRESS, UNKNOWN_NAME, UNKNOWN_SYMBOL
)
from monad_mcp.services.contract_analyzer.models import (
    InterfaceCandidate, ProbeCall, TokenStandard
)

NAME = ContractFunction.parse("function name() view returns (string)")
SYMBOL = ContractFunction.parse("function symbol() view returns (string)")
DECIMALS = ContractFunction.parse("function decimals() view returns (uint8)")
TOTAL_SUPPLY = ContractFunction.parse("function totalSupply() view returns (uint256)")
BALANCE_OF = ContractFunction.parse("function balanceOf(address owner) view returns (uint256)")
IS_APPROVED_FOR_ALL = ContractFunction.parse(
    "function isApprovedForAll(address owner, address operator) view returns (bool)"
)
SUPPORTS_INTERFACE = ContractFunction.parse(
    "function supportsInterface(bytes4 interfaceId) view returns (bool)"
)

# decimals() separates fungible tokens from enumerable NFTs, which also
# expose totalSupply().
ERC20 = InterfaceCandidate(
    name="ERC-20",
    standard=TokenStandard.FUNGIBLE,
    required_functions=(
        ProbeCall(TOTAL_SUPPLY, field="totalSupply"),
        ProbeCall(DECIMALS, field="decimals"),
    ),
    sufficient_functions=(
        ProbeCall(NAME, field="name", default=UNKNOWN_NAME),
        ProbeCall(SYMBOL, field="symbol", default=UNKNOWN_SYMBOL),
    ),
)

ERC721 = InterfaceCandidate(
    name="ERC-721",
    standard=TokenStandard.NON_FUNGIBLE,
    required_functions=(
        ProbeCall(BALANCE_OF, args=(PROBE_ADDRESS,)),
        ProbeCall(IS_APPROVED_FOR_ALL, args=(PROBE_ADDRESS, PROBE_ADDRESS)),
    ),
    sufficient_functions=(
        ProbeCall(NAME, field="name", default=UNKNOWN_NAME),
        ProbeCall(SYMBOL, field="symbol", default=UNKNOWN_SYMBOL),
        ProbeCall(TOTAL_SUPPLY, field="totalSupply"),
    ),
    interface_id=ERC721_INTERFACE_ID,
)

# Fungible first: it is the most common kind of deployed token.
INTERFACE_CANDIDATES: Tuple[InterfaceCandidate, ...] = (ERC20, ERC721)
