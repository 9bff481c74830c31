"""ABI helpers for contract calls.

Functions are described by ``ContractFunction`` values, built either from a
human-readable fragment such as
``"function balanceOf(address owner) view returns (uint256)"`` or from a JSON
ABI entry. They carry everything needed to encode calldata and decode the
returned bytes with ``eth_abi``. User-supplied JSON ABIs are searched and
matched against calldata through address-less web3 contract objects.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import collapse_if_tuple
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import Web3Exception

from monad_mcp.utils.errors import AbiError
from monad_mcp.utils.validation import normalize_address

_FRAGMENT_PATTERN = re.compile(
    r"^\s*(?:function\s+)?(?P<name>[A-Za-z_$][\w$]*)\s*\((?P<inputs>[^)]*)\)(?P<rest>.*)$"
)
_RETURNS_PATTERN = re.compile(r"returns\s*\((?P<outputs>[^)]*)\)")

_TYPE_ALIASES = {"uint": "uint256", "int": "int256"}

# Contract objects built from user ABIs never talk to a node
_OFFLINE_WEB3 = Web3()


def _normalize_type(abi_type: str) -> str:
    base, sep, suffix = abi_type.partition("[")
    return _TYPE_ALIASES.get(base, base) + sep + suffix


def _split_params(params: str) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    types, names = [], []
    for param in params.split(","):
        parts = param.split()
        if not parts:
            continue
        types.append(_normalize_type(parts[0]))
        # "address indexed owner" / "string memory label"
        names.append(parts[-1] if len(parts) > 1 else "")
    return tuple(types), tuple(names)


def _strip_hex(data: Union[str, bytes]) -> bytes:
    if isinstance(data, bytes):
        return data
    text = data[2:] if data[:2] in ("0x", "0X") else data
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise AbiError(f"Invalid hex data: {str(e)}", details={"data": data[:80]})


@dataclass(frozen=True)
class ContractFunction:
    """A callable contract function and its ABI types."""

    name: str
    inputs: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()
    input_names: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def parse(cls, fragment: str) -> "ContractFunction":
        """Build a function from a human-readable signature.

        Raises:
            AbiError: If the fragment cannot be parsed
        """
        match = _FRAGMENT_PATTERN.match(fragment)
        if not match:
            raise AbiError(f"Cannot parse function fragment: {fragment!r}")

        inputs, names = _split_params(match.group("inputs"))
        outputs: Tuple[str, ...] = ()
        returns = _RETURNS_PATTERN.search(match.group("rest"))
        if returns:
            outputs, _ = _split_params(returns.group("outputs"))
        return cls(match.group("name"), inputs, outputs, names)

    @classmethod
    def from_abi(cls, entry: Dict[str, Any]) -> "ContractFunction":
        """Build a function from a JSON ABI entry."""
        if not entry.get("name"):
            raise AbiError("ABI entry has no function name", details={"entry": entry})
        inputs = entry.get("inputs", [])
        return cls(
            name=entry["name"],
            inputs=tuple(collapse_if_tuple(p) for p in inputs),
            outputs=tuple(collapse_if_tuple(p) for p in entry.get("outputs", [])),
            input_names=tuple(p.get("name", "") for p in inputs),
        )

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return bytes(Web3.keccak(text=self.signature)[:4])

    def encode_call(self, args: Sequence[Any] = ()) -> str:
        """Encode calldata for this function.

        Raises:
            AbiError: If the arguments do not match the input types
        """
        if len(args) != len(self.inputs):
            raise AbiError(
                f"{self.signature} expects {len(self.inputs)} argument(s), got {len(args)}"
            )
        try:
            payload = encode(list(self.inputs), list(args)) if self.inputs else b""
        except (EncodingError, TypeError, ValueError) as e:
            raise AbiError(f"Cannot encode arguments for {self.signature}: {str(e)}")
        return "0x" + (self.selector + payload).hex()

    def decode_output(self, data: Union[str, bytes]) -> Any:
        """Decode return data; a single output is unwrapped.

        Raises:
            AbiError: If the data does not decode to the output types
        """
        raw = _strip_hex(data)
        if not self.outputs:
            return None
        if not raw:
            raise AbiError(f"{self.signature} returned no data")
        try:
            values = decode(list(self.outputs), raw)
        except (DecodingError, OverflowError, ValueError) as e:
            # Pre-standard tokens return bytes32 where a string is expected
            if self.outputs == ("string",) and len(raw) == 32:
                return raw.rstrip(b"\x00").decode("utf-8", errors="ignore")
            raise AbiError(f"Cannot decode output of {self.signature}: {str(e)}")
        return values[0] if len(values) == 1 else values


def parse_abi(abi: Union[str, List[Dict[str, Any]], Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Load a JSON ABI given as a string, a list or a single entry.

    Raises:
        AbiError: If the ABI is not valid JSON or not a list of entries
    """
    if isinstance(abi, str):
        try:
            abi = json.loads(abi)
        except json.JSONDecodeError as e:
            raise AbiError(f"ABI is not valid JSON: {str(e)}")
    if isinstance(abi, dict):
        abi = [abi]
    if not isinstance(abi, list) or not all(isinstance(e, dict) for e in abi):
        raise AbiError("ABI must be a JSON array of entries")
    return abi


def abi_contract(abi: Union[str, List[Dict[str, Any]], Dict[str, Any]]) -> Contract:
    """Build an address-less web3 contract object for an ABI.

    Raises:
        AbiError: If web3 rejects the ABI
    """
    entries = parse_abi(abi)
    try:
        return _OFFLINE_WEB3.eth.contract(abi=entries)
    except Exception as e:
        raise AbiError(f"Invalid ABI: {str(e)}") from e


def find_function(
    abi: Union[str, List[Dict[str, Any]], Dict[str, Any]],
    name: str,
    arg_count: Optional[int] = None
) -> ContractFunction:
    """Find a function by name, disambiguating overloads by argument count.

    Raises:
        AbiError: If no matching function exists
    """
    contract = abi_contract(abi)
    matches = contract.find_functions_by_name(name)
    if arg_count is not None and len(matches) > 1:
        matches = [f for f in matches if len(f.abi.get("inputs", [])) == arg_count] or matches
    if not matches:
        raise AbiError(f"Function {name!r} not found in ABI")
    return ContractFunction.from_abi(matches[0].abi)


def decode_calldata(
    data: str,
    abi: Union[str, List[Dict[str, Any]], Dict[str, Any]]
) -> Tuple[ContractFunction, Dict[str, Any]]:
    """Match calldata against an ABI and decode its named arguments.

    Raises:
        AbiError: If no function in the ABI has the calldata's selector, or
            the arguments do not decode
    """
    contract = abi_contract(abi)
    raw = _strip_hex(data)
    if len(raw) < 4:
        raise AbiError("Calldata is shorter than a function selector")
    try:
        function, arguments = contract.decode_function_input(raw)
    except (DecodingError, ValueError, Web3Exception) as e:
        raise AbiError(f"Cannot decode calldata with selector 0x{raw[:4].hex()}: {str(e)}") from e
    return ContractFunction.from_abi(function.abi), dict(arguments)


def coerce_argument(abi_type: str, value: Any) -> Any:
    """Convert a user-supplied (usually string) argument to its ABI type.

    Raises:
        AbiError: If the value cannot represent the type
    """
    try:
        if abi_type.endswith("]"):
            items = json.loads(value) if isinstance(value, str) else value
            if not isinstance(items, list):
                raise AbiError(f"Expected a JSON array for {abi_type}")
            inner = abi_type[:abi_type.rindex("[")]
            return [coerce_argument(inner, item) for item in items]
        if abi_type.startswith("("):
            return tuple(json.loads(value)) if isinstance(value, str) else tuple(value)
        if abi_type == "address":
            return normalize_address(value)
        if abi_type == "bool":
            if isinstance(value, bool):
                return value
            return str(value).strip().lower() in ("true", "1", "yes")
        if abi_type.startswith(("uint", "int")):
            return int(value, 0) if isinstance(value, str) else int(value)
        if abi_type.startswith("bytes"):
            return _strip_hex(value) if isinstance(value, str) else bytes(value)
        if abi_type == "string":
            return str(value)
    except AbiError:
        raise
    except (ValueError, TypeError) as e:
        raise AbiError(f"Cannot convert {value!r} to {abi_type}: {str(e)}")
    return value


def to_jsonable(value: Any) -> Any:
    """Convert decoded ABI values into JSON-serializable data."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value) if abs(value) > 2 ** 53 else value
    return value
