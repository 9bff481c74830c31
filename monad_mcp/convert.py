"""Data-format conversions exposed through the ``convert`` tool."""

from typing import Tuple

from web3 import Web3

from monad_mcp.utils.errors import ValidationError
from monad_mcp.utils.validation import normalize_address

INPUT_FORMATS: Tuple[str, ...] = ("hex", "string", "number", "text")
OUTPUT_FORMATS: Tuple[str, ...] = ("hex", "string", "number", "keccak256", "address")


def _require_hex(value: str) -> str:
    if not value.startswith(("0x", "0X")):
        raise ValidationError(f"Hex input must start with 0x: {value!r}")
    return value


def convert_value(value: str, from_format: str, to_format: str) -> str:
    """Convert a value between representations.

    Supported pairs are hex <-> string, number <-> hex, anything -> keccak256
    and string -> checksummed address. Any other pair returns the input
    unchanged. ``text`` is accepted as a synonym for ``string``.

    Raises:
        ValidationError: If a format is unknown or the input does not parse
    """
    if from_format not in INPUT_FORMATS:
        raise ValidationError(f"Unknown input format {from_format!r}",
                              details={"allowed": list(INPUT_FORMATS)})
    if to_format not in OUTPUT_FORMATS:
        raise ValidationError(f"Unknown output format {to_format!r}",
                              details={"allowed": list(OUTPUT_FORMATS)})
    if from_format == "text":
        from_format = "string"

    try:
        if from_format == "hex" and to_format == "string":
            return Web3.to_text(hexstr=_require_hex(value))
        if from_format == "string" and to_format == "hex":
            return Web3.to_hex(text=value)
        if from_format == "number" and to_format == "hex":
            number = int(value, 0)
            if number < 0:
                raise ValidationError(f"Cannot convert negative number {value} to hex")
            return Web3.to_hex(number)
        if from_format == "hex" and to_format == "number":
            return str(Web3.to_int(hexstr=_require_hex(value)))
        if to_format == "keccak256":
            if from_format == "hex":
                return Web3.to_hex(Web3.keccak(hexstr=_require_hex(value)))
            return Web3.to_hex(Web3.keccak(text=value))
        if from_format == "string" and to_format == "address":
            return normalize_address(value)
    except (ValueError, TypeError, UnicodeDecodeError) as e:
        raise ValidationError(f"Cannot convert {value!r} from {from_format} to {to_format}: {str(e)}")

    return value
