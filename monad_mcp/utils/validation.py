"""Validation utilities for Monad MCP.

This module validates account addresses and transaction hashes before they
reach any network collaborator.
"""

import re
from typing import Any

from web3 import Web3

from monad_mcp.utils.errors import InvalidAddressError, InvalidHashError

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


def is_valid_address(address: Any) -> bool:
    """Check whether a value is a syntactically valid account address.

    Args:
        address: The value to check

    Returns:
        True if the address is valid, False otherwise
    """
    try:
        normalize_address(address)
    except InvalidAddressError:
        return False
    return True


def normalize_address(address: Any) -> str:
    """Validate an address and return its canonical checksummed form.

    All-lowercase and all-uppercase hex digits are accepted as-is. A
    mixed-case string must carry a valid EIP-55 checksum.

    Args:
        address: The address string to validate

    Returns:
        The checksummed address

    Raises:
        InvalidAddressError: If the address is malformed
    """
    if not isinstance(address, str):
        raise InvalidAddressError(address, "not a string")

    candidate = address.strip()
    if not candidate.startswith(("0x", "0X")):
        raise InvalidAddressError(address, "missing 0x prefix")
    candidate = "0x" + candidate[2:]

    if len(candidate) != 42:
        raise InvalidAddressError(address, f"expected 40 hex characters, got {len(candidate) - 2}")
    if not ADDRESS_PATTERN.match(candidate):
        raise InvalidAddressError(address, "non-hex characters")

    digits = candidate[2:]
    checksummed = Web3.to_checksum_address(candidate)
    if digits != digits.lower() and digits != digits.upper() and candidate != checksummed:
        raise InvalidAddressError(address, "checksum mismatch")

    return checksummed


def validate_transaction_hash(tx_hash: Any) -> str:
    """Validate a transaction or block hash.

    Raises:
        InvalidHashError: If the hash is not 0x-prefixed 32-byte hex
    """
    if not isinstance(tx_hash, str) or not HASH_PATTERN.match(tx_hash.strip()):
        raise InvalidHashError(tx_hash)
    return tx_hash.strip().lower()
