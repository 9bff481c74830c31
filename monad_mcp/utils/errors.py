"""
Error handling utilities for Monad MCP.

This module defines the exception hierarchy shared by the chain client,
the analysis services and the MCP tools.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for the Monad MCP server."""

    # General errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Input errors
    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_HASH = "INVALID_HASH"
    INVALID_ABI = "INVALID_ABI"

    # Chain errors
    RPC_ERROR = "RPC_ERROR"
    RPC_TIMEOUT = "RPC_TIMEOUT"
    CHAIN_UNAVAILABLE = "CHAIN_UNAVAILABLE"

    # Analysis errors
    PROBE_FAILURE = "PROBE_FAILURE"
    REGISTRY_UNAVAILABLE = "REGISTRY_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"


class ErrorResponse(BaseModel):
    """Standard error response model."""

    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class MonadMCPError(Exception):
    """Base exception for all Monad MCP errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize a new Monad MCP error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the error to a dictionary.

        Returns:
            Dictionary representation of the error
        """
        return ErrorResponse(
            code=self.code.value,
            message=self.message,
            details=self.details
        ).model_dump()


class ValidationError(MonadMCPError):
    """Exception for validation errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR
    ):
        super().__init__(message=message, code=code, details=details)


class InvalidAddressError(ValidationError):
    """Raised when a string is not a valid account address."""

    def __init__(self, address: Any, reason: str = "invalid format"):
        super().__init__(
            message=f"Invalid address: {address!r} ({reason})",
            details={"address": address, "reason": reason},
            code=ErrorCode.INVALID_ADDRESS
        )
        self.address = address
        self.reason = reason


class InvalidHashError(ValidationError):
    """Raised when a string is not a valid 32-byte hash."""

    def __init__(self, value: Any):
        super().__init__(
            message=f"Invalid transaction hash: {value!r}",
            details={"hash": value},
            code=ErrorCode.INVALID_HASH
        )


class AbiError(ValidationError):
    """Raised when an ABI fragment or argument cannot be used."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, details=details, code=ErrorCode.INVALID_ABI)


class RpcError(MonadMCPError):
    """Exception for JSON-RPC errors returned by the node."""

    def __init__(
        self,
        message: str,
        rpc_error: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.RPC_ERROR
    ):
        super().__init__(
            message=message,
            code=code,
            details={"rpc_error": rpc_error or {}}
        )
        self.rpc_error = rpc_error or {}


class RpcTimeoutError(RpcError):
    """Exception for JSON-RPC requests that did not answer in time."""

    def __init__(self, message: str, timeout: float):
        super().__init__(message=message, code=ErrorCode.RPC_TIMEOUT)
        self.details["timeout"] = timeout


class ChainUnavailableError(MonadMCPError):
    """The chain could not be read; no report can be built."""

    def __init__(self, message: str, operation: str, address: Optional[str] = None):
        details = {"operation": operation}
        if address:
            details["address"] = address
        super().__init__(
            message=message,
            code=ErrorCode.CHAIN_UNAVAILABLE,
            details=details
        )
        self.operation = operation


class ProbeError(MonadMCPError):
    """A single speculative contract call failed."""

    def __init__(self, message: str, function: str):
        super().__init__(
            message=message,
            code=ErrorCode.PROBE_FAILURE,
            details={"function": function}
        )
        self.function = function


class RegistryUnavailableError(MonadMCPError):
    """The verification registry could not be queried."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            message=message,
            code=ErrorCode.REGISTRY_UNAVAILABLE,
            details=details
        )


class TimeoutError(MonadMCPError):
    """Exception for timeout errors."""

    def __init__(self, message: str, operation: str, timeout: float):
        super().__init__(
            message=message,
            code=ErrorCode.TIMEOUT,
            details={"operation": operation, "timeout": timeout}
        )
        self.operation = operation
        self.timeout = timeout
