"""
Base service class for Monad MCP services.

This module provides a base class for all services in the Monad MCP,
with common functionality for timeouts, fallbacks and timing logs.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Optional, TypeVar

from monad_mcp.utils.errors import TimeoutError

T = TypeVar('T')


class BaseService:
    """
    Base service class with common functionality.

    This class provides:
    - Timeout management
    - Fallback values for best-effort operations
    - Performance tracking
    """

    def __init__(self, timeout: float = 30.0, logger: Optional[logging.Logger] = None):
        """
        Initialize the base service.

        Args:
            timeout: Default timeout for service operations in seconds
            logger: Optional logger instance
        """
        self.timeout = timeout
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    async def with_timeout(
        self,
        coro: Awaitable[T],
        timeout: Optional[float] = None,
        operation: str = "operation"
    ) -> T:
        """
        Await a coroutine, bounded by a timeout.

        Args:
            coro: The coroutine to await
            timeout: Optional custom timeout in seconds
            operation: Name of the operation for error reporting

        Returns:
            The result of the coroutine

        Raises:
            TimeoutError: If the operation times out
        """
        timeout_value = timeout or self.timeout
        try:
            return await asyncio.wait_for(coro, timeout=timeout_value)
        except asyncio.TimeoutError:
            raise TimeoutError(
                f"{operation} timed out after {timeout_value}s",
                operation=operation,
                timeout=timeout_value
            )

    async def execute_with_fallback(
        self,
        coro: Awaitable[T],
        fallback_value: Any = None,
        error_message: str = "Operation failed"
    ) -> Any:
        """
        Await a coroutine, returning a fallback value if it raises.

        Args:
            coro: The coroutine to await
            fallback_value: Value returned on failure
            error_message: Message logged on failure

        Returns:
            The coroutine result, or ``fallback_value``
        """
        try:
            return await coro
        except Exception as e:
            self.logger.warning(f"{error_message}: {str(e)}")
            return fallback_value

    def log_timing(self, operation_name: str) -> "TimingContextManager":
        """
        Create a context manager to log timing information.

        Args:
            operation_name: Name of the operation

        Returns:
            Timing context manager
        """
        return TimingContextManager(operation_name, self.logger)


class TimingContextManager:
    """Context manager to log timing information."""

    def __init__(self, operation_name: str, logger: logging.Logger):
        self.operation_name = operation_name
        self.logger = logger
        self.start_time = 0.0

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time

    async def __aenter__(self) -> "TimingContextManager":
        self.start_time = time.monotonic()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_val is not None:
            self.logger.error(
                f"{self.operation_name} failed after {self.elapsed:.2f}s: {str(exc_val)}"
            )
        else:
            self.logger.debug(f"{self.operation_name} completed in {self.elapsed:.2f}s")
