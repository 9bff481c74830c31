"""Configuration module for the Monad MCP server."""

# Standard library imports
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional

# Third-party library imports
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def get_env_var(key: str, default: Any = None, required: bool = False,
               validator: Optional[callable] = None) -> Any:
    """Get and validate environment variable.

    Args:
        key: Environment variable name
        default: Default value if not present
        required: If True, raises ValueError when not found
        validator: Optional validation function

    Returns:
        The environment variable value or default

    Raises:
        ValueError: If required and not found, or fails validation
    """
    value = os.environ.get(key)

    if value is None or value == "":
        if required:
            raise ValueError(f"Required environment variable '{key}' not found")
        return default

    if validator:
        try:
            return validator(value)
        except Exception as e:
            raise ValueError(f"Invalid value for environment variable '{key}': {str(e)}")

    return value


def bool_validator(value: str) -> bool:
    """Convert string to boolean."""
    return value.lower() in ("true", "1", "yes", "y", "on")


def int_validator(value: str) -> int:
    """Validate and convert string to a non-negative integer.

    Raises:
        ValueError: If not a valid integer
    """
    try:
        result = int(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid integer")
    if result < 0:
        raise ValueError(f"'{value}' must not be negative")
    return result


def float_validator(value: str) -> float:
    """Validate and convert string to a positive float.

    Raises:
        ValueError: If not a valid positive number
    """
    try:
        result = float(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid number")
    if result <= 0:
        raise ValueError(f"'{value}' must be positive")
    return result


def url_validator(value: str) -> str:
    """Validate URL format.

    Args:
        value: URL to validate

    Returns:
        The validated URL without a trailing slash

    Raises:
        ValueError: If not a valid URL format
    """
    url_pattern = re.compile(
        r'^(https?):\/\/'  # http:// or https://
        r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+(?:[A-Z]{2,6}\.?|[A-Z0-9-]{2,}\.?)|'  # domain
        r'localhost|'  # localhost
        r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # or IPv4
        r'(?::\d+)?'  # optional port
        r'(?:/?|[/?]\S+)$', re.IGNORECASE)

    if not url_pattern.match(value):
        raise ValueError(f"'{value}' is not a valid URL")
    return value.rstrip("/")


def log_level_validator(value: str) -> str:
    """Validate log level.

    Raises:
        ValueError: If not a valid log level
    """
    valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    upper_value = value.upper()
    if upper_value not in valid_levels:
        raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
    return upper_value


def environment_validator(value: str) -> str:
    """Validate environment name.

    Raises:
        ValueError: If not a valid environment name
    """
    valid_environments = ("development", "testing", "staging", "production")
    if value.lower() not in valid_environments:
        raise ValueError(f"Environment must be one of: {', '.join(valid_environments)}")
    return value.lower()


def transport_validator(value: str) -> str:
    """Validate MCP transport name."""
    if value.lower() not in ("stdio", "sse"):
        raise ValueError("Transport must be one of: stdio, sse")
    return value.lower()


@dataclass
class ChainConfig:
    """Configuration for the JSON-RPC connection to the chain."""

    rpc_url: str
    chain_id: int = 10143
    chain_name: str = "Monad Testnet"
    native_symbol: str = "MON"
    native_decimals: int = 18
    explorer_url: str = "https://testnet.monadscan.com"
    timeout: float = 15.0  # seconds
    max_retries: int = 0

    def address_url(self, address: str) -> str:
        """Explorer page for an address."""
        return f"{self.explorer_url}/address/{address}"

    def tx_url(self, tx_hash: str) -> str:
        """Explorer page for a transaction."""
        return f"{self.explorer_url}/tx/{tx_hash}"


@lru_cache()
def get_chain_config() -> ChainConfig:
    """Get chain configuration from environment variables.

    Returns:
        ChainConfig instance

    Raises:
        ValueError: If environment variables fail validation
    """
    return ChainConfig(
        rpc_url=get_env_var("MONAD_RPC_URL", "https://testnet-rpc.monad.xyz",
                            validator=url_validator),
        chain_id=get_env_var("MONAD_CHAIN_ID", 10143, validator=int_validator),
        chain_name=get_env_var("MONAD_CHAIN_NAME", "Monad Testnet"),
        native_symbol=get_env_var("MONAD_NATIVE_SYMBOL", "MON"),
        explorer_url=get_env_var("MONAD_EXPLORER_URL", "https://testnet.monadscan.com",
                                 validator=url_validator),
        timeout=get_env_var("MONAD_TIMEOUT", 15.0, validator=float_validator),
        max_retries=get_env_var("MONAD_MAX_RETRIES", 0, validator=int_validator)
    )


@dataclass
class RegistryConfig:
    """Configuration for the source verification registry."""

    api_url: str = "https://api-testnet.monadscan.com/api"
    api_key: Optional[str] = None
    timeout: float = 10.0  # seconds


@lru_cache()
def get_registry_config() -> RegistryConfig:
    """Get verification registry configuration from environment variables."""
    return RegistryConfig(
        api_url=get_env_var("MONADSCAN_API_URL", "https://api-testnet.monadscan.com/api",
                            validator=url_validator),
        api_key=get_env_var("MONADSCAN_API_KEY"),
        timeout=get_env_var("REGISTRY_TIMEOUT", 10.0, validator=float_validator)
    )


@dataclass
class AnalysisConfig:
    """Timeouts applied by the contract analyzer to each collaborator call."""

    call_timeout: float = 10.0  # code and balance reads
    probe_timeout: float = 5.0  # each speculative eth_call


@lru_cache()
def get_analysis_config() -> AnalysisConfig:
    """Get analysis configuration from environment variables."""
    return AnalysisConfig(
        call_timeout=get_env_var("ANALYSIS_CALL_TIMEOUT", 10.0, validator=float_validator),
        probe_timeout=get_env_var("ANALYSIS_PROBE_TIMEOUT", 5.0, validator=float_validator)
    )


@dataclass
class ServerConfig:
    """Configuration for the server."""

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"
    transport: str = "stdio"  # "stdio" or "sse"

    @property
    def bind_address(self) -> str:
        """Get the bind address for the server."""
        return f"{self.host}:{self.port}"

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.environment not in ("development", "testing", "staging", "production"):
            raise ValueError(f"Invalid environment: {self.environment}")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if self.transport not in ("stdio", "sse"):
            raise ValueError(f"Invalid transport: {self.transport}")


@lru_cache()
def get_server_config() -> ServerConfig:
    """Get server configuration from environment variables.

    Returns:
        ServerConfig instance

    Raises:
        ValueError: If environment variables fail validation
    """
    return ServerConfig(
        host=get_env_var("HOST", "0.0.0.0"),
        port=get_env_var("PORT", 8000, validator=int_validator),
        debug=get_env_var("DEBUG", False, validator=bool_validator),
        environment=get_env_var("ENVIRONMENT", "development", validator=environment_validator),
        log_level=get_env_var("LOG_LEVEL", "INFO", validator=log_level_validator),
        transport=get_env_var("TRANSPORT", "stdio", validator=transport_validator)
    )
