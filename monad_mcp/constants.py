"""Constants used throughout the Monad MCP application.

This module defines common constants to avoid duplication and ensure consistency.
"""

import os

# Filler owner/operator used by speculative probe calls
PROBE_ADDRESS = "0x000000000000000000000000000000000000dead"

# ERC-165 interface identifiers
ERC721_INTERFACE_ID = bytes.fromhex("80ac58cd")

# Fallbacks for unresolved token metadata
UNKNOWN_NAME = "Unknown"
UNKNOWN_SYMBOL = "UNKNOWN"
DEFAULT_DECIMALS = 18

# Rendered in place of values that were looked up and could not be resolved
UNAVAILABLE = "unavailable"

# Registry answers shorter than this are displayed as plain "Available"
LARGE_SOURCE_THRESHOLD = 500

# Common contract addresses on Monad testnet
COMMON_CONTRACTS = {
    "WMON": os.getenv("MONAD_WMON_ADDRESS", "0x760AfE86e5de5fa0Ee542fc7B7B713e1c5425701"),
}

DOCS_BASE_URL = "https://docs.monad.xyz"

DOCS_SECTIONS = {
    "Getting Started": "getting-started",
    "Building on Monad": "building",
    "Tools & SDKs": "tools",
    "Network Info": "network",
    "FAQ": "faq",
}

# Sourcify endpoint quoted in the verification instructions
VERIFIER_URL = "https://sourcify-api-monad.blockvision.org"
