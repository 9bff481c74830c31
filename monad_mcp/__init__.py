"""Monad MCP Package.

This package provides an MCP server for querying the Monad testnet,
including balances, transactions, blocks and contract analysis.
"""

__version__ = "0.1.0"
__author__ = "Monad MCP Contributors"
__email__ = "dev@monad-mcp.local"
