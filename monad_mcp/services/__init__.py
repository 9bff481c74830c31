"""Services for the Monad MCP server."""
