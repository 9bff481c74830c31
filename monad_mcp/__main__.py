"""Command-line entry point for Monad MCP server."""

from typing import Optional

import click

from monad_mcp.server import run_server


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse"]),
    help="Transport type (stdio or sse)",
)
@click.option("--port", type=int, help="Port to listen on for SSE transport")
@click.option("--host", type=str, help="Host to bind to for SSE transport")
def main(
    transport: Optional[str] = None,
    port: Optional[int] = None,
    host: Optional[str] = None,
) -> None:
    """Run the Monad MCP server."""
    run_server(transport=transport, port=port, host=host)


if __name__ == "__main__":
    main()
