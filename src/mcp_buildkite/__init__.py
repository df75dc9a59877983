"""MCP server for Buildkite pipelines."""

import asyncio
import os

import click
from dotenv import load_dotenv

__version__ = "0.1.0"


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    default="stdio",
    help="MCP transport type",
)
@click.option("--port", default=8000, help="Port for HTTP transports")
@click.option("--host", default="127.0.0.1", help="Host for HTTP transports")
@click.option(
    "--organization", envvar="BUILDKITE_ORGANIZATION", help="Buildkite organization slug"
)
@click.option("--api-token", envvar="BUILDKITE_API_TOKEN", help="Buildkite API access token")
@click.option("--read-only", is_flag=True, help="Disable write operations")
def main(
    transport: str,
    port: int,
    host: str,
    organization: str | None,
    api_token: str | None,
    read_only: bool,
) -> None:
    """Run the Buildkite MCP server."""
    load_dotenv()

    if organization:
        os.environ["BUILDKITE_ORGANIZATION"] = organization
    if api_token:
        os.environ["BUILDKITE_API_TOKEN"] = api_token
    if read_only:
        os.environ["BUILDKITE_READ_ONLY"] = "true"

    from .servers.buildkite import mcp

    run_kwargs: dict = {"transport": transport}
    if transport != "stdio":
        run_kwargs["host"] = host
        run_kwargs["port"] = port

    asyncio.run(mcp.run_async(show_banner=False, **run_kwargs))


if __name__ == "__main__":
    main()
