import asyncio
import json
import logging
import os
import time
from pathlib import Path
from typing import Optional

import click

# Starlette and uvicorn imports
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Mount, Route
import uvicorn

# MCP imports
from mcp.server import Server
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from config import env
from server import handlers

logger = logging.getLogger(__name__)

# Create the server
server = Server("flowkit")


@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name=tool["name"],
            description=tool["description"],
            inputSchema=tool["inputSchema"],
        )
        for tool in handlers.list_tools()["tools"]
    ]


@server.call_tool()
async def call_tool_handler(name: str, arguments: dict) -> list[TextContent]:
    logger.info(f"TOOL CALL HANDLER INVOKED: {name}")
    start_time = time.time()

    envelope = await handlers.call_tool({"tool": name, "input": arguments})

    duration_ms = (time.time() - start_time) * 1000
    if "error" in envelope:
        logger.warning(f"Tool '{name}' returned an error in {duration_ms:.2f}ms: {envelope['error']}")
    else:
        logger.info(f"Tool '{name}' executed successfully in {duration_ms:.2f}ms")

    return [TextContent(type="text", text=json.dumps(envelope, indent=2))]


# Setup SSE transport
sse = SseServerTransport("/messages/")


async def handle_sse(request: Request) -> Response:
    async with sse.connect_sse(
        request.scope, request.receive, request._send
    ) as streams:
        try:
            await server.run(
                streams[0],
                streams[1],
                server.create_initialization_options(),
                raise_exceptions=False,
            )
        except Exception as e:
            logger.error(f"SSE handler error: {type(e).__name__}: {e}")
    return Response()


routes = [
    Route("/sse", endpoint=handle_sse),
    Mount("/messages/", app=sse.handle_post_message),
]

# Create Starlette app
starlette_app = Starlette(routes=routes)


def setup(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure logging and load the environment"""
    # Reset the logging configuration
    # This is important as basicConfig won't do anything if the root logger
    # already has handlers configured
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
        handler.close()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level.upper())
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # stdout carries the stdio transport, so console logs go to stderr
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_path.absolute()))
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    env.load()
    logger.info(
        f"Initialized environment: flow file={env.get_flow_file_path()}, "
        f"external commands allowed={env.is_external_commands_allowed()}"
    )


async def run_stdio() -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream, write_stream, server.create_initialization_options()
        )


@click.command()
@click.option(
    "--transport",
    default="stdio",
    type=click.Choice(["stdio", "sse"]),
    help="Transport to serve MCP over",
)
@click.option("--port", default=None, type=int, help="Port to run the SSE server on")
@click.option("--log-level", default="INFO", help="Logging level")
@click.option("--log-file", default=None, help="Optional log file path")
def main(
    transport: str = "stdio",
    port: Optional[int] = None,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
) -> None:
    setup(log_level, log_file)

    if transport == "stdio":
        logger.info("Starting FlowKit MCP server on stdio")
        asyncio.run(run_stdio())
        return

    # Determine port from CLI argument, environment variable, or default
    if port is None:
        port = int(os.environ.get("SERVER_PORT", 8000))

    logger.info(f"Starting FlowKit MCP server with SSE on port {port}")
    uvicorn.run(starlette_app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
