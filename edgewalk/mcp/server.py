"""MCP server implementation for Edgewalk."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from edgewalk.core.exceptions import EdgewalkError
from edgewalk.core.extract import ExtractStats
from edgewalk.core.pipeline import collect_edges
from edgewalk.core.serialize import edges_to_dicts

server = Server("edgewalk")


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="edgewalk_edges",
            description=(
                "Build the call graph of a JavaScript file or HTML page and return every "
                "caller -> callee edge as {file, range} source positions relative "
                "to the entry file's directory. Duplicate edges are kept."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "entry": {
                        "type": "string",
                        "description": "Path to the entry file",
                    },
                },
                "required": ["entry"],
            },
        ),
    ]


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        if name == "edgewalk_edges":
            result = _handle_edges(arguments["entry"])
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except EdgewalkError as e:
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]


def _handle_edges(entry: str) -> dict[str, Any]:
    """Handle edgewalk_edges tool."""
    stats = ExtractStats()
    edges = collect_edges(Path(entry), stats=stats)
    return {
        "edges": edges_to_dicts(edges),
        "stats": {
            "nodes": stats.nodes,
            "call_sites": stats.call_sites,
            "edges": stats.edges,
            "dropped": {reason.value: count for reason, count in stats.dropped.items()},
        },
    }


async def serve() -> None:
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
