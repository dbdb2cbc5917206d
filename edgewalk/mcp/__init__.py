"""
MCP server for Edgewalk.

Exposes call graph edge extraction to LLMs via the Model Context Protocol.

Tools:
    - edgewalk_edges: Caller -> callee edges of an entry file's call graph

Usage:
    Run: edgewalk-mcp
"""

import asyncio

from edgewalk.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    asyncio.run(_serve())


__all__ = ["serve"]
