"""
MCP server for Depload.

Exposes dependency load metrics to LLMs via the Model Context Protocol.

Tools:
    - depload_projects: Project metrics over a commit window
    - depload_file_dependents: Projects importing from each file
    - depload_estimated_load: Estimated load of a file set
    - depload_split: Suggested two-way split of a file set
    - depload_stats: Database statistics

Usage:
    Run: depload-mcp (from the workspace root)
"""

import asyncio

from depload.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    asyncio.run(_serve())


__all__ = ["serve"]
