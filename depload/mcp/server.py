"""MCP server implementation for Depload."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from depload.core.exceptions import DeploadError
from depload.core.metrics import DEFAULT_COMMIT_WINDOW, MetricsEngine
from depload.core.optimizer import SplitOptimizer
from depload.core.storage import GraphRepository, get_default_db_path

logger = logging.getLogger(__name__)

server = Server("depload")

_FILE_PATHS_SCHEMA = {
    "type": "array",
    "items": {"type": "string"},
    "description": "Workspace-relative file paths",
}
_COMMIT_COUNT_SCHEMA = {
    "type": "integer",
    "minimum": 1,
    "description": f"Commit window size (default: {DEFAULT_COMMIT_WINDOW})",
    "default": DEFAULT_COMMIT_WINDOW,
}


def _get_repo() -> GraphRepository:
    """Get repository for current directory."""
    db_path = get_default_db_path(Path.cwd())
    if not db_path.exists():
        raise FileNotFoundError(
            f"No depload database found. Run 'depload sync-workspace' first.\nExpected: {db_path}"
        )
    return GraphRepository(db_path)


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="depload_projects",
            description=(
                "List every project with touched count, dependent count, load and "
                "affected count over the most recent commits."
            ),
            inputSchema={
                "type": "object",
                "properties": {"commit_count": _COMMIT_COUNT_SCHEMA},
            },
        ),
        Tool(
            name="depload_file_dependents",
            description="For each file, list the projects that import from it.",
            inputSchema={
                "type": "object",
                "properties": {"file_paths": _FILE_PATHS_SCHEMA},
                "required": ["file_paths"],
            },
        ),
        Tool(
            name="depload_estimated_load",
            description=(
                "Estimate the load of a set of files: commits touching them times "
                "the number of projects transitively depending on them."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "file_paths": _FILE_PATHS_SCHEMA,
                    "commit_count": _COMMIT_COUNT_SCHEMA,
                },
                "required": ["file_paths"],
            },
        ),
        Tool(
            name="depload_split",
            description=(
                "Suggest splitting files into two groups so that the summed "
                "estimated load is as low as possible."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "file_paths": _FILE_PATHS_SCHEMA,
                    "commit_count": _COMMIT_COUNT_SCHEMA,
                    "seed": {
                        "type": "integer",
                        "description": "Seed for the random initial split (optional)",
                    },
                },
                "required": ["file_paths"],
            },
        ),
        Tool(
            name="depload_stats",
            description="Get row counts of the depload database.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
    ]


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        commit_count = int(arguments.get("commit_count", DEFAULT_COMMIT_WINDOW))
        if name == "depload_projects":
            result = _handle_projects(commit_count)
        elif name == "depload_file_dependents":
            result = _handle_file_dependents(arguments["file_paths"])
        elif name == "depload_estimated_load":
            result = _handle_estimated_load(arguments["file_paths"], commit_count)
        elif name == "depload_split":
            result = _handle_split(arguments["file_paths"], commit_count, arguments.get("seed"))
        elif name == "depload_stats":
            result = _handle_stats()
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except (FileNotFoundError, DeploadError, KeyError, ValueError) as e:
        logger.warning("Tool %s failed: %s", name, e)
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]


def handle_projects(repo: GraphRepository, commit_count: int) -> dict[str, Any]:
    metrics = MetricsEngine(repo).windowed_project_metrics(commit_count)
    rows = sorted(metrics.values(), key=lambda m: (-m.load, m.name))
    return {"commit_count": commit_count, "projects": [m.to_dict() for m in rows]}


def handle_file_dependents(repo: GraphRepository, file_paths: list[str]) -> dict[str, Any]:
    return {"dependents": MetricsEngine(repo).project_dependency_map_for_files(file_paths)}


def handle_estimated_load(
    repo: GraphRepository, file_paths: list[str], commit_count: int
) -> dict[str, Any]:
    return {
        "file_paths": file_paths,
        "commit_count": commit_count,
        "estimated_load": MetricsEngine(repo).estimated_load(file_paths, commit_count),
    }


def handle_split(
    repo: GraphRepository, file_paths: list[str], commit_count: int, seed: int | None
) -> dict[str, Any]:
    result = SplitOptimizer(MetricsEngine(repo)).suggest_split(file_paths, commit_count, seed=seed)
    return {"commit_count": commit_count, **result.to_dict()}


def _handle_projects(commit_count: int) -> dict[str, Any]:
    with _get_repo() as repo:
        return handle_projects(repo, commit_count)


def _handle_file_dependents(file_paths: list[str]) -> dict[str, Any]:
    with _get_repo() as repo:
        return handle_file_dependents(repo, file_paths)


def _handle_estimated_load(file_paths: list[str], commit_count: int) -> dict[str, Any]:
    with _get_repo() as repo:
        return handle_estimated_load(repo, file_paths, commit_count)


def _handle_split(file_paths: list[str], commit_count: int, seed: int | None) -> dict[str, Any]:
    with _get_repo() as repo:
        return handle_split(repo, file_paths, commit_count, seed)


def _handle_stats() -> dict[str, Any]:
    with _get_repo() as repo:
        return dict(repo.get_stats())


async def serve() -> None:
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
