"""
MCP server for semantic-context — exposes context retrieval tools to an assistant.

IMPORTANT: Uses stdio transport. Never print to stdout — all logging goes to stderr.
Engines are built on first use and kept per project root for the life of the process.
"""

import functools
import inspect
import logging
import sys
import threading
import time
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .engine import ContextEngine
from .render import render_analysis, render_context, render_relationships, render_stats

log = logging.getLogger(__name__)

# File-based request log — tail -f this to watch MCP tool usage in real time
_LOG_PATH = Path.home() / ".local" / "log" / "semantic-context-mcp.log"
_request_log = logging.getLogger("semantic_context.requests")
_request_log.setLevel(logging.INFO)
_request_log.propagate = False  # don't send to stderr

_engines: dict[str, ContextEngine] = {}
_engines_lock = threading.Lock()


def _configure_logging() -> None:
    # All logging must go to stderr in stdio MCP mode
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if not _request_log.handlers:
        _LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(_LOG_PATH)
        handler.setFormatter(logging.Formatter("%(asctime)s  %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
        _request_log.addHandler(handler)


def _log_tool(fn):
    """Decorator that logs every MCP tool invocation with args and duration."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        sig = inspect.signature(fn)
        bound = sig.bind(*args, **kwargs)
        bound.apply_defaults()
        params = ", ".join(f"{k}={v!r}" for k, v in bound.arguments.items())
        _request_log.info("→ %s(%s)", fn.__name__, params)
        t0 = time.monotonic()
        try:
            result = fn(*args, **kwargs)
            dt = time.monotonic() - t0
            preview = result.split("\n", 1)[0] if isinstance(result, str) else str(result)[:120]
            _request_log.info("← %s  %.3fs  %s", fn.__name__, dt, preview)
            return result
        except Exception as exc:
            dt = time.monotonic() - t0
            _request_log.info("✗ %s  %.3fs  %s: %s", fn.__name__, dt, type(exc).__name__, exc)
            raise

    return wrapper


def get_engine(project: str) -> ContextEngine:
    root = str(Path(project).resolve())
    with _engines_lock:
        engine = _engines.get(root)
        if engine is None:
            engine = ContextEngine(root)
            _engines[root] = engine
    engine.initialize()
    return engine


def close_engines() -> None:
    with _engines_lock:
        for engine in _engines.values():
            engine.close()
        _engines.clear()


mcp = FastMCP(
    "semantic-context",
    instructions=(
        "semantic-context indexes a JavaScript/TypeScript project in memory and "
        "returns ranked context for natural-language questions: matching files, "
        "their import neighbours, relevant technical domains and follow-up suggestions. "
        "Call retrieve_context first; use file_analysis and file_relationships to "
        "drill into a file, and record_outcome after answering so later queries "
        "can reuse the history."
    ),
)


# ── Tools ────────────────────────────────────────────────────────────────────

@mcp.tool()
@_log_tool
def retrieve_context(query: str, project: str = ".", max_matches: int = 10) -> str:
    """
    Retrieve ranked code context for a natural-language query.

    Args:
        query: What you are looking for, e.g. "order processing validation".
        project: Path to the project root.
        max_matches: Maximum number of matching files to return.
    """
    engine = get_engine(project)
    ctx = engine.retrieve(query, {"max_semantic_matches": max_matches})
    return render_context(ctx, query)


@mcp.tool()
@_log_tool
def file_analysis(path: str, project: str = ".") -> str:
    """
    Show symbols, concepts, patterns, complexity, dependencies and exports of one file.

    Args:
        path: File path relative to the project root.
        project: Path to the project root.
    """
    analysis = get_engine(project).get_file_analysis(path)
    if analysis is None:
        return f"File not indexed: {path}"
    return render_analysis(analysis)


@mcp.tool()
@_log_tool
def file_relationships(path: str, project: str = ".") -> str:
    """
    Show the files one file imports and the files that import it.

    Args:
        path: File path relative to the project root.
        project: Path to the project root.
    """
    rel = get_engine(project).get_file_relationships(path)
    if rel is None:
        return f"File not indexed: {path}"
    return render_relationships(path, rel)


@mcp.tool()
@_log_tool
def record_outcome(query: str, result: str, files: list[str] | None = None, project: str = ".") -> str:
    """
    Record how a query was answered so that related future queries surface it.

    Args:
        query: The query that was answered.
        result: A short description of the answer.
        files: Files that were used to answer it.
        project: Path to the project root.
    """
    engine = get_engine(project)
    engine.add_to_history(query, result, files or [])
    return f"Recorded outcome for: {query}"


@mcp.tool()
@_log_tool
def refresh_index(paths: list[str] | None = None, project: str = ".") -> str:
    """
    Re-analyze changed files and rebuild the import graph.

    Args:
        paths: Relative paths to re-analyze. Omit to re-analyze every indexed file.
        project: Path to the project root.
    """
    engine = get_engine(project)
    engine.refresh(paths)
    return f"Refreshed {len(paths) if paths is not None else 'all'} files in {engine.project_root}"


@mcp.tool()
@_log_tool
def context_stats(project: str = ".") -> str:
    """
    Index, graph, history and cache statistics for a project.

    Args:
        project: Path to the project root.
    """
    engine = get_engine(project)
    return f"Project: {engine.project_root}\n" + render_stats(engine.stats())


# ── Entry point ───────────────────────────────────────────────────────────────

def run_server(http: bool = False, port: int = 8000) -> None:
    _configure_logging()
    try:
        if http:
            mcp.settings.host = "127.0.0.1"
            mcp.settings.port = port
            mcp.run(transport="streamable-http")
        else:
            mcp.run(transport="stdio")
    finally:
        close_engines()


if __name__ == "__main__":
    run_server()
