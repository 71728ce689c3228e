"""CLI entry point for semantic-context."""

import argparse
import logging
import sys
from pathlib import Path

from .engine import ContextEngine
from .models import EngineConfig
from .render import render_analysis, render_context, render_relationships, render_stats

log = logging.getLogger(__name__)


def _open_engine(project_root: str, config: EngineConfig | None = None) -> ContextEngine:
    root = str(Path(project_root).resolve())
    engine = ContextEngine(root, config=config)
    engine.initialize()
    return engine


def cmd_query(args: argparse.Namespace) -> int:
    config = EngineConfig(enable_caching=False)
    if args.max_matches:
        config.max_semantic_matches = args.max_matches
    engine = _open_engine(args.path, config)
    try:
        ctx = engine.retrieve(args.text)
        print(render_context(ctx, args.text))
    finally:
        engine.close()
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    engine = _open_engine(args.path)
    try:
        analysis = engine.get_file_analysis(args.file)
        if analysis is None:
            print(f"File not indexed: {args.file}")
            return 1
        print(render_analysis(analysis))
    finally:
        engine.close()
    return 0


def cmd_related(args: argparse.Namespace) -> int:
    engine = _open_engine(args.path)
    try:
        rel = engine.get_file_relationships(args.file)
        if rel is None:
            print(f"File not indexed: {args.file}")
            return 1
        print(render_relationships(args.file, rel))
    finally:
        engine.close()
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    root = str(Path(args.path).resolve())
    engine = _open_engine(root)
    try:
        print(f"Project:  {root}")
        print(render_stats(engine.stats()))
    finally:
        engine.close()
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from .server import run_server
    run_server(http=args.http, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    parser = argparse.ArgumentParser(
        prog="semantic-context",
        description="Semantic context retrieval over a JavaScript/TypeScript codebase",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # query
    p = sub.add_parser("query", help="Retrieve ranked context for a natural-language query")
    p.add_argument("text", help="Query text")
    p.add_argument("--path", default=".", help="Project root (default: .)")
    p.add_argument("--max-matches", type=int, default=0, help="Maximum semantic matches")

    # analyze
    p = sub.add_parser("analyze", help="Show the lexical analysis of one file")
    p.add_argument("file", help="File path relative to the project root")
    p.add_argument("--path", default=".", help="Project root")

    # related
    p = sub.add_parser("related", help="Show imports and dependents of one file")
    p.add_argument("file", help="File path relative to the project root")
    p.add_argument("--path", default=".", help="Project root")

    # stats
    p = sub.add_parser("stats", help="Show index statistics")
    p.add_argument("path", nargs="?", default=".", help="Project root")

    # serve
    p = sub.add_parser("serve", help="Start MCP server")
    p.add_argument("--http", action="store_true", help="HTTP transport instead of stdio")
    p.add_argument("--port", type=int, default=8000, help="HTTP port (default: 8000)")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger("semantic_context").setLevel(logging.DEBUG)

    handlers = {
        "query": cmd_query,
        "analyze": cmd_analyze,
        "related": cmd_related,
        "stats": cmd_stats,
        "serve": cmd_serve,
    }

    sys.exit(handlers[args.command](args))


if __name__ == "__main__":
    main()
