"""Command-line interface for the deep research engine.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    deep-research = "deep_research.cli:main"

Usage examples::

    deep-research run "How do solid-state batteries fail?" --breadth 4 --depth 2
    deep-research run "history of the transistor" --config research.json --output ./out
    deep-research info

Exit codes: 0 on success, 1 on runtime errors, 2 on invalid arguments.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from deep_research.domain.values import (
    MAX_RECOMMENDED_BREADTH,
    MAX_RECOMMENDED_DEPTH,
    MIN_BREADTH,
    MIN_DEPTH,
)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="deep-research",
        description=(
            "Deep research CLI: expands a query into sub-questions, searches "
            "the web, and recursively digs deeper into the findings."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show version and exit.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- run ---------------------------------------------------------------
    run_parser = subparsers.add_parser(
        "run",
        help="Research a query.",
        description="Run a breadth/depth bounded research traversal on a query.",
    )
    run_parser.add_argument("query", type=str, help="The research query.")
    run_parser.add_argument(
        "--breadth",
        type=int,
        default=3,
        help=f"Sub-queries at the top level ({MIN_BREADTH}-{MAX_RECOMMENDED_BREADTH}, default: 3).",
    )
    run_parser.add_argument(
        "--depth",
        type=int,
        default=2,
        help=f"Levels per branch ({MIN_DEPTH}-{MAX_RECOMMENDED_DEPTH}, default: 2).",
    )
    run_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON config file with 'traversal', 'search' and 'model' sections.",
    )
    run_parser.add_argument(
        "--output",
        type=str,
        default="research",
        help="Directory for the Markdown report (default: ./research).",
    )
    run_parser.add_argument(
        "--no-summary",
        action="store_true",
        default=False,
        help="Skip the narrative summary.",
    )
    run_parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v INFO, -vv DEBUG).",
    )

    # -- info --------------------------------------------------------------
    subparsers.add_parser(
        "info",
        help="Show version and dependency information.",
    )

    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_sections(config_path: str | None) -> dict[str, Any]:
    from deep_research.infrastructure.config import config_from_env, load_config_from_json

    base = None
    if config_path is not None:
        base = load_config_from_json(Path(config_path).read_text(encoding="utf-8"))
    return config_from_env(base=base)


def _build_collaborators(sections: dict[str, Any]) -> dict[str, Any]:
    """Build the search provider, chat model and LLM services from config."""
    from deep_research.infrastructure.llm import create_chat_model
    from deep_research.infrastructure.search import create_search_provider_from_config
    from deep_research.services import (
        LLMFindingsExtractor,
        LLMQueryExpander,
        LLMSummaryWriter,
    )

    model_cfg = sections["model"]
    model = create_chat_model(model_cfg)
    return {
        "search_provider": create_search_provider_from_config(
            sections["search"], model=model
        ),
        "expander": LLMQueryExpander(model, structured=model_cfg.structured_output),
        "extractor": LLMFindingsExtractor(model, structured=model_cfg.structured_output),
        "summary_writer": LLMSummaryWriter(model),
    }


async def _research(args: argparse.Namespace, sections: dict[str, Any]) -> int:
    from deep_research.domain.values import ResearchSpec
    from deep_research.presentation.console import ProgressDisplay, ResearchConsole
    from deep_research.presentation.export import export_markdown
    from deep_research.services.engine import ResearchEngine

    collaborators = _build_collaborators(sections)
    search_provider = collaborators["search_provider"]
    spec = ResearchSpec(query=args.query, breadth=args.breadth, depth=args.depth)
    out = ResearchConsole()
    out.print_header(spec)

    engine = ResearchEngine(
        collaborators["expander"],
        collaborators["extractor"],
        search_provider,
        config=sections["traversal"],
    )
    try:
        with ProgressDisplay() as display:
            result = await engine.run(spec, on_progress=display)
    finally:
        await search_provider.aclose()

    summary = "Summary skipped."
    if not args.no_summary:
        out.console.print("Generating narrative summary...")
        summary = await collaborators["summary_writer"].summarize(
            spec.query, result.learnings
        )

    out.print_result(result, summary if not args.no_summary else None)
    path = export_markdown(spec, result, summary, args.output)
    out.console.print(f"Report written to [bold]{path}[/bold]")
    return EXIT_ERROR if result.degraded else EXIT_OK


def _cmd_run(args: argparse.Namespace) -> int:
    """Handle the ``run`` subcommand."""
    _configure_logging(args.verbose)

    if not args.query.strip():
        print("Error: query must not be empty", file=sys.stderr)
        return EXIT_USAGE
    if not (MIN_BREADTH <= args.breadth <= MAX_RECOMMENDED_BREADTH):
        print(
            f"Error: breadth must be between {MIN_BREADTH} and "
            f"{MAX_RECOMMENDED_BREADTH}, got {args.breadth}",
            file=sys.stderr,
        )
        return EXIT_USAGE
    if not (MIN_DEPTH <= args.depth <= MAX_RECOMMENDED_DEPTH):
        print(
            f"Error: depth must be between {MIN_DEPTH} and "
            f"{MAX_RECOMMENDED_DEPTH}, got {args.depth}",
            file=sys.stderr,
        )
        return EXIT_USAGE

    try:
        sections = _load_sections(args.config)
    except (OSError, ValueError) as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return EXIT_USAGE

    return asyncio.run(_research(args, sections))


def _cmd_info(args: argparse.Namespace) -> int:
    """Handle the ``info`` subcommand."""
    from deep_research import __version__
    from deep_research.infrastructure.search import SearchProviderFactory

    print(f"deep-research v{__version__}")
    print()

    deps = {
        "httpx": "Search provider HTTP client",
        "pydantic": "Structured LLM output schemas",
        "rich": "Console progress and result rendering",
        "langchain_core": "Chat model abstraction and prompts",
        "langchain_anthropic": "Anthropic chat models",
        "langchain_openai": "OpenAI chat models",
    }

    print("Dependencies:")
    for pkg, desc in deps.items():
        try:
            mod = __import__(pkg)
            version = getattr(mod, "__version__", "unknown")
            print(f"  [installed] {pkg} {version} -- {desc}")
        except ImportError:
            print(f"  [missing]   {pkg} -- {desc}")
    print()

    print("Search Providers:")
    for name in SearchProviderFactory().registered_providers:
        print(f"  - {name}")
    print()
    print("Model Providers:")
    print("  - anthropic")
    print("  - openai")
    return EXIT_OK


# =========================================================================
# Main entry point
# =========================================================================

def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from deep_research import __version__
        print(f"deep-research {__version__}")
        sys.exit(EXIT_OK)

    if args.command is None:
        parser.print_help()
        sys.exit(EXIT_OK)

    handlers: dict[str, Any] = {
        "run": _cmd_run,
        "info": _cmd_info,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(EXIT_USAGE)

    try:
        exit_code = handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = EXIT_ERROR

    sys.exit(exit_code)
