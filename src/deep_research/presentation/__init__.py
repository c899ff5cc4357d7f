"""Presentation layer: console rendering and report export."""

from deep_research.presentation.console import ProgressDisplay, ResearchConsole
from deep_research.presentation.export import (
    export_markdown,
    render_markdown,
    report_filename,
    slugify,
)

__all__ = [
    "ProgressDisplay",
    "ResearchConsole",
    "export_markdown",
    "render_markdown",
    "report_filename",
    "slugify",
]
