"""Rich-based console output for research runs.

:class:`ProgressDisplay` is a progress sink that drives a ``rich`` progress
bar; :class:`ResearchConsole` prints the final summary, learnings and
sources.
"""

from __future__ import annotations

import sys
from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from deep_research.domain.entities import ResearchProgress
from deep_research.domain.values import ResearchResult, ResearchSpec

_QUERY_PREVIEW = 60


def _preview(query: str | None) -> str:
    if not query:
        return "Initializing..."
    if len(query) <= _QUERY_PREVIEW:
        return escape(query)
    return escape(query[: _QUERY_PREVIEW - 3] + "...")


# ---------------------------------------------------------------------------
# ProgressDisplay
# ---------------------------------------------------------------------------

class ProgressDisplay:
    """Progress sink rendering a live ``rich`` progress bar.

    Use as a context manager around the run and pass the instance itself as
    the progress callback::

        with ProgressDisplay(console) as display:
            result = await engine.run(spec, on_progress=display)
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(file=sys.stderr)
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("{task.fields[percent]:>3}%"),
            TextColumn("depth {task.fields[depth]}  breadth {task.fields[breadth]}"),
            TimeElapsedColumn(),
            console=self._console,
            transient=False,
        )
        self._task_id: Any = None
        self.last: ResearchProgress | None = None

    def __enter__(self) -> ProgressDisplay:
        self._progress.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._progress.stop()

    def __call__(self, progress: ResearchProgress) -> None:
        self.last = progress
        fields = {
            "percent": progress.percent,
            "depth": f"{progress.current_depth}/{progress.total_depth}",
            "breadth": f"{progress.current_breadth}/{progress.total_breadth}",
        }
        if self._task_id is None:
            self._task_id = self._progress.add_task(
                _preview(progress.current_query),
                total=progress.total_queries,
                **fields,
            )
        description = (
            "[green]Done[/green]" if progress.is_complete else _preview(progress.current_query)
        )
        self._progress.update(
            self._task_id,
            description=description,
            completed=progress.completed_queries,
            total=progress.total_queries,
            **fields,
        )


# ---------------------------------------------------------------------------
# ResearchConsole
# ---------------------------------------------------------------------------

class ResearchConsole:
    """Prints research results to the terminal.

    Parameters
    ----------
    file:
        Output stream.  Defaults to ``sys.stdout``.
    """

    def __init__(self, file: Any = None) -> None:
        self.console = Console(file=file or sys.stdout)

    def print_header(self, spec: ResearchSpec) -> None:
        self.console.print(
            Panel.fit(
                f"[bold]{escape(spec.query)}[/bold]\n"
                f"breadth={spec.breadth}  depth={spec.depth}",
                title="Deep Research",
                border_style="cyan",
            )
        )

    def print_result(self, result: ResearchResult, summary: str | None = None) -> None:
        """Print summary, learnings and sources."""
        if result.degraded:
            self.console.print(
                "[yellow]Research did not complete; showing partial result.[/yellow]"
            )
        if summary is not None:
            self.console.print()
            self.console.print("[bold cyan]Summary[/bold cyan]")
            self.console.print(Markdown(summary))

        table = Table(title="Key Learnings", show_header=True, header_style="bold cyan")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Learning")
        for i, learning in enumerate(result.learnings, 1):
            table.add_row(str(i), escape(learning))
        self.console.print()
        self.console.print(table)

        self.console.print()
        self.console.print("[bold cyan]Sources[/bold cyan]")
        if not result.sources:
            self.console.print("  [dim](none)[/dim]")
        for source in result.sources:
            self.console.print(f"  - {escape(source)}", soft_wrap=True)
        self.console.print()
