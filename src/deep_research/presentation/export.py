"""Markdown report export for research results.

Uses only the Python standard library.
"""

from __future__ import annotations

import datetime
import re
from pathlib import Path

from deep_research.domain.values import ResearchResult, ResearchSpec

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

SLUG_MAX_LENGTH = 50


def slugify(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Lower-case *text*, collapse non-alphanumerics to ``-``, and cap length.

    >>> slugify("What is Quantum Computing?")
    'what-is-quantum-computing'
    """
    slug = _NON_ALNUM.sub("-", text.lower()).strip("-")
    return slug[:max_length]


def report_filename(query: str, now: datetime.datetime | None = None) -> str:
    """``research-<slug>-<timestamp>.md`` for *query*."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    timestamp = now.strftime("%Y-%m-%dT%H-%M-%S-%f")
    return f"research-{slugify(query)}-{timestamp}.md"


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------

def render_markdown(spec: ResearchSpec, result: ResearchResult, summary: str) -> str:
    """Render a research report as Markdown.

    Parameters
    ----------
    spec:
        The request that produced *result*.
    result:
        Merged learnings and sources.
    summary:
        Narrative summary text, inserted verbatim.
    """
    lines = [
        "# Research Results",
        "",
        "## Research Parameters",
        f"- Query: {spec.query}",
        f"- Depth: {spec.depth}",
        f"- Breadth: {spec.breadth}",
    ]
    if result.degraded:
        lines.append("- Status: incomplete (research failed before finishing)")
    lines += ["", "## Summary", summary, "", "## Key Learnings"]
    lines += [f"{i}. {learning}" for i, learning in enumerate(result.learnings, 1)]
    lines += ["", "## Sources"]
    lines += [f"- {source}" for source in result.sources]
    return "\n".join(lines) + "\n"


def export_markdown(
    spec: ResearchSpec,
    result: ResearchResult,
    summary: str,
    output_dir: str | Path,
    now: datetime.datetime | None = None,
) -> Path:
    """Write the Markdown report into *output_dir* and return its path.

    The directory is created if needed.
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / report_filename(spec.query, now)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(render_markdown(spec, result, summary))
    return path
