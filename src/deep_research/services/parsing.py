"""Plain-text parsers for chat model replies.

Used by the LLM services when structured output is disabled (or the model
does not support it).  The parsers are deliberately forgiving: list markers
are stripped, section headers are skipped, and anything unrecognisable is
ignored rather than raising.
"""

from __future__ import annotations

import re

from deep_research.domain.values import ExpandedQuery, Extraction

_LIST_MARKER = re.compile(r"^(?:\d{1,2}[.)]|[-*•])\s*")
_QUESTION_START = re.compile(r"^(what|how|why|when|where|which)\b", re.IGNORECASE)

_LEARNING_HEADERS = ("key learning", "insight", "finding")
_QUESTION_HEADERS = ("follow-up", "question")

# Lines at or below this length are too short to be a meaningful learning.
MIN_LEARNING_LENGTH = 20


def clean_line(text: str) -> str:
    """Strip a leading list marker (``1.``, ``2)``, ``-``, ``*``, bullet)."""
    return _LIST_MARKER.sub("", text.strip(), count=1).strip()


def extract_lines(text: str) -> list[str]:
    """Split *text* into cleaned, non-empty lines."""
    lines = (clean_line(line) for line in text.splitlines())
    return [line for line in lines if line]


def _is_header(line: str, keywords: tuple[str, ...]) -> bool:
    lowered = line.lower()
    if "?" in line or not any(k in lowered for k in keywords):
        return False
    return line.endswith(":") or len(line.split()) <= 4


def parse_queries(text: str) -> list[ExpandedQuery]:
    """Parse a list of research questions.

    Lines containing ``?`` and starting with What/How/Why/When/Where/Which are
    taken as questions.  If there are none, every statement line is rewritten
    as ``"What are the details of <statement>?"``.
    """
    lines = extract_lines(text)
    questions = [
        line for line in lines if "?" in line and _QUESTION_START.match(line)
    ]
    if questions:
        return [
            ExpandedQuery(
                question=q,
                goal=f"Research and analyze: {q.rstrip('?')}",
            )
            for q in questions
        ]
    return [
        ExpandedQuery(
            question=f"What are the details of {statement}?",
            goal=f"Research and analyze: {statement}",
        )
        for statement in lines
        if "?" not in statement
    ]


def parse_learnings(text: str) -> Extraction:
    """Parse a reply with "Key Learnings:" and "Follow-up Questions:" sections.

    Within the body, lines containing ``?`` are follow-up questions and lines
    longer than :data:`MIN_LEARNING_LENGTH` characters are learnings.
    Section headers themselves are skipped.
    """
    learnings: list[str] = []
    questions: list[str] = []
    for line in extract_lines(text):
        if _is_header(line, _LEARNING_HEADERS) or _is_header(line, _QUESTION_HEADERS):
            continue
        if "?" in line:
            questions.append(line)
        elif len(line) > MIN_LEARNING_LENGTH:
            learnings.append(line)
    return Extraction(
        learnings=tuple(learnings),
        follow_up_questions=tuple(questions),
    )
