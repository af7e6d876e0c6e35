"""Markdown rendering of question text for participant-facing views.

Question text is authored as Markdown; participants receive HTML fragments
and never the answer key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from markdown_it import MarkdownIt

from live_quiz.core.models import QuizQuestion


@dataclass(slots=True)
class MarkdownRenderer:
    """Converts markdown into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into an HTML fragment."""
        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_inline(self, markdown_text: str) -> str:
        return self._markdown.renderInline(markdown_text.strip())

    def question_view(self, question: QuizQuestion) -> dict[str, Any]:
        """Participant view of a question. The correct answer is left out."""
        return {
            "question_id": question.question_id,
            "question_html": self.render_fragment(question.text),
            "options": [self.render_inline(option) for option in question.options],
            "points": question.points,
        }


# MarkdownIt is safe to share for read-only renders.
renderer = MarkdownRenderer()
