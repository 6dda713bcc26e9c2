"""Markdown rendering for question and option text shown to students."""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt


@dataclass(slots=True)
class MarkdownRenderer:
    """Converts teacher-authored markdown into HTML fragments.

    Raw HTML in the source is escaped unless ``enable_html`` is set, so quiz
    content cannot inject markup into the student page.
    """

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_inline(self, markdown_text: str) -> str:
        """Render without the wrapping paragraph, for option labels."""
        return self._markdown.renderInline(markdown_text.strip())


# MarkdownIt is safe for concurrent read-only renders.
renderer = MarkdownRenderer()
