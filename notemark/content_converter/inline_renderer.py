"""Inline span rendering.

Renders a run of inline spans into one line of inline Markdown. Plain text
passes through unescaped; only formatting marks, links and code spans add
Markdown syntax.
"""

import re
from typing import FrozenSet, List, Sequence, Tuple

from notemark.blocks.models import InlineSpan

# Longest run of backticks inside a code span decides the delimiter length
_BACKTICK_RUN = re.compile(r"`+")


class InlineRenderer:
    """Renders inline spans into Markdown inline syntax.

    Marks nest from the inside out as: code, italic, bold, strikethrough,
    underline. Bold and italic together therefore render as ``***text***``.

    Example:
        >>> InlineRenderer().render([
        ...     InlineSpan(text="A "),
        ...     InlineSpan(text="bold", marks=frozenset({"bold"})),
        ...     InlineSpan(text=" word."),
        ... ])
        'A **bold** word.'
    """

    def render(self, spans: Sequence[InlineSpan]) -> str:
        """Render a sequence of spans.

        Adjacent text spans with identical marks are merged before
        formatting, so a run split across several spans gets one pair of
        delimiters.

        Args:
            spans: Inline spans in document order

        Returns:
            Inline Markdown (empty string for no spans)
        """
        parts: List[str] = []
        for kind, payload in self._coalesce(spans):
            if kind == "text":
                text, marks = payload
                parts.append(self.format_text(text, marks))
            else:
                parts.append(self._render_node(payload))
        return "".join(parts)

    def render_plain(self, spans: Sequence[InlineSpan]) -> str:
        """Render spans as raw text, ignoring all marks and link targets."""
        parts = []
        for span in spans:
            if span.children:
                parts.append(self.render_plain(span.children))
            else:
                parts.append(span.text)
        return "".join(parts)

    def format_text(self, text: str, marks: FrozenSet[str]) -> str:
        """Wrap text in the delimiters for its marks.

        Leading and trailing whitespace stays outside the delimiters, since
        ``** bold**`` is not emphasis in Markdown.
        """
        if not text or not marks:
            return text

        core = text.strip()
        if not core:
            return text
        leading = text[:len(text) - len(text.lstrip())]
        trailing = text[len(text.rstrip()):]

        if "code" in marks:
            core = self._code_span(core)
        if "italic" in marks:
            core = f"*{core}*"
        if "bold" in marks:
            core = f"**{core}**"
        if "strikethrough" in marks:
            core = f"~~{core}~~"
        if "underline" in marks:
            core = f"<u>{core}</u>"

        return f"{leading}{core}{trailing}"

    def _render_node(self, span: InlineSpan) -> str:
        if span.kind == "link":
            label = self.render(span.children) if span.children else span.text
            return f"[{label}]({span.href or ''})"

        # Mentions, inline cards and other nodes flatten to their content
        if span.children:
            return self.render(span.children)
        return self.format_text(span.text, span.marks)

    def _coalesce(self, spans: Sequence[InlineSpan]) -> List[Tuple[str, object]]:
        """Group adjacent text spans that carry the same marks."""
        groups: List[Tuple[str, object]] = []
        for span in spans:
            if not span.is_text:
                groups.append(("node", span))
                continue

            if groups and groups[-1][0] == "text" and groups[-1][1][1] == span.marks:
                text, marks = groups[-1][1]
                groups[-1] = ("text", (text + span.text, marks))
            else:
                groups.append(("text", (span.text, span.marks)))
        return groups

    @staticmethod
    def _code_span(text: str) -> str:
        runs = _BACKTICK_RUN.findall(text)
        if not runs:
            return f"`{text}`"
        fence = "`" * (max(len(run) for run in runs) + 1)
        return f"{fence} {text} {fence}"
