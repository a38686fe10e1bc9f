"""Parsing of ``[[Note Title]]`` references out of note content."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Dict, List

WIKILINK_PATTERN = re.compile(r"\[\[([^\]]+)\]\]")
CONTEXT_WINDOW = 50


@dataclass(frozen=True)
class ParsedLink:
    """A single ``[[...]]`` occurrence in a body of text."""

    text: str
    start: int
    end: int
    context: str


def parse_links(content: str | None) -> List[ParsedLink]:
    """
    Return every ``[[...]]`` marker in ``content`` in left-to-right order.

    ``start``/``end`` delimit the whole marker including brackets. The context
    holds up to ``CONTEXT_WINDOW`` characters on either side, clamped to the
    text bounds.
    """
    text = content or ""
    links: List[ParsedLink] = []
    for match in WIKILINK_PATTERN.finditer(text):
        start, end = match.span()
        context_start = max(0, start - CONTEXT_WINDOW)
        context_end = min(len(text), end + CONTEXT_WINDOW)
        links.append(
            ParsedLink(
                text=match.group(1).strip(),
                start=start,
                end=end,
                context=text[context_start:context_end],
            )
        )
    return links


def extract_note_mentions(content: str | None) -> List[str]:
    """Return the distinct link texts in first-seen order."""
    seen: Dict[str, None] = {}
    for link in parse_links(content):
        if link.text and link.text not in seen:
            seen[link.text] = None
    return list(seen.keys())


__all__ = [
    "CONTEXT_WINDOW",
    "ParsedLink",
    "WIKILINK_PATTERN",
    "extract_note_mentions",
    "parse_links",
]
