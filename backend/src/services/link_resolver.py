"""Resolution of link text to note ids within one user's notes."""

from __future__ import annotations

import re
import sqlite3
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional

from .link_parser import WIKILINK_PATTERN

NOTE_PATH_PREFIX = "/notes"
BROKEN_LINK_SCHEME = "broken:"


class _TitleEntry(NamedTuple):
    note_id: str
    folded_title: str
    updated_at: str
    order: int


class TitleIndex:
    """
    Case-insensitive "contains" index over note titles.

    When several titles contain the link text, an exact (case-insensitive)
    title match wins, then the most recently updated note, then the note
    created last.
    """

    def __init__(self, notes: Iterable[Mapping[str, Any]]) -> None:
        self._entries: List[_TitleEntry] = [
            _TitleEntry(
                note_id=str(note["id"]),
                folded_title=str(note["title"] or "").casefold(),
                updated_at=str(note["updated_at"] or ""),
                order=order,
            )
            for order, note in enumerate(notes)
        ]

    @classmethod
    def for_user(cls, conn: sqlite3.Connection, user_id: str) -> "TitleIndex":
        rows = conn.execute(
            "SELECT id, title, updated_at FROM notes WHERE user_id = ? ORDER BY rowid",
            (user_id,),
        ).fetchall()
        return cls(rows)

    def __len__(self) -> int:
        return len(self._entries)

    def candidates(self, text: str) -> List[str]:
        """Return ids of every note whose title contains ``text``, best first."""
        needle = (text or "").strip().casefold()
        if not needle:
            return []
        matches = [entry for entry in self._entries if needle in entry.folded_title]
        matches.sort(
            key=lambda entry: (entry.folded_title == needle, entry.updated_at, entry.order),
            reverse=True,
        )
        return [entry.note_id for entry in matches]

    def resolve(self, text: str) -> Optional[str]:
        """Return the best matching note id, or None when nothing matches."""
        ranked = self.candidates(text)
        return ranked[0] if ranked else None


def build_title_map(notes: Iterable[Mapping[str, Any]]) -> Dict[str, str]:
    """Map both the exact and the lowercased title of each note to its id."""
    title_map: Dict[str, str] = {}
    for note in notes:
        title = str(note["title"] or "")
        title_map[title.lower()] = str(note["id"])
        title_map[title] = str(note["id"])
    return title_map


def render_links(
    content: str | None,
    title_map: Mapping[str, str],
    base_url: str = NOTE_PATH_PREFIX,
) -> str:
    """
    Rewrite ``[[Title]]`` markers as Markdown links.

    Known titles point at ``<base_url>/<note id>``; unknown ones use the
    ``broken:`` placeholder so the client can style them differently.
    """
    base = base_url.rstrip("/")

    def _replace(match: re.Match[str]) -> str:
        title = match.group(1).strip()
        note_id = title_map.get(title.lower()) or title_map.get(title)
        if note_id:
            return f"[{title}]({base}/{note_id})"
        return f"[{title}]({BROKEN_LINK_SCHEME}{title})"

    return WIKILINK_PATTERN.sub(_replace, content or "")


__all__ = [
    "BROKEN_LINK_SCHEME",
    "NOTE_PATH_PREFIX",
    "TitleIndex",
    "build_title_map",
    "render_links",
]
