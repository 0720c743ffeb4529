"""
links.py – Extract [[wiki-links]] from document text.

A link is ``[[target]]`` or ``[[target|alias]]``. A backslash directly in
front of the opening brackets (``\\[[target]]``) marks a literal that is
not a link. Unterminated brackets never match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Group 1 captures the escape marker, group 2 the inner text (single line)
_WIKILINK_RE = re.compile(r"(\\)?\[\[(.*?)\]\]")


@dataclass(frozen=True)
class WikiLink:
    """A raw link reference as written in a document."""

    target: str
    alias: str | None = None

    def to_markup(self) -> str:
        if self.alias is None:
            return f"[[{self.target}]]"
        return f"[[{self.target}|{self.alias}]]"


def extract_wikilinks(content: str) -> list[WikiLink]:
    """Return every unescaped wiki-link in ``content`` in order of appearance."""
    links: list[WikiLink] = []
    for m in _WIKILINK_RE.finditer(content):
        if m.group(1):
            continue
        inner = m.group(2)
        target, pipe, alias = inner.partition("|")
        links.append(
            WikiLink(
                target=target.strip(),
                alias=alias.strip() if pipe else None,
            )
        )
    return links
