"""Lyrics text cleanup and match validation."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

logger = logging.getLogger(__name__)

# Whole lines matching any of these are dropped (case-insensitive, per line).
DEFAULT_BOILERPLATE_PATTERNS: tuple[str, ...] = (
    r"^\s*\*{3,}.*$",
    r"^\s*-{3,}.*$",
    r"^\s*copyright\s*©?\s*\d{4}.*$",
    r"^\s*all rights reserved\.?\s*$",
    r"^\s*lyrics licensed &? provided by.*$",
    r"^\s*lyrics provided by.*$",
    r"^\s*lyrics powered by.*$",
    r"^\s*\(?c\)?\s*\d{4}.*$",
    r"^\s*www\..*$",
    r"^\s*https?://.*$",
    r"^\s*advertisement\s*$",
    r"^\s*sponsored\s*$",
)

_BLANK_RUN_RE = re.compile(r"\n{3,}")


class LyricsCleaner:
    """Normalizes raw provider lyrics.

    Steps: unify line endings, drop boilerplate lines, strip trailing
    whitespace per line, collapse runs of blank lines to one, trim.

    Args:
        patterns: Boilerplate line regexes (defaults to ``DEFAULT_BOILERPLATE_PATTERNS``)

    Raises:
        ValueError: If a pattern is not a valid regular expression
    """

    def __init__(self, patterns: Iterable[str] | None = None):
        sources = DEFAULT_BOILERPLATE_PATTERNS if patterns is None else tuple(patterns)
        try:
            self.patterns = [re.compile(p, re.IGNORECASE | re.MULTILINE) for p in sources]
        except re.error as e:
            raise ValueError(f"Invalid boilerplate pattern: {e}") from e

    def clean(self, raw: str | None) -> str:
        if not raw or not raw.strip():
            return ""

        lines = raw.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        kept = [
            line.rstrip()
            for line in lines
            if not any(pattern.search(line) for pattern in self.patterns)
        ]
        text = _BLANK_RUN_RE.sub("\n\n", "\n".join(kept))
        return text.strip()


_default_cleaner: LyricsCleaner | None = None


def clean_lyrics(raw: str | None) -> str:
    """Clean lyrics with the built-in boilerplate patterns.

    Example:
        >>> clean_lyrics("Line one\\r\\n\\r\\n\\r\\n\\r\\nLyrics provided by X\\r\\nLine two  ")
        'Line one\\n\\nLine two'
    """
    global _default_cleaner
    if _default_cleaner is None:
        _default_cleaner = LyricsCleaner()
    return _default_cleaner.clean(raw)


def validate_lyrics_match(
    query_artist: str,
    query_title: str,
    response_artist: str | None,
    response_title: str | None,
) -> bool:
    """Check a provider's reported artist/title against the query.

    Case-insensitive substring containment in either direction; a field the
    provider left empty counts as matching. With no reported metadata at all
    the result is accepted.
    """
    if not response_artist and not response_title:
        return True

    q_artist = query_artist.strip().lower()
    q_title = query_title.strip().lower()
    r_artist = (response_artist or "").strip().lower()
    r_title = (response_title or "").strip().lower()

    artist_match = not r_artist or r_artist in q_artist or q_artist in r_artist
    title_match = not r_title or r_title in q_title or q_title in r_title
    return artist_match and title_match
