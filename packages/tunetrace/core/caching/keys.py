"""Canonical cache key forms."""

from __future__ import annotations

import os
from pathlib import Path

LYRICS_KEY_SEPARATOR = "|"

LyricsKey = tuple[str, str]


def path_key(path: str | Path) -> str:
    """Absolute form of a file path (symlinks are not resolved)."""
    return os.path.abspath(os.fspath(path))


def recording_key(recording_id: str) -> str:
    return recording_id.strip()


def make_lyrics_key(artist: str, title: str) -> str:
    """Normalized ``artist|title`` key.

    Example:
        >>> make_lyrics_key("  Queen ", "Bohemian Rhapsody")
        'queen|bohemian rhapsody'
    """
    return f"{artist.strip().lower()}{LYRICS_KEY_SEPARATOR}{title.strip().lower()}"


def lyrics_key(key: LyricsKey) -> str:
    artist, title = key
    return make_lyrics_key(artist, title)


AlbumArtKey = tuple[str | None, str, str | None, str]


def make_album_art_key(
    release_id: str | None, artist: str, album: str | None, title: str
) -> str:
    """Release ID when known, otherwise normalized ``artist|album``.

    Without an album name the track title stands in for it.

    Example:
        >>> make_album_art_key(None, "Queen", "A Night at the Opera", "Love of My Life")
        'queen|a night at the opera'
    """
    if release_id and release_id.strip():
        return release_id.strip()
    name = album if album and album.strip() else title
    return make_lyrics_key(artist, name)


def album_art_key(key: AlbumArtKey) -> str:
    return make_album_art_key(*key)
