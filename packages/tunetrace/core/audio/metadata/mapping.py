"""MusicBrainz recording → RecordingMetadata mapping rules.

Pure functions; no I/O. Release selection, year parsing and genre
normalization all live here so they can be tested without a client.
"""

import logging
import re

from tunetrace.core.api.audio.models import (
    MusicBrainzArtistCredit,
    MusicBrainzRecording,
    MusicBrainzRelease,
    MusicBrainzTag,
)
from tunetrace.core.audio.models import UNKNOWN_ARTIST, RecordingMetadata

logger = logging.getLogger(__name__)

DEFAULT_MIN_TAG_COUNT = 1

_YEAR_RE = re.compile(r"^(\d{4})(?:-\d{2}(?:-\d{2})?)?$")
_GENRE_SPLIT_RE = re.compile(r"(\s+|-|&)")


def parse_artist_credits(credits: list[MusicBrainzArtistCredit]) -> tuple[str, list[str]]:
    """Split an artist credit into main artist and featured artists.

    The first credited name is the artist; every later name is featured.

    Returns:
        ``(artist, featured_artists)``; artist is ``UNKNOWN_ARTIST`` when nobody is credited
    """
    names = [credit.name.strip() for credit in credits if credit.name and credit.name.strip()]
    if not names:
        return UNKNOWN_ARTIST, []
    return names[0], names[1:]


def _release_rank(release: MusicBrainzRelease) -> tuple[int, int, int, str]:
    return (
        0 if release.status == "Official" else 1,
        0 if release.primary_type == "Album" else 1,
        0 if release.date else 1,
        release.date or "",
    )


def select_best_release(releases: list[MusicBrainzRelease]) -> MusicBrainzRelease | None:
    """Pick the release that best represents a recording.

    Preference order: Official status, then Album type, then having a date,
    then the earliest date. Ties keep the provider's order.

    Example:
        >>> best = select_best_release(recording.releases)
        >>> best.title if best else None
        'A Night at the Opera'
    """
    if not releases:
        return None
    return min(releases, key=_release_rank)


def extract_year(date: str | None) -> int | None:
    """Year from a ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD`` date string.

    Returns None for missing dates and any other shape.
    """
    if not date:
        return None
    match = _YEAR_RE.match(date)
    if match is None:
        return None
    year = int(match.group(1))
    if year < 1000 or year > 9999:
        return None
    return year


def capitalize_genre(genre: str) -> str:
    """Capitalize every word of a genre name.

    Hyphen and ampersand segments are capitalized independently; the rest of
    each word is left untouched.

    Example:
        >>> capitalize_genre("post-punk")
        'Post-Punk'
        >>> capitalize_genre("r&b")
        'R&B'
    """
    parts = _GENRE_SPLIT_RE.split(genre)
    return "".join(
        part if part in ("-", "&") or part.isspace() else part[:1].upper() + part[1:]
        for part in parts
    )


def extract_genres(
    tags: list[MusicBrainzTag], min_count: int = DEFAULT_MIN_TAG_COUNT
) -> list[str]:
    """Genres from folksonomy tags, most-voted first.

    Tags with fewer than ``min_count`` votes are dropped.
    """
    kept = [tag for tag in tags if tag.count >= min_count]
    kept.sort(key=lambda tag: tag.count, reverse=True)
    return [capitalize_genre(tag.name) for tag in kept]


def map_recording(
    recording: MusicBrainzRecording, *, min_tag_count: int = DEFAULT_MIN_TAG_COUNT
) -> RecordingMetadata:
    """Build canonical metadata from a MusicBrainz recording."""
    artist, featured = parse_artist_credits(recording.artist_credits)
    release = select_best_release(recording.releases)

    metadata = RecordingMetadata(
        recording_id=recording.id,
        release_id=release.id if release else None,
        title=recording.title,
        artist=artist,
        featured_artists=featured,
        album=release.title if release else None,
        year=extract_year(release.date) if release else None,
        genres=extract_genres(recording.tags, min_tag_count),
    )
    logger.debug(
        f"Mapped recording {recording.id}: '{metadata.title}' by {metadata.artist} "
        f"({metadata.album or 'no release'}, {metadata.year or 'no year'})"
    )
    return metadata
