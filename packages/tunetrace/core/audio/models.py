"""Domain models produced by the resolution stages.

These are the values stored in the caches and handed to consumers of the
pipeline (tag writers, renamers, UIs).
"""

from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_ARTIST = "Unknown Artist"

V = TypeVar("V")


class IdentificationCandidate(BaseModel):
    """One acoustic identification match.

    Lists of candidates are kept sorted by score, highest first.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    external_id: str = Field(description="AcoustID track identifier")
    score: float = Field(ge=0.0, le=1.0, description="Match confidence score")
    recording_ids: list[str] = Field(
        default_factory=list, description="MusicBrainz recording IDs, provider order, no repeats"
    )

    @field_validator("recording_ids")
    @classmethod
    def dedupe_recording_ids(cls, v: list[str]) -> list[str]:
        """Drop repeated IDs, keeping first occurrence order."""
        return list(dict.fromkeys(v))


class FingerprintRecord(BaseModel):
    """Cached outcome of identifying one file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    duration_s: float | None = Field(default=None, ge=0.0, description="Audio duration (seconds)")
    candidates: list[IdentificationCandidate] = Field(default_factory=list)


class RecordingMetadata(BaseModel):
    """Canonical metadata for one recording.

    ``title`` and ``artist`` are always present; ``artist`` falls back to
    ``UNKNOWN_ARTIST`` when the provider credits nobody.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    recording_id: str
    release_id: str | None = None
    title: str
    artist: str = Field(default=UNKNOWN_ARTIST, min_length=1)
    featured_artists: list[str] = Field(default_factory=list)
    album: str | None = None
    year: int | None = Field(default=None, ge=1000, le=9999)
    genres: list[str] = Field(default_factory=list)


class LyricsSource(str, Enum):
    """Lyrics providers, in fallback order."""

    LRCLIB = "lrclib"
    CHARTLYRICS = "chartlyrics"
    GENIUS = "genius"


class LyricsResult(BaseModel):
    """Cleaned lyrics text and where it came from.

    ``validated`` is False when the provider's own artist/title did not
    match the query; the text is still returned.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    text: str = Field(min_length=1)
    source: LyricsSource
    validated: bool


class AlbumArtSource(str, Enum):
    """Album art providers, in fallback order."""

    COVER_ART_ARCHIVE = "coverartarchive"
    DEEZER = "deezer"
    AUDIODB = "audiodb"


class AlbumArt(BaseModel):
    """Location of a front cover image.

    ``release_id`` is the MusicBrainz release the cover belongs to, when the
    provider knows it (Cover Art Archive hits only).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(min_length=1, description="Direct image URL")
    source: AlbumArtSource
    release_id: str | None = None


class AlbumArtImage(BaseModel):
    """Downloaded cover image bytes."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = "image/jpeg"


class BatchOutcome(BaseModel, Generic[V]):
    """Result of one item in a batch call.

    Exactly one of ``value`` and ``error`` describes the outcome; a None
    ``value`` with no error means the item resolved to "nothing found".
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: str
    value: V | None = None
    error: Exception | None = Field(default=None, exclude=True)

    @property
    def ok(self) -> bool:
        return self.error is None
