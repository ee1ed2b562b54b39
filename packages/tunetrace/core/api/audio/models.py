"""Wire models for the AcoustID and MusicBrainz APIs.

These mirror the parts of the upstream JSON that the resolution stages read.
Domain-facing types live in ``tunetrace.core.audio.models``.
"""

from pydantic import BaseModel, ConfigDict, Field


class AcoustIDResult(BaseModel):
    """Single fingerprint match from an AcoustID lookup."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(description="AcoustID track identifier")
    score: float = Field(ge=0.0, le=1.0, description="Match confidence score")
    recording_ids: list[str] = Field(
        default_factory=list, description="MusicBrainz recording IDs, in provider order"
    )


class AcoustIDResponse(BaseModel):
    """AcoustID API response.

    Response from AcoustID fingerprint lookup endpoint.
    """

    model_config = ConfigDict(extra="ignore")  # Allow extra fields from API

    status: str = Field(description="Response status ('ok' or 'error')")
    results: list[AcoustIDResult] = Field(default_factory=list, description="Fingerprint matches")
    error: str | None = Field(default=None, description="Error message if status='error'")


class MusicBrainzArtistCredit(BaseModel):
    """One entry of a recording's artist credit."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(description="Credited artist name")
    artist_id: str | None = Field(default=None, description="MusicBrainz artist ID")
    joinphrase: str = Field(default="", description="Separator to the next credit")


class MusicBrainzTag(BaseModel):
    """Folksonomy tag with its vote count."""

    model_config = ConfigDict(extra="forbid")

    name: str
    count: int = 0


class MusicBrainzRelease(BaseModel):
    """MusicBrainz release (album) information."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(description="MusicBrainz release ID")
    title: str = Field(description="Release title (album name)")
    status: str | None = Field(default=None, description="Release status (Official, Bootleg, ...)")
    primary_type: str | None = Field(
        default=None, description="Release-group primary type (Album, Single, ...)"
    )
    date: str | None = Field(default=None, description="Release date (YYYY, YYYY-MM or YYYY-MM-DD)")
    country: str | None = Field(default=None, description="Release country code")


class MusicBrainzRecording(BaseModel):
    """MusicBrainz recording information.

    Response from MusicBrainz recording lookup by MBID.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(description="MusicBrainz recording ID")
    title: str = Field(description="Recording title")
    length_ms: int | None = Field(default=None, gt=0, description="Length in milliseconds")

    artist_credits: list[MusicBrainzArtistCredit] = Field(
        default_factory=list, description="Artist credit, primary artist first"
    )
    releases: list[MusicBrainzRelease] = Field(
        default_factory=list, description="Releases containing this recording"
    )
    tags: list[MusicBrainzTag] = Field(default_factory=list, description="Genre/style tags")


class MusicBrainzReleaseMatch(BaseModel):
    """One hit of a MusicBrainz release search, with its relevance score."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="MusicBrainz release ID")
    title: str = ""
    score: int = Field(default=0, ge=0, le=100, description="Search relevance (0-100)")
    status: str | None = None
    primary_type: str | None = None
