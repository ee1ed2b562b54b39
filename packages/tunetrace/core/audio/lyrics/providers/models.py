"""Provider-neutral lyrics models and provider wire models."""

from pydantic import BaseModel, ConfigDict, Field


class ProviderLyrics(BaseModel):
    """Raw lyrics as one provider returned them.

    ``artist``/``title`` are what the provider says it matched, used to
    validate the hit against the query. ``text`` is uncleaned and may be empty.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    text: str = Field(default="", description="Plain lyrics text, uncleaned")
    artist: str = Field(default="", description="Artist name reported by the provider")
    title: str = Field(default="", description="Track title reported by the provider")
    instrumental: bool = Field(
        default=False, description="Provider flags the track as instrumental"
    )

    @property
    def usable(self) -> bool:
        """Non-instrumental with some text."""
        return not self.instrumental and bool(self.text.strip())


class LRCLibTrack(BaseModel):
    """One track record from LRCLib ``/get`` or ``/search``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    track_name: str | None = Field(default=None, alias="trackName")
    artist_name: str | None = Field(default=None, alias="artistName")
    plain_lyrics: str | None = Field(default=None, alias="plainLyrics")
    instrumental: bool | None = None

    def to_lyrics(self) -> ProviderLyrics:
        return ProviderLyrics(
            text=self.plain_lyrics or "",
            artist=self.artist_name or "",
            title=self.track_name or "",
            instrumental=bool(self.instrumental),
        )


class GeniusArtist(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None


class GeniusSongResult(BaseModel):
    """``result`` of a Genius search hit of type ``song``."""

    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    title: str | None = None
    primary_artist: GeniusArtist | None = None


class GeniusHit(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str | None = None
    result: GeniusSongResult | None = None


class GeniusSearchPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    hits: list[GeniusHit] = Field(default_factory=list)


class GeniusSearchResponse(BaseModel):
    """Body of ``GET /search``."""

    model_config = ConfigDict(extra="ignore")

    response: GeniusSearchPayload = Field(default_factory=GeniusSearchPayload)
