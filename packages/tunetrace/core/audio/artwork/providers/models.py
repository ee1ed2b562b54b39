"""Wire models for the album art providers."""

from pydantic import BaseModel, ConfigDict, Field


class CoverArtImage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    image: str | None = None
    front: bool = False
    approved: bool = True
    thumbnails: dict[str, str] = Field(default_factory=dict)


class CoverArtListing(BaseModel):
    """Body of Cover Art Archive ``GET /release/{mbid}``."""

    model_config = ConfigDict(extra="ignore")

    images: list[CoverArtImage] = Field(default_factory=list)

    def front_image_url(self) -> str | None:
        """Full-size front cover, preferring approved images."""
        fronts = [image for image in self.images if image.front and image.image]
        fronts.sort(key=lambda image: not image.approved)
        return fronts[0].image if fronts else None


class DeezerCover(BaseModel):
    """Album fields carrying cover URLs, largest first."""

    model_config = ConfigDict(extra="ignore")

    cover_xl: str | None = None
    cover_big: str | None = None
    cover: str | None = None

    @property
    def best_cover(self) -> str | None:
        return self.cover_xl or self.cover_big or self.cover


class DeezerArtist(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None


class DeezerTrack(BaseModel):
    model_config = ConfigDict(extra="ignore")

    album: DeezerCover | None = None
    artist: DeezerArtist | None = None


class DeezerAlbumSearch(BaseModel):
    """Body of ``GET /search/album``."""

    model_config = ConfigDict(extra="ignore")

    data: list[DeezerCover] = Field(default_factory=list)


class DeezerTrackSearch(BaseModel):
    """Body of ``GET /search``."""

    model_config = ConfigDict(extra="ignore")

    data: list[DeezerTrack] = Field(default_factory=list)


class AudioDBAlbum(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    album: str | None = Field(default=None, alias="strAlbum")
    artist: str | None = Field(default=None, alias="strArtist")
    thumb: str | None = Field(default=None, alias="strAlbumThumb")


class AudioDBSearch(BaseModel):
    """Body of ``searchalbum.php``; ``album`` is null when nothing matched."""

    model_config = ConfigDict(extra="ignore")

    album: list[AudioDBAlbum] | None = None
