"""TheAudioDB client (async).

Album search on the free public tier; the API key is part of the base URL.

API Docs: https://www.theaudiodb.com/free_music_api
"""

import logging
from typing import Any

from pydantic import ValidationError

from tunetrace.core.api.http.errors import NotFoundError, malformed_response
from tunetrace.core.audio.artwork.providers.models import AudioDBSearch

logger = logging.getLogger(__name__)


class AudioDBClient:
    """TheAudioDB client for album thumbnails.

    Args:
        http_client: AsyncApiClient configured for TheAudioDB
    """

    BASE_URL = "https://www.theaudiodb.com/api/v1/json/2"

    def __init__(self, *, http_client: Any):
        self.http_client = http_client

    async def find_cover(self, *, artist: str, album: str | None) -> str | None:
        """Thumbnail URL of the first album hit, or None.

        Raises:
            DecodeError: If the body has the wrong shape
            ApiError: Any other failure except 404
        """
        if not artist or not album:
            return None

        try:
            data = await self.http_client.get_json(
                "/searchalbum.php", params={"s": artist, "a": album}
            )
        except NotFoundError:
            return None

        try:
            albums = AudioDBSearch.model_validate(data or {}).album or []
        except ValidationError as e:
            raise malformed_response("audiodb", "/searchalbum.php", e) from e

        logger.debug(f"AudioDB returned {len(albums)} albums for '{artist} - {album}'")
        return next((a.thumb for a in albums if a.thumb), None)
