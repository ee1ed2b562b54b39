"""Cover Art Archive client (async).

Front covers of MusicBrainz releases, looked up by release MBID.

API Docs: https://musicbrainz.org/doc/Cover_Art_Archive/API
"""

import logging
from typing import Any

from pydantic import ValidationError

from tunetrace.core.api.http.errors import NotFoundError, malformed_response
from tunetrace.core.audio.artwork.providers.models import CoverArtListing

logger = logging.getLogger(__name__)


class CoverArtArchiveClient:
    """Cover Art Archive client.

    Args:
        http_client: AsyncApiClient configured for the Cover Art Archive
    """

    BASE_URL = "https://coverartarchive.org"

    def __init__(self, *, http_client: Any):
        self.http_client = http_client

    async def front_cover(self, release_id: str) -> str | None:
        """URL of the release's front cover, or None if it has none.

        Raises:
            DecodeError: If the image listing has the wrong shape
            ApiError: Any other failure except 404
        """
        if not release_id:
            return None

        path = f"/release/{release_id}"
        try:
            data = await self.http_client.get_json(path)
        except NotFoundError:
            logger.debug(f"Cover Art Archive has no images for release {release_id}")
            return None

        try:
            listing = CoverArtListing.model_validate(data or {})
        except ValidationError as e:
            raise malformed_response("coverartarchive", path, e) from e
        return listing.front_image_url()
