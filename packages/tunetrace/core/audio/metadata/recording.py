"""Recording metadata stage (MusicBrainz).

Resolves recording IDs to canonical metadata. Results are cached per
recording ID indefinitely; failures are never cached.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tunetrace.core.api.audio.musicbrainz import MusicBrainzClient
from tunetrace.core.api.http.errors import ApiError, NotFoundError
from tunetrace.core.audio.metadata.mapping import DEFAULT_MIN_TAG_COUNT, map_recording
from tunetrace.core.audio.models import BatchOutcome, RecordingMetadata
from tunetrace.core.caching.keys import recording_key
from tunetrace.core.caching.models import Hit
from tunetrace.core.caching.protocols import Cache

logger = logging.getLogger(__name__)


class MetadataStage:
    """Fetch and cache MusicBrainz recording metadata.

    Args:
        musicbrainz: MusicBrainz client (rate limiting and retries live in its HTTP client)
        cache: Metadata cache keyed by recording ID
        min_tag_count: Minimum tag votes for a genre to be kept
    """

    def __init__(
        self,
        *,
        musicbrainz: MusicBrainzClient,
        cache: Cache,
        min_tag_count: int = DEFAULT_MIN_TAG_COUNT,
    ):
        self.musicbrainz = musicbrainz
        self.cache = cache
        self.min_tag_count = min_tag_count

    async def fetch_recording(self, recording_id: str) -> RecordingMetadata:
        """Metadata for one recording ID.

        Raises:
            NotFoundError: If MusicBrainz does not know the recording
            ApiError: Other terminal failures (including exhausted retries)
        """
        key = recording_key(recording_id)

        cached = self.cache.get(key)
        if isinstance(cached, Hit):
            logger.debug(f"Metadata cache hit: {key}")
            return cached.value

        recording = await self.musicbrainz.lookup_recording(mbid=key)
        metadata = map_recording(recording, min_tag_count=self.min_tag_count)
        self.cache.set(key, metadata)
        return metadata

    async def fetch_metadata(self, recording_ids: Iterable[str]) -> RecordingMetadata | None:
        """First recording in ``recording_ids`` that resolves.

        IDs are tried in the given order. A missing recording moves on to the
        next ID; so does any other failure, but if no ID resolves and at least
        one failure was not a 404, the last such failure is raised.

        Returns:
            Metadata of the first resolvable recording, or None when every ID
            is unknown (or none were given)

        Raises:
            ApiError: Last non-404 failure when nothing resolved
        """
        last_error: ApiError | None = None

        for recording_id in dict.fromkeys(recording_ids):
            try:
                metadata = await self.fetch_recording(recording_id)
            except NotFoundError:
                logger.info(f"MusicBrainz has no recording {recording_id}; trying next candidate")
                continue
            except ApiError as e:
                logger.warning(f"Metadata lookup failed for {recording_id}: {e}")
                last_error = e
                continue
            return metadata

        if last_error is not None:
            raise last_error
        return None

    async def fetch_recordings(
        self, recording_ids: Iterable[str]
    ) -> list[BatchOutcome[RecordingMetadata]]:
        """Fetch several recordings, collecting failures per ID.

        A 404 is reported as an outcome with no value and no error.
        """
        outcomes: list[BatchOutcome[RecordingMetadata]] = []
        for recording_id in recording_ids:
            try:
                metadata = await self.fetch_recording(recording_id)
            except NotFoundError:
                outcomes.append(BatchOutcome(key=recording_id))
            except ApiError as e:
                logger.warning(f"Metadata lookup failed for {recording_id}: {e}")
                outcomes.append(BatchOutcome(key=recording_id, error=e))
            else:
                outcomes.append(BatchOutcome(key=recording_id, value=metadata))
        return outcomes
