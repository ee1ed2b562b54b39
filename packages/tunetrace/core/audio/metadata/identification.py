"""Acoustic identification stage.

Fingerprint → AcoustID → ranked candidates, with two cache layers for
file-based lookups:

1. Session cache keyed by absolute path (no hashing, no I/O)
2. Persistent cache keyed by content identity (survives renames and restarts)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path

from tunetrace.core.api.audio.acoustid import AcoustIDClient
from tunetrace.core.api.http.errors import ApiError
from tunetrace.core.audio.metadata.fingerprint import (
    DEFAULT_FPCALC_TIMEOUT_S,
    ChromaprintError,
    FpcalcResult,
    run_fpcalc,
)
from tunetrace.core.audio.models import BatchOutcome, FingerprintRecord, IdentificationCandidate
from tunetrace.core.caching.backends.memory import MemoryCache
from tunetrace.core.caching.keys import path_key
from tunetrace.core.caching.models import Hit
from tunetrace.core.caching.persistent import PersistentFingerprintCache

logger = logging.getLogger(__name__)

Fingerprinter = Callable[..., Awaitable[FpcalcResult]]


def rank_candidates(
    candidates: Iterable[IdentificationCandidate], min_score: float = 0.0
) -> list[IdentificationCandidate]:
    """Drop candidates below ``min_score`` and sort the rest, best first.

    The sort is stable, so equal scores keep provider order.
    """
    kept = [c for c in candidates if c.score >= min_score]
    kept.sort(key=lambda c: c.score, reverse=True)
    return kept


class IdentificationStage:
    """Identify recordings from Chromaprint fingerprints.

    Args:
        acoustid: AcoustID client (rate limiting and retries live in its HTTP client)
        session_cache: Path-keyed cache of fingerprint records for this run
        persistent_cache: Content-identity cache, or None for session-only runs
        min_score: Candidates scoring below this are discarded
        fpcalc_path: fpcalc binary (auto-detected when None)
        fpcalc_timeout_s: Timeout for one fpcalc run
        fingerprinter: Coroutine computing a fingerprint (defaults to ``run_fpcalc``)
        max_concurrency: Files fingerprinted at once by ``identify_files``
    """

    def __init__(
        self,
        *,
        acoustid: AcoustIDClient,
        session_cache: MemoryCache,
        persistent_cache: PersistentFingerprintCache | None = None,
        min_score: float = 0.0,
        fpcalc_path: str | None = None,
        fpcalc_timeout_s: float = DEFAULT_FPCALC_TIMEOUT_S,
        fingerprinter: Fingerprinter = run_fpcalc,
        max_concurrency: int = 4,
    ):
        self.acoustid = acoustid
        self.session_cache = session_cache
        self.persistent_cache = persistent_cache
        self.min_score = min_score
        self.fpcalc_path = fpcalc_path
        self.fpcalc_timeout_s = fpcalc_timeout_s
        self._fingerprinter = fingerprinter
        self._max_concurrency = max(1, max_concurrency)

    async def identify(self, fingerprint: str, duration_s: float) -> list[IdentificationCandidate]:
        """Look up a fingerprint upstream. Never cached.

        Raises:
            ApiError: Terminal upstream failure (including exhausted retries)
        """
        response = await self.acoustid.lookup(fingerprint=fingerprint, duration_s=duration_s)
        candidates = rank_candidates(
            (
                IdentificationCandidate(
                    external_id=result.id,
                    score=result.score,
                    recording_ids=result.recording_ids,
                )
                for result in response.results
            ),
            self.min_score,
        )
        logger.debug(
            f"AcoustID returned {len(response.results)} results, "
            f"{len(candidates)} at or above score {self.min_score}"
        )
        return candidates

    async def identify_file(self, path: str | Path) -> FingerprintRecord:
        """Identify one audio file, consulting both cache layers first.

        Returns:
            FingerprintRecord with the file's duration and ranked candidates
            (an empty candidate list is a valid, cached answer)

        Raises:
            OSError: If the file cannot be read
            ChromaprintError: If fpcalc is missing or fails
            ApiError: Terminal AcoustID failure; nothing is cached
        """
        normalized = path_key(path)

        cached = self.session_cache.get(normalized)
        if isinstance(cached, Hit):
            logger.debug(f"Fingerprint session cache hit: {normalized}")
            return cached.value

        identity: str | None = None
        if self.persistent_cache is not None:
            identity = await asyncio.to_thread(self.persistent_cache.identity_for, normalized)
            stored = self.persistent_cache.get_by_identity(identity)
            if isinstance(stored, Hit):
                logger.info(f"Fingerprint persistent cache hit: {Path(normalized).name}")
                self.session_cache.set(normalized, stored.value)
                return stored.value

        fp = await self._fingerprinter(
            normalized, timeout_s=self.fpcalc_timeout_s, fpcalc_path=self.fpcalc_path
        )
        candidates = await self.identify(fp.fingerprint, fp.duration)
        record = FingerprintRecord(duration_s=fp.duration, candidates=candidates)

        self.session_cache.set(normalized, record)
        if self.persistent_cache is not None and identity is not None:
            self.persistent_cache.set_with_identity(normalized, identity, record)

        logger.info(
            f"Identified {Path(normalized).name}: {len(candidates)} candidate(s)"
            + (f", best score {candidates[0].score:.2f}" if candidates else "")
        )
        return record

    async def identify_files(
        self, paths: Iterable[str | Path]
    ) -> list[BatchOutcome[FingerprintRecord]]:
        """Identify many files, collecting per-file failures instead of raising.

        Outcomes are returned in input order.
        """
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _one(path: str | Path) -> BatchOutcome[FingerprintRecord]:
            async with semaphore:
                try:
                    record = await self.identify_file(path)
                except (ApiError, ChromaprintError, OSError) as e:
                    logger.warning(f"Identification failed for {path}: {e}")
                    return BatchOutcome(key=path_key(path), error=e)
            return BatchOutcome(key=path_key(path), value=record)

        return list(await asyncio.gather(*(_one(p) for p in paths)))
