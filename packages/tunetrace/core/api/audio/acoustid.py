"""AcoustID API client.

Client for the AcoustID audio fingerprinting service.
Uses the framework async HTTP client for rate limiting and retries.

AcoustID Rate Limiting:
- Limit: 3 requests per second per application key
- See: https://acoustid.org/webservice
"""

import logging
from typing import Any

from tunetrace.core.api.audio.models import AcoustIDResponse, AcoustIDResult
from tunetrace.core.api.http.errors import DecodeError

logger = logging.getLogger(__name__)


class AcoustIDError(DecodeError):
    """AcoustID answered, but with an error status or an unreadable body."""


class AcoustIDClient:
    """AcoustID API client (async).

    Args:
        api_key: AcoustID application key (from https://acoustid.org/new-application)
        http_client: AsyncApiClient configured for the AcoustID service

    Example:
        >>> client = AcoustIDClient(api_key="...", http_client=http)
        >>> response = await client.lookup(fingerprint="AQAD...", duration_s=180.5)
        >>> for result in response.results:
        ...     print(result.id, result.score, result.recording_ids)
    """

    API_BASE_URL = "https://api.acoustid.org/v2"
    LOOKUP_PATH = "/lookup"

    def __init__(self, api_key: str | None, http_client: Any):
        """Initialize AcoustID client.

        Raises:
            ValueError: If api_key is empty or None
        """
        if not api_key:
            raise ValueError("AcoustID API key is required")

        self.api_key = api_key
        self.http_client = http_client

    async def lookup(self, *, fingerprint: str, duration_s: float) -> AcoustIDResponse:
        """Look up a Chromaprint fingerprint.

        Args:
            fingerprint: Chromaprint fingerprint string
            duration_s: Audio duration in seconds

        Returns:
            AcoustIDResponse with matches in provider order

        Raises:
            AcoustIDError: If AcoustID reports an error or the body is malformed
            ApiError: Transport/HTTP failures from the HTTP client
        """
        # AcoustID wants whole seconds
        duration_int = int(round(duration_s))

        params = {
            "client": self.api_key,
            "fingerprint": fingerprint,
            "duration": duration_int,
            "meta": "recordings",
            "format": "json",
        }

        logger.debug(f"AcoustID lookup: duration={duration_int}s")
        data = await self.http_client.get_json(self.LOOKUP_PATH, params=params)
        return self._parse_response(data)

    def _error(self, message: str) -> AcoustIDError:
        return AcoustIDError(
            message=message,
            method="GET",
            url=f"{self.API_BASE_URL}{self.LOOKUP_PATH}",
            service="acoustid",
        )

    def _parse_response(self, data: Any) -> AcoustIDResponse:
        """Parse AcoustID API response.

        Args:
            data: Raw API response

        Returns:
            Parsed AcoustIDResponse

        Raises:
            AcoustIDError: If response is invalid or contains error
        """
        if not isinstance(data, dict) or "status" not in data:
            raise self._error("Invalid response from AcoustID: missing 'status' field")

        status = data["status"]

        if status != "ok":
            error_msg = None
            if isinstance(data.get("error"), dict):
                error_msg = data["error"].get("message")
            elif isinstance(data.get("error"), str):
                error_msg = data["error"]
            if error_msg:
                raise self._error(f"AcoustID API error: {error_msg}")
            raise self._error(f"AcoustID API returned status: {status}")

        results: list[AcoustIDResult] = []
        for item in data.get("results") or []:
            acoustid_id = item.get("id")
            score = item.get("score")

            if acoustid_id is None or score is None:
                logger.warning(f"Skipping AcoustID result with missing id/score: {item}")
                continue

            recording_ids: list[str] = []
            for recording in item.get("recordings") or []:
                rid = recording.get("id") if isinstance(recording, dict) else None
                if rid and rid not in recording_ids:
                    recording_ids.append(rid)

            results.append(
                AcoustIDResult(id=acoustid_id, score=float(score), recording_ids=recording_ids)
            )

        return AcoustIDResponse(status=status, results=results)
