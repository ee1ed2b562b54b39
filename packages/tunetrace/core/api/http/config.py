from __future__ import annotations

import httpx
from pydantic import BaseModel, Field, field_validator

DEFAULT_USER_AGENT = "tunetrace/1.0.0 (https://github.com/tunetrace/tunetrace)"


class HttpClientConfig(BaseModel):
    """Configuration for one upstream service's AsyncApiClient.

    Args:
        service: Upstream service name, carried into logs and errors
        base_url: Base URL for all requests (e.g. "https://musicbrainz.org/ws/2")
        timeout: HTTPX timeout configuration
        limits: Connection pool limits
        follow_redirects: Whether to follow HTTP redirects
        headers: Default headers applied to all requests
        params: Default query parameters applied to all requests
        user_agent: Descriptive client identifier sent on every request
        redact_headers: Headers to redact in logs (case-insensitive)
        max_response_body_for_error: Max response bytes to include in error messages
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    service: str
    base_url: str
    timeout: httpx.Timeout = Field(default_factory=lambda: httpx.Timeout(10.0, connect=5.0))
    limits: httpx.Limits = Field(
        default_factory=lambda: httpx.Limits(max_keepalive_connections=10, max_connections=20)
    )
    follow_redirects: bool = True
    headers: dict[str, str] = Field(default_factory=dict)
    params: dict[str, str] = Field(default_factory=dict)
    user_agent: str = DEFAULT_USER_AGENT
    redact_headers: tuple[str, ...] = (
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
    )
    redact_params: tuple[str, ...] = ("client",)
    max_response_body_for_error: int = 4096

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base_url is a valid URL."""
        if not v:
            raise ValueError("base_url cannot be empty")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    @classmethod
    def for_service(
        cls,
        service: str,
        base_url: str,
        *,
        timeout_s: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> HttpClientConfig:
        """Build a config with a flat request timeout.

        Args:
            service: Upstream service name
            base_url: Service base URL
            timeout_s: Request timeout in seconds
            user_agent: Client identifier string

        Returns:
            HttpClientConfig instance
        """
        return cls(
            service=service,
            base_url=base_url,
            timeout=httpx.Timeout(timeout_s, connect=min(timeout_s, 5.0)),
            user_agent=user_agent,
        )
