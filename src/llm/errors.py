# src/llm/errors.py — v2
"""Classified provider errors.

Every failure that leaves a provider adapter is one of these classes.
The ``retryable`` flag is what the retry policy consults; adapters never
decide on retries themselves.
"""

from __future__ import annotations


class ProviderError(Exception):
    """Base class for all classified provider failures."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)

    @property
    def kind(self) -> str:
        """Short error kind used in logs and reports."""
        return type(self).__name__


class AuthError(ProviderError):
    """Credentials rejected (401/403). Never retried."""


class RateLimitError(ProviderError):
    """Backend throttled the request (429).

    ``retry_after_s`` is the server's ``Retry-After`` hint and is
    informational only. The retry policy always waits its own exponential backoff.
    """

    retryable = True

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        status_code: int | None = 429,
        retry_after_s: float | None = None,
    ) -> None:
        super().__init__(message, provider=provider, status_code=status_code)
        self.retry_after_s = retry_after_s


class ServerError(ProviderError):
    """Backend failed (5xx)."""

    retryable = True


class TransportError(ProviderError):
    """Timeout or connection failure before a usable response arrived."""

    retryable = True


class MalformedResponseError(ProviderError):
    """2xx response whose body does not match the backend's schema."""


class InvalidRequestError(ProviderError):
    """Backend rejected the request itself (400, 404, 422, ...)."""


_MAX_DETAIL_CHARS = 400


def classify_status(
    status_code: int,
    body: str = "",
    provider: str = "unknown",
    retry_after: str | None = None,
) -> ProviderError:
    """Map a non-success HTTP status to the matching error class.

    Args:
        status_code: HTTP status returned by the backend.
        body: Response body, used as error detail (truncated).
        provider: Provider name for attribution.
        retry_after: Raw ``Retry-After`` header value, if any.

    Returns:
        An (unraised) ProviderError instance.
    """
    detail = body.strip()[:_MAX_DETAIL_CHARS] or "no response body"
    message = f"{provider} API request failed ({status_code}): {detail}"

    if status_code in (401, 403):
        return AuthError(message, provider=provider, status_code=status_code)
    if status_code == 429:
        return RateLimitError(
            message,
            provider=provider,
            status_code=status_code,
            retry_after_s=_parse_retry_after(retry_after),
        )
    if status_code == 408:
        return TransportError(message, provider=provider, status_code=status_code)
    if status_code >= 500:
        return ServerError(message, provider=provider, status_code=status_code)
    return InvalidRequestError(message, provider=provider, status_code=status_code)


def _parse_retry_after(value: str | None) -> float | None:
    """Parse a numeric Retry-After header. HTTP-date values are ignored."""
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None
