"""Error taxonomy for the keyword research pipeline."""

from typing import Optional


class ResearchError(Exception):
    """Base class for every error a research run can end with."""


class InvalidInputError(ResearchError, ValueError):
    """Raised when the keyword list or the city list is empty."""


class MissingCredentialError(ResearchError):
    """Raised when no usable Keywords Everywhere API key was resolved."""


class ProviderError(ResearchError):
    """Non-success response (or transport failure) from the metrics provider.

    ``reason`` is one of ``unauthorized``, ``insufficient_credit``,
    ``rate_limited`` or ``other``.
    """

    UNAUTHORIZED = "unauthorized"
    INSUFFICIENT_CREDIT = "insufficient_credit"
    RATE_LIMITED = "rate_limited"
    OTHER = "other"

    def __init__(
        self,
        message: str,
        reason: str = OTHER,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.status_code = status_code

    @classmethod
    def from_status(cls, status_code: int, message: str) -> "ProviderError":
        """Build an error whose reason is derived from the HTTP status."""
        if status_code == 401:
            reason = cls.UNAUTHORIZED
        elif status_code in (402, 403):
            reason = cls.INSUFFICIENT_CREDIT
        elif status_code == 429:
            reason = cls.RATE_LIMITED
        else:
            reason = cls.OTHER
        return cls(message, reason=reason, status_code=status_code)


class SuspiciousDataError(ResearchError):
    """The provider's first record reports an implausibly large volume."""

    def __init__(self, keyword: str, volume: int, threshold: int):
        super().__init__(
            f"Provider returned implausible volume {volume} for {keyword!r} "
            f"(threshold {threshold}); research stopped"
        )
        self.keyword = keyword
        self.volume = volume
        self.threshold = threshold


_PROVIDER_MESSAGES = {
    ProviderError.UNAUTHORIZED: "The Keywords Everywhere API key was rejected. Check the key in settings.",
    ProviderError.INSUFFICIENT_CREDIT: "The Keywords Everywhere account has no credits left or lacks access.",
    ProviderError.RATE_LIMITED: "Keywords Everywhere is rate limiting requests. Wait a minute and retry.",
}


def describe_error(exc: BaseException) -> str:
    """Return a human-readable message for any research error."""
    if isinstance(exc, InvalidInputError):
        return "Invalid research request: " + str(exc)
    if isinstance(exc, MissingCredentialError):
        return (
            "Keywords Everywhere API key is required. Set KEYWORDS_EVERYWHERE_API_KEY "
            "or store one with 'search-detective set-key'."
        )
    if isinstance(exc, SuspiciousDataError):
        return (
            f"Provider data looks fabricated ({exc.volume} searches for {exc.keyword!r}); "
            "no results were saved."
        )
    if isinstance(exc, ProviderError):
        base = _PROVIDER_MESSAGES.get(exc.reason)
        if base is None:
            base = "Keywords Everywhere request failed"
            if exc.status_code:
                base += f" (HTTP {exc.status_code})"
            base += "."
        return base + " Provider said: " + exc.message
    return str(exc)
