"""
Provider error classification.

Every vendor SDK raises its own exception types. Adapters wrap them into a
single ProviderError tagged with an ErrorKind, and the router decides
whether to keep going from the kind alone.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure classes that drive provider fallback."""
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    UNKNOWN = "unknown"


_STATUS_KINDS = {
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    429: ErrorKind.RATE_LIMITED,
}

# Checked in order against the lower-cased exception text
_MESSAGE_HINTS = (
    (("error code: 429", "quota", "rate limit", "rate_limit", "resource exhausted"), ErrorKind.RATE_LIMITED),
    (("error code: 401", "unauthorized", "invalid api key", "incorrect api key", "api key not valid", "unauthenticated"), ErrorKind.UNAUTHORIZED),
    (("error code: 403", "forbidden", "permission denied", "permission_denied"), ErrorKind.FORBIDDEN),
    (("error code: 404", "not found", "does not exist", "model_not_found"), ErrorKind.NOT_FOUND),
)


class ProviderError(Exception):
    """
    A single candidate failed to produce a completion.

    Attributes:
        kind: Classified failure class
        vendor_status: HTTP-like status reported by the vendor, if any
        provider: Vendor name of the failing candidate
        model: Model identifier of the failing candidate
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        vendor_status: Optional[int] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.vendor_status = vendor_status
        self.provider = provider
        self.model = model

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        provider: Optional[str] = None,
        model: Optional[str] = None,
    ) -> "ProviderError":
        """Wrap any vendor exception, classifying it."""
        if isinstance(exc, ProviderError):
            return exc
        return cls(
            message=f"{type(exc).__name__}: {exc}",
            kind=classify_error(exc),
            vendor_status=extract_status(exc),
            provider=provider,
            model=model,
        )

    def __str__(self) -> str:
        where = f"{self.provider}/{self.model}" if self.provider else "provider"
        return f"{where} failed ({self.kind.value}): {self.message}"


def extract_status(exc: Exception) -> Optional[int]:
    """
    Pull an HTTP-like status code off a vendor exception.

    openai, anthropic and groq errors expose ``status_code``; google api_core
    errors expose an integer ``code``.
    """
    for attr in ("status_code", "code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def classify_error(exc: Exception) -> ErrorKind:
    """
    Classify a vendor exception into an ErrorKind.

    A status code decides alone when present (unmapped codes are UNKNOWN);
    only status-less exceptions are matched against known phrases.
    """
    if isinstance(exc, ProviderError):
        return exc.kind

    status = extract_status(exc)
    if status is not None:
        return _STATUS_KINDS.get(status, ErrorKind.UNKNOWN)

    if isinstance(exc, TimeoutError):
        return ErrorKind.UNKNOWN

    text = str(exc).lower()
    for phrases, kind in _MESSAGE_HINTS:
        if any(phrase in text for phrase in phrases):
            return kind

    return ErrorKind.UNKNOWN
