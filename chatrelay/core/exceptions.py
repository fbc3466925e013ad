"""
Custom Exceptions - Application-specific error classes.

Every error that can reach the HTTP layer derives from ChatRelayException:
- Each exception has a status code and error code
- Used by the API layer for consistent error responses
- Vendor error detail is kept on the exception for logging, never rendered
"""
from typing import Optional


class ChatRelayException(Exception):
    """
    Base exception for all chatrelay errors.

    Subclass this for specific error types.
    """
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        """Convert to error response dict."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }


class InvalidRequestError(ChatRelayException):
    """Raised when the inbound chat request has the wrong shape."""
    status_code = 400
    error_code = "invalid_request"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details=f"field={field}" if field else None)
        self.field = field


class RateLimitExceeded(ChatRelayException):
    """Raised when a client exceeds the rate limit."""
    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(self, retry_after: int = 60):
        super().__init__(
            message=f"Rate limit exceeded. Please wait {retry_after} seconds.",
            details=f"retry_after={retry_after}"
        )
        self.retry_after = retry_after


class ConversationNotFoundError(ChatRelayException):
    """Raised when a conversation id does not exist."""
    status_code = 404
    error_code = "conversation_not_found"

    def __init__(self, conversation_id: str):
        super().__init__(
            message="Conversation not found",
            details=f"conversation_id={conversation_id}"
        )
        self.conversation_id = conversation_id


class ConversationAccessError(ChatRelayException):
    """Raised when a conversation belongs to a different owner."""
    status_code = 403
    error_code = "conversation_forbidden"

    def __init__(self, conversation_id: str):
        super().__init__(
            message="Unauthorized access to conversation",
            details=f"conversation_id={conversation_id}"
        )
        self.conversation_id = conversation_id


class StoreError(ChatRelayException):
    """Raised when the conversation store cannot complete an operation."""
    status_code = 500
    error_code = "store_error"

    def __init__(self, message: str = "Conversation store operation failed"):
        super().__init__(message)


class ProviderUnavailableError(ChatRelayException):
    """
    Raised when no provider candidate produced a completion.

    The message is deliberately generic; the last vendor error is kept on
    ``last_error`` for logging.
    """
    status_code = 500
    error_code = "provider_unavailable"

    def __init__(
        self,
        message: str = "Failed to get AI response",
        last_error: Optional[Exception] = None,
        attempts: int = 0,
    ):
        super().__init__(message)
        self.last_error = last_error
        self.attempts = attempts


class ProviderAuthenticationError(ProviderUnavailableError):
    """Raised when a candidate fails with a credential error; routing stops."""
    error_code = "provider_auth_failed"
