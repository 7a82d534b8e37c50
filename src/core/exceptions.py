"""
OratoriaFlow exception hierarchy.

All application-specific exceptions inherit from OratoriaError,
enabling centralized error handling in the API middleware layer.
"""

from datetime import UTC, datetime


class OratoriaError(Exception):
    """Base exception for all OratoriaFlow errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "ORATORIA_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class ProviderError(OratoriaError):
    """Raised when a transcription/analysis provider call fails."""

    def __init__(self, provider: str, detail: str = "Provider call failed") -> None:
        self.provider = provider
        super().__init__(
            detail=f"{provider}: {detail}",
            code="PROVIDER_ERROR",
            status_code=502,
        )


class ProviderNotConfiguredError(ProviderError):
    """Raised when a provider is attempted without its credentials."""

    def __init__(self, provider: str) -> None:
        super().__init__(provider, "provider is not configured")
        self.code = "PROVIDER_NOT_CONFIGURED"


class ProviderResponseError(ProviderError):
    """Raised when a provider answers with an unusable payload."""

    def __init__(self, provider: str, detail: str = "malformed response") -> None:
        super().__init__(provider, detail)
        self.code = "PROVIDER_BAD_RESPONSE"


class UnknownProviderError(OratoriaError):
    """Raised by the provider factory for an unregistered name."""

    def __init__(self, name: str) -> None:
        super().__init__(
            detail=f"Unknown analysis provider: {name}",
            code="UNKNOWN_PROVIDER",
            status_code=400,
        )


# ---------------------------------------------------------------------------
# Recorder / screen flow
# ---------------------------------------------------------------------------


class RecorderError(OratoriaError):
    """Base class for recorder control errors."""


class InvalidRecorderStateError(RecorderError):
    """Raised when a recorder control is used in the wrong state."""

    def __init__(self, action: str, state: str) -> None:
        super().__init__(
            detail=f"Cannot {action} while recorder is {state}",
            code="INVALID_RECORDER_STATE",
            status_code=409,
        )


class InvalidTransitionError(OratoriaError):
    """Raised when a screen-flow event is not valid for the current screen."""

    def __init__(self, state: str, event: str) -> None:
        super().__init__(
            detail=f"Event '{event}' is not allowed on screen '{state}'",
            code="INVALID_TRANSITION",
            status_code=409,
        )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class UserNotFoundError(OratoriaError):
    """Raised when a user ID or email does not exist."""

    def __init__(self, user_ref: int | str) -> None:
        super().__init__(
            detail=f"User not found: {user_ref}",
            code="USER_NOT_FOUND",
            status_code=404,
        )


class UserAlreadyExistsError(OratoriaError):
    """Raised when registering an email that is already taken."""

    def __init__(self, email: str) -> None:
        super().__init__(
            detail=f"User already exists: {email}",
            code="USER_ALREADY_EXISTS",
            status_code=409,
        )


class SessionNotFoundError(OratoriaError):
    """Raised when a practice session ID does not exist."""

    def __init__(self, session_id: int | str) -> None:
        super().__init__(
            detail=f"Practice session not found: {session_id}",
            code="SESSION_NOT_FOUND",
            status_code=404,
        )


class AnalysisNotFoundError(OratoriaError):
    """Raised when a session has no stored analysis result."""

    def __init__(self, session_id: int | str) -> None:
        super().__init__(
            detail=f"No analysis stored for session: {session_id}",
            code="ANALYSIS_NOT_FOUND",
            status_code=404,
        )


class InvalidFeedbackError(OratoriaError):
    """Raised when a feedback rating is outside 1-5."""

    def __init__(self, rating: int) -> None:
        super().__init__(
            detail=f"Rating must be between 1 and 5, got {rating}",
            code="INVALID_FEEDBACK",
            status_code=422,
        )


class FreeTierLimitError(OratoriaError):
    """Raised when a free user exceeds the weekly practice limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            detail=f"Free plan allows {limit} analyses per week",
            code="FREE_TIER_LIMIT",
            status_code=429,
        )


class PersistenceError(OratoriaError):
    """Raised when the database rejects an operation."""

    def __init__(self, detail: str = "Database operation failed") -> None:
        super().__init__(detail=detail, code="PERSISTENCE_ERROR", status_code=503)
