"""
Idea Saver error taxonomy.

Every error that reaches a user boundary carries a stable ``{message, details}``
shape. The API layer turns these into JSON responses; the client core raises
them to its callers.
"""

from typing import Any


class IdeaSaverError(Exception):
    """Base exception for all Idea Saver errors."""

    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred", details: Any = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "details": self.details}


class ConfigurationError(IdeaSaverError):
    """Backend credentials or service configuration are missing."""


class ValidationError(IdeaSaverError):
    """Input rejected locally before any network call."""

    status_code = 400


class AuthenticationError(IdeaSaverError):
    """Bad credentials, missing session, or rate-limited sign-in."""

    status_code = 401


class ForbiddenError(IdeaSaverError):
    """Authenticated caller acting on a resource it does not own."""

    status_code = 403


class ResourceError(IdeaSaverError):
    """A paid or gated action cannot proceed; the session stays valid."""

    status_code = 403


class InsufficientCreditsError(ResourceError):
    """The profile does not hold enough credits for the action."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"You need {required} credits for this transcription. You have {available} credits.",
            details={"required": required, "available": available},
        )
        self.required = required
        self.available = available


class ProfileUnavailableError(ResourceError):
    """No profile is loaded for the current user."""

    def __init__(self, message: str = "Loading user profile. Please try again in a moment.") -> None:
        super().__init__(message)


class PermissionDeniedError(IdeaSaverError):
    """Microphone access was refused."""

    status_code = 403

    def __init__(self, message: str = "Microphone permission denied") -> None:
        super().__init__(message)


class CollaboratorError(IdeaSaverError):
    """An external collaborator (transcription, title, gift code) reported failure."""


class TransientError(IdeaSaverError):
    """Network or backend failure the user may retry."""

    status_code = 503


class DataCorruptionError(IdeaSaverError):
    """Locally stored data exists but cannot be parsed."""
