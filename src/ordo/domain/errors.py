"""Typed errors surfaced to the state machine."""


class OrdoError(RuntimeError):
    """Base class for recoverable application errors."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        """Human-readable message safe to show on screen."""
        return str(self)


class ConfigurationError(OrdoError):
    """Raised when the generation API key is missing or unusable."""

    default_message = (
        "The image service is not configured. Add a valid GEMINI_API_KEY and restart."
    )


class CameraPermissionDeniedError(OrdoError):
    """Raised when camera access is refused."""

    default_message = "Please enable camera permissions to scan your space."


class GenerationError(OrdoError):
    """Base class for generation failures."""

    default_message = "We couldn't visualize your space this time."


class QuotaExceededError(GenerationError):
    """Raised when the provider reports quota exhaustion or rate limiting."""

    default_message = "The image service is busy right now."

    def __init__(
        self, message: str | None = None, retry_after_seconds: float | None = None
    ) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds

    @property
    def user_message(self) -> str:
        if self.retry_after_seconds is None:
            return f"{self} Please try again later."
        return f"{self} Please try again in {round(self.retry_after_seconds)}s."


class InvalidApiKeyError(GenerationError):
    """Raised when the provider rejects the configured API key."""

    default_message = (
        "The image service rejected the API key. Check your configuration."
    )


class GenerationFailedError(GenerationError):
    """Raised for any other generation or response parsing failure."""


class PersistenceError(OrdoError):
    """Raised when the account or space store fails."""

    default_message = "We couldn't reach your library. Please try again."


class AuthenticationError(PersistenceError):
    """Raised when credentials are rejected or an account cannot be created."""

    default_message = "Those credentials didn't work."
