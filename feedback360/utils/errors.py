"""Custom exception hierarchy for feedback360.

All application exceptions inherit from :class:`Feedback360Error`, which
carries an optional ``provider_name`` so handlers and log lines can name the
backend that failed (e.g. "openai", "sqlite_insight_store").

The hierarchy is organized by layer:

    Feedback360Error  (base -- catch-all)
    +-- LLMError                   (any LLM API call failure)
    +-- RateLimitError             (provider rate-limit exceeded)
    +-- ProviderUnavailableError   (LLM service down / unreachable)
    +-- InsightParseError          (generator output unparseable or invalid)
    +-- PersistenceError           (insight store failure)
    |   +-- PersistenceReadError
    |   +-- PersistenceWriteError
    +-- ConfigurationError         (startup / missing config)
    +-- InsightGenerationError     (caller-visible generator failure)
        +-- TransientGeneratorError     (retryable)
        +-- MalformedGeneratorResponse  (not retryable verbatim)

Only :class:`InsightGenerationError` subclasses escape the
``CacheCoordinator``; every lower-layer error is translated there.
"""


class Feedback360Error(Exception):
    """Base exception for all feedback360 errors.

    ``__str__`` prefixes the provider name in brackets for log scanning,
    e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# LLM provider errors
# ---------------------------------------------------------------------------

class LLMError(Feedback360Error):
    """Raised when an LLM API call fails or returns an empty response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(Feedback360Error):
    """Raised when an LLM provider rejects a call for rate-limit reasons."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(Feedback360Error):
    """Raised when the LLM service cannot be reached at all."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Generator errors
# ---------------------------------------------------------------------------

class InsightParseError(Feedback360Error):
    """Raised when generator output is not valid JSON or fails validation."""

    def __init__(
        self,
        message: str = "Insight response could not be parsed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Insight store errors
# ---------------------------------------------------------------------------

class PersistenceError(Feedback360Error):
    """Raised when the insight store fails."""

    def __init__(
        self,
        message: str = "Insight store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PersistenceReadError(PersistenceError):
    """Raised when a cached analysis cannot be read or deserialized."""

    def __init__(
        self,
        message: str = "Failed to read cached analysis",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PersistenceWriteError(PersistenceError):
    """Raised when a cached analysis cannot be written or deleted."""

    def __init__(
        self,
        message: str = "Failed to write cached analysis",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(Feedback360Error):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Caller-visible generator failures
# ---------------------------------------------------------------------------

class InsightGenerationError(Feedback360Error):
    """Base for failures surfaced to callers of ``CacheCoordinator.analyze``.

    ``retryable`` tells the caller whether repeating the same request can
    reasonably succeed.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str = "Insight generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class TransientGeneratorError(InsightGenerationError):
    """Network, timeout or rate-limit failure of the generator.  Retryable."""

    retryable = True

    def __init__(
        self,
        message: str = "Insight generator is temporarily unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class MalformedGeneratorResponse(InsightGenerationError):
    """Generator answered, but the answer is unusable.  Not retryable verbatim."""

    retryable = False

    def __init__(
        self,
        message: str = "Insight generator returned a malformed response",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
