"""Exception hierarchy for Mockup Studio.

Only two failures are meant to reach the caller of a generation request:
:class:`ConfigurationError` (no credentials at all) and
:class:`AllCredentialsExhaustedError` (every attempt failed).  Everything
derived from :class:`RemoteCallError` is scoped to a single remote call and
is recovered inside the orchestrator by advancing to the next attempt.
"""

from __future__ import annotations


class MockStudioError(Exception):
    """Base class for all Mockup Studio errors."""


class ConfigurationError(MockStudioError):
    """Raised when no credentials are configured."""


class UnsupportedRatioError(MockStudioError, ValueError):
    """Raised for a ratio tag with no output profile."""

    def __init__(self, tag: str, supported: list[str]) -> None:
        self.tag = tag
        self.supported = supported
        super().__init__(f"Unsupported aspect ratio '{tag}'. Supported: {', '.join(supported)}")


class ImageProcessingError(MockStudioError):
    """Raised when image data cannot be decoded or encoded."""


class ScenarioError(MockStudioError):
    """Raised when a scenario record cannot be found or downloaded."""


class ScenarioNotFoundError(ScenarioError):
    """Raised when no scenario has the requested id."""


class RemoteCallError(MockStudioError):
    """Failure of one call to the remote generation service.

    Attributes:
        message: Human-readable failure detail, including the status text
            reported by the service when there is one.
        status_code: HTTP status code, or ``None`` for transport failures
            and response-level failures.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ContentBlockedError(RemoteCallError):
    """The service refused the request on safety grounds."""

    def __init__(self, block_reason: str) -> None:
        self.block_reason = block_reason
        super().__init__(f"Blocked by safety filter: {block_reason}")


class EmptyResultError(RemoteCallError):
    """The response carried no image payload and no block reason."""

    def __init__(self, message: str = "Response contained no image data") -> None:
        super().__init__(message)


class AllCredentialsExhaustedError(MockStudioError):
    """Every (credential, model) attempt failed.

    Attributes:
        last_failure: The last underlying failure observed, if any.
        attempts: Number of remote calls issued.
    """

    def __init__(self, last_failure: Exception | None, attempts: int) -> None:
        self.last_failure = last_failure
        self.attempts = attempts
        detail = str(last_failure) if last_failure is not None else "no attempt was made"
        super().__init__(
            f"All credentials are exhausted or failing; try again later. "
            f"Last error: {detail}"
        )
