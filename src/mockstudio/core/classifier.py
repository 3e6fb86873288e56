"""Failure taxonomy for remote calls.

The orchestrator only needs one decision per failed attempt: try the next
model on the same credential, or give the credential up.  That decision is
made here, from the typed error raised by the backend.

Classification rules, in order:

==================  =========================================================
Category            Trigger
==================  =========================================================
CONTENT_POLICY      :class:`ContentBlockedError` (safety block)
EMPTY_RESULT        :class:`EmptyResultError` (no image, no block reason)
EXHAUSTION          status 429/404, or the message mentions ``429``,
                    ``limit``, ``exhausted`` or ``404``
INVALID_CREDENTIAL  status 401/403, or the message mentions a permission or
                    key-validity rejection
FATAL               anything else
==================  =========================================================

Only EXHAUSTION moves on to the next model.  A safety block is a property of
the content rather than the credential, but it is still treated as
credential-fatal; the observed behaviour is kept as is.
"""

from __future__ import annotations

from enum import Enum

from mockstudio.core.errors import ContentBlockedError, EmptyResultError, RemoteCallError

_EXHAUSTION_STATUS = {429, 404}
_EXHAUSTION_MARKERS = ("429", "limit", "exhausted", "404")

_INVALID_CREDENTIAL_STATUS = {401, 403}
_INVALID_CREDENTIAL_MARKERS = (
    "permission",
    "api key not valid",
    "api_key_invalid",
    "unauthenticated",
    "403",
)


class FailureCategory(str, Enum):
    """Outcome class of a failed remote call."""

    EXHAUSTION = "exhaustion"
    INVALID_CREDENTIAL = "invalid_credential"
    CONTENT_POLICY = "content_policy"
    EMPTY_RESULT = "empty_result"
    FATAL = "fatal"

    @property
    def retry_next_model(self) -> bool:
        """Whether the same credential should be tried with the next model."""
        return self is FailureCategory.EXHAUSTION


def classify_failure(error: Exception) -> FailureCategory:
    """Map a failed remote call onto a :class:`FailureCategory`."""
    if isinstance(error, ContentBlockedError):
        return FailureCategory.CONTENT_POLICY
    if isinstance(error, EmptyResultError):
        return FailureCategory.EMPTY_RESULT

    status = error.status_code if isinstance(error, RemoteCallError) else None
    text = str(error).lower()

    if status in _EXHAUSTION_STATUS or any(m in text for m in _EXHAUSTION_MARKERS):
        return FailureCategory.EXHAUSTION
    if status in _INVALID_CREDENTIAL_STATUS or any(m in text for m in _INVALID_CREDENTIAL_MARKERS):
        return FailureCategory.INVALID_CREDENTIAL
    return FailureCategory.FATAL


def diagnostic_label(error: Exception) -> str:
    """Short display category for a failed diagnostics probe."""
    text = str(error)
    status = error.status_code if isinstance(error, RemoteCallError) else None

    if status == 429 or "429" in text:
        return "QUOTA EXHAUSTED"
    if "limit: 0" in text:
        return "BLOCKED (LIMIT 0)"
    if status == 400 or "400" in text:
        return "BAD REQUEST"
    if status == 403 or "403" in text:
        return "INVALID KEY"
    if status == 404 or "404" in text:
        return "NOT FOUND"
    return "ERROR"
