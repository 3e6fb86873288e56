"""Remote generation backend.

The orchestrator and the diagnostics prober talk to the remote service only
through :class:`GenerationBackend`, which exchanges small typed values
instead of SDK objects:

- requests carry :class:`ImagePart` inputs, an instruction and a native
  aspect ratio;
- responses come back as a :class:`RemoteResponse` (output parts plus an
  optional safety block reason);
- every remote or transport failure is raised as
  :class:`~mockstudio.core.errors.RemoteCallError` carrying the HTTP status
  code when there is one.

:class:`GenAIBackend` implements the interface on top of the ``google-genai``
SDK.  Tests substitute a scripted backend.
"""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from mockstudio.core.errors import ContentBlockedError, EmptyResultError, RemoteCallError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImagePart:
    """Inline binary image plus its MIME type."""

    data: bytes
    mime_type: str


@dataclass(frozen=True)
class ResponsePart:
    """One output part of a generation response."""

    data: bytes | None = None
    mime_type: str | None = None
    text: str | None = None


@dataclass(frozen=True)
class RemoteResponse:
    """Output parts of a generation response and its safety verdict."""

    parts: list[ResponsePart] = field(default_factory=list)
    block_reason: str | None = None


def extract_image(response: RemoteResponse) -> ImagePart:
    """Return the first inline image of *response*.

    Raises:
        ContentBlockedError: If the response carries a block reason.
        EmptyResultError: If no part carries image data.
    """
    if response.block_reason:
        raise ContentBlockedError(response.block_reason)

    for part in response.parts:
        if part.data:
            return ImagePart(data=part.data, mime_type=part.mime_type or "image/png")

    texts = [part.text for part in response.parts if part.text]
    if texts:
        logger.warning("Model returned text but no image: %s", " ".join(texts)[:300])
    raise EmptyResultError()


class GenerationBackend(ABC):
    """Interface to the remote image-generation service."""

    @abstractmethod
    def generate(
        self,
        credential: str,
        model: str,
        images: list[ImagePart],
        instruction: str,
        aspect_ratio: str,
    ) -> RemoteResponse:
        """Issue one generation call.

        Raises:
            RemoteCallError: On any remote or transport failure.
        """

    @abstractmethod
    def probe(self, credential: str, model: str, prompt: str) -> None:
        """Issue one minimal text call; the payload is discarded.

        Raises:
            RemoteCallError: On any remote or transport failure.
        """


class GenAIBackend(GenerationBackend):
    """:class:`GenerationBackend` backed by the ``google-genai`` SDK.

    A fresh client is created per call because every call may use a
    different credential.
    """

    def __init__(self, timeout_ms: int = 120_000) -> None:
        self.timeout_ms = timeout_ms

    def _client(self, credential: str) -> genai.Client:
        # google-genai expects the timeout in milliseconds.
        http_options = types.HttpOptions(timeout=self.timeout_ms)
        return genai.Client(api_key=credential, http_options=http_options)

    def generate(
        self,
        credential: str,
        model: str,
        images: list[ImagePart],
        instruction: str,
        aspect_ratio: str,
    ) -> RemoteResponse:
        parts = [types.Part.from_bytes(data=img.data, mime_type=img.mime_type) for img in images]
        parts.append(types.Part.from_text(text=instruction))

        try:
            response = self._client(credential).models.generate_content(
                model=model,
                contents=[types.Content(role="user", parts=parts)],
                config=types.GenerateContentConfig(
                    image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
                ),
            )
        except genai_errors.APIError as exc:
            raise _to_remote_error(exc) from exc
        except httpx.HTTPError as exc:
            raise RemoteCallError(f"Transport error: {exc}") from exc
        except Exception as exc:
            raise RemoteCallError(f"Unexpected client error: {exc!r}") from exc

        return _to_remote_response(response)

    def probe(self, credential: str, model: str, prompt: str) -> None:
        try:
            self._client(credential).models.generate_content(
                model=model,
                contents=[types.Content(role="user", parts=[types.Part.from_text(text=prompt)])],
            )
        except genai_errors.APIError as exc:
            raise _to_remote_error(exc) from exc
        except httpx.HTTPError as exc:
            raise RemoteCallError(f"Transport error: {exc}") from exc
        except Exception as exc:
            raise RemoteCallError(f"Unexpected client error: {exc!r}") from exc


def _to_remote_error(exc: genai_errors.APIError) -> RemoteCallError:
    """Normalize an SDK error, keeping the status text in the message."""
    code = getattr(exc, "code", None)
    status = getattr(exc, "status", None) or ""
    message = getattr(exc, "message", None) or str(exc)
    prefix = " ".join(str(p) for p in (code, status) if p)
    text = f"{prefix}: {message}" if prefix else message
    return RemoteCallError(text, status_code=code if isinstance(code, int) else None)


def _to_remote_response(response: types.GenerateContentResponse) -> RemoteResponse:
    prompt_feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(prompt_feedback, "block_reason", None)
    if block_reason:
        return RemoteResponse(block_reason=str(getattr(block_reason, "value", block_reason)))

    parts: list[ResponsePart] = []
    candidates = response.candidates or []
    content = candidates[0].content if candidates else None
    for part in (content.parts if content else None) or []:
        inline_data = getattr(part, "inline_data", None)
        raw_data = getattr(inline_data, "data", None)
        if isinstance(raw_data, str):
            raw_data = base64.b64decode(raw_data)
        parts.append(
            ResponsePart(
                data=bytes(raw_data) if raw_data else None,
                mime_type=getattr(inline_data, "mime_type", None),
                text=getattr(part, "text", None),
            )
        )
    return RemoteResponse(parts=parts)
