"""Tests for mockstudio.core.backend — response extraction and SDK adaptation.

The google-genai client is never contacted: SDK responses are built from
``google.genai.types`` objects and the client factory is patched.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest
from google.genai import errors as genai_errors
from google.genai import types

from mockstudio.core.backend import (
    GenAIBackend,
    ImagePart,
    RemoteResponse,
    ResponsePart,
    _to_remote_error,
    _to_remote_response,
    extract_image,
)
from mockstudio.core.errors import ContentBlockedError, EmptyResultError, RemoteCallError

# ---------------------------------------------------------------------------
# extract_image
# ---------------------------------------------------------------------------


class TestExtractImage:
    """Test extract_image()."""

    def test_returns_first_image_part(self):
        response = RemoteResponse(
            parts=[
                ResponsePart(text="caption"),
                ResponsePart(data=b"first", mime_type="image/jpeg"),
                ResponsePart(data=b"second", mime_type="image/png"),
            ]
        )
        assert extract_image(response) == ImagePart(data=b"first", mime_type="image/jpeg")

    def test_missing_mime_type_defaults_to_png(self):
        response = RemoteResponse(parts=[ResponsePart(data=b"img")])
        assert extract_image(response).mime_type == "image/png"

    def test_block_reason_raises_content_blocked(self):
        response = RemoteResponse(
            parts=[ResponsePart(data=b"img")],
            block_reason="SAFETY",
        )
        with pytest.raises(ContentBlockedError) as exc_info:
            extract_image(response)
        assert exc_info.value.block_reason == "SAFETY"
        assert "SAFETY" in str(exc_info.value)

    def test_text_only_raises_empty_result(self):
        response = RemoteResponse(parts=[ResponsePart(text="I cannot draw that.")])
        with pytest.raises(EmptyResultError):
            extract_image(response)

    def test_no_parts_raises_empty_result(self):
        with pytest.raises(EmptyResultError):
            extract_image(RemoteResponse())


# ---------------------------------------------------------------------------
# SDK adaptation
# ---------------------------------------------------------------------------


def _sdk_response(parts=None, block_reason=None) -> types.GenerateContentResponse:
    candidates = None
    if parts is not None:
        candidates = [types.Candidate(content=types.Content(role="model", parts=parts))]
    feedback = None
    if block_reason is not None:
        feedback = types.GenerateContentResponsePromptFeedback(block_reason=block_reason)
    return types.GenerateContentResponse(candidates=candidates, prompt_feedback=feedback)


class TestToRemoteResponse:
    """Test _to_remote_response()."""

    def test_image_and_text_parts(self):
        response = _sdk_response(
            parts=[
                types.Part(text="done"),
                types.Part(inline_data=types.Blob(data=b"\x89PNG", mime_type="image/png")),
            ]
        )
        result = _to_remote_response(response)
        assert result.block_reason is None
        assert result.parts[0].text == "done"
        assert result.parts[1].data == b"\x89PNG"
        assert result.parts[1].mime_type == "image/png"

    def test_block_reason(self):
        response = _sdk_response(block_reason=types.BlockedReason.SAFETY)
        assert _to_remote_response(response).block_reason == "SAFETY"

    def test_no_candidates(self):
        assert _to_remote_response(_sdk_response()).parts == []


class TestToRemoteError:
    """Test _to_remote_error()."""

    def test_keeps_code_and_status_text(self):
        exc = genai_errors.ClientError(
            429,
            {"error": {"code": 429, "status": "RESOURCE_EXHAUSTED", "message": "Quota exceeded"}},
        )
        error = _to_remote_error(exc)
        assert error.status_code == 429
        assert "RESOURCE_EXHAUSTED" in error.message
        assert "Quota exceeded" in error.message


class TestGenAIBackend:
    """Test GenAIBackend with the SDK client patched out."""

    def _backend_with(self, client: MagicMock) -> GenAIBackend:
        backend = GenAIBackend(timeout_ms=5000)
        backend._client = MagicMock(return_value=client)
        return backend

    def test_generate_sends_images_then_instruction(self):
        client = MagicMock()
        client.models.generate_content.return_value = _sdk_response(
            parts=[types.Part(inline_data=types.Blob(data=b"img", mime_type="image/png"))]
        )
        backend = self._backend_with(client)

        result = backend.generate(
            "key-1",
            "model-a",
            [ImagePart(b"tpl", "image/png"), ImagePart(b"shoe", "image/jpeg")],
            "do it",
            "3:4",
        )

        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "model-a"
        parts = kwargs["contents"][0].parts
        assert [p.inline_data.data for p in parts[:2]] == [b"tpl", b"shoe"]
        assert parts[2].text == "do it"
        assert kwargs["config"].image_config.aspect_ratio == "3:4"
        assert result.parts[0].data == b"img"

    def test_api_error_becomes_remote_call_error(self):
        client = MagicMock()
        client.models.generate_content.side_effect = genai_errors.ClientError(
            403, {"error": {"code": 403, "status": "PERMISSION_DENIED", "message": "nope"}}
        )
        backend = self._backend_with(client)

        with pytest.raises(RemoteCallError) as exc_info:
            backend.generate("key-1", "model-a", [], "x", "1:1")
        assert exc_info.value.status_code == 403

    def test_transport_error_becomes_remote_call_error(self):
        client = MagicMock()
        client.models.generate_content.side_effect = httpx.ConnectError("refused")
        backend = self._backend_with(client)

        with pytest.raises(RemoteCallError) as exc_info:
            backend.probe("key-1", "probe-model", "ping")
        assert exc_info.value.status_code is None

    def test_unexpected_client_error_becomes_remote_call_error(self):
        backend = GenAIBackend(timeout_ms=5000)
        backend._client = MagicMock(
            side_effect=UnicodeEncodeError("ascii", "cl\xe9", 2, 3, "ordinal not in range(128)")
        )

        with pytest.raises(RemoteCallError) as exc_info:
            backend.generate("cl\xe9", "model-a", [], "x", "1:1")
        assert "UnicodeEncodeError" in str(exc_info.value)
        with pytest.raises(RemoteCallError):
            backend.probe("cl\xe9", "probe-model", "ping")

    def test_client_uses_credential_and_timeout(self):
        backend = GenAIBackend(timeout_ms=7000)
        with patch("mockstudio.core.backend.genai.Client") as client_cls:
            backend._client("key-xyz")
        kwargs = client_cls.call_args.kwargs
        assert kwargs["api_key"] == "key-xyz"
        assert kwargs["http_options"].timeout == 7000
