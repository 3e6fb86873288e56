"""Pydantic response models for the Mockup Studio API.

These models define the JSON schema of every JSON-returning endpoint.
``POST /api/generate`` is not listed here: it answers with the PNG itself
and reports provenance in response headers.

Models
------
ProfileResponse
    One ratio tag with its native ratio and pixel sizes.
ConfigResponse
    Payload of ``GET /api/config``.
ScenarioResponse
    One background scenario in ``GET /api/scenarios``.
KeyStatusResponse
    One probed credential in ``GET /api/diagnostics``.
DiagnosticsResponse
    Payload of ``GET /api/diagnostics``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    """An output profile as shown to the frontend."""

    tag: str = Field(..., description="User-facing ratio tag, e.g. '4:5'.")
    label: str
    api_ratio: str = Field(..., description="Native ratio requested from the service.")
    input_width: int
    input_height: int
    final_width: int
    final_height: int


class ConfigResponse(BaseModel):
    """Response body for ``GET /api/config``.

    Attributes:
        version: Package version.
        default_ratio: Ratio tag used when a request names none.
        profiles: Supported output profiles, in display order.
        model_variants: Model identifiers tried per credential.
        credential_count: Number of configured credentials.  The credentials
            themselves are never exposed.
        catalog_enabled: Whether a hosted scenario table is configured.
    """

    version: str
    default_ratio: str
    profiles: list[ProfileResponse]
    model_variants: list[str]
    credential_count: int = Field(..., ge=0)
    catalog_enabled: bool


class ScenarioResponse(BaseModel):
    """A background scenario with its detected ratio tag."""

    id: int
    name: str
    image_url: str
    ratio_tag: str


class KeyStatusResponse(BaseModel):
    """Probe outcome for one credential (redacted)."""

    key: str
    status: Literal["ok", "error"]
    latency_ms: int = Field(..., ge=0)
    message: str | None = None


class DiagnosticsResponse(BaseModel):
    """Response body for ``GET /api/diagnostics``."""

    results: list[KeyStatusResponse]
    healthy: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
