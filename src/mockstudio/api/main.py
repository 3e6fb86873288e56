"""Mockup Studio - FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
- **Generation** is performed by
  :class:`~mockstudio.core.orchestrator.GenerationOrchestrator`, which walks
  the credential pool and returns the finished PNG.
- **Sticky preference** lives in a small SQLite file so that the remembered
  credential survives restarts.
- **Scenarios** come from :class:`~mockstudio.core.catalog.ScenarioCatalog`;
  a request may name a scenario instead of uploading a template.
- **Diagnostics** run the sequential credential probe on demand.

Every collaborator is created in the lifespan handler and stored on
``app.state`` so tests can swap any of them out.

Generation and diagnostics handlers are plain ``def`` functions: they block
on remote calls and pacing delays, so FastAPI runs them in its threadpool.

Endpoints
---------
========  ======================  ==========================================
Method    Path                    Purpose
========  ======================  ==========================================
GET       ``/api/config``         Version, ratio profiles, model variants
GET       ``/api/scenarios``      Background scenarios with ratio tags
POST      ``/api/generate``       Generate one mockup (multipart upload)
GET       ``/api/diagnostics``    Probe every configured credential
========  ======================  ==========================================

Usage
-----
CLI (installed entry point)::

    mockstudio

Direct invocation::

    python -m mockstudio.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from mockstudio import __version__
from mockstudio.api.models import (
    ConfigResponse,
    DiagnosticsResponse,
    KeyStatusResponse,
    ProfileResponse,
    ScenarioResponse,
)
from mockstudio.core.backend import GenAIBackend
from mockstudio.core.catalog import ScenarioCatalog
from mockstudio.core.config import config
from mockstudio.core.diagnostics import DiagnosticsProber
from mockstudio.core.errors import (
    AllCredentialsExhaustedError,
    ConfigurationError,
    ImageProcessingError,
    ScenarioError,
    ScenarioNotFoundError,
    UnsupportedRatioError,
)
from mockstudio.core.orchestrator import GenerationOrchestrator
from mockstudio.core.preferences import SqlitePreferenceStore
from mockstudio.core.profiles import DEFAULT_RATIO, list_profiles

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Application lifecycle.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the generation stack on startup and release it on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    # --- Startup -----------------------------------------------------------
    backend = GenAIBackend(timeout_ms=config.request_timeout_ms)
    store = SqlitePreferenceStore(config.preference_db_path)

    app.state.backend = backend
    app.state.store = store
    app.state.orchestrator = GenerationOrchestrator.from_config(config, backend, store)
    app.state.prober = DiagnosticsProber.from_config(config, backend)
    app.state.catalog = ScenarioCatalog.from_config(config)

    credential_count = len(config.credentials)
    if credential_count == 0:
        logger.warning("No API credentials configured; generation requests will fail.")
    else:
        logger.info("Generation stack ready with %d credentials.", credential_count)

    yield  # Application runs here.

    # --- Shutdown ----------------------------------------------------------
    app.state.catalog.close()
    logger.info("Scenario catalog client closed on shutdown.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Mockup Studio",
    description="Product mockups composited by a remote image model.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so the frontend can be served from a different
# origin during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Model-Variant", "X-Credential", "X-Attempts"],
)


# ---------------------------------------------------------------------------
# Upload helpers.
# ---------------------------------------------------------------------------


def _read_upload(upload: UploadFile | None) -> bytes | None:
    """Return the bytes of *upload*, or ``None`` for a missing/empty part."""
    if upload is None:
        return None
    data = upload.file.read()
    return data or None


def _resolve_template(
    request: Request,
    template: bytes | None,
    scenario_id: int | None,
) -> tuple[bytes | None, str | None]:
    """Pick the template bytes and the ratio the template was designed for.

    An uploaded template wins over ``scenario_id``.

    Raises:
        HTTPException: 404 for an unknown scenario, 502 when its image
            cannot be downloaded.
    """
    if template is not None or scenario_id is None:
        return template, None

    catalog: ScenarioCatalog = request.app.state.catalog
    try:
        record = catalog.get_scenario(scenario_id)
        data = catalog.download_image(record)
    except ScenarioNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ScenarioError as exc:
        logger.error("Scenario download failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    logger.info("Using scenario %d (%s).", record.id, record.name)
    return data, record.ratio_tag


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/api/config", response_model=ConfigResponse)
async def get_config(request: Request) -> ConfigResponse:
    """Return the data the frontend needs to build its controls."""
    orchestrator: GenerationOrchestrator = request.app.state.orchestrator
    return ConfigResponse(
        version=__version__,
        default_ratio=DEFAULT_RATIO,
        profiles=[ProfileResponse(**profile.to_dict()) for profile in list_profiles()],
        model_variants=orchestrator.model_variants,
        credential_count=len(orchestrator.pool),
        catalog_enabled=bool(config.catalog_url),
    )


@app.get("/api/scenarios", response_model=list[ScenarioResponse])
def get_scenarios(request: Request) -> list[ScenarioResponse]:
    """List background scenarios, newest first."""
    catalog: ScenarioCatalog = request.app.state.catalog
    return [ScenarioResponse(**record.model_dump()) for record in catalog.list_scenarios()]


@app.post("/api/generate")
def generate_mockup(
    request: Request,
    image: UploadFile = File(..., description="Product photo."),
    template: UploadFile | None = File(default=None, description="Background template."),
    scenario_id: int | None = Form(default=None),
    aspect_ratio: str | None = Form(default=None),
) -> Response:
    """Generate one mockup and return it as a PNG.

    The ratio defaults to the selected scenario's ratio, then to
    :data:`~mockstudio.core.profiles.DEFAULT_RATIO`.

    Raises:
        HTTPException: 400 for an empty photo, an unknown ratio or an
            undecodable image; 404/502 for scenario failures; 503 when no
            credential is configured or every attempt failed.
    """
    image_bytes = _read_upload(image)
    if image_bytes is None:
        raise HTTPException(status_code=400, detail="The product image is empty.")

    template_bytes, scenario_ratio = _resolve_template(
        request, _read_upload(template), scenario_id
    )
    ratio_tag = aspect_ratio or scenario_ratio or DEFAULT_RATIO

    mime_type = image.content_type if (image.content_type or "").startswith("image/") else None

    orchestrator: GenerationOrchestrator = request.app.state.orchestrator
    try:
        result = orchestrator.generate(image_bytes, template_bytes, ratio_tag, mime_type)
    except (UnsupportedRatioError, ImageProcessingError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ConfigurationError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except AllCredentialsExhaustedError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return Response(
        content=result.image_bytes,
        media_type=result.mime_type,
        headers={
            "X-Model-Variant": result.model,
            "X-Credential": result.credential_suffix,
            "X-Attempts": str(result.attempts),
        },
    )


@app.get("/api/diagnostics", response_model=DiagnosticsResponse)
def run_diagnostics(request: Request) -> DiagnosticsResponse:
    """Probe every configured credential, one after another."""
    prober: DiagnosticsProber = request.app.state.prober
    statuses = prober.probe_all()
    results = [KeyStatusResponse(**status.to_dict()) for status in statuses]
    return DiagnosticsResponse(
        results=results,
        healthy=sum(1 for r in results if r.status == "ok"),
        total=len(results),
    )


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~mockstudio.core.config.config` (which
    loads from ``MOCKSTUDIO_SERVER_HOST`` and ``MOCKSTUDIO_SERVER_PORT``
    environment variables).  Defaults to ``0.0.0.0:7860``.

    This function is registered as the ``mockstudio`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "mockstudio.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
