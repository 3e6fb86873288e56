"""Shared pytest fixtures for Mockup Studio tests."""

import io
import random
import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import httpx
import pytest
from PIL import Image

from mockstudio.core.backend import GenerationBackend, ImagePart, RemoteResponse, ResponsePart
from mockstudio.core.catalog import FALLBACK_SCENARIOS, ScenarioCatalog
from mockstudio.core.config import MockStudioConfig
from mockstudio.core.credentials import CredentialPool
from mockstudio.core.diagnostics import DiagnosticsProber
from mockstudio.core.orchestrator import GenerationOrchestrator
from mockstudio.core.preferences import InMemoryPreferenceStore

MODELS = ["fast-model", "slow-model"]
CREDENTIALS = ["key-aaaa1111", "key-bbbb2222", "key-cccc3333"]


def make_image_bytes(
    width: int,
    height: int,
    color: str | tuple = "red",
    format: str = "PNG",
    mode: str = "RGB",
) -> bytes:
    """Encode a solid-colour image of the given size."""
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format=format)
    return buffer.getvalue()


def image_response(width: int = 1200, height: int = 1600) -> RemoteResponse:
    """A successful generation response carrying one PNG."""
    return RemoteResponse(
        parts=[
            ResponsePart(text="Here is your mockup."),
            ResponsePart(data=make_image_bytes(width, height, "blue"), mime_type="image/png"),
        ]
    )


class FakeBackend(GenerationBackend):
    """Scripted stand-in for the remote service.

    Outcomes are keyed by ``(credential, model)`` for generation and by
    credential for probes.  An outcome that is an exception is raised;
    anything else is returned.  Every call is recorded in order.
    """

    def __init__(self) -> None:
        self.outcomes: dict[tuple[str, str], object] = {}
        self.default_outcome: object = image_response()
        self.probe_outcomes: dict[str, Exception | None] = {}
        self.calls: list[tuple[str, str]] = []
        self.requests: list[tuple[list[ImagePart], str, str]] = []
        self.probes: list[tuple[str, str, str]] = []

    success = staticmethod(image_response)

    def script(self, credential: str, model: str, outcome: object) -> None:
        self.outcomes[(credential, model)] = outcome

    def script_all_models(self, credential: str, outcome: object, models=MODELS) -> None:
        for model in models:
            self.script(credential, model, outcome)

    def generate(self, credential, model, images, instruction, aspect_ratio):
        self.calls.append((credential, model))
        self.requests.append((list(images), instruction, aspect_ratio))
        outcome = self.outcomes.get((credential, model), self.default_outcome)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def probe(self, credential, model, prompt):
        self.probes.append((credential, model, prompt))
        outcome = self.probe_outcomes.get(credential)
        if outcome is not None:
            raise outcome


class RecordingSleep:
    """Callable replacing ``time.sleep``; records every requested delay."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> MockStudioConfig:
    """Create a test configuration rooted in a temporary directory.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        MockStudioConfig instance for testing
    """
    return MockStudioConfig(
        _env_file=None,
        api_keys_pool=",".join(CREDENTIALS),
        model_variants=list(MODELS),
        probe_model="probe-model",
        data_dir=temp_dir / "data",
        credential_pause_seconds=0.5,
        probe_pause_seconds=0.2,
    )


@pytest.fixture
def fake_backend() -> FakeBackend:
    """A backend whose every call succeeds unless scripted otherwise."""
    return FakeBackend()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def preference_store() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()


@pytest.fixture
def image_factory() -> Callable[..., bytes]:
    """Return :func:`make_image_bytes` for tests that need encoded images."""
    return make_image_bytes


@pytest.fixture
def orchestrator(
    fake_backend: FakeBackend,
    preference_store: InMemoryPreferenceStore,
    recording_sleep: RecordingSleep,
) -> GenerationOrchestrator:
    """Orchestrator over three credentials and two models, no real pauses."""
    pool = CredentialPool(CREDENTIALS, preference_store, rng=random.Random(1234))
    return GenerationOrchestrator(
        backend=fake_backend,
        pool=pool,
        store=preference_store,
        model_variants=MODELS,
        credential_pause_seconds=0.5,
        sleep=recording_sleep,
    )


@pytest.fixture
def scenario_transport() -> httpx.MockTransport:
    """Serve a small JPEG for every built-in scenario image URL."""
    known = {record.image_url for record in FALLBACK_SCENARIOS}
    payload = make_image_bytes(640, 800, "green", format="JPEG")

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) in known:
            return httpx.Response(200, content=payload, headers={"Content-Type": "image/jpeg"})
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.fixture
def test_client(
    monkeypatch,
    test_config: MockStudioConfig,
    orchestrator: GenerationOrchestrator,
    fake_backend: FakeBackend,
    recording_sleep: RecordingSleep,
    scenario_transport: httpx.MockTransport,
):
    """FastAPI TestClient with every remote collaborator replaced.

    The lifespan handler runs against ``test_config``; the objects it
    creates are then swapped for fakes on ``app.state``.
    """
    from fastapi.testclient import TestClient

    from mockstudio.api import main as api_main

    monkeypatch.setattr(api_main, "config", test_config)

    with TestClient(api_main.app) as client:
        api_main.app.state.catalog.close()
        api_main.app.state.backend = fake_backend
        api_main.app.state.orchestrator = orchestrator
        api_main.app.state.prober = DiagnosticsProber(
            backend=fake_backend,
            credentials=CREDENTIALS,
            probe_model="probe-model",
            sleep=recording_sleep,
            clock=iter(range(0, 1000)).__next__,
        )
        api_main.app.state.catalog = ScenarioCatalog(transport=scenario_transport)
        yield client


@pytest.fixture
def credentials() -> list[str]:
    """Credentials configured for ``orchestrator`` and ``test_client``."""
    return list(CREDENTIALS)


@pytest.fixture
def model_variants() -> list[str]:
    """Model variants configured for ``orchestrator`` and ``test_client``."""
    return list(MODELS)
