"""Generation orchestration for Mockup Studio.

This module provides :class:`GenerationOrchestrator`, the single point of
control for turning a product photo (plus an optional background template)
into a finished mockup.  It drives the geometry pipeline and the credential
pool through an ordered sequence of attempts against the remote service
until one attempt succeeds or every attempt has failed.

Key Responsibilities
--------------------
- **Profile resolution**: the ratio tag selects the native API ratio, the
  template pre-process size and the final output size.
- **Attempt planning**: the pool is ordered once per call and expanded into
  an explicit list of (credential, model) attempts, fastest model first.
- **Failure handling**: exhaustion-class failures move on to the next
  model; any other failure abandons the credential.  A credential whose every
  model is exhausted is dropped from the sticky preference and followed by a
  fixed pause before the next credential.
- **Sticky preference**: the credential that succeeds is recorded so the
  next call tries it first.
- **Post-processing**: the rendered image is centre-cropped to the exact
  final size.

Remote calls are strictly sequential: at most one call is in flight, each
(credential, model) pair is tried at most once per call, and there is no
pause between models of the same credential.

Usage
-----
::

    from mockstudio.core.config import config
    from mockstudio.core.backend import GenAIBackend
    from mockstudio.core.orchestrator import GenerationOrchestrator
    from mockstudio.core.preferences import SqlitePreferenceStore

    store = SqlitePreferenceStore(config.preference_db_path)
    orchestrator = GenerationOrchestrator.from_config(config, GenAIBackend(), store)

    result = orchestrator.generate(shoe_bytes, template_bytes, "4:5")
    Path("mockup.png").write_bytes(result.image_bytes)

See Also
--------
- :mod:`mockstudio.core.classifier`: the failure taxonomy.
- :mod:`mockstudio.core.geometry`: cover-fit and centre-crop transforms.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mockstudio.core.backend import GenerationBackend, ImagePart, extract_image
from mockstudio.core.classifier import classify_failure
from mockstudio.core.credentials import CredentialPool, redact
from mockstudio.core.errors import AllCredentialsExhaustedError
from mockstudio.core.geometry import center_crop_bytes, cover_fit_bytes, sniff_mime_type
from mockstudio.core.preferences import PreferenceStore
from mockstudio.core.profiles import OutputProfile, resolve_profile
from mockstudio.core.prompt_builder import GenerationPayload, build_payload

if TYPE_CHECKING:
    from mockstudio.core.config import MockStudioConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationAttempt:
    """One (credential, model) pair, tried at most once per call."""

    credential: str
    model: str
    credential_index: int
    is_last_model: bool


@dataclass(frozen=True)
class GenerationResult:
    """Final mockup and where it came from.

    Attributes:
        image_bytes: PNG image of exactly the profile's final size.
        mime_type: Always ``"image/png"``.
        model: Model variant that produced the image.
        credential_suffix: Redacted form of the successful credential.
        attempts: Number of remote calls issued, including the successful one.
        profile: Output profile the image was produced for.
    """

    image_bytes: bytes
    mime_type: str
    model: str
    credential_suffix: str
    attempts: int
    profile: OutputProfile


def plan_attempts(credentials: Sequence[str], models: Sequence[str]) -> list[GenerationAttempt]:
    """Expand an ordered pool into the full attempt sequence.

    Credentials are the outer order and models the inner order, so every
    model of one credential is listed before the next credential.
    """
    last = len(models) - 1
    return [
        GenerationAttempt(
            credential=credential,
            model=model,
            credential_index=c_index,
            is_last_model=m_index == last,
        )
        for c_index, credential in enumerate(credentials)
        for m_index, model in enumerate(models)
    ]


class GenerationOrchestrator:
    """Drives one mockup generation through the credential pool.

    Attributes:
        backend (GenerationBackend):
            Remote service adapter.
        pool (CredentialPool):
            Configured credentials; ordered once per call.
        store (PreferenceStore):
            Sticky credential slot, updated on success and exhaustion.
        model_variants (list[str]):
            Model identifiers tried per credential, fastest first.
        credential_pause_seconds (float):
            Pause after an exhausted credential when another one follows.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        pool: CredentialPool,
        store: PreferenceStore,
        model_variants: Sequence[str],
        credential_pause_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not model_variants:
            raise ValueError("At least one model variant is required.")
        self.backend = backend
        self.pool = pool
        self.store = store
        self.model_variants = list(model_variants)
        self.credential_pause_seconds = credential_pause_seconds
        self._sleep = sleep

    @classmethod
    def from_config(
        cls,
        config: MockStudioConfig,
        backend: GenerationBackend,
        store: PreferenceStore,
    ) -> GenerationOrchestrator:
        return cls(
            backend=backend,
            pool=CredentialPool.from_config(config, store),
            store=store,
            model_variants=config.model_variants,
            credential_pause_seconds=config.credential_pause_seconds,
        )

    # -- Public interface ---------------------------------------------------

    def generate(
        self,
        image: bytes,
        template: bytes | None,
        ratio_tag: str,
        image_mime_type: str | None = None,
    ) -> GenerationResult:
        """Generate a mockup of *image*, optionally composited on *template*.

        Args:
            image: Encoded product photo.  Sent as-is, without resizing.
            template: Encoded background image, or ``None`` for a generated
                scene.  Cover-fitted to the profile's pre-process size.
            ratio_tag: One of ``"1:1"``, ``"4:5"`` or ``"9:16"``.
            image_mime_type: MIME type of *image*; sniffed when omitted.

        Returns:
            The final mockup, exactly the profile's final size.

        Raises:
            UnsupportedRatioError: If *ratio_tag* is unknown.
            ImageProcessingError: If an input image cannot be decoded.
            ConfigurationError: If no credentials are configured.  Raised
                before any remote call.
            AllCredentialsExhaustedError: If every attempt failed.
        """
        profile = resolve_profile(ratio_tag)
        payload = self._prepare_payload(image, template, profile, image_mime_type)

        # --- Order the pool once for the whole call ------------------------
        credentials = self.pool.build()
        attempts = plan_attempts(credentials, self.model_variants)
        logger.info(
            "Generating %s mockup (%s, native %s): %d credentials x %d models.",
            "composite" if payload.is_composite else "scene",
            profile.tag,
            profile.api_ratio,
            len(credentials),
            len(self.model_variants),
        )

        abandoned: set[str] = set()
        last_failure: Exception | None = None
        calls = 0

        for attempt in attempts:
            if attempt.credential in abandoned:
                continue

            calls += 1
            label = redact(attempt.credential)
            logger.info(
                "Attempt %d: credential #%d (%s) -> %s.",
                calls,
                attempt.credential_index + 1,
                label,
                attempt.model,
            )

            try:
                produced = self._call(attempt, payload, profile)
                final_bytes = self._finish(attempt, produced, profile)
            except Exception as exc:
                # Unknown failures classify as FATAL and abandon the credential.
                last_failure = exc
                category = classify_failure(exc)
            else:
                logger.info("Credential %s succeeded with %s.", label, attempt.model)
                return GenerationResult(
                    image_bytes=final_bytes,
                    mime_type="image/png",
                    model=attempt.model,
                    credential_suffix=label,
                    attempts=calls,
                    profile=profile,
                )

            if not category.retry_next_model:
                # Invalid key, safety block, empty or unknown failure: the
                # remaining models of this credential are skipped.
                logger.error(
                    "Credential %s failed (%s) on %s: %s",
                    label,
                    category.value,
                    attempt.model,
                    last_failure,
                )
                abandoned.add(attempt.credential)
                continue

            logger.warning(
                "Quota/model failure for %s on %s: %s", label, attempt.model, last_failure
            )
            if attempt.is_last_model:
                has_next = attempt.credential_index < len(credentials) - 1
                self._retire_exhausted(attempt, has_next=has_next)

        logger.error("All credentials exhausted or failing after %d calls.", calls)
        raise AllCredentialsExhaustedError(last_failure, calls)

    # -- Internals ----------------------------------------------------------

    def _prepare_payload(
        self,
        image: bytes,
        template: bytes | None,
        profile: OutputProfile,
        image_mime_type: str | None,
    ) -> GenerationPayload:
        subject = ImagePart(data=image, mime_type=image_mime_type or sniff_mime_type(image))

        background = None
        if template is not None:
            fitted = cover_fit_bytes(template, profile.input_width, profile.input_height)
            background = ImagePart(data=fitted, mime_type="image/png")

        return build_payload(subject, background)

    def _call(
        self,
        attempt: GenerationAttempt,
        payload: GenerationPayload,
        profile: OutputProfile,
    ) -> ImagePart:
        response = self.backend.generate(
            attempt.credential,
            attempt.model,
            payload.images,
            payload.instruction,
            profile.api_ratio,
        )
        return extract_image(response)

    def _finish(
        self, attempt: GenerationAttempt, produced: ImagePart, profile: OutputProfile
    ) -> bytes:
        # The credential is remembered as soon as the service returns an image.
        self.store.set(attempt.credential)
        return center_crop_bytes(produced.data, profile.final_width, profile.final_height)

    def _retire_exhausted(self, attempt: GenerationAttempt, has_next: bool) -> None:
        label = redact(attempt.credential)
        logger.warning("Credential %s is exhausted on every model; switching.", label)

        if self.store.clear_if(attempt.credential):
            logger.info("Cleared sticky preference for %s.", label)

        if has_next and self.credential_pause_seconds > 0:
            self._sleep(self.credential_pause_seconds)

