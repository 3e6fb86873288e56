"""Credential pool health check.

:class:`DiagnosticsProber` sends one minimal, low-cost request per configured
credential and reports how each one fared.  Probes run strictly one after
another with a fixed pause in between: probing a whole pool concurrently from
one origin is exactly the traffic pattern that trips abuse detection.

The prober walks the raw configuration order, never raises for a failing
credential, and never touches the sticky preference.

Run it from the command line with ``mockstudio-diagnose``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Literal

from mockstudio.core.backend import GenerationBackend
from mockstudio.core.classifier import diagnostic_label
from mockstudio.core.credentials import redact

if TYPE_CHECKING:
    from mockstudio.core.config import MockStudioConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyStatus:
    """Probe outcome for one credential.

    Attributes:
        key: Redacted credential (``...abcd``).
        status: ``"ok"`` or ``"error"``.
        latency_ms: Round-trip time of the probe in milliseconds.
        message: Short failure category for display, ``None`` when ok.
    """

    key: str
    status: Literal["ok", "error"]
    latency_ms: int
    message: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class DiagnosticsProber:
    """Sequentially probes every configured credential."""

    def __init__(
        self,
        backend: GenerationBackend,
        credentials: Sequence[str],
        probe_model: str,
        probe_prompt: str = "ping",
        pause_seconds: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.backend = backend
        self.credentials = list(dict.fromkeys(credentials))
        self.probe_model = probe_model
        self.probe_prompt = probe_prompt
        self.pause_seconds = pause_seconds
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_config(cls, config: MockStudioConfig, backend: GenerationBackend) -> DiagnosticsProber:
        return cls(
            backend=backend,
            credentials=config.credentials,
            probe_model=config.probe_model,
            probe_prompt=config.probe_prompt,
            pause_seconds=config.probe_pause_seconds,
        )

    def probe_all(self) -> list[KeyStatus]:
        """Probe each credential once, in configuration order."""
        if not self.credentials:
            logger.warning("No API credentials configured; nothing to probe.")
            return []

        results: list[KeyStatus] = []
        for index, credential in enumerate(self.credentials):
            if index > 0 and self.pause_seconds > 0:
                self._sleep(self.pause_seconds)
            results.append(self._probe(credential))

        healthy = sum(1 for r in results if r.status == "ok")
        logger.info("Diagnostics: %d/%d credentials healthy.", healthy, len(results))
        return results

    def _probe(self, credential: str) -> KeyStatus:
        start = self._clock()
        try:
            self.backend.probe(credential, self.probe_model, self.probe_prompt)
        except Exception as exc:
            latency_ms = int((self._clock() - start) * 1000)
            label = diagnostic_label(exc)
            logger.warning("Probe of %s failed (%s): %s", redact(credential), label, exc)
            return KeyStatus(redact(credential), "error", latency_ms, label)

        latency_ms = int((self._clock() - start) * 1000)
        return KeyStatus(redact(credential), "ok", latency_ms)


def main() -> None:
    """Probe the configured pool and print one line per credential.

    Registered as the ``mockstudio-diagnose`` console script.
    """
    from mockstudio.core.backend import GenAIBackend
    from mockstudio.core.config import config

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    prober = DiagnosticsProber.from_config(config, GenAIBackend(config.request_timeout_ms))
    results = prober.probe_all()
    if not results:
        print("No API credentials configured (set MOCKSTUDIO_API_KEYS_POOL).")
        return

    for status in results:
        detail = status.message or ""
        print(f"{status.key:>10}  {status.status.upper():<5}  {status.latency_ms:>6} ms  {detail}")


if __name__ == "__main__":
    main()
