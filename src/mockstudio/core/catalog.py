"""Scenario catalog: background templates offered to the user.

Scenarios are read from a hosted table store (a PostgREST endpoint) as an
ordered list of ``{id, name, image_url}`` records, newest first.  When the
store is not configured, unreachable, or returns nothing usable, a fixed
built-in set of three scenarios is served instead.

The generation orchestrator never depends on this module; the HTTP layer
uses it to resolve a ``scenario_id`` into template bytes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, Field, ValidationError, computed_field

from mockstudio.core.errors import ScenarioError, ScenarioNotFoundError

if TYPE_CHECKING:
    from mockstudio.core.config import MockStudioConfig

logger = logging.getLogger(__name__)


def detect_ratio_tag(name: str) -> str:
    """Guess the output ratio a scenario was designed for from its name."""
    lower = name.lower()
    if "vertical" in lower or "4:5" in lower:
        return "4:5"
    if any(marker in lower for marker in ("historia", "story", "reel", "9:16")):
        return "9:16"
    return "1:1"


class ScenarioRecord(BaseModel):
    """One background scenario."""

    id: int
    name: str
    image_url: str = Field(..., min_length=1)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ratio_tag(self) -> str:
        return detect_ratio_tag(self.name)


_STORAGE = "https://njxodvldycdindlrpund.supabase.co/storage/v1/object/public/scenarios"

FALLBACK_SCENARIOS: list[ScenarioRecord] = [
    ScenarioRecord(
        id=101,
        name="Vertical post (4:5)",
        image_url=f"{_STORAGE}/Escenario%20post%20vertical.jpg",
    ),
    ScenarioRecord(
        id=102,
        name="Square post (1:1)",
        image_url=f"{_STORAGE}/Escenario%20post%20cuadrado.jpg",
    ),
    ScenarioRecord(
        id=103,
        name="Story / Reel (9:16)",
        image_url=f"{_STORAGE}/Escenario%20post%20historia%20o%20reel.jpg",
    ),
]


class ScenarioCatalog:
    """Read-only client for the hosted scenario table."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        table: str = "templates",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") if base_url else None
        self._api_key = api_key
        self._table = table

        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            self._client = httpx.Client(timeout=timeout, transport=transport, follow_redirects=True)
            self._owns_client = True

    @classmethod
    def from_config(cls, config: MockStudioConfig, **kwargs) -> ScenarioCatalog:
        return cls(
            base_url=config.catalog_url,
            api_key=config.catalog_key,
            table=config.catalog_table,
            timeout=config.catalog_timeout,
            **kwargs,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> ScenarioCatalog:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def list_scenarios(self) -> list[ScenarioRecord]:
        """Return the hosted scenarios, or the built-in set if unavailable."""
        if not self._base_url:
            return list(FALLBACK_SCENARIOS)

        try:
            response = self._client.get(
                f"{self._base_url}/rest/v1/{self._table}",
                params={"select": "*", "order": "id.desc"},
                headers=self._headers(),
            )
            response.raise_for_status()
            rows = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Scenario catalog unavailable, using built-in scenarios: %s", exc)
            return list(FALLBACK_SCENARIOS)

        if not isinstance(rows, list):
            logger.warning("Unexpected scenario payload type %s; using built-ins.", type(rows))
            return list(FALLBACK_SCENARIOS)

        records: list[ScenarioRecord] = []
        for row in rows:
            try:
                records.append(ScenarioRecord.model_validate(row))
            except ValidationError as exc:
                logger.debug("Skipping invalid scenario row %r: %s", row, exc)

        if not records:
            return list(FALLBACK_SCENARIOS)
        return records

    def get_scenario(self, scenario_id: int) -> ScenarioRecord:
        """Look up one scenario by id.

        Raises:
            ScenarioNotFoundError: If no scenario has that id.
        """
        for record in self.list_scenarios():
            if record.id == scenario_id:
                return record
        raise ScenarioNotFoundError(f"Scenario {scenario_id} not found")

    def download_image(self, record: ScenarioRecord) -> bytes:
        """Fetch the background image of *record*.

        Raises:
            ScenarioError: If the image cannot be downloaded.
        """
        try:
            response = self._client.get(record.image_url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ScenarioError(f"Could not download scenario '{record.name}': {exc}") from exc
        return response.content
