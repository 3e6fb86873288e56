"""Credential pool: which access tokens to try, and in what order.

Credentials are opaque strings identified by their exact value.  The pool is
a set (duplicates collapse) whose order matters only for attempt sequencing.

Ordering rule for one generation call
-------------------------------------
- If the preference store holds a credential that is still a pool member,
  it goes first and the remaining credentials follow in a random order.
- Otherwise the whole pool is randomly permuted.

The random order spreads load across credentials so that the same token is
not always the first to burn its daily quota.  The diagnostics prober does
not use this ordering; it walks :meth:`CredentialPool.listing` instead.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import TYPE_CHECKING

from mockstudio.core.errors import ConfigurationError
from mockstudio.core.preferences import PreferenceStore

if TYPE_CHECKING:
    from mockstudio.core.config import MockStudioConfig

logger = logging.getLogger(__name__)


def parse_credentials(pool_string: str | None, legacy: str | None = None) -> list[str]:
    """Parse a comma-separated credential list.

    Whitespace is trimmed, empty entries are discarded and duplicates
    collapse onto their first occurrence.  If nothing remains, the legacy
    single credential is used when it is set.

    Args:
        pool_string: Comma-separated credentials, e.g. ``"key-a, key-b"``.
        legacy: Optional single credential used only as a fallback.

    Returns:
        Credentials in configuration order.
    """
    credentials: list[str] = []
    for raw in (pool_string or "").split(","):
        credential = raw.strip()
        if credential and credential not in credentials:
            credentials.append(credential)

    if not credentials and legacy and legacy.strip():
        credentials.append(legacy.strip())

    return credentials


def redact(credential: str) -> str:
    """Return a short display form of *credential* (its last four characters)."""
    return f"...{credential[-4:]}"


class CredentialPool:
    """Configured credentials plus the sticky preference.

    Attributes:
        store: Preference store consulted by :meth:`build`.
    """

    def __init__(
        self,
        credentials: Sequence[str],
        store: PreferenceStore,
        rng: random.Random | None = None,
    ) -> None:
        # Deduplicate while keeping configuration order.
        self._credentials: list[str] = list(dict.fromkeys(credentials))
        self.store = store
        self._rng = rng or random.Random()

    @classmethod
    def from_config(
        cls,
        config: MockStudioConfig,
        store: PreferenceStore,
        rng: random.Random | None = None,
    ) -> CredentialPool:
        return cls(config.credentials, store, rng=rng)

    def __len__(self) -> int:
        return len(self._credentials)

    def listing(self) -> list[str]:
        """Credentials in raw configuration order."""
        return list(self._credentials)

    def build(self) -> list[str]:
        """Return the attempt order for one generation call.

        Raises:
            ConfigurationError: If no credentials are configured.
        """
        if not self._credentials:
            raise ConfigurationError("No API credentials are configured.")

        preferred = self.store.get()
        if preferred is not None and preferred in self._credentials:
            others = [c for c in self._credentials if c != preferred]
            self._rng.shuffle(others)
            logger.debug("Sticky credential %s goes first.", redact(preferred))
            return [preferred, *others]

        ordered = list(self._credentials)
        self._rng.shuffle(ordered)
        return ordered
