"""Single-slot store for the sticky credential.

The credential that most recently produced a successful generation is
remembered and tried first on the next call.  The store is injected into
the orchestrator and the credential pool instead of being ambient global
state, so tests can substitute :class:`InMemoryPreferenceStore`.

Lifecycle of the slot:
- set when a credential produces a successful generation
- cleared when that same credential is later found exhausted
- otherwise left untouched
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


class PreferenceStore(ABC):
    """Holds zero or one preferred credential."""

    @abstractmethod
    def get(self) -> str | None:
        """Return the preferred credential, or None."""

    @abstractmethod
    def set(self, credential: str) -> None:
        """Record *credential* as the preferred one."""

    @abstractmethod
    def clear(self) -> None:
        """Forget the preferred credential."""

    def clear_if(self, credential: str) -> bool:
        """Clear the slot only if it currently holds *credential*.

        Returns:
            True if the slot was cleared, False otherwise.
        """
        if self.get() == credential:
            self.clear()
            return True
        return False


class InMemoryPreferenceStore(PreferenceStore):
    """Preference slot that lives as long as the process."""

    def __init__(self, credential: str | None = None) -> None:
        self._credential = credential

    def get(self) -> str | None:
        return self._credential

    def set(self, credential: str) -> None:
        self._credential = credential

    def clear(self) -> None:
        self._credential = None


class SqlitePreferenceStore(PreferenceStore):
    """Preference slot persisted in a one-table SQLite database.

    The slot survives server restarts within one environment.  Storage errors
    are logged and treated as "no preference": a missing sticky credential
    only costs ordering, never a generation.
    """

    def __init__(self, db_path: Path, slot: str = "sticky_credential"):
        """Initialize the preference database.

        Args:
            db_path: Path to SQLite database file
            slot: Name of the row holding the preferred credential
        """
        self.db_path = Path(db_path)
        self.slot = slot
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_db()
        logger.info("Initialized preference store at %s", self.db_path)

    def _initialize_db(self) -> None:
        """Create database schema if it doesn't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS preferences (
                    slot TEXT PRIMARY KEY,
                    credential TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """)
            conn.commit()

    def get(self) -> str | None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT credential FROM preferences WHERE slot = ? LIMIT 1",
                    (self.slot,),
                ).fetchone()
        except sqlite3.Error as e:
            logger.error("Error reading preference slot '%s': %s", self.slot, e)
            return None
        return row[0] if row else None

    def set(self, credential: str) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                # Single row per slot; INSERT OR REPLACE overwrites the previous value.
                conn.execute(
                    """
                    INSERT OR REPLACE INTO preferences (slot, credential, updated_at)
                    VALUES (?, ?, ?)
                    """,
                    (self.slot, credential, datetime.now().isoformat()),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error("Error writing preference slot '%s': %s", self.slot, e)

    def clear(self) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("DELETE FROM preferences WHERE slot = ?", (self.slot,))
                conn.commit()
        except sqlite3.Error as e:
            logger.error("Error clearing preference slot '%s': %s", self.slot, e)
