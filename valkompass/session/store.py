"""
Session snapshot persistence.

Enables save/resume so the questionnaire survives restarts of the program.
A single snapshot is stored as JSON in ~/.valkompass/{session_key}.json.
The key carries the schema version, so an incompatible snapshot from an
older release is simply not found.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from valkompass.core.errors import StorageError
from valkompass.core.models import SessionSnapshot

DEFAULT_SESSION_DIR = Path.home() / ".valkompass"
DEFAULT_SESSION_KEY = "valkompass_session_v3"
DEFAULT_TTL_HOURS = 24


class SessionStore:
    """
    Stores the single session snapshot.

    load() only returns snapshots younger than the TTL. Expired or
    unreadable snapshots are removed and reported as absent.
    """

    def __init__(
        self,
        session_dir: Optional[Path] = None,
        key: str = DEFAULT_SESSION_KEY,
        ttl_hours: int = DEFAULT_TTL_HOURS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session_dir = Path(session_dir or DEFAULT_SESSION_DIR)
        self.key = key
        self.ttl_hours = ttl_hours
        self._clock = clock

    @property
    def path(self) -> Path:
        return self.session_dir / f"{self.key}.json"

    def save(self, snapshot: SessionSnapshot) -> Path:
        """Overwrite the stored snapshot."""
        try:
            self.session_dir.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(self.dumps(snapshot))
        except OSError as e:
            raise StorageError(f"Could not write session snapshot: {e}") from e
        return self.path

    def load(self) -> Optional[SessionSnapshot]:
        """Load the stored snapshot if it exists and has not expired."""
        if not self.path.exists():
            return None

        try:
            snapshot = self._read()
        except StorageError as e:
            logger.warning(f"Discarding unreadable session snapshot: {e}")
            self.clear()
            return None

        if snapshot.is_expired(self.ttl_hours, now=self._clock()):
            logger.info(f"Session snapshot from {snapshot.last_updated} expired")
            self.clear()
            return None

        return snapshot

    def clear(self) -> bool:
        """Delete the stored snapshot."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Could not remove session snapshot: {e}")
            return False
        return True

    def _read(self) -> SessionSnapshot:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return SessionSnapshot.from_dict(data)
        except (OSError, json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            raise StorageError(str(e)) from e

    @staticmethod
    def dumps(snapshot: SessionSnapshot) -> str:
        return json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)
