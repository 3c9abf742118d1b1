"""Best score and user settings persistence.

The simulation never touches disk; this store listens for GAME_OVER on
the event bus and records the result. File layout::

    <data_path>/scores.json
    {
      "best_score": 420,
      "settings": {"show_trail": true, ...},
      "updated": "2026-10-19T12:00:00"
    }
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from dodger.core.events import Event, EventBus, EventType

logger = logging.getLogger(__name__)

DEFAULT_USER_SETTINGS: Dict[str, Any] = {
    "show_trail": True,
    "effects": True,
}


class ScoreStore:
    """JSON-backed persistence sink for the best score and user settings."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.best_score = 0
        self.settings: Dict[str, Any] = dict(DEFAULT_USER_SETTINGS)
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.load()

    def load(self) -> None:
        """Read the store; a missing or corrupt file leaves defaults in place."""
        if not self.path.exists():
            logger.info(f"No score store at {self.path}, starting fresh")
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self.best_score = max(0, int(data.get("best_score", 0)))
            saved = data.get("settings", {})
            if isinstance(saved, dict):
                self.settings.update(saved)
            logger.info(f"Loaded score store: best {self.best_score}")
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Unreadable score store {self.path}: {e}")

    def save(self) -> bool:
        """Write the store atomically.

        Returns:
            True on success
        """
        entry = {
            "best_score": self.best_score,
            "settings": self.settings,
            "updated": datetime.now().isoformat(timespec="seconds"),
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        except OSError as e:
            logger.error(f"Failed to save score store: {e}")
            return False

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entry, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            self._discard(tmp_name)
            logger.error(f"Failed to save score store: {e}")
            return False
        except BaseException:
            self._discard(tmp_name)
            raise

        logger.debug(f"Saved score store: {self.path}")
        return True

    def record_score(self, score: int) -> bool:
        """Record a finished run. Returns True if it set a new best."""
        if score <= self.best_score:
            return False
        logger.info(f"New best score: {score} (was {self.best_score})")
        self.best_score = score
        self.save()
        return True

    def get_setting(self, key: str, default: Any = None) -> Any:
        return self.settings.get(key, default)

    def set_setting(self, key: str, value: Any) -> None:
        """Change a user setting and save. Values must be JSON serialisable."""
        if self.settings.get(key) == value:
            return
        previous = dict(self.settings)
        self.settings[key] = value
        try:
            self.save()
        except TypeError:
            self.settings = previous
            raise

    def attach(self, event_bus: EventBus) -> None:
        """Start recording GAME_OVER results from the bus."""
        self.detach()
        self._unsubscribe = event_bus.subscribe(EventType.GAME_OVER, self._on_game_over)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_game_over(self, event: Event) -> None:
        self.record_score(int(event.data.get("final_score", 0)))

    @staticmethod
    def _discard(tmp_name: str) -> None:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
