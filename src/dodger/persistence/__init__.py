"""Persistence collaborators."""

from dodger.persistence.store import ScoreStore, DEFAULT_USER_SETTINGS

__all__ = ["ScoreStore", "DEFAULT_USER_SETTINGS"]
