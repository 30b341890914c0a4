"""
Playlist History

Extension point called after every successful ``generate``. The default
does nothing; ``CachedPlaylistHistory`` keeps the most recent playlists per
user in the diskcache-backed ``CacheManager``.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List

import structlog

from ..models.playlist_models import Playlist
from .cache_manager import CacheManager

logger = structlog.get_logger(__name__)

HISTORY_CACHE_TYPE = "playlists"


class PlaylistHistory(ABC):
    """Receives every generated playlist."""

    @abstractmethod
    async def save(self, user_id: str, playlist: Playlist) -> None:
        """Record a playlist generated for ``user_id``."""


class NullPlaylistHistory(PlaylistHistory):
    """History hook that records nothing."""

    async def save(self, user_id: str, playlist: Playlist) -> None:
        return None


class CachedPlaylistHistory(PlaylistHistory):
    """Most recent playlists per user, newest first."""

    def __init__(self, cache_manager: CacheManager, max_entries: int = 20):
        """
        Args:
            cache_manager: Cache holding the ``playlists`` store
            max_entries: Playlists kept per user
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.cache_manager = cache_manager
        self.max_entries = max_entries
        self.logger = logger.bind(component="CachedPlaylistHistory")

    def _key(self, user_id: str) -> str:
        return self.cache_manager.make_key("playlist_history", user_id)

    async def save(self, user_id: str, playlist: Playlist) -> None:
        entry = {
            "mood": playlist.mood_id,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "tracks": [{"id": track.id, "score": track.score} for track in playlist.tracks],
        }
        self.cache_manager.push_recent(
            HISTORY_CACHE_TYPE, self._key(user_id), entry, self.max_entries
        )

        self.logger.debug(
            "Playlist saved to history",
            user_id=user_id,
            mood_id=playlist.mood_id,
            track_count=playlist.count
        )

    def recent(self, user_id: str) -> List[Dict[str, Any]]:
        """Saved playlists for a user, newest first."""
        return list(self.cache_manager.get(HISTORY_CACHE_TYPE, self._key(user_id), default=[]))
