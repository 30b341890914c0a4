"""
Services Module

Playlist engine and its collaborators: taxonomy, scoring, track stores,
history hook and cache.
"""

from .taxonomy import TaxonomyTable, DEFAULT_MOOD_PROFILES, load_taxonomy
from .scoring import TrackScorer
from .track_store import TrackStore, InMemoryTrackStore, SupabaseTrackStore
from .playlist_history import PlaylistHistory, NullPlaylistHistory, CachedPlaylistHistory
from .cache_manager import CacheManager, get_cache_manager, close_cache_manager
from .playlist_engine import PlaylistEngine, create_playlist_engine

__all__ = [
    "TaxonomyTable",
    "DEFAULT_MOOD_PROFILES",
    "load_taxonomy",
    "TrackScorer",
    "TrackStore",
    "InMemoryTrackStore",
    "SupabaseTrackStore",
    "PlaylistHistory",
    "NullPlaylistHistory",
    "CachedPlaylistHistory",
    "CacheManager",
    "get_cache_manager",
    "close_cache_manager",
    "PlaylistEngine",
    "create_playlist_engine",
]
