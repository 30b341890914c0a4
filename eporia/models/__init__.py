"""
Models Module

Data models for mood profiles, tracks and playlists.
"""

from .playlist_models import (
    ACTIVE_STATUS,
    FeatureRange,
    MoodProfile,
    MusicProfile,
    TrackStats,
    Track,
    ScoredTrack,
    Playlist,
)

__all__ = [
    "ACTIVE_STATUS",
    "FeatureRange",
    "MoodProfile",
    "MusicProfile",
    "TrackStats",
    "Track",
    "ScoredTrack",
    "Playlist",
]
