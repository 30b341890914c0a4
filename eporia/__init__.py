"""
Eporia - Mood-Based Playlist Engine

Server-side playlist recommendation engine for the Eporia music platform.
Retrieves mood-tagged candidate tracks, scores them against audio-feature
ranges and popularity, and returns a bounded, ranked playlist.
"""

__version__ = "1.0.0"
__author__ = "Eporia Team"
