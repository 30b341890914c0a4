"""
Playlist Engine

Generates a mood playlist for a user:
1. Resolve the mood profile from the taxonomy
2. Retrieve a bounded candidate pool from the track store
3. Score every candidate
4. Rank by score, ties broken by track id
5. Truncate to the playlist size
6. Hand the playlist to the history hook

The engine holds no mutable state; one instance serves concurrent requests.
All collaborators are injected, so tests can swap in doubles for the store.
"""

import asyncio
import time
from typing import List, Optional

import structlog

from ..config import AppSettings, EngineConfig
from ..exceptions import InvalidMoodProfile
from ..models.playlist_models import MoodProfile, Playlist, ScoredTrack, Track
from ..utils.logging_config import log_performance
from .cache_manager import get_cache_manager
from .playlist_history import CachedPlaylistHistory, NullPlaylistHistory, PlaylistHistory
from .scoring import TrackScorer
from .taxonomy import TaxonomyTable, load_taxonomy
from .track_store import InMemoryTrackStore, SupabaseTrackStore, TrackStore

logger = structlog.get_logger(__name__)


class PlaylistEngine:
    """
    Mood-based playlist recommendation engine.

    Usage:
        engine = PlaylistEngine(track_store=SupabaseTrackStore())
        playlist = await engine.generate("user-123", "workout")
    """

    def __init__(
        self,
        track_store: TrackStore,
        taxonomy: Optional[TaxonomyTable] = None,
        scorer: Optional[TrackScorer] = None,
        config: Optional[EngineConfig] = None,
        history: Optional[PlaylistHistory] = None
    ):
        """
        Initialize the engine.

        Args:
            track_store: Candidate query capability
            taxonomy: Mood profiles (built-in presets when None)
            scorer: Object with ``score(track, profile)`` (default
                ``TrackScorer`` using ``config.weights``)
            config: Pool size, playlist size, retrieval timeout, weights
            history: Hook receiving each generated playlist (no-op when None)
        """
        self.track_store = track_store
        self.taxonomy = taxonomy if taxonomy is not None else TaxonomyTable.default()
        self.config = config or EngineConfig()
        self.scorer = scorer or TrackScorer(self.config.weights)
        self.history = history or NullPlaylistHistory()
        self.logger = logger.bind(service="PlaylistEngine")

        self.logger.info(
            "PlaylistEngine initialized",
            moods=self.taxonomy.mood_ids(),
            candidate_limit=self.config.candidate_limit,
            max_playlist_size=self.config.max_playlist_size
        )

    async def generate(
        self,
        user_id: str,
        mood_id: str,
        limit: Optional[int] = None
    ) -> Playlist:
        """
        Generate a ranked playlist for a mood.

        Args:
            user_id: Requesting user (passed to the history hook)
            mood_id: Key into the taxonomy
            limit: Optional playlist length below the configured maximum

        Returns:
            Playlist sorted by descending score, at most
            ``config.max_playlist_size`` tracks; empty when no candidates

        Raises:
            InvalidMoodProfile: If ``mood_id`` is not in the taxonomy
            StoreFailure: If candidate retrieval fails
            asyncio.TimeoutError: If ``config.retrieval_timeout`` elapses
            ValueError: If ``limit`` is below 1
        """
        start_time = time.time()

        try:
            profile = self.taxonomy.get(mood_id)
        except InvalidMoodProfile:
            self.logger.warning("Invalid mood profile requested", mood_id=mood_id, user_id=user_id)
            raise

        try:
            size = self._playlist_size(limit)
        except ValueError as e:
            self.logger.warning("Invalid playlist limit", mood_id=mood_id, user_id=user_id, error=str(e))
            raise

        try:
            candidates = await self._retrieve_candidates(profile)
        except Exception as e:
            self.logger.error(
                "Candidate retrieval failed",
                mood_id=mood_id,
                user_id=user_id,
                error_type=type(e).__name__,
                error=str(e)
            )
            raise

        if not candidates:
            self.logger.info("No candidates for mood", mood_id=mood_id, user_id=user_id)
            return Playlist(user_id=user_id, mood_id=mood_id)

        ranked = self.rank(self.score_candidates(candidates, profile))
        playlist = Playlist(user_id=user_id, mood_id=mood_id, tracks=ranked[:size])

        await self.history.save(user_id, playlist)

        duration = time.time() - start_time
        self.logger.info(
            "Playlist generated",
            mood_id=mood_id,
            user_id=user_id,
            candidates=len(candidates),
            track_count=playlist.count
        )
        log_performance("playlist_generate", duration, mood_id=mood_id, track_count=playlist.count)

        return playlist

    async def _retrieve_candidates(self, profile: MoodProfile) -> List[Track]:
        query = self.track_store.query_active_tracks_by_mood_tags(
            # Fresh list per call; stores may consume or reorder their argument
            list(profile.required_moods),
            self.config.candidate_limit
        )
        if self.config.retrieval_timeout is not None:
            return await asyncio.wait_for(query, timeout=self.config.retrieval_timeout)
        return await query

    def score_candidates(self, candidates: List[Track], profile: MoodProfile) -> List[ScoredTrack]:
        """Attach a score to every candidate."""
        return [
            ScoredTrack.from_track(track, self.scorer.score(track, profile))
            for track in candidates
        ]

    @staticmethod
    def rank(scored: List[ScoredTrack]) -> List[ScoredTrack]:
        """Sort by descending score; equal scores fall back to track id."""
        return sorted(scored, key=lambda track: (-track.score, track.id))

    def _playlist_size(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.config.max_playlist_size
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        return min(limit, self.config.max_playlist_size)


def create_playlist_engine(settings: AppSettings) -> PlaylistEngine:
    """
    Build a playlist engine from service settings.

    Args:
        settings: Service settings (store backend, taxonomy file, history)

    Returns:
        Configured engine
    """
    if settings.track_store == "supabase":
        track_store: TrackStore = SupabaseTrackStore(table_name=settings.tracks_table)
    elif settings.tracks_path:
        track_store = InMemoryTrackStore.from_file(settings.tracks_path)
    else:
        track_store = InMemoryTrackStore()
        logger.warning(
            "In-memory track store is empty; every playlist will be empty. "
            "Set TRACKS_PATH or TRACK_STORE=supabase"
        )

    history: PlaylistHistory = NullPlaylistHistory()
    if settings.history_enabled:
        history = CachedPlaylistHistory(get_cache_manager(settings.cache_dir))

    return PlaylistEngine(
        track_store=track_store,
        taxonomy=load_taxonomy(settings.taxonomy_path),
        config=settings.engine,
        history=history
    )
