"""
Track Store

Query capability consumed by the playlist engine: fetch up to ``limit``
active tracks whose mood tags overlap a given tag set. Order among the
results is unspecified; the engine re-sorts.

Implementations:
- InMemoryTrackStore: list-backed, for tests and local development
- SupabaseTrackStore: PostgREST query against a Supabase ``tracks`` table
"""

import asyncio
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import structlog
from dotenv import load_dotenv
from pydantic import ValidationError
from supabase import Client, ClientOptions, create_client

from ..exceptions import StoreFailure
from ..models.playlist_models import ACTIVE_STATUS, Track

logger = structlog.get_logger(__name__)


class TrackStore(ABC):
    """Read-only track query capability."""

    @abstractmethod
    async def query_active_tracks_by_mood_tags(
        self,
        tags: Iterable[str],
        limit: int
    ) -> List[Track]:
        """
        Return up to ``limit`` active tracks sharing at least one tag.

        Args:
            tags: Mood tags to match (match-any)
            limit: Maximum number of tracks

        Returns:
            Matching tracks in store order

        Raises:
            StoreFailure: If the store cannot be queried
        """


class InMemoryTrackStore(TrackStore):
    """Track store over an in-process list. Preserves insertion order."""

    def __init__(self, tracks: Optional[Iterable[Union[Track, Dict[str, Any]]]] = None):
        self._tracks: List[Track] = []
        for track in tracks or []:
            self.add(track)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "InMemoryTrackStore":
        """
        Load a JSON array of track documents.

        Args:
            path: JSON file path

        Returns:
            Store holding every document in file order

        Raises:
            StoreFailure: If the file is unreadable, not a JSON array, or
                holds a document that fails validation
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read track file", path=str(path), error=str(e))
            raise StoreFailure(f"Cannot read track file {path}: {e}") from e

        if not isinstance(raw, list):
            logger.error("Track file is not a JSON array", path=str(path))
            raise StoreFailure(f"Track file {path} must be a JSON array of track documents")

        try:
            store = cls(raw)
        except ValidationError as e:
            logger.error("Malformed track document in file", path=str(path), error=str(e))
            raise StoreFailure(f"Malformed track document in {path}: {e}") from e

        if not store:
            logger.warning("Track file holds no tracks", path=str(path))
        logger.info("Tracks loaded from file", path=str(path), tracks=len(store))
        return store

    def add(self, track: Union[Track, Dict[str, Any]]) -> Track:
        if not isinstance(track, Track):
            track = Track.model_validate(track)
        self._tracks.append(track)
        return track

    async def query_active_tracks_by_mood_tags(
        self,
        tags: Iterable[str],
        limit: int
    ) -> List[Track]:
        tag_set = set(tags)
        matches = []
        for track in self._tracks:
            if len(matches) >= limit:
                break
            if track.is_active and tag_set.intersection(track.mood_ids):
                matches.append(track)
        return matches

    def __len__(self) -> int:
        return len(self._tracks)


class SupabaseTrackStore(TrackStore):
    """
    Track store backed by a Supabase (PostgREST) table.

    Expects an array column of mood tags and a status column; the
    ``music_profile`` and ``stats`` JSON columns are parsed into the track
    model. The synchronous Supabase client runs in a worker thread so the
    event loop stays free and the query can be cancelled by the caller.
    """

    def __init__(
        self,
        client: Optional[Client] = None,
        table_name: str = "tracks",
        mood_column: str = "mood_ids",
        status_column: str = "status",
        client_timeout: int = 10
    ):
        """
        Initialize the store.

        Args:
            client: Pre-configured Supabase client (created from
                SUPABASE_URL / SUPABASE_KEY when None)
            table_name: Table holding track documents
            mood_column: Array column with mood tags
            status_column: Column holding the lifecycle flag
            client_timeout: PostgREST timeout in seconds for a created client

        Raises:
            ValueError: If no client is given and credentials are missing
        """
        self.table_name = table_name
        self.mood_column = mood_column
        self.status_column = status_column
        self.client = client or self._create_client(client_timeout)
        self.logger = logger.bind(component="SupabaseTrackStore", table=table_name)

        self.logger.info("Supabase track store initialized")

    @staticmethod
    def _create_client(client_timeout: int) -> Client:
        load_dotenv()

        supabase_url = os.getenv("SUPABASE_URL")
        supabase_key = os.getenv("SUPABASE_KEY")

        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")

        options = ClientOptions(postgrest_client_timeout=client_timeout)
        return create_client(supabase_url, supabase_key, options=options)

    def _execute_query(self, tags: List[str], limit: int) -> List[Dict[str, Any]]:
        response = (
            self.client.table(self.table_name)
            .select("*")
            .overlaps(self.mood_column, tags)
            .eq(self.status_column, ACTIVE_STATUS)
            .limit(limit)
            .execute()
        )
        return response.data or []

    async def query_active_tracks_by_mood_tags(
        self,
        tags: Iterable[str],
        limit: int
    ) -> List[Track]:
        tag_list = list(tags)

        try:
            rows = await asyncio.to_thread(self._execute_query, tag_list, limit)
        except Exception as e:
            self.logger.error("Track query failed", tags=tag_list, limit=limit, error=str(e))
            raise StoreFailure(f"Track query failed: {e}") from e

        try:
            tracks = [Track.model_validate(row) for row in rows]
        except ValidationError as e:
            self.logger.error("Malformed track document", error=str(e))
            raise StoreFailure(f"Malformed track document: {e}") from e

        self.logger.debug("Track query complete", tags=tag_list, results=len(tracks))
        return tracks
