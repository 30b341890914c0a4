"""
Tests for the track store implementations.

The Supabase client is mocked; only the query it is asked to run and the
handling of its results are checked.
"""

import json

import pytest
from unittest.mock import Mock, patch

from eporia.exceptions import StoreFailure
from eporia.models.playlist_models import Track
from eporia.services.track_store import InMemoryTrackStore, SupabaseTrackStore


def doc(track_id, moods, status="active"):
    return {"id": track_id, "moodIds": moods, "status": status}


class TestInMemoryTrackStore:
    """Test the list-backed store."""

    @pytest.fixture
    def store(self):
        return InMemoryTrackStore([
            doc("a", ["workout"]),
            doc("b", ["chill"]),
            doc("c", ["energetic", "party"]),
            doc("d", ["workout"], status="draft"),
            doc("e", ["workout", "energetic"]),
            doc("f", []),
        ])

    @pytest.mark.asyncio
    async def test_match_any_tag_and_active_only(self, store):
        tracks = await store.query_active_tracks_by_mood_tags(["energetic", "workout"], 200)

        assert [t.id for t in tracks] == ["a", "c", "e"]

    @pytest.mark.asyncio
    async def test_limit_caps_results(self, store):
        tracks = await store.query_active_tracks_by_mood_tags(["energetic", "workout"], 2)

        assert [t.id for t in tracks] == ["a", "c"]

    @pytest.mark.asyncio
    async def test_no_match(self, store):
        assert await store.query_active_tracks_by_mood_tags(["sleep"], 200) == []

    def test_add_accepts_models_and_dicts(self):
        store = InMemoryTrackStore()

        store.add(Track(id="x", moodIds=["chill"], status="active"))
        added = store.add(doc("y", ["chill"]))

        assert isinstance(added, Track)
        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_from_file(self, tmp_path):
        path = tmp_path / "tracks.json"
        path.write_text(json.dumps([doc("a", ["workout"]), doc("b", ["chill"], status="draft")]))

        store = InMemoryTrackStore.from_file(path)

        assert len(store) == 2
        tracks = await store.query_active_tracks_by_mood_tags(["workout", "chill"], 10)
        assert [t.id for t in tracks] == ["a"]

    @pytest.mark.parametrize("content", [
        "{not json",
        json.dumps({"id": "a"}),
        json.dumps([{"moodIds": ["chill"]}]),
        json.dumps([{"id": "a", "stats": {"playCount": -3}}]),
    ])
    def test_from_file_rejects_bad_content(self, tmp_path, content):
        path = tmp_path / "tracks.json"
        path.write_text(content)

        with pytest.raises(StoreFailure):
            InMemoryTrackStore.from_file(path)

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(StoreFailure):
            InMemoryTrackStore.from_file(tmp_path / "missing.json")


@pytest.fixture
def supabase_client():
    """Mock Supabase client whose query chain returns two rows."""
    client = Mock()
    response = Mock()
    response.data = [
        {
            "id": 17,
            "mood_ids": ["workout"],
            "status": "active",
            "music_profile": {"typicalFeatures": {"energy": 0.8, "tempo": 150}},
            "stats": {"playCount": 1000},
            "title": "Run",
        },
        {
            "id": "abc",
            "mood_ids": ["energetic"],
            "status": "active",
            "music_profile": None,
            "stats": None,
        },
    ]
    query = client.table.return_value.select.return_value
    query.overlaps.return_value.eq.return_value.limit.return_value.execute.return_value = response
    return client


class TestSupabaseTrackStore:
    """Test the Supabase-backed store."""

    @pytest.mark.asyncio
    async def test_builds_overlap_query(self, supabase_client):
        store = SupabaseTrackStore(client=supabase_client, table_name="tracks")

        await store.query_active_tracks_by_mood_tags(["energetic", "workout"], 200)

        supabase_client.table.assert_called_once_with("tracks")
        query = supabase_client.table.return_value.select
        query.assert_called_once_with("*")
        query.return_value.overlaps.assert_called_once_with("mood_ids", ["energetic", "workout"])
        query.return_value.overlaps.return_value.eq.assert_called_once_with("status", "active")
        query.return_value.overlaps.return_value.eq.return_value.limit.assert_called_once_with(200)

    @pytest.mark.asyncio
    async def test_rows_parsed_into_tracks(self, supabase_client):
        store = SupabaseTrackStore(client=supabase_client)

        tracks = await store.query_active_tracks_by_mood_tags(["workout"], 200)

        assert [t.id for t in tracks] == ["17", "abc"]
        assert tracks[0].features == {"energy": 0.8, "tempo": 150}
        assert tracks[0].play_count == 1000
        assert tracks[1].features == {}
        assert tracks[1].play_count == 0

    @pytest.mark.asyncio
    async def test_client_error_raises_store_failure(self, supabase_client):
        error = ConnectionError("connection refused")
        supabase_client.table.side_effect = error
        store = SupabaseTrackStore(client=supabase_client)

        with pytest.raises(StoreFailure) as excinfo:
            await store.query_active_tracks_by_mood_tags(["workout"], 200)

        assert excinfo.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_malformed_row_raises_store_failure(self, supabase_client):
        query = supabase_client.table.return_value.select.return_value
        response = query.overlaps.return_value.eq.return_value.limit.return_value.execute.return_value
        response.data = [{"id": "bad", "mood_ids": ["workout"], "stats": {"playCount": -5}}]
        store = SupabaseTrackStore(client=supabase_client)

        with pytest.raises(StoreFailure):
            await store.query_active_tracks_by_mood_tags(["workout"], 200)

    @pytest.mark.asyncio
    async def test_empty_response(self, supabase_client):
        query = supabase_client.table.return_value.select.return_value
        response = query.overlaps.return_value.eq.return_value.limit.return_value.execute.return_value
        response.data = None
        store = SupabaseTrackStore(client=supabase_client)

        assert await store.query_active_tracks_by_mood_tags(["workout"], 200) == []

    def test_missing_credentials(self):
        with patch("eporia.services.track_store.load_dotenv"), \
             patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError):
                SupabaseTrackStore()

    def test_creates_client_from_environment(self):
        env = {"SUPABASE_URL": "https://example.supabase.co", "SUPABASE_KEY": "service-key"}
        with patch("eporia.services.track_store.load_dotenv"), \
             patch.dict("os.environ", env, clear=True), \
             patch("eporia.services.track_store.create_client") as mock_create:
            store = SupabaseTrackStore(table_name="catalog")

        assert store.client is mock_create.return_value
        assert store.table_name == "catalog"
        args, kwargs = mock_create.call_args
        assert args == ("https://example.supabase.co", "service-key")
        assert "options" in kwargs
