"""
Tests for the mood taxonomy table.
"""

import json

import pytest

from eporia.exceptions import InvalidMoodProfile, TaxonomyError
from eporia.models.playlist_models import MoodProfile
from eporia.services.taxonomy import DEFAULT_MOOD_PROFILES, TaxonomyTable, load_taxonomy


class TestDefaultTaxonomy:
    """Test the shipped presets."""

    def test_presets_present(self):
        taxonomy = TaxonomyTable.default()

        assert set(taxonomy.mood_ids()) == {"focus", "workout", "chill", "party", "sleep"}
        assert len(taxonomy) == len(DEFAULT_MOOD_PROFILES)

    def test_workout_profile(self):
        profile = TaxonomyTable.default().get("workout")

        assert isinstance(profile, MoodProfile)
        assert profile.required_moods == ("energetic", "workout")
        assert profile.audio_features["energy"].min == 0.7
        assert profile.audio_features["energy"].max == 1.0
        assert profile.audio_features["tempo"].min == 130
        assert profile.audio_features["tempo"].max == 180

    def test_focus_and_chill_profiles(self):
        taxonomy = TaxonomyTable.default()

        focus = taxonomy.get("focus")
        chill = taxonomy.get("chill")

        assert focus.required_moods == ("focus", "calm")
        assert (focus.audio_features["instrumentalness"].min, focus.audio_features["instrumentalness"].max) == (0.5, 1.0)
        assert chill.required_moods == ("chill", "relax")
        assert (chill.audio_features["valence"].min, chill.audio_features["valence"].max) == (0.4, 0.8)

    def test_unknown_mood_raises(self):
        with pytest.raises(InvalidMoodProfile) as excinfo:
            TaxonomyTable.default().get("polka")

        assert excinfo.value.mood_id == "polka"
        assert "polka" in str(excinfo.value)

    def test_contains(self):
        taxonomy = TaxonomyTable.default()

        assert "chill" in taxonomy
        assert "polka" not in taxonomy

    def test_table_is_read_only(self):
        taxonomy = TaxonomyTable.default()

        with pytest.raises(TypeError):
            taxonomy._profiles["polka"] = taxonomy.get("chill")

    def test_describe(self):
        moods = {m["id"]: m for m in TaxonomyTable.default().describe()}

        assert moods["workout"]["audioFeatures"] == {"energy": [0.7, 1.0], "tempo": [130.0, 180.0]}
        assert moods["workout"]["label"] == "Workout / Gym"
        assert "edm" in moods["workout"]["preferredGenres"]


class TestTaxonomyFromFile:
    """Test loading a taxonomy from JSON."""

    def test_load_valid_file(self, tmp_path):
        path = tmp_path / "taxonomy.json"
        path.write_text(json.dumps({
            "rainy_day": {
                "requiredMoods": ["sad", "calm"],
                "audioFeatures": {"valence": {"min": 0.0, "max": 0.4}},
            }
        }))

        taxonomy = TaxonomyTable.from_file(path)

        assert taxonomy.mood_ids() == ["rainy_day"]
        assert taxonomy.get("rainy_day").audio_features["valence"].max == 0.4

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "taxonomy.json"
        path.write_text("{not json")

        with pytest.raises(TaxonomyError):
            TaxonomyTable.from_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(TaxonomyError):
            TaxonomyTable.from_file(tmp_path / "missing.json")

    def test_empty_object(self, tmp_path):
        path = tmp_path / "taxonomy.json"
        path.write_text("{}")

        with pytest.raises(TaxonomyError):
            TaxonomyTable.from_file(path)

    @pytest.mark.parametrize("profile", [
        {"requiredMoods": [], "audioFeatures": {}},
        {"requiredMoods": ["calm"], "audioFeatures": {"energy": [0.9, 0.1]}},
        {"requiredMoods": ["calm"], "audioFeatures": {"energy": [0.1, 0.5, 0.9]}},
    ])
    def test_invalid_profile(self, tmp_path, profile):
        path = tmp_path / "taxonomy.json"
        path.write_text(json.dumps({"broken": profile}))

        with pytest.raises(TaxonomyError):
            TaxonomyTable.from_file(path)

    def test_nan_bound_rejected(self, tmp_path):
        """json accepts a bare NaN literal; the range must still be refused."""
        path = tmp_path / "taxonomy.json"
        path.write_text('{"broken": {"requiredMoods": ["calm"], "audioFeatures": {"energy": [NaN, 0.5]}}}')

        with pytest.raises(TaxonomyError):
            TaxonomyTable.from_file(path)


class TestLoadTaxonomy:
    """Test the settings-driven loader."""

    def test_defaults_without_path(self):
        assert set(load_taxonomy().mood_ids()) == set(DEFAULT_MOOD_PROFILES)

    def test_uses_path_when_given(self, tmp_path):
        path = tmp_path / "taxonomy.json"
        path.write_text(json.dumps({"drive": {"requiredMoods": ["driving"]}}))

        assert load_taxonomy(str(path)).mood_ids() == ["drive"]
