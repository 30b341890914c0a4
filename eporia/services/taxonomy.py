"""
Mood Taxonomy

Static mapping from mood identifier to ``MoodProfile``. The table is built
once and exposed read-only, so a single instance can be shared by every
concurrent playlist request. New moods are added through data (the default
table below or a JSON file), never through engine code.
"""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

import structlog
from pydantic import ValidationError

from ..exceptions import InvalidMoodProfile, TaxonomyError
from ..models.playlist_models import MoodProfile

logger = structlog.get_logger(__name__)


# Server-side presets. focus/workout/chill match the ranges the playlist
# engine has always used; party and sleep come from the client taxonomy.
DEFAULT_MOOD_PROFILES: Dict[str, Dict[str, Any]] = {
    "focus": {
        "label": "Focus / Study",
        "requiredMoods": ["focus", "calm"],
        "audioFeatures": {"energy": [0.1, 0.6], "instrumentalness": [0.5, 1.0]},
        "preferredGenres": ["ambient", "lo_fi", "classical", "post_rock"],
    },
    "workout": {
        "label": "Workout / Gym",
        "requiredMoods": ["energetic", "workout"],
        "audioFeatures": {"energy": [0.7, 1.0], "tempo": [130, 180]},
        "preferredGenres": ["edm", "hip_hop", "rock", "trap"],
    },
    "chill": {
        "label": "Chill / Mellow",
        "requiredMoods": ["chill", "relax"],
        "audioFeatures": {"energy": [0.0, 0.5], "valence": [0.4, 0.8]},
        "preferredGenres": ["lo_fi", "rnb", "indie_pop", "reggae", "acoustic_pop"],
    },
    "party": {
        "label": "Party / Club",
        "requiredMoods": ["party", "bouncy", "happy"],
        "audioFeatures": {"danceability": [0.7, 1.0], "energy": [0.6, 1.0]},
        "preferredGenres": ["pop", "hip_hop", "edm", "reggaeton", "house"],
    },
    "sleep": {
        "label": "Sleep",
        "requiredMoods": ["sleep", "calm", "dreamy"],
        "audioFeatures": {"energy": [0.0, 0.3], "loudness": [-60, -15]},
        "preferredGenres": ["ambient", "classical", "nature_sounds"],
    },
}


class TaxonomyTable:
    """
    Read-only lookup of mood profiles.

    Usage:
        taxonomy = TaxonomyTable.default()
        profile = taxonomy.get("workout")
    """

    def __init__(self, profiles: Mapping[str, Union[MoodProfile, Dict[str, Any]]]):
        """
        Build the table, validating raw profile dictionaries.

        Args:
            profiles: Mood id to ``MoodProfile`` (or its dict form)

        Raises:
            pydantic.ValidationError: If a profile is malformed
        """
        validated = {}
        for mood_id, profile in profiles.items():
            if not isinstance(profile, MoodProfile):
                profile = MoodProfile.model_validate(profile)
            validated[mood_id] = profile

        self._profiles: Mapping[str, MoodProfile] = MappingProxyType(validated)

    @classmethod
    def default(cls) -> "TaxonomyTable":
        """Table built from the shipped presets."""
        return cls(DEFAULT_MOOD_PROFILES)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TaxonomyTable":
        """
        Load a taxonomy from a JSON object of mood id -> profile.

        Profiles use the same shape as ``DEFAULT_MOOD_PROFILES``; feature
        ranges may be ``[min, max]`` pairs or ``{"min": .., "max": ..}``.

        Args:
            path: JSON file path

        Returns:
            Loaded taxonomy table

        Raises:
            TaxonomyError: If the file is unreadable, not a JSON object,
                empty, or contains an invalid profile
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read taxonomy file", path=str(path), error=str(e))
            raise TaxonomyError(f"Cannot read taxonomy file {path}: {e}") from e

        if not isinstance(raw, dict) or not raw:
            logger.error("Taxonomy file has no mood profiles", path=str(path))
            raise TaxonomyError(f"Taxonomy file {path} must be a non-empty JSON object")

        try:
            table = cls(raw)
        except ValidationError as e:
            logger.error("Invalid mood profile in taxonomy file", path=str(path), error=str(e))
            raise TaxonomyError(f"Invalid mood profile in {path}: {e}") from e

        logger.info("Taxonomy loaded from file", path=str(path), moods=table.mood_ids())
        return table

    def get(self, mood_id: str) -> MoodProfile:
        """
        Resolve a mood identifier.

        Raises:
            InvalidMoodProfile: If the mood is not in the table
        """
        profile = self._profiles.get(mood_id)
        if profile is None:
            raise InvalidMoodProfile(mood_id)
        return profile

    def mood_ids(self) -> List[str]:
        return list(self._profiles)

    def items(self) -> List[Tuple[str, MoodProfile]]:
        return list(self._profiles.items())

    def describe(self) -> List[Dict[str, Any]]:
        """Summaries of every mood for listing endpoints."""
        return [
            {
                "id": mood_id,
                "label": profile.label or mood_id,
                "requiredMoods": list(profile.required_moods),
                "audioFeatures": {
                    name: [feature_range.min, feature_range.max]
                    for name, feature_range in profile.audio_features.items()
                },
                "preferredGenres": list(profile.preferred_genres),
            }
            for mood_id, profile in self._profiles.items()
        ]

    def __contains__(self, mood_id: object) -> bool:
        return mood_id in self._profiles

    def __iter__(self) -> Iterator[str]:
        return iter(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)


def load_taxonomy(path: Optional[Union[str, Path]] = None) -> TaxonomyTable:
    """Load the taxonomy from ``path`` if given, otherwise the presets."""
    if path:
        return TaxonomyTable.from_file(path)
    return TaxonomyTable.default()
