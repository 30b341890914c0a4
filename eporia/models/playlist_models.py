"""
Playlist Models

Pydantic models for mood profiles, track documents, scored tracks and
generated playlists.

Track documents arrive from the store with camelCase keys
(``moodIds``, ``musicProfile.typicalFeatures``, ``stats.playCount``);
snake_case names are accepted as well. Fields the engine does not read
(title, artist name, artwork...) are kept as extras so callers can
marshal the full document back out.
"""

import math
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ACTIVE_STATUS = "active"


class FeatureRange(BaseModel):
    """Inclusive numeric range for a single audio feature."""

    model_config = ConfigDict(frozen=True)

    min: float = Field(..., description="Lower bound (inclusive).")
    max: float = Field(..., description="Upper bound (inclusive).")

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data: Any) -> Any:
        # Taxonomy files use the compact [min, max] form
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise ValueError("feature range must be a [min, max] pair")
            return {"min": data[0], "max": data[1]}
        return data

    @model_validator(mode="after")
    def _check_order(self) -> "FeatureRange":
        if not (math.isfinite(self.min) and math.isfinite(self.max)):
            raise ValueError(f"feature range bounds must be finite, got [{self.min}, {self.max}]")
        if self.min > self.max:
            raise ValueError(f"feature range min {self.min} exceeds max {self.max}")
        return self

    def contains(self, value: float) -> bool:
        """Check whether a value falls inside the range, bounds included."""
        return self.min <= value <= self.max


class MoodProfile(BaseModel):
    """
    Selection criteria for a mood.

    A track qualifies for retrieval when it carries at least one of the
    required mood tags; it earns the match bonus when its audio features
    sit inside the configured ranges.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    required_moods: Tuple[str, ...] = Field(
        ...,
        alias="requiredMoods",
        min_length=1,
        description="Mood tags used for candidate retrieval (match-any)."
    )
    audio_features: Mapping[str, FeatureRange] = Field(
        default_factory=dict,
        validate_default=True,
        alias="audioFeatures",
        description="Feature name to inclusive range."
    )
    preferred_genres: Tuple[str, ...] = Field(
        default=(),
        alias="preferredGenres",
        description="Genre ids associated with the mood. Informational only."
    )
    label: Optional[str] = Field(None, description="Display name.")

    @field_validator("audio_features", mode="after")
    @classmethod
    def _read_only_features(cls, value: Mapping[str, FeatureRange]) -> Mapping[str, FeatureRange]:
        # Shared by every request for the process lifetime; never mutated
        return MappingProxyType(dict(value))


class MusicProfile(BaseModel):
    """Audio characteristics attached to a track document."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    typical_features: Dict[str, Optional[float]] = Field(
        default_factory=dict,
        alias="typicalFeatures"
    )

    @field_validator("typical_features", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class TrackStats(BaseModel):
    """Engagement statistics attached to a track document."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    play_count: int = Field(0, ge=0, alias="playCount")

    @field_validator("play_count", mode="before")
    @classmethod
    def _default_play_count(cls, value: Any) -> Any:
        return 0 if value is None else value


class Track(BaseModel):
    """
    A track document as read from the store.

    The engine never writes to a track; optional sections default to empty
    so that a missing ``stats`` block means zero plays and a missing
    ``musicProfile`` means no known features.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., description="Unique track identifier.")
    mood_ids: List[str] = Field(default_factory=list, alias="moodIds")
    status: Optional[str] = Field(None, description="Lifecycle flag.")
    music_profile: MusicProfile = Field(default_factory=MusicProfile, alias="musicProfile")
    stats: TrackStats = Field(default_factory=TrackStats)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        # Postgres rows may carry integer or UUID primary keys
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("mood_ids", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("music_profile", "stats", mode="before")
    @classmethod
    def _none_to_section(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def features(self) -> Dict[str, Optional[float]]:
        return self.music_profile.typical_features

    @property
    def play_count(self) -> int:
        return self.stats.play_count

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE_STATUS


class ScoredTrack(Track):
    """A track with the score computed for one playlist request."""

    score: float = Field(0.0, ge=0.0)

    @classmethod
    def from_track(cls, track: Track, score: float) -> "ScoredTrack":
        """Copy a track and attach a score."""
        return cls.model_validate({**track.model_dump(by_alias=True), "score": score})


class Playlist(BaseModel):
    """Ranked output of one ``generate`` call."""

    user_id: str
    mood_id: str
    tracks: List[ScoredTrack] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.tracks)

    def to_response(self) -> Dict[str, Any]:
        """Convert to the JSON shape returned by the playlist endpoint."""
        return {
            "success": True,
            "mood": self.mood_id,
            "count": self.count,
            "tracks": [track.model_dump(mode="json", by_alias=True) for track in self.tracks],
        }
