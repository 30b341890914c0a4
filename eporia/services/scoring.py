"""
Track Scoring

Scores a candidate track against a mood profile:

    score = match_bonus (all-or-nothing) + play_count * popularity_multiplier

The match bonus is awarded when every profile feature that the track
actually has lies inside its range. A feature the track lacks (missing key,
null or NaN) is skipped rather than counted against it. A value of 0 is a
real measurement and is range-checked like any other.
"""

import math
from typing import Dict, Mapping, Optional

import structlog

from ..config import ScoringWeights
from ..models.playlist_models import FeatureRange, MoodProfile, Track

logger = structlog.get_logger(__name__)


class TrackScorer:
    """
    Default scorer used by ``PlaylistEngine``.

    Any object exposing ``score(track, profile) -> float`` can replace it.
    """

    def __init__(self, weights: Optional[ScoringWeights] = None):
        """
        Initialize the scorer.

        Args:
            weights: Match bonus and popularity multiplier (defaults apply
                when None)
        """
        self.weights = weights or ScoringWeights()
        self.logger = logger.bind(component="TrackScorer")
        self.logger.debug("Track scorer initialized", **self.weights.to_dict())

    def features_match(
        self,
        features: Mapping[str, Optional[float]],
        criteria: Mapping[str, FeatureRange]
    ) -> bool:
        """
        Check a track's features against the profile ranges.

        Args:
            features: Feature name to value (values may be None)
            criteria: Feature name to inclusive range

        Returns:
            False if any present feature is out of range, True otherwise
        """
        for name, feature_range in criteria.items():
            value = features.get(name)
            if value is None or math.isnan(value):
                continue
            if not feature_range.contains(value):
                return False
        return True

    def match_bonus(self, track: Track, profile: MoodProfile) -> float:
        if self.features_match(track.features, profile.audio_features):
            return self.weights.match_bonus
        return 0.0

    def popularity_boost(self, track: Track) -> float:
        return track.play_count * self.weights.popularity_multiplier

    def score(self, track: Track, profile: MoodProfile) -> float:
        """
        Compute the playlist score for one track.

        Args:
            track: Candidate track
            profile: Mood profile being generated for

        Returns:
            Non-negative score
        """
        return self.match_bonus(track, profile) + self.popularity_boost(track)

    def breakdown(self, track: Track, profile: MoodProfile) -> Dict[str, float]:
        """Score components, for debugging and explanations."""
        bonus = self.match_bonus(track, profile)
        boost = self.popularity_boost(track)
        return {"match_bonus": bonus, "popularity_boost": boost, "total": bonus + boost}
