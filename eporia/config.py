"""
Configuration for the Eporia playlist engine.

Engine knobs (scoring weights, candidate pool size, playlist size) are plain
dataclasses with the production defaults. ``AppSettings.from_env`` reads the
service configuration from the environment, loading a ``.env`` file first.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

# =============================================================================
# ENGINE DEFAULTS
# =============================================================================
DEFAULT_MATCH_BONUS = 50.0
DEFAULT_POPULARITY_MULTIPLIER = 0.1
DEFAULT_CANDIDATE_LIMIT = 200
MAX_PLAYLIST_SIZE = 50


@dataclass(frozen=True)
class ScoringWeights:
    """Weights for the playlist scoring formula."""
    # Flat bonus when every present feature is inside its mood range
    match_bonus: float = DEFAULT_MATCH_BONUS

    # Points per play
    popularity_multiplier: float = DEFAULT_POPULARITY_MULTIPLIER

    def __post_init__(self):
        if self.match_bonus < 0:
            raise ValueError(f"match_bonus must be non-negative, got {self.match_bonus}")
        if self.popularity_multiplier < 0:
            raise ValueError(
                f"popularity_multiplier must be non-negative, got {self.popularity_multiplier}"
            )

    def to_dict(self) -> Dict[str, float]:
        return {
            "match_bonus": self.match_bonus,
            "popularity_multiplier": self.popularity_multiplier,
        }


@dataclass(frozen=True)
class EngineConfig:
    """Resource and ranking configuration for ``PlaylistEngine``."""
    # Size of the candidate pool fetched from the store
    candidate_limit: int = DEFAULT_CANDIDATE_LIMIT

    # Upper bound on returned playlist length
    max_playlist_size: int = MAX_PLAYLIST_SIZE

    # Seconds allowed for candidate retrieval; None leaves it to the caller
    retrieval_timeout: Optional[float] = None

    weights: ScoringWeights = field(default_factory=ScoringWeights)

    def __post_init__(self):
        if self.candidate_limit < 1:
            raise ValueError(f"candidate_limit must be positive, got {self.candidate_limit}")
        if not 1 <= self.max_playlist_size <= MAX_PLAYLIST_SIZE:
            raise ValueError(
                f"max_playlist_size must be between 1 and {MAX_PLAYLIST_SIZE}, "
                f"got {self.max_playlist_size}"
            )
        if self.retrieval_timeout is not None and self.retrieval_timeout <= 0:
            raise ValueError(
                f"retrieval_timeout must be positive, got {self.retrieval_timeout}"
            )


DEFAULT_ENGINE_CONFIG = EngineConfig()


# =============================================================================
# SERVICE SETTINGS
# =============================================================================
def _get_float(env: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AppSettings:
    """Service-level settings for the HTTP application."""
    log_level: str = "INFO"
    log_format: str = "console"
    log_dir: str = "logs"
    host: str = "127.0.0.1"
    port: int = 8000

    # Optional JSON file replacing the built-in taxonomy
    taxonomy_path: Optional[str] = None

    # "memory" or "supabase"
    track_store: str = "memory"
    tracks_table: str = "tracks"

    # JSON array of track documents for the in-memory store
    tracks_path: Optional[str] = None

    history_enabled: bool = False
    cache_dir: str = "data/cache"

    engine: EngineConfig = field(default_factory=EngineConfig)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "AppSettings":
        """
        Build settings from environment variables.

        Args:
            env: Mapping to read from. Defaults to ``os.environ`` after
                loading a ``.env`` file.

        Returns:
            Populated settings

        Raises:
            ValueError: If a numeric variable cannot be parsed or a value
                is out of range
        """
        if env is None:
            load_dotenv()
            env = os.environ

        track_store = env.get("TRACK_STORE", "memory").strip().lower()
        if track_store not in ("memory", "supabase"):
            raise ValueError(f"TRACK_STORE must be 'memory' or 'supabase', got {track_store!r}")

        weights = ScoringWeights(
            match_bonus=_get_float(env, "PLAYLIST_MATCH_BONUS", DEFAULT_MATCH_BONUS),
            popularity_multiplier=_get_float(
                env, "PLAYLIST_POPULARITY_MULTIPLIER", DEFAULT_POPULARITY_MULTIPLIER
            ),
        )
        engine = EngineConfig(
            candidate_limit=_get_int(env, "PLAYLIST_CANDIDATE_LIMIT", DEFAULT_CANDIDATE_LIMIT),
            max_playlist_size=_get_int(env, "PLAYLIST_MAX_SIZE", MAX_PLAYLIST_SIZE),
            retrieval_timeout=_get_float(env, "PLAYLIST_RETRIEVAL_TIMEOUT", None),
            weights=weights,
        )

        return cls(
            log_level=env.get("LOG_LEVEL", "INFO"),
            log_format=env.get("LOG_FORMAT", "console").strip().lower(),
            log_dir=env.get("LOG_DIR", "logs"),
            host=env.get("EPORIA_HOST", "127.0.0.1"),
            port=_get_int(env, "EPORIA_PORT", 8000),
            taxonomy_path=env.get("TAXONOMY_PATH") or None,
            track_store=track_store,
            tracks_table=env.get("TRACKS_TABLE", "tracks"),
            tracks_path=env.get("TRACKS_PATH") or None,
            history_enabled=_get_bool(env, "PLAYLIST_HISTORY_ENABLED", False),
            cache_dir=env.get("CACHE_DIR", "data/cache"),
            engine=engine,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log_level": self.log_level,
            "log_format": self.log_format,
            "track_store": self.track_store,
            "tracks_table": self.tracks_table,
            "tracks_path": self.tracks_path,
            "taxonomy_path": self.taxonomy_path,
            "history_enabled": self.history_enabled,
            "candidate_limit": self.engine.candidate_limit,
            "max_playlist_size": self.engine.max_playlist_size,
            "retrieval_timeout": self.engine.retrieval_timeout,
            "weights": self.engine.weights.to_dict(),
        }
