"""
Exceptions for the Eporia playlist engine.
"""


class EporiaError(Exception):
    """Base class for all playlist engine errors."""
    pass


class InvalidMoodProfile(EporiaError):
    """Raised when a mood identifier has no entry in the taxonomy table."""

    def __init__(self, mood_id: str):
        self.mood_id = mood_id
        super().__init__(f"Invalid mood profile: {mood_id!r}")


class StoreFailure(EporiaError):
    """Raised when the track store cannot answer a query.

    Covers network errors, an unavailable store and malformed documents.
    The original error is chained as ``__cause__``.
    """
    pass


class TaxonomyError(EporiaError):
    """Raised when a taxonomy file cannot be loaded or validated."""
    pass
