"""Exception types raised by learnloop.

Only conditions a caller must act on are raised. Outcomes such as "no
pattern found" or "pattern already rejected" are returned as values.
"""


class LearnloopError(Exception):
    """Base class for all learnloop errors."""

    pass


class ConfigurationError(LearnloopError):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


class ChangelogError(LearnloopError):
    """Raised when the changelog file or its entries anchor is missing."""

    pass


class PatternNotFoundError(LearnloopError):
    """Raised when a review command names a pattern the index does not hold."""

    def __init__(self, pattern_id: str):
        super().__init__(f"Pattern not found in index: {pattern_id}")
        self.pattern_id = pattern_id


class InvalidTransitionError(LearnloopError):
    """Raised when a status change is not allowed by the lifecycle."""

    def __init__(self, pattern_id: str, current: str, requested: str):
        super().__init__(
            f"Cannot move pattern {pattern_id} from '{current}' to '{requested}'"
        )
        self.pattern_id = pattern_id
        self.current = current
        self.requested = requested
