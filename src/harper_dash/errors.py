"""
errors.py: Exception types raised by the game core and the results backend.
"""


class HarperDashError(Exception):
    """Base class for all project errors."""


class ConfigError(HarperDashError, ValueError):
    """A game parameter set is inconsistent."""


class SessionStateError(HarperDashError, RuntimeError):
    """A session operation was called from a state that does not allow it."""


class ValidationError(HarperDashError, ValueError):
    """A run submission or leaderboard query was rejected."""
