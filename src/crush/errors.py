"""Exception hierarchy for the crush engine."""


class CrushError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(CrushError, ValueError):
    """Raised at start-up when the engine is configured with unusable values."""


class GridInvariantError(CrushError, RuntimeError):
    """Raised when the grid is not a total, one-token-per-cell mapping.

    The invariant is maintained only by the resolver's own transformations, so
    seeing this means a programming fault rather than bad player input.
    """
