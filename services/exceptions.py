"""Exceptions raised by the scoring services."""


class ScoreEstimatorError(Exception):
    """Base class for score estimator errors."""


class InsufficientDataError(ScoreEstimatorError, ValueError):
    """An aggregate was requested over an empty collection."""


class ReferenceDataError(ScoreEstimatorError):
    """A bundled reference table is missing or malformed."""
