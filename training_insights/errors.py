"""Exception types raised by the training insights engine."""


class TrainingInsightsError(Exception):
    """Base class for all engine errors."""


class InsufficientDataError(TrainingInsightsError):
    """Fewer paired observations than the configured minimum."""

    def __init__(self, message: str, available: int = 0, required: int = 0):
        super().__init__(message)
        self.available = available
        self.required = required


class PersistenceError(TrainingInsightsError):
    """Reading from or writing to the store failed."""


class AnalysisFailedError(TrainingInsightsError):
    """A pattern analysis run aborted; no rows from it were written."""


class InvalidGoalStateError(TrainingInsightsError):
    """Goal rejected at creation (zero target or deadline not in the future)."""


class InvalidEntryError(TrainingInsightsError):
    """Journal entry or fitness test data failed validation."""


class NotFoundError(TrainingInsightsError):
    """Requested record does not exist."""
