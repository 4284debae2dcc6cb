class WeeklogError(Exception):
    """Base class for work log errors."""


class ValidationError(WeeklogError):
    """Raised when entry fields fail validation; nothing is mutated."""


class NotFound(WeeklogError):
    """Raised when an entry id is not present in the store."""

    def __init__(self, entry_id):
        super().__init__(f"Log entry {entry_id} not found")
        self.entry_id = entry_id


class PersistenceReadError(WeeklogError):
    """Stored data exists but cannot be parsed."""


class PersistenceWriteError(WeeklogError):
    """Writing the stored data failed."""
