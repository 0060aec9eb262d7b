"""Exception types raised by totpwatch."""


class TotpWatchError(Exception):
    """Base class for all totpwatch errors."""


class ConfigurationError(TotpWatchError):
    """The credential manifest cannot produce a usable credential set.

    Raised at startup only. Nothing can run without valid credentials, so
    callers must not recover from this one.
    """


class SelectionOutOfRange(TotpWatchError, IndexError):
    """A credential index outside ``[0, count)`` was requested or restored."""

    def __init__(self, index: int, count: int):
        super().__init__(f"Credential index {index} out of range for {count} credentials")
        self.index = index
        self.count = count


class PersistenceReadError(TotpWatchError):
    """The persisted selection slot is missing or unreadable."""
