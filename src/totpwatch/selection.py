"""Tracking which credential is active."""

import logging

from .errors import PersistenceReadError, SelectionOutOfRange
from .persistence import IndexStore

logger = logging.getLogger(__name__)


class SelectionState:
    """Active credential index with cyclic navigation.

    Mutators return True when the active index changed, so the owner can
    invalidate anything derived from the previous credential.
    """

    def __init__(self, count: int, active_index: int = 0):
        if count < 1:
            raise ValueError("count must be at least 1")
        if not 0 <= active_index < count:
            raise SelectionOutOfRange(active_index, count)
        self.count = count
        self.active_index = active_index

    @classmethod
    def restore(cls, count: int, store: IndexStore) -> "SelectionState":
        """Load the persisted selection, falling back to index 0.

        A missing or corrupt slot, or an index left over from a larger
        credential set, never prevents startup.
        """
        try:
            index = store.read()
        except PersistenceReadError as e:
            logger.info("No usable stored selection (%s), starting at 0", e)
            return cls(count)

        try:
            return cls(count, index)
        except SelectionOutOfRange as e:
            logger.warning("%s; resetting selection to 0", e)
            return cls(count)

    def save(self, store: IndexStore) -> None:
        """Persist the active index."""
        store.write(self.active_index)

    def _move(self, index: int) -> bool:
        changed = index != self.active_index
        self.active_index = index
        return changed

    def next(self) -> bool:
        """Advance to the next credential, wrapping to the first."""
        return self._move((self.active_index + 1) % self.count)

    def previous(self) -> bool:
        """Go back to the previous credential, wrapping to the last."""
        return self._move((self.active_index - 1 + self.count) % self.count)

    def set_index(self, index: int) -> bool:
        """Select the credential at ``index``.

        Raises:
            SelectionOutOfRange: If index is not in ``[0, count)``; the
                active index is left unchanged
        """
        if not 0 <= index < self.count:
            raise SelectionOutOfRange(index, self.count)
        return self._move(index)
