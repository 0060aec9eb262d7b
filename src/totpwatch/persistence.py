"""Storage for the persisted active credential index."""

import json
import logging
from pathlib import Path
from typing import Protocol

from .errors import PersistenceReadError

logger = logging.getLogger(__name__)

DEFAULT_SLOT = "active_index"


class IndexStore(Protocol):
    """A single named integer slot."""

    def read(self) -> int:
        """Return the stored value or raise PersistenceReadError."""
        ...

    def write(self, value: int) -> None:
        """Store value, replacing any previous one."""
        ...


class MemoryIndexStore:
    """Index slot held in memory, for one-shot commands and tests."""

    def __init__(self, value: int | None = None):
        self.value = value

    def read(self) -> int:
        if self.value is None:
            raise PersistenceReadError("No index stored")
        return self.value

    def write(self, value: int) -> None:
        self.value = value


class JsonIndexStore:
    """Index slot stored as a key in a small JSON state file."""

    def __init__(self, path: Path, slot: str = DEFAULT_SLOT):
        """Initialize store.

        Args:
            path: Path to the state file
            slot: Key of the integer slot inside the file
        """
        self.path = path
        self.slot = slot

    def _read_document(self) -> dict:
        try:
            data = json.loads(self.path.read_text())
        except FileNotFoundError as e:
            raise PersistenceReadError(f"State file not found at {self.path}") from e
        except (OSError, ValueError) as e:
            raise PersistenceReadError(f"State file {self.path} is unreadable: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceReadError(f"State file {self.path} is not a JSON object")
        return data

    def read(self) -> int:
        """Read the slot value.

        Raises:
            PersistenceReadError: If the file or slot is missing or not an integer
        """
        data = self._read_document()
        if self.slot not in data:
            raise PersistenceReadError(f"No '{self.slot}' in {self.path}")
        value = data[self.slot]
        # bool is an int subclass but never a valid index
        if not isinstance(value, int) or isinstance(value, bool):
            raise PersistenceReadError(f"'{self.slot}' in {self.path} is not an integer")
        return value

    def write(self, value: int) -> None:
        """Write the slot value, keeping any other keys in the file."""
        try:
            data = self._read_document()
        except PersistenceReadError:
            data = {}
        data[self.slot] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data))
        logger.debug("Stored %s=%d in %s", self.slot, value, self.path)
