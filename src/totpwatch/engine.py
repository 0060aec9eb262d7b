"""The authenticator context: credentials, selection and token cache."""

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from . import timestep
from .cache import TokenCache
from .credentials import Credential, CredentialSet
from .errors import SelectionOutOfRange
from .persistence import IndexStore, MemoryIndexStore
from .selection import SelectionState

logger = logging.getLogger(__name__)


class InputEvent(enum.Enum):
    SELECT_NEXT = "select_next"
    SELECT_PREVIOUS = "select_previous"
    MANUAL_REFRESH = "manual_refresh"


@dataclass(frozen=True)
class Frame:
    """What the display shows for one tick."""

    label: str
    display: str
    seconds_remaining: int
    rollover: bool = False


class Display(Protocol):
    def show(self, frame: Frame) -> None:
        ...

    def rollover(self, frame: Frame) -> None:
        ...


class Authenticator:
    """Owns the credential set, the active selection and the token cache.

    Driven by two entry points that never run concurrently: ``tick`` on each
    clock second and the selection/refresh handlers on input events.
    """

    def __init__(
        self,
        credentials: CredentialSet,
        store: Optional[IndexStore] = None,
        clock: Callable[[], float] = time.time,
        display: Optional[Display] = None,
    ):
        """Initialize the authenticator.

        Args:
            credentials: Credentials to cycle through
            store: Persisted selection slot, in memory if not given
            clock: Returns Unix epoch seconds
            display: Receives a frame on every tick
        """
        self.credentials = credentials
        self.store = store if store is not None else MemoryIndexStore()
        self.clock = clock
        self.display = display
        self.selection = SelectionState(credentials.count())
        self.cache = TokenCache()
        self._last_counter: int | None = None

    @property
    def active(self) -> Credential:
        """The currently selected credential."""
        return self.credentials.get(self.selection.active_index)

    def start(self) -> None:
        """Restore the persisted selection."""
        self.selection = SelectionState.restore(self.credentials.count(), self.store)
        self.cache.invalidate()
        self._last_counter = None
        logger.debug("Starting on credential %d", self.selection.active_index)

    def shutdown(self) -> None:
        """Persist the active selection."""
        self.selection.save(self.store)

    def tick(self, now: Optional[float] = None) -> Frame:
        """Handle a clock tick and produce the frame to display.

        Args:
            now: Epoch seconds, sampled from the clock if not given

        Returns:
            Label, code and countdown for the active credential
        """
        step = timestep.derive(self.clock() if now is None else now)
        # Once per window, on the tick where the countdown resets
        rollover = step.rolled_over and step.counter != self._last_counter
        self._last_counter = step.counter

        credential = self.active
        token = self.cache.resolve(step.counter, credential.secret)
        frame = Frame(
            label=credential.label,
            display=token.display,
            seconds_remaining=step.seconds_remaining,
            rollover=rollover,
        )

        if self.display is not None:
            if rollover:
                self.display.rollover(frame)
            self.display.show(frame)
        return frame

    def _changed(self, changed: bool) -> bool:
        if changed:
            self.cache.invalidate()
        return changed

    def select_next(self) -> bool:
        return self._changed(self.selection.next())

    def select_previous(self) -> bool:
        return self._changed(self.selection.previous())

    def select(self, index: int) -> bool:
        """Select a credential by index.

        Out-of-range requests are rejected and logged; the selection stays
        as it was.

        Returns:
            True if the active credential changed
        """
        try:
            return self._changed(self.selection.set_index(index))
        except SelectionOutOfRange as e:
            logger.warning("Ignoring selection request: %s", e)
            return False

    def refresh(self) -> None:
        """Force the next tick to recompute the code."""
        self.cache.invalidate()

    def handle(self, event: InputEvent) -> None:
        """Route an input event to the matching operation."""
        if event is InputEvent.SELECT_NEXT:
            self.select_next()
        elif event is InputEvent.SELECT_PREVIOUS:
            self.select_previous()
        elif event is InputEvent.MANUAL_REFRESH:
            self.refresh()
        else:
            raise ValueError(f"Unknown input event: {event!r}")
