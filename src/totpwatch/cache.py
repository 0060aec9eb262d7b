"""Per-window token cache."""

import enum
import logging

from . import hotp

logger = logging.getLogger(__name__)


class CacheState(enum.Enum):
    STALE = "stale"
    VALID = "valid"


class TokenCache:
    """Holds the code for the current window and credential.

    The cache starts STALE. ``resolve`` recomputes only while STALE or when the
    counter has moved on to a new window; ``invalidate`` forces the next
    ``resolve`` to recompute.
    """

    def __init__(self):
        self.state = CacheState.STALE
        self.computations = 0
        self._counter: int | None = None
        self._result: hotp.TokenResult | None = None

    def invalidate(self) -> None:
        self.state = CacheState.STALE

    def resolve(self, counter: int, secret: bytes) -> hotp.TokenResult:
        """Return the code for ``counter``, computing it if the cache is stale."""
        if self.state is CacheState.VALID and counter != self._counter:
            self.state = CacheState.STALE

        if self.state is CacheState.STALE or self._result is None:
            self._result = hotp.generate(counter, secret)
            self._counter = counter
            self.computations += 1
            self.state = CacheState.VALID
            logger.debug("Computed code for counter %d", counter)

        return self._result
