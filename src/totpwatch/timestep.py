"""Time step derivation for TOTP (RFC 6238)."""

from dataclasses import dataclass

T0 = 0
INTERVAL = 30


@dataclass(frozen=True)
class TimeStep:
    """The counter for a moment in time and the seconds left in its window."""

    counter: int
    seconds_remaining: int

    @property
    def rolled_over(self) -> bool:
        """True on the first second of a validity window."""
        return self.seconds_remaining == INTERVAL


def derive(now: float) -> TimeStep:
    """Derive the TOTP counter and countdown for ``now``.

    Args:
        now: Unix epoch seconds (UTC). Fractions are floored.

    Returns:
        TimeStep with ``counter = (now - T0) // INTERVAL`` and
        ``seconds_remaining`` in ``[1, INTERVAL]``

    Raises:
        ValueError: If now is before the epoch
    """
    seconds = int(now // 1)
    if seconds < T0:
        raise ValueError("time must not be before the TOTP epoch")
    elapsed = seconds - T0
    return TimeStep(
        counter=elapsed // INTERVAL,
        seconds_remaining=INTERVAL - (elapsed % INTERVAL),
    )
