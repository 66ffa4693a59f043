# charger/clock.py
import time

CLOCK_BITS = 32
CLOCK_MASK = (1 << CLOCK_BITS) - 1


def elapsed_ms(now: int, started_at: int) -> int:
    """Milliseconds from started_at to now, modulo the counter width.

    Correct across one wrap of the counter; never negative.
    """
    return (now - started_at) & CLOCK_MASK


class MonotonicClock:
    """
    Free-running millisecond counter.
    - time.monotonic() source, immune to wall-clock changes
    - wraps at 2**32 like a u32 millis() counter
    """

    def __init__(self):
        self._origin = time.monotonic()

    def now(self) -> int:
        return int((time.monotonic() - self._origin) * 1000) & CLOCK_MASK
