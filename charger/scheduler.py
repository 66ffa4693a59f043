# charger/scheduler.py
import threading

from charger.errors import DeviceError
from system.log_utils import debug, info, error

DEFAULT_TICK_INTERVAL_MS = 10
MIN_TICK_INTERVAL_MS = 1
MAX_TICK_INTERVAL_MS = 50   # well under the 100 ms minimum cycle


def validate_interval(interval_ms) -> int:
    value = int(interval_ms)
    if not MIN_TICK_INTERVAL_MS <= value <= MAX_TICK_INTERVAL_MS:
        raise ValueError(
            f"tick interval must be between {MIN_TICK_INTERVAL_MS} and {MAX_TICK_INTERVAL_MS} ms, got {value}"
        )
    return value


class TickScheduler:
    """
    Background poller that drives ChargeController.tick().
    - one daemon thread
    - Event.wait() as the sleep so stop() returns promptly
    - a pin stays HIGH at most one interval past its duration
    """

    def __init__(self, controller, interval_ms: int = DEFAULT_TICK_INTERVAL_MS):
        self.controller = controller
        self.interval_ms = validate_interval(interval_ms)
        self._stop_event = threading.Event()
        self._thread = None
        self._lock = threading.Lock()

    def set_interval(self, interval_ms) -> None:
        self.interval_ms = validate_interval(interval_ms)
        debug(f"[TICK] interval set to {self.interval_ms} ms")

    def start(self) -> None:
        with self._lock:
            if self.is_running():
                debug("[TICK] already running; skipping duplicate start")
                return
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._run, daemon=True, name="tick-scheduler")
            self._thread.start()
        info(f"[TICK] scheduler started ({self.interval_ms} ms)")

    def stop(self, timeout: float = 1.0) -> None:
        with self._lock:
            self._stop_event.set()
            t = self._thread
            self._thread = None
        if t is not None:
            t.join(timeout=timeout)
            debug("[TICK] scheduler stopped")

    def is_running(self) -> bool:
        return bool(self._thread) and self._thread.is_alive()

    def run_once(self) -> bool:
        """One scheduler iteration. Returns True when a cycle was ended."""
        try:
            return self.controller.tick()
        except DeviceError as e:
            # the controller already dropped to idle; keep polling
            error(f"[TICK] device failure ended the cycle: {e}")
            return False

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_ms / 1000.0):
            self.run_once()
