import threading
from collections import deque

from charger.errors import DeviceError
from system.gpio.pin_assignments import resolve_line
from system.log_utils import debug, verbose

WRITE_HISTORY = 1000


class SimulatedGPIO:
    """
    In-memory GPIO backend with the same surface as GPIOController.

    Used on development machines (simulator_enabled preference) and by the
    test suite. force() changes a level behind the controller's back, the way
    a second process would on real hardware.
    """

    def __init__(self):
        self.pin_states = {}
        # bounded: only the most recent writes are kept
        self.writes = deque(maxlen=WRITE_HISTORY)
        self._fail_next = None
        self._lock = threading.Lock()

    def _check_fail(self, op: str, pin_name):
        if self._fail_next in (op, "any"):
            self._fail_next = None
            raise DeviceError(f"simulated {op} failure on {pin_name}")

    def set(self, pin_name) -> int:
        return self._write(pin_name, 1)

    def reset(self, pin_name) -> int:
        return self._write(pin_name, 0)

    def _write(self, pin_name, val: int) -> int:
        with self._lock:
            self._check_fail("write", pin_name)
            self.pin_states[resolve_line(pin_name)] = val
            self.writes.append((pin_name, val))
        verbose(f"[SIM GPIO] {pin_name} <- {val}")
        return val

    def read(self, pin_name) -> int:
        with self._lock:
            self._check_fail("read", pin_name)
            return self.pin_states.get(resolve_line(pin_name), 0)

    def initialize_outputs(self, pins):
        for pin in pins:
            self.reset(pin)

    def close(self):
        pass

    # ------------------------------------------------------------------
    # Simulation hooks
    # ------------------------------------------------------------------
    def force(self, pin_name, val: int):
        with self._lock:
            self.pin_states[resolve_line(pin_name)] = 1 if val else 0
        debug(f"[SIM GPIO] {pin_name} forced to {val}")

    def fail_next(self, op: str = "any"):
        """Make the next read/write (or either, with "any") raise DeviceError."""
        self._fail_next = op
