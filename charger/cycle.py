# charger/cycle.py
"""
Charge-cycle state machine for the single charge pin.

The controller owns the only mutable state (phase, start timestamp, duration)
and is the only code that writes the pin during a timed cycle. Four entry
points:

- start(duration)  Idle -> Charging, pin HIGH
- stop()           any  -> Idle, pin LOW (always written, idempotent)
- tick()           Charging -> Idle once the duration has elapsed
- status()         snapshot; when idle the level is read back from the pin

The timed wait is never a sleep: tick() is polled by TickScheduler and
compares wraparound-safe elapsed time against the accepted duration.

All four operations take the same lock. Waitress serves requests from a
thread pool and the scheduler runs on its own thread, so each operation
must be indivisible with respect to the others.
"""
from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from charger.charge_pin import ChargePin, Level
from charger.clock import MonotonicClock, elapsed_ms
from charger.errors import ConflictError, DeviceError, InvalidArgumentError
from system.log_utils import info, error, verbose

MIN_DURATION_MS = 100
MAX_DURATION_MS = 60000

_INT_RE = re.compile(r"([+-]?)0*([0-9]+)")
# longer digit strings are far out of range; never hand them to int()
_MAX_DIGITS = 9


class Phase(Enum):
    IDLE = "idle"
    CHARGING = "charging"


@dataclass(frozen=True)
class CycleState:
    phase: Phase = Phase.IDLE
    started_at: Optional[int] = None   # clock ms, only while CHARGING
    duration: Optional[int] = None     # ms, only while CHARGING


@dataclass(frozen=True)
class Snapshot:
    phase: Phase
    level: Level
    duration: Optional[int] = None
    remaining: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        d = {"status": self.phase.value, "gpio_level": self.level.label}
        if self.phase is Phase.CHARGING:
            d["duration_ms"] = self.duration
            d["time_remaining_ms"] = self.remaining
        return d


@dataclass(frozen=True)
class StartResult:
    accepted_duration: int

    @property
    def message(self) -> str:
        return f"Charge cycle initiated for {self.accepted_duration}ms."


@dataclass(frozen=True)
class StopResult:
    stopped: bool

    @property
    def message(self) -> str:
        if self.stopped:
            return "Charging stopped immediately."
        return "Not currently charging. Pin confirmed LOW."


def parse_duration(raw) -> Optional[int]:
    """Integer milliseconds from a request value, or None if absent/unparseable.

    Accepts ints, integral floats and ASCII base-10 digit strings ("500", " 500 ").
    Digit strings longer than nine significant digits come back as +/-10**9,
    which no duration bound admits. Booleans, fractional floats and anything
    else are unparseable.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str):
        text = raw.strip()
        m = _INT_RE.fullmatch(text)
        if m:
            sign, digits = m.groups()
            value = 10 ** _MAX_DIGITS if len(digits) > _MAX_DIGITS else int(digits, 10)
            return -value if sign == "-" else value
    return None


class ChargeController:
    def __init__(self, pin: ChargePin, clock=None):
        self._pin = pin
        self._clock = clock or MonotonicClock()
        self._state = CycleState()
        self._lock = threading.RLock()

        # never assume the pin came up LOW
        self._pin.set_level(Level.LOW)

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def pin(self) -> ChargePin:
        return self._pin

    def is_charging(self) -> bool:
        return self._state.phase is Phase.CHARGING

    # -----------------------------
    # Public API
    # -----------------------------
    def start(self, duration) -> StartResult:
        with self._lock:
            if self._state.phase is Phase.CHARGING:
                raise ConflictError("Charging in progress. Please wait.")

            value = parse_duration(duration)
            if value is None:
                raise InvalidArgumentError("Missing 'time' parameter (ms).")
            if not MIN_DURATION_MS <= value <= MAX_DURATION_MS:
                raise InvalidArgumentError(
                    f"'time' must be between {MIN_DURATION_MS} and {MAX_DURATION_MS} ms."
                )

            started_at = self._clock.now()
            try:
                self._pin.set_level(Level.HIGH)
            except DeviceError:
                self._force_idle()
                raise

            self._state = CycleState(Phase.CHARGING, started_at, value)
            info("[CHARGE] cycle initiated", duration_ms=value, started_at=started_at)
            return StartResult(value)

    def stop(self) -> StopResult:
        with self._lock:
            was_charging = self._state.phase is Phase.CHARGING
            self._state = CycleState()
            self._pin.set_level(Level.LOW)

        if was_charging:
            info("[CHARGE] emergency stop, pin set LOW")
        else:
            verbose("[CHARGE] stop while idle, pin confirmed LOW")
        return StopResult(was_charging)

    def tick(self) -> bool:
        """End the cycle if it is due. Returns True when this call ended it."""
        with self._lock:
            st = self._state
            if st.phase is not Phase.CHARGING:
                return False

            if elapsed_ms(self._clock.now(), st.started_at) < st.duration:
                return False

            self._state = CycleState()
            try:
                self._pin.set_level(Level.LOW)
            except DeviceError:
                self._force_idle()
                raise

        info("[CHARGE] cycle complete, pin set LOW", duration_ms=st.duration)
        return True

    def status(self) -> Snapshot:
        with self._lock:
            st = self._state
            if st.phase is Phase.CHARGING:
                elapsed = elapsed_ms(self._clock.now(), st.started_at)
                remaining = max(0, st.duration - elapsed)
                return Snapshot(Phase.CHARGING, Level.HIGH, st.duration, remaining)

            # idle: report what the pin is doing, not what we last wrote
            return Snapshot(Phase.IDLE, self._pin.read_level())

    # -----------------------------
    # Internals
    # -----------------------------
    def _force_idle(self) -> None:
        """Drop any cycle and make a best-effort LOW write after a device failure."""
        self._state = CycleState()
        try:
            self._pin.set_level(Level.LOW)
        except DeviceError as e:
            error(f"[CHARGE] could not force pin LOW after device failure: {e}")
