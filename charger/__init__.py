# charger/__init__.py

from .errors import ChargeError, ConflictError, InvalidArgumentError, DeviceError
from .charge_pin import ChargePin, Level
from .clock import MonotonicClock
from .cycle import ChargeController, Phase, Snapshot

__all__ = [
    "ChargeError",
    "ConflictError",
    "InvalidArgumentError",
    "DeviceError",
    "ChargePin",
    "Level",
    "MonotonicClock",
    "ChargeController",
    "Phase",
    "Snapshot",
]
