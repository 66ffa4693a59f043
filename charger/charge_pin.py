# charger/charge_pin.py
from enum import IntEnum

from charger.errors import DeviceError


class Level(IntEnum):
    LOW = 0
    HIGH = 1

    @property
    def label(self) -> str:
        return self.name


class ChargePin:
    """The one digital output the controller drives, on top of a GPIO backend."""

    def __init__(self, gpio_service, pin):
        self._gpio = gpio_service
        self.pin = pin

    def set_level(self, level: Level) -> None:
        try:
            if level == Level.HIGH:
                self._gpio.set(self.pin)
            else:
                self._gpio.reset(self.pin)
        except OSError as e:
            raise DeviceError(f"cannot drive {self.pin} {Level(level).label}: {e}") from e

    def read_level(self) -> Level:
        try:
            return Level.HIGH if self._gpio.read(self.pin) else Level.LOW
        except OSError as e:
            raise DeviceError(f"cannot read {self.pin}: {e}") from e
