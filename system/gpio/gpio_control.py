import threading

import gpiod
from gpiod.line import Direction, Value

from charger.errors import DeviceError
from system.gpio.pin_assignments import resolve_line
from system.log_utils import debug, warn

CONSUMER = "charger"


def find_gpiochip_by_line_count(target_lines=288, fallback="/dev/gpiochip0"):
    """Finds the correct gpiochip by checking number of lines."""
    for i in range(5):
        path = f"/dev/gpiochip{i}"
        try:
            if not gpiod.is_gpiochip_device(path):
                continue
            with gpiod.Chip(path) as chip:
                if chip.get_info().num_lines == target_lines:
                    return path
        except OSError:
            continue
    return fallback


class GPIOController:
    """
    Real GPIO controller using libgpiod (v2 bindings) on Linux.

    Each output pin keeps its line request for the lifetime of the process, so
    read() returns the level the line is actually driving instead of
    re-requesting it as an input.
    """

    def __init__(self, chip_path: str = "/dev/gpiochip0"):
        self.chip_path = chip_path
        self._requests = {}
        self._lock = threading.Lock()

    def _request(self, pin_name, initial: int = 0):
        line_num = resolve_line(pin_name)
        req = self._requests.get(line_num)
        if req is not None:
            return line_num, req
        try:
            req = gpiod.request_lines(
                self.chip_path,
                consumer=CONSUMER,
                config={
                    line_num: gpiod.LineSettings(
                        direction=Direction.OUTPUT,
                        output_value=Value.ACTIVE if initial else Value.INACTIVE,
                    )
                },
            )
        except OSError as e:
            raise DeviceError(f"cannot request {pin_name} on {self.chip_path}: {e}") from e
        self._requests[line_num] = req
        debug(f"[GPIO] requested {pin_name}", line=line_num, chip=self.chip_path)
        return line_num, req

    def _write(self, pin_name, val: int) -> int:
        with self._lock:
            line_num, req = self._request(pin_name, initial=val)
            try:
                req.set_value(line_num, Value.ACTIVE if val else Value.INACTIVE)
            except OSError as e:
                raise DeviceError(f"write {pin_name}={val} failed: {e}") from e
        return val

    def set(self, pin_name) -> int:
        return self._write(pin_name, 1)

    def reset(self, pin_name) -> int:
        return self._write(pin_name, 0)

    def read(self, pin_name) -> int:
        with self._lock:
            line_num, req = self._request(pin_name)
            try:
                val = req.get_value(line_num)
            except OSError as e:
                raise DeviceError(f"read {pin_name} failed: {e}") from e
        return 1 if val == Value.ACTIVE else 0

    def initialize_outputs(self, pins):
        """Drive every listed output LOW. Call after select_profile() in device init."""
        for pin in pins:
            self.reset(pin)

    def close(self):
        with self._lock:
            for line_num, req in list(self._requests.items()):
                try:
                    req.release()
                except OSError as e:
                    warn(f"[GPIO] release failed on line {line_num}: {e}")
            self._requests.clear()

