import pytest

from charger.errors import DeviceError

gpiod = pytest.importorskip("gpiod")
from gpiod.line import Value  # noqa: E402

from system.gpio import gpio_control  # noqa: E402


class FakeRequest:
    def __init__(self, config):
        self.values = {line: s.output_value for line, s in config.items()}
        self.released = False
        self.fail = False

    def set_value(self, line, value):
        if self.fail:
            raise OSError(16, "Device or resource busy")
        self.values[line] = value

    def get_value(self, line):
        if self.fail:
            raise OSError(16, "Device or resource busy")
        return self.values[line]

    def release(self):
        self.released = True


@pytest.fixture
def fake_lines(monkeypatch):
    calls = []

    def request_lines(path, consumer=None, config=None):
        req = FakeRequest(config)
        calls.append((path, consumer, req))
        return req

    monkeypatch.setattr(gpio_control.gpiod, "request_lines", request_lines)
    return calls


def test_controller_requests_line_once_and_drives_it(fake_lines):
    ctrl = gpio_control.GPIOController("/dev/gpiochip1")
    ctrl.reset("PC10")
    ctrl.set("PC10")

    assert len(fake_lines) == 1
    path, consumer, req = fake_lines[0]
    assert path == "/dev/gpiochip1"
    assert consumer == gpio_control.CONSUMER
    assert req.values[74] == Value.ACTIVE
    assert ctrl.read("PC10") == 1

    ctrl.reset("PC10")
    assert ctrl.read("PC10") == 0


def test_controller_initialize_outputs_low(fake_lines):
    ctrl = gpio_control.GPIOController()
    ctrl.initialize_outputs(["PC10", "PH2"])
    assert ctrl.read("PC10") == 0
    assert ctrl.read("PH2") == 0


def test_controller_translates_os_error(fake_lines):
    ctrl = gpio_control.GPIOController()
    ctrl.reset("PC10")
    fake_lines[0][2].fail = True
    with pytest.raises(DeviceError):
        ctrl.set("PC10")
    with pytest.raises(DeviceError):
        ctrl.read("PC10")


def test_controller_request_failure_is_device_error(monkeypatch):
    def request_lines(path, consumer=None, config=None):
        raise OSError(2, "No such file or directory")

    monkeypatch.setattr(gpio_control.gpiod, "request_lines", request_lines)
    ctrl = gpio_control.GPIOController("/dev/gpiochip9")
    with pytest.raises(DeviceError):
        ctrl.set("PC10")


def test_controller_close_releases_requests(fake_lines):
    ctrl = gpio_control.GPIOController()
    ctrl.set("PC10")
    ctrl.close()
    assert fake_lines[0][2].released


def test_find_gpiochip_falls_back(monkeypatch):
    monkeypatch.setattr(gpio_control.gpiod, "is_gpiochip_device", lambda path: False)
    assert gpio_control.find_gpiochip_by_line_count(288, fallback="/dev/gpiochipX") == "/dev/gpiochipX"
