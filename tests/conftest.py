import pytest

from charger.charge_pin import ChargePin
from charger.clock import CLOCK_MASK
from charger.cycle import ChargeController
from charger.scheduler import TickScheduler
from system import services
from system.gpio.pin_assignments import select_profile
from system.gpio.sim_gpio import SimulatedGPIO
from system.preferences import KEY_TICK_INTERVAL_MS, Preferences

PIN = "PC10"


class ManualClock:
    """u32 millisecond counter that only moves when a test moves it."""

    def __init__(self, start: int = 0):
        self.t = start

    def now(self) -> int:
        return self.t & CLOCK_MASK

    def set(self, ms: int):
        self.t = ms

    def advance(self, ms: int):
        self.t += ms


@pytest.fixture(autouse=True)
def default_pin_profile():
    select_profile("orangepi_zero3")
    yield
    select_profile("orangepi_zero3")


@pytest.fixture
def clock():
    return ManualClock(1000)


@pytest.fixture
def gpio():
    return SimulatedGPIO()


@pytest.fixture
def controller(gpio, clock):
    return ChargeController(ChargePin(gpio, PIN), clock)


@pytest.fixture
def prefs(tmp_path):
    return Preferences(str(tmp_path / "prefs.json"))


@pytest.fixture
def wired(monkeypatch, gpio, clock, controller, prefs):
    """Populate the service registry the way device_init does, without threads."""
    scheduler = TickScheduler(controller, 10)
    prefs.register_callback(KEY_TICK_INTERVAL_MS, scheduler.set_interval)

    monkeypatch.setattr(services, "gpio_service", gpio)
    monkeypatch.setattr(services, "clock", clock)
    monkeypatch.setattr(services, "charge_controller", controller)
    monkeypatch.setattr(services, "tick_scheduler", scheduler)
    monkeypatch.setattr(services, "preferences_service", prefs)
    return services


@pytest.fixture
def client(wired):
    from app import create_app

    app = create_app()
    app.config["TESTING"] = True
    return app.test_client()
