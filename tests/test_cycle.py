import pytest
from structlog.testing import capture_logs

from charger.charge_pin import ChargePin, Level
from charger.clock import CLOCK_MASK
from charger.cycle import (
    MAX_DURATION_MS,
    MIN_DURATION_MS,
    ChargeController,
    Phase,
    parse_duration,
)
from charger.errors import ConflictError, DeviceError, InvalidArgumentError
from conftest import PIN


def low_writes_since(gpio, index):
    return [w for w in list(gpio.writes)[index:] if w == (PIN, 0)]


# ----------------------------------------------------------------------
# Construction
# ----------------------------------------------------------------------
def test_controller_forces_pin_low_on_construction(gpio, clock):
    gpio.force(PIN, 1)
    ctrl = ChargeController(ChargePin(gpio, PIN), clock)
    assert gpio.read(PIN) == 0
    assert ctrl.state.phase is Phase.IDLE
    assert ctrl.state.started_at is None
    assert ctrl.state.duration is None


# ----------------------------------------------------------------------
# start()
# ----------------------------------------------------------------------
def test_start_drives_pin_high_and_records_cycle(controller, gpio, clock):
    result = controller.start(500)

    assert result.accepted_duration == 500
    assert result.message == "Charge cycle initiated for 500ms."
    assert gpio.read(PIN) == 1
    assert controller.is_charging()
    assert controller.state.started_at == 1000
    assert controller.state.duration == 500


def test_second_start_conflicts_and_keeps_timing(controller, gpio, clock):
    controller.start(500)
    clock.advance(100)
    writes_before = len(gpio.writes)

    with pytest.raises(ConflictError):
        controller.start(800)

    assert controller.state.started_at == 1000
    assert controller.state.duration == 500
    assert len(gpio.writes) == writes_before


def test_conflict_is_checked_before_validation(controller):
    controller.start(500)
    with pytest.raises(ConflictError):
        controller.start(None)
    with pytest.raises(ConflictError):
        controller.start(5)


@pytest.mark.parametrize("value", [None, "", "   ", "abc", "12ms", "1_000", "5.5", 250.5, True, [500], "\u0661\u0660\u0660"])
def test_start_rejects_missing_or_unparseable(controller, gpio, value):
    writes_before = len(gpio.writes)
    with pytest.raises(InvalidArgumentError, match="Missing"):
        controller.start(value)
    assert not controller.is_charging()
    assert len(gpio.writes) == writes_before


@pytest.mark.parametrize("value", [99, 60001, 0, -100, "99", "60001", "9" * 5000, "-" + "9" * 20])
def test_start_rejects_out_of_range(controller, gpio, value):
    writes_before = len(gpio.writes)
    with pytest.raises(InvalidArgumentError, match="between 100 and 60000"):
        controller.start(value)
    assert not controller.is_charging()
    assert len(gpio.writes) == writes_before


@pytest.mark.parametrize("value", [MIN_DURATION_MS, MAX_DURATION_MS, "100", " 60000 ", 500.0])
def test_start_accepts_inclusive_bounds(controller, value):
    result = controller.start(value)
    assert result.accepted_duration == int(float(value))
    assert controller.is_charging()


def test_start_device_failure_leaves_idle_and_low(controller, gpio):
    gpio.fail_next("write")
    with pytest.raises(DeviceError):
        controller.start(500)

    assert controller.state.phase is Phase.IDLE
    assert gpio.read(PIN) == 0


# ----------------------------------------------------------------------
# tick()
# ----------------------------------------------------------------------
def test_tick_before_due_is_silent(controller, gpio, clock):
    controller.start(500)
    writes_before = len(gpio.writes)

    clock.set(1499)
    assert controller.tick() is False
    assert controller.is_charging()
    assert len(gpio.writes) == writes_before


def test_tick_at_due_time_ends_cycle_once(controller, gpio, clock):
    controller.start(500)
    index = len(gpio.writes)

    clock.set(1500)
    assert controller.tick() is True
    clock.advance(50)
    assert controller.tick() is False
    assert controller.tick() is False

    assert controller.state.phase is Phase.IDLE
    assert controller.state.started_at is None
    assert gpio.read(PIN) == 0
    assert len(low_writes_since(gpio, index)) == 1


def test_tick_when_idle_is_noop(controller, gpio):
    writes_before = len(gpio.writes)
    assert controller.tick() is False
    assert len(gpio.writes) == writes_before


def test_tick_late_still_completes(controller, clock):
    controller.start(100)
    clock.advance(10_000)
    assert controller.tick() is True
    assert not controller.is_charging()


def test_tick_device_failure_ends_cycle(controller, gpio, clock):
    controller.start(500)
    clock.advance(500)
    gpio.fail_next("write")

    with pytest.raises(DeviceError):
        controller.tick()

    assert controller.state.phase is Phase.IDLE
    # the best-effort retry got through
    assert gpio.read(PIN) == 0


def test_completion_is_logged(controller, clock):
    controller.start(200)
    clock.advance(200)
    with capture_logs() as logs:
        controller.tick()
    assert any(e["event"] == "[CHARGE] cycle complete, pin set LOW" and e["duration_ms"] == 200 for e in logs)


# ----------------------------------------------------------------------
# stop()
# ----------------------------------------------------------------------
def test_stop_interrupts_active_cycle(controller, gpio):
    controller.start(5000)
    result = controller.stop()

    assert result.stopped is True
    assert result.message == "Charging stopped immediately."
    assert controller.state.phase is Phase.IDLE
    assert gpio.read(PIN) == 0


def test_stop_twice_is_idempotent_and_always_writes(controller, gpio):
    controller.start(5000)
    first = controller.stop()
    index = len(gpio.writes)
    second = controller.stop()

    assert first.stopped is True
    assert second.stopped is False
    assert second.message == "Not currently charging. Pin confirmed LOW."
    assert low_writes_since(gpio, index) == [(PIN, 0)]
    assert gpio.read(PIN) == 0


def test_stop_while_idle_corrects_pin_driven_out_of_band(controller, gpio):
    gpio.force(PIN, 1)
    controller.stop()
    assert gpio.read(PIN) == 0


def test_start_allowed_again_after_stop(controller, clock):
    controller.start(5000)
    controller.stop()
    clock.advance(10)
    assert controller.start(300).accepted_duration == 300
    assert controller.state.started_at == 1010


def test_stop_device_failure_still_drops_cycle(controller, gpio):
    controller.start(5000)
    gpio.fail_next("write")
    with pytest.raises(DeviceError):
        controller.stop()
    assert controller.state.phase is Phase.IDLE


# ----------------------------------------------------------------------
# status()
# ----------------------------------------------------------------------
def test_status_while_charging_reports_remaining(controller, clock):
    controller.start(500)
    clock.set(1200)

    snap = controller.status()
    assert snap.phase is Phase.CHARGING
    assert snap.level is Level.HIGH
    assert snap.duration == 500
    assert snap.remaining == 300
    assert snap.as_dict() == {
        "status": "charging",
        "gpio_level": "HIGH",
        "duration_ms": 500,
        "time_remaining_ms": 300,
    }


def test_status_remaining_clamps_to_zero_before_tick(controller, clock):
    controller.start(500)
    clock.advance(900)
    snap = controller.status()
    assert snap.phase is Phase.CHARGING
    assert snap.remaining == 0


def test_status_idle_reads_live_level(controller, gpio):
    assert controller.status().as_dict() == {"status": "idle", "gpio_level": "LOW"}

    gpio.force(PIN, 1)
    snap = controller.status()
    assert snap.phase is Phase.IDLE
    assert snap.level is Level.HIGH


def test_status_after_stop_is_not_stale(controller):
    controller.start(5000)
    controller.stop()
    assert controller.status().as_dict() == {"status": "idle", "gpio_level": "LOW"}


def test_status_read_failure_raises_device_error(controller, gpio):
    gpio.fail_next("read")
    with pytest.raises(DeviceError):
        controller.status()


# ----------------------------------------------------------------------
# Clock wraparound
# ----------------------------------------------------------------------
def test_cycle_across_clock_wrap(controller, gpio, clock):
    clock.set(CLOCK_MASK - 199)          # 200 ms before the counter wraps
    controller.start(500)

    clock.advance(300)                   # counter now reads 100
    assert clock.now() == 100
    snap = controller.status()
    assert snap.remaining == 200
    assert controller.tick() is False

    clock.advance(199)
    assert controller.tick() is False
    clock.advance(1)
    assert controller.tick() is True
    assert gpio.read(PIN) == 0


# ----------------------------------------------------------------------
# End to end
# ----------------------------------------------------------------------
def test_charge_cycle_end_to_end(controller, gpio, clock):
    clock.set(1000)
    assert controller.start(500).accepted_duration == 500

    clock.set(1200)
    assert controller.status().remaining == 300

    clock.set(1600)
    controller.tick()
    assert controller.state.phase is Phase.IDLE
    assert gpio.read(PIN) == 0
    assert controller.status().as_dict() == {"status": "idle", "gpio_level": "LOW"}


# ----------------------------------------------------------------------
# parse_duration
# ----------------------------------------------------------------------
@pytest.mark.parametrize("raw, expected", [
    (500, 500),
    ("500", 500),
    (" 750 ", 750),
    ("+200", 200),
    ("-5", -5),
    (1000.0, 1000),
    (None, None),
    ("", None),
    ("0x10", None),
    ("0000500", 500),
    ("9" * 5000, 10 ** 9),
    ("-" + "9" * 12, -(10 ** 9)),
    ("\u0661\u0660\u0660", None),
    (False, None),
    ({"time": 5}, None),
])
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected
