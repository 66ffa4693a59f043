# device/device_init.py
from system.gpio.pin_assignments import select_profile
from system import services
from charger.errors import DeviceError
from system.log_utils import configure_logging, info, debug, warn, error
from system.preferences import (
    KEY_LOG_JSON,
    KEY_LOG_LEVEL,
    KEY_PIN_PROFILE,
    KEY_SIMULATOR_ENABLED,
    KEY_TICK_INTERVAL_MS,
)


def init_preferences_service(filename: str = None):
    from system.preferences import Preferences
    services.preferences_service = Preferences(filename)


def init_logging():
    prefs = services.preferences_service
    # "VERBOSE" is DEBUG plus the per-tick/per-request chatter
    level = str(prefs.get(KEY_LOG_LEVEL)).upper()
    verbose_enabled = level == "VERBOSE"
    configure_logging(
        level="DEBUG" if verbose_enabled else level,
        json=prefs.get_bool(KEY_LOG_JSON),
        verbose_enabled=verbose_enabled,
    )


def init_device():
    profile = services.preferences_service.get(KEY_PIN_PROFILE)
    select_profile(profile)

    from system.gpio import pin_assignments as PINS
    info(f"[DEVICE] Initialized {profile} hardware profile")
    info(f"[DEVICE] CHARGE_PIN resolved to {PINS.CHARGE_PIN}")


def init_gpio_service():
    from system.gpio import pin_assignments as PINS

    if services.preferences_service.get_bool(KEY_SIMULATOR_ENABLED):
        from system.gpio.sim_gpio import SimulatedGPIO
        warn("[DEVICE] simulator enabled; no hardware pins will be driven")
        services.gpio_service = SimulatedGPIO()
    else:
        from system.gpio.gpio_control import GPIOController, find_gpiochip_by_line_count
        chip = PINS.GPIO_CHIP or find_gpiochip_by_line_count(288)
        debug(f"[DEVICE] using {chip}")
        services.gpio_service = GPIOController(chip)

    services.gpio_service.initialize_outputs([PINS.CHARGE_PIN])


def init_charge_controller():
    from charger.charge_pin import ChargePin
    from charger.clock import MonotonicClock
    from charger.cycle import ChargeController
    from system.gpio import pin_assignments as PINS

    services.clock = MonotonicClock()
    pin = ChargePin(services.gpio_service, PINS.CHARGE_PIN)
    services.charge_controller = ChargeController(pin, services.clock)


def start_tick_scheduler():
    from charger.scheduler import TickScheduler

    interval = services.preferences_service.get_int(KEY_TICK_INTERVAL_MS)
    services.tick_scheduler = TickScheduler(services.charge_controller, interval)
    services.preferences_service.register_callback(
        KEY_TICK_INTERVAL_MS, services.tick_scheduler.set_interval
    )
    services.tick_scheduler.start()


def shutdown():
    """Stop polling and leave the pin LOW."""
    if services.tick_scheduler is not None:
        services.tick_scheduler.stop()
    if services.charge_controller is not None:
        try:
            services.charge_controller.stop()
        except DeviceError as e:
            error(f"[DEVICE] could not leave pin LOW on shutdown: {e}")
    if services.gpio_service is not None:
        services.gpio_service.close()
    debug("[DEVICE] shutdown complete")
