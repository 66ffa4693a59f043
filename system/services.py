# services.py
from charger.clock import MonotonicClock
from charger.cycle import ChargeController
from charger.scheduler import TickScheduler
from system.preferences import Preferences

# ------------------------------------------------------------------------------
# Service singletons (initialized in order in device_init.py)
# ------------------------------------------------------------------------------

# GPIOController on hardware, SimulatedGPIO when the simulator is enabled
gpio_service = None

clock: MonotonicClock = None

charge_controller: ChargeController = None

tick_scheduler: TickScheduler = None

preferences_service: Preferences = None
