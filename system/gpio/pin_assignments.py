# pin_assignments.py

# The charge pin must come up as an output driven LOW; avoid pins that float HIGH
# at boot (PC14/PC15 on the H616 boards, GPIO 2/3 with pull-ups on the Pi header).

# -------------------------------
# Hardware profiles
# -------------------------------

_PIN_PROFILES = {
    "orangepi_zero3": {
        "GPIO_CHIP":  None,             # detected by line count (288 on the H616)
        "CHARGE_PIN": "PC10",
    },
    "raspberry_pi": {
        "GPIO_CHIP":  "/dev/gpiochip0",
        "CHARGE_PIN": "GPIO17",
    },
    "raspberry_pi5": {
        "GPIO_CHIP":  "/dev/gpiochip4",
        "CHARGE_PIN": "GPIO17",
    },
}

# -------------------------------
# Default profile
# -------------------------------

_DEFAULT_PROFILE = "orangepi_zero3"

# -------------------------------
# Public pins (resolved)
# -------------------------------

_PROFILE = _DEFAULT_PROFILE


def available_profiles():
    return sorted(_PIN_PROFILES)


def current_profile() -> str:
    return _PROFILE


def select_profile(name: str):
    global _PROFILE, GPIO_CHIP, CHARGE_PIN
    if name not in _PIN_PROFILES:
        raise ValueError(f"Unknown pin profile: {name}")
    _PROFILE = name

    GPIO_CHIP  = _PIN_PROFILES[_PROFILE]["GPIO_CHIP"]
    CHARGE_PIN = _PIN_PROFILES[_PROFILE]["CHARGE_PIN"]


# initialize defaults
GPIO_CHIP  = _PIN_PROFILES[_PROFILE]["GPIO_CHIP"]
CHARGE_PIN = _PIN_PROFILES[_PROFILE]["CHARGE_PIN"]

# -------------------------------
# Pin name -> line offset on the profile's gpiochip
# -------------------------------

PIN_MAP = {
    "PC1": 65, "PC5": 69, "PC6": 70, "PC7": 71, "PC8": 72, "PC9": 73, "PC10": 74, "PC11": 75, "PC14": 78, "PC15": 79,
    "PH2": 226, "PH3": 227, "PH4": 228, "PH5": 229, "PH6": 230, "PH7": 231, "PH8": 232, "PH9": 233,
    "PI6": 262, "PI16": 272,
    # Raspberry Pi header, BCM numbering
    **{f"GPIO{n}": n for n in range(28)},
}


def resolve_line(pin_name) -> int:
    if isinstance(pin_name, int):
        return pin_name
    try:
        return PIN_MAP[pin_name]
    except KeyError:
        raise ValueError(f"Unknown pin: {pin_name}") from None
