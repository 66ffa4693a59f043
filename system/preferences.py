import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, List
from system.log_utils import debug, warn, error

# --- Preference Keys ---
VALID_PREF_KEYS = [
        "pin_profile",
        "tick_interval_ms",
        "simulator_enabled",
        "http_port",
        "log_level",
        "log_json",
    ]

KEY_PIN_PROFILE         = VALID_PREF_KEYS[0]
KEY_TICK_INTERVAL_MS    = VALID_PREF_KEYS[1]
KEY_SIMULATOR_ENABLED   = VALID_PREF_KEYS[2]
KEY_HTTP_PORT           = VALID_PREF_KEYS[3]
KEY_LOG_LEVEL           = VALID_PREF_KEYS[4]
KEY_LOG_JSON            = VALID_PREF_KEYS[5]

# Factory values, merged under stored prefs by the /system/prefs endpoint
DEFAULTS = {
    KEY_PIN_PROFILE         : "orangepi_zero3",
    KEY_TICK_INTERVAL_MS    : 10,
    KEY_SIMULATOR_ENABLED   : False,
    KEY_HTTP_PORT           : 80,
    KEY_LOG_LEVEL           : "INFO",
    KEY_LOG_JSON            : False,
}

DEFAULT_PREFS_FILE = "config/user_prefs.json"
PREFS_FILE_ENV = "CHARGER_PREFS_FILE"


class Preferences:
    """
    Simple JSON-based preference store with callback support.
    Missing keys resolve to DEFAULTS.
    """

    def __init__(self, filename: str = None):
        self.file = Path(filename or os.environ.get(PREFS_FILE_ENV, DEFAULT_PREFS_FILE))
        self.data: Dict[str, Any] = {}
        self._callbacks: Dict[str, List[Callable[[Any], None]]] = {}
        self._load()

    # ------------------------------------------------------------------
    # Core file ops
    # ------------------------------------------------------------------

    def _load(self):
        if not self.file.exists():
            warn("[PREFS] file not found, using defaults", path=str(self.file))
            self.data = {}
            return
        try:
            with open(self.file, "r", encoding="utf-8") as f:
                loaded = json.load(f)
        except (OSError, ValueError) as e:
            error(f"[PREFS] load failed: {e}", path=str(self.file))
            self.data = {}
            return

        if not isinstance(loaded, dict):
            error("[PREFS] ignoring non-object preference file", path=str(self.file))
            self.data = {}
            return
        self.data = {k: v for k, v in loaded.items() if k in VALID_PREF_KEYS}

    def save(self):
        """Public save method."""
        try:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.file, "w", encoding="utf-8") as f:
                json.dump(self.data, f, indent=2)
        except OSError as e:
            error(f"[PREFS] save failed: {e}", path=str(self.file))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        if default is None:
            default = DEFAULTS.get(key)
        return self.data.get(key, default)

    def get_int(self, key: str, default: int = None) -> int:
        if default is None:
            default = int(DEFAULTS.get(key, 0))
        try:
            return int(self.data.get(key, default))
        except (TypeError, ValueError):
            return default

    def get_bool(self, key: str, default: bool = None) -> bool:
        if default is None:
            default = bool(DEFAULTS.get(key, False))
        value = self.data.get(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("1", "true", "yes", "on")
        return bool(value)

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def update_from_dict(self, d: Dict[str, Any], write_disk: bool = False) -> List[str]:
        """Update preferences from dictionary.

        Args:
            d: Dictionary of key-value pairs to update
            write_disk: If True, saves to disk. If False, updates memory only.
        """
        updated = []
        for k, v in d.items():
            if k not in VALID_PREF_KEYS:
                continue

            if k not in self.data or self.data[k] != v:
                self.data[k] = v
                updated.append(k)
            else:
                debug(f"[PREFS] skipping {k}, value unchanged")

        if updated:
            debug(f"[PREFS] updating keys: {updated}")
            if write_disk:
                self.save()
            for k in updated:
                self._notify(k, self.data[k])

        return updated

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def register_callback(self, key: str, cb: Callable[[Any], None]):
        self._callbacks.setdefault(key, []).append(cb)

    def _notify(self, key: str, value: Any):
        for cb in self._callbacks.get(key, []):
            try:
                cb(value)
            except Exception as e:
                warn(f"[PREFS] callback for '{key}' failed: {e}")

    # ------------------------------------------------------------------

    def as_dict(self) -> Dict[str, Any]:
        return {**DEFAULTS, **self.data}
