from flask import Blueprint, Response, jsonify, request

from charger.openapi import API_VERSION, PROJECT_DESCRIPTION, PROJECT_NAME, PROJECT_URL
from charger.scheduler import validate_interval
from system import services
from system.gpio import pin_assignments as PINS
from system.log_utils import debug, warn
from system.preferences import DEFAULTS, KEY_PIN_PROFILE, KEY_TICK_INTERVAL_MS
from system.utils import get_hostname, get_ip_address, get_wifi_ssid

system_bp = Blueprint("system", __name__)


# ----------------------------------------------------------------------
# Health / info
# ----------------------------------------------------------------------
@system_bp.route("/health", methods=["GET"])
def health() -> tuple[Response, int]:
    uptime_ms = services.clock.now() if services.clock is not None else 0
    return jsonify({
        "status": "ok",
        "device": get_hostname(),
        "uptime_ms": uptime_ms,
    }), 200


@system_bp.route("/info", methods=["GET"])
def project_info() -> tuple[Response, int]:
    return jsonify({
        "project": PROJECT_NAME,
        "description": PROJECT_DESCRIPTION,
        "repository": PROJECT_URL,
        "charge_pin": PINS.CHARGE_PIN,
        "pin_profile": PINS.current_profile(),
        "api_version": API_VERSION,
        "ip_address": get_ip_address(),
        "wifi_ssid": get_wifi_ssid(),
    }), 200


# ----------------------------------------------------------------------
# GET current preferences
# ----------------------------------------------------------------------
@system_bp.route("/system/prefs", methods=["GET"])
def get_preferences() -> tuple[Response, int]:
    """
    Returns the merged dictionary of defaults and stored prefs.
    Always includes all known keys.
    """
    prefs = services.preferences_service
    merged = prefs.as_dict() if prefs is not None else dict(DEFAULTS)
    return jsonify(merged), 200


# ----------------------------------------------------------------------
# POST updated preferences
# ----------------------------------------------------------------------
@system_bp.route("/system/prefs", methods=["POST"])
def update_preferences() -> tuple[Response, int]:
    """
    Updates preferences from JSON body and persists them.
    tick_interval_ms applies immediately; pin_profile applies on restart.
    """
    prefs = services.preferences_service
    if prefs is None:
        return jsonify({"ok": False, "error": "Preferences not available"}), 503

    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return jsonify({"ok": False, "error": "Invalid JSON body"}), 400

    if KEY_TICK_INTERVAL_MS in data:
        try:
            data[KEY_TICK_INTERVAL_MS] = validate_interval(data[KEY_TICK_INTERVAL_MS])
        except (TypeError, ValueError) as e:
            return jsonify({"ok": False, "error": str(e)}), 400

    if KEY_PIN_PROFILE in data and data[KEY_PIN_PROFILE] not in PINS.available_profiles():
        return jsonify({
            "ok": False,
            "error": f"Unknown pin profile: {data[KEY_PIN_PROFILE]}",
        }), 400

    updated = prefs.update_from_dict(data, write_disk=True)
    if not updated:
        return jsonify({"ok": False, "error": "No valid keys to update"}), 400

    if KEY_PIN_PROFILE in updated:
        warn("[PREFS] pin profile changed; takes effect after restart")
    debug(f"[PREFS] updated via POST: {updated}")
    return jsonify({"ok": True, "updated": updated}), 200


# ----------------------------------------------------------------------
# GET defaults only
# ----------------------------------------------------------------------
@system_bp.route("/system/prefs/defaults", methods=["GET"])
def get_defaults() -> tuple[Response, int]:
    """Return the factory default preference values."""
    return jsonify(DEFAULTS), 200
