from flask import Blueprint, Response, jsonify, request

from charger.errors import ChargeError, DeviceError
from system import services
from system.log_utils import debug, warn, error

charge_bp = Blueprint("charge", __name__)


def _controller():
    return services.charge_controller


def _unavailable() -> tuple[Response, int]:
    return jsonify({
        "status": "error",
        "message": "Charge control not available",
        "code": "SERVICE_UNAVAILABLE",
    }), 503


def _error(e: ChargeError) -> tuple[Response, int]:
    if isinstance(e, DeviceError):
        error(f"[CHARGE API] device failure: {e.message}")
    else:
        debug(f"[CHARGE API] rejected ({e.status}): {e.message}")
    return jsonify({"status": "error", "message": e.message}), e.status


def _requested_time():
    # GET /charge?time=500, or POST with a form field or JSON body
    if "time" in request.args:
        return request.args.get("time")
    if "time" in request.form:
        return request.form.get("time")
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data.get("time")
    return None


# ----------------------------------------------------------------------
# Control
# ----------------------------------------------------------------------
@charge_bp.route("/charge", methods=["GET", "POST"])
def charge() -> tuple[Response, int]:
    controller = _controller()
    if controller is None:
        return _unavailable()

    try:
        result = controller.start(_requested_time())
    except ChargeError as e:
        return _error(e)

    return jsonify({
        "status": "success",
        "message": result.message,
        "duration_ms": result.accepted_duration,
    }), 200


@charge_bp.route("/stop", methods=["POST"])
def stop() -> tuple[Response, int]:
    controller = _controller()
    if controller is None:
        return _unavailable()

    try:
        result = controller.stop()
    except DeviceError as e:
        return _error(e)

    if result.stopped:
        warn("[CHARGE API] emergency stop requested")
    return jsonify({
        "status": "success",
        "stopped": result.stopped,
        "message": result.message,
    }), 200


# ----------------------------------------------------------------------
# Status
# ----------------------------------------------------------------------
@charge_bp.route("/state", methods=["GET"])
def state() -> tuple[Response, int]:
    controller = _controller()
    if controller is None:
        return _unavailable()

    try:
        snapshot = controller.status()
    except DeviceError as e:
        return _error(e)

    return jsonify(snapshot.as_dict()), 200
