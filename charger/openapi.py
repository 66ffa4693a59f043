# charger/openapi.py
"""Self-describing API: OpenAPI 3.0 document and a Swagger UI page."""
from flask import Blueprint, Response, jsonify, redirect

from charger.cycle import MAX_DURATION_MS, MIN_DURATION_MS
from system import services

API_VERSION = "1.0.1"
PROJECT_NAME = "Scrooge Capacitor Test Bench"
PROJECT_DESCRIPTION = (
    "Tests capacitor charge/discharge for zero-leakage switching using relays "
    "(no transistors/MOSFETs)."
)
PROJECT_URL = "https://github.com/psmgeelen/ESP32_API_TestBench"

docs_bp = Blueprint("docs", __name__)


def build_openapi(version: str = API_VERSION, pin: str = "the charge pin") -> dict:
    duration_schema = {
        "type": "integer",
        "format": "int32",
        "minimum": MIN_DURATION_MS,
        "maximum": MAX_DURATION_MS,
    }
    duration_description = (
        f"Duration to hold {pin} HIGH, in milliseconds "
        f"({MIN_DURATION_MS}ms to {MAX_DURATION_MS}ms)."
    )
    time_body = {
        "type": "object",
        "required": ["time"],
        "properties": {"time": {**duration_schema, "description": duration_description}},
    }
    charge_responses = {
        "200": {"description": "Charging cycle initiated successfully."},
        "400": {"description": "Invalid or missing 'time' parameter."},
        "409": {"description": "A charging cycle is already in progress."},
        "503": {"description": "The charge pin could not be driven."},
    }
    return {
        "openapi": "3.0.0",
        "info": {
            "title": "Capacitor Charger API (Project Scrooge)",
            "version": version,
            "description": (
                f"API to control the charge duration of an external capacitor connected to {pin}. "
                "Part of Project Scrooge: a zero-leakage switching test bench."
            ),
            "contact": {"url": PROJECT_URL},
        },
        "servers": [{"url": "/", "description": "Local charger server"}],
        "paths": {
            "/charge": {
                "get": {
                    "tags": ["Control"],
                    "summary": "Start Capacitor Charging",
                    "parameters": [{
                        "name": "time",
                        "in": "query",
                        "required": True,
                        "schema": duration_schema,
                        "description": duration_description,
                    }],
                    "responses": charge_responses,
                },
                "post": {
                    "tags": ["Control"],
                    "summary": "Start Capacitor Charging (body)",
                    "description": "Same as GET, with 'time' sent as a JSON or form field.",
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {"schema": time_body},
                            "application/x-www-form-urlencoded": {"schema": time_body},
                        },
                    },
                    "responses": charge_responses,
                },
            },
            "/state": {
                "get": {
                    "tags": ["Status"],
                    "summary": "Get Current GPIO Charge State",
                    "description": (
                        "Reports if the GPIO is currently HIGH (charging) or LOW (idle), "
                        "and the remaining time if charging."
                    ),
                    "responses": {
                        "200": {
                            "description": "Current state information.",
                            "content": {"application/json": {"example": {
                                "status": "charging",
                                "gpio_level": "HIGH",
                                "duration_ms": 5000,
                                "time_remaining_ms": 1500,
                            }}},
                        },
                    },
                },
            },
            "/stop": {
                "post": {
                    "tags": ["Control"],
                    "summary": "Emergency Stop",
                    "description": f"Immediately stops any active charging cycle by setting {pin} LOW.",
                    "responses": {"200": {"description": "Charge stopped or confirmed idle."}},
                },
            },
            "/health": {
                "get": {
                    "tags": ["System"],
                    "summary": "Health Check",
                    "description": "Simple check to ensure the server is running.",
                    "responses": {"200": {"description": "System operational."}},
                },
            },
            "/info": {
                "get": {
                    "tags": ["System"],
                    "summary": "Get Project Information",
                    "description": "Provides details about the project context and configuration.",
                    "responses": {"200": {"description": "Project details."}},
                },
            },
            "/system/prefs": {
                "get": {
                    "tags": ["System"],
                    "summary": "Get Preferences",
                    "description": "Stored preferences merged over the factory defaults.",
                    "responses": {"200": {"description": "All known preference keys."}},
                },
                "post": {
                    "tags": ["System"],
                    "summary": "Update Preferences",
                    "description": (
                        "Updates and persists known keys. tick_interval_ms (1-50) applies "
                        "immediately; pin_profile applies after restart."
                    ),
                    "requestBody": {
                        "required": True,
                        "content": {"application/json": {"schema": {
                            "type": "object",
                            "properties": {
                                "pin_profile": {"type": "string"},
                                "tick_interval_ms": {"type": "integer", "minimum": 1, "maximum": 50},
                                "simulator_enabled": {"type": "boolean"},
                                "http_port": {"type": "integer"},
                                "log_level": {"type": "string"},
                                "log_json": {"type": "boolean"},
                            },
                        }}},
                    },
                    "responses": {
                        "200": {"description": "Keys updated."},
                        "400": {"description": "Invalid body, value or no known keys."},
                    },
                },
            },
            "/system/prefs/defaults": {
                "get": {
                    "tags": ["System"],
                    "summary": "Get Default Preferences",
                    "responses": {"200": {"description": "Factory default values."}},
                },
            },
        },
    }


SWAGGER_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Capacitor Charger API</title>
  <link rel="stylesheet" type="text/css" href="https://cdnjs.cloudflare.com/ajax/libs/swagger-ui/3.52.0/swagger-ui.css" >
</head>
<body>
  <div id="swagger-ui"></div>
  <script src="https://cdnjs.cloudflare.com/ajax/libs/swagger-ui/3.52.0/swagger-ui-bundle.js"></script>
  <script>
    window.onload = function() {
      window.ui = SwaggerUIBundle({
        url: window.location.origin + "/swagger.json",
        dom_id: '#swagger-ui',
        deepLinking: true,
        presets: [
          SwaggerUIBundle.presets.apis,
          SwaggerUIBundle.SwaggerUIStandalonePreset
        ],
        layout: "BaseLayout"
      });
    };
  </script>
</body>
</html>
"""


@docs_bp.route("/")
def index():
    return redirect("/swagger", code=302)


@docs_bp.route("/swagger")
def swagger_ui() -> Response:
    return Response(SWAGGER_HTML, mimetype="text/html")


@docs_bp.route("/swagger.json")
def swagger_json() -> tuple[Response, int]:
    controller = services.charge_controller
    pin = controller.pin.pin if controller is not None else "the charge pin"
    return jsonify(build_openapi(pin=str(pin))), 200
