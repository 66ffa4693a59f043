from flask import Flask, Response, request

from system.log_utils import debug, info


def bootstrap(prefs_file: str = None):
    """Wire services in order: prefs -> logging -> pins -> gpio -> controller -> scheduler."""
    from system.device.device_init import (
        init_preferences_service,
        init_logging,
        init_device,
        init_gpio_service,
        init_charge_controller,
        start_tick_scheduler,
    )
    init_preferences_service(prefs_file)
    init_logging()
    debug("starting service")
    init_device()
    init_gpio_service()
    init_charge_controller()
    start_tick_scheduler()


def create_app() -> Flask:
    from charger.routes import charge_bp
    from charger.openapi import docs_bp
    from system.routes import system_bp

    app = Flask(__name__)

    app.register_blueprint(docs_bp)
    app.register_blueprint(charge_bp)
    app.register_blueprint(system_bp)

    @app.errorhandler(404)
    def not_found(_e):
        message = "Resource Not Found\n\n"
        message += f"URI: {request.path}\n"
        message += f"Method: {request.method if request.method in ('GET', 'POST') else 'OTHER'}"
        return Response(message, status=404, mimetype="text/plain")

    return app


def log_api_url(port: int):
    from system.utils import get_ip_address
    info(f"Access API at: http://{get_ip_address()}:{port}/swagger")


if __name__ == '__main__':
    import atexit
    from system import services
    from system.device.device_init import shutdown
    from system.preferences import KEY_HTTP_PORT

    bootstrap()
    atexit.register(shutdown)

    port = services.preferences_service.get_int(KEY_HTTP_PORT)
    log_api_url(port)
    create_app().run(host="0.0.0.0", port=port, debug=False, use_reloader=False)
