# run.py
import atexit

from waitress import serve

from app import bootstrap, create_app, log_api_url
from system import services
from system.device.device_init import shutdown
from system.log_utils import info
from system.preferences import KEY_HTTP_PORT


def main():
    bootstrap()
    atexit.register(shutdown)

    port = services.preferences_service.get_int(KEY_HTTP_PORT)
    info(f"Serving via Waitress on http://0.0.0.0:{port}")
    log_api_url(port)
    # requests are short; the tick scheduler has its own thread
    serve(create_app(), host="0.0.0.0", port=port, threads=4)


if __name__ == "__main__":
    main()
