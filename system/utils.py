import socket
import subprocess


def get_ip_address():
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            # no packets are sent; this only selects the outbound interface
            s.connect(("8.8.8.8", 80))
            return s.getsockname()[0]
    except OSError:
        return "0.0.0.0"


def get_wifi_ssid():
    try:
        ssid = subprocess.check_output(["iwgetid", "-r"], text=True, stderr=subprocess.DEVNULL).strip()
        return ssid if ssid else "No WiFi"
    except (OSError, subprocess.CalledProcessError):
        return "Unknown"


def get_hostname():
    try:
        return socket.gethostname()
    except OSError:
        return "unknown"
