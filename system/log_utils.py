# system/log_utils.py
"""
Process-wide logging helpers.

Call sites use the short module functions with a bracketed subsystem tag:

    from system.log_utils import debug, info, warn, error
    info("[CHARGE] cycle initiated", duration_ms=500)

Output goes through structlog on top of the stdlib logging tree so that
waitress/werkzeug records share the same handler.
"""
import logging
import sys
from typing import Any

import structlog

_LOGGER_NAME = "charger"
_verbose = False


def configure_logging(level: str = "INFO", json: bool = False, verbose_enabled: bool = False) -> None:
    """Configure structlog once at startup. Safe to call again to change level."""
    global _verbose
    _verbose = verbose_enabled

    log_level = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=log_level, stream=sys.stdout, format="%(message)s")
    logging.getLogger().setLevel(log_level)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = bool(enabled)


def is_verbose() -> bool:
    return _verbose


def _log():
    return structlog.get_logger(_LOGGER_NAME)


def verbose(msg: str, **fields: Any) -> None:
    # high-frequency chatter (per-tick, per-request); off unless enabled
    if _verbose:
        _log().debug(msg, **fields)


def debug(msg: str, **fields: Any) -> None:
    _log().debug(msg, **fields)


def info(msg: str, **fields: Any) -> None:
    _log().info(msg, **fields)


def warn(msg: str, **fields: Any) -> None:
    _log().warning(msg, **fields)


def error(msg: str, **fields: Any) -> None:
    _log().error(msg, **fields)
