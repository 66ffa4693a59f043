# charger/errors.py


class ChargeError(Exception):
    """Base for errors reported synchronously to the caller of the controller."""

    status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConflictError(ChargeError):
    """A cycle is already in progress. Retry later or stop() first."""

    status = 409


class InvalidArgumentError(ChargeError):
    """Missing, non-integer or out-of-range duration."""

    status = 400


class DeviceError(ChargeError):
    """The pin could not be written or read. Ends any active cycle."""

    status = 503
