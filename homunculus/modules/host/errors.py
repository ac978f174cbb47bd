"""Errors raised by the Homunculus client."""
from typing import Optional


class HomunculusError(Exception):
    """Base class for every error raised by the SDK."""


class HomunculusApiError(HomunculusError):
    """The host answered a request with a status code >= 400."""

    def __init__(self, status_code: int, endpoint: str, body: str):
        super().__init__(f"{endpoint}: {status_code} {body}")
        self.status_code = status_code
        self.endpoint = endpoint
        self.body = body


class HomunculusStreamError(HomunculusError):
    """An NDJSON stream contained a line that is not a valid event."""

    def __init__(self, raw_line: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to parse NDJSON line: {raw_line}")
        self.raw_line = raw_line
        if cause is not None:
            self.__cause__ = cause


class HomunculusCancelledError(HomunculusError):
    """The caller cancelled a request before it completed."""


class HomunculusTransportError(HomunculusError):
    """The connection failed or ended before the expected data arrived."""
