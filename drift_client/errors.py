from __future__ import annotations

from typing import Optional


class DriftError(RuntimeError):
    """Raised when a drift client operation fails."""

    code = "DRIFT_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        if code:
            self.code = code


class DriftConfigError(DriftError):
    """Client configuration is invalid."""

    code = "CONFIG_INVALID"


class DriftTimeoutError(DriftError):
    """No response arrived before the request deadline."""

    code = "REQUEST_TIMEOUT"


class DriftConnectionError(DriftError):
    """The service could not be reached."""

    code = "CONNECTION_ERROR"


class DriftProtocolError(DriftError):
    """The response body is not a valid envelope or payload."""

    code = "PROTOCOL_ERROR"


class DriftRequestError(DriftError):
    """The service reported failure, via HTTP status or envelope."""

    code = "REQUEST_FAILED"
