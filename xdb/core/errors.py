from typing import Any


class XDBError(Exception):
    """Base class for every error raised by the XDB client."""


class NotConnectedError(XDBError):
    """
    Raised when a command is dispatched while the session is not
    connected. Nothing is written and nothing is queued.
    """


class InvalidStateError(XDBError):
    """Raised when a lifecycle operation does not fit the session state."""


class ConnectionClosedError(XDBError):
    """
    Raised for a pending request whose connection ended before a reply
    arrived.
    """


class MalformedMessageError(XDBError):
    """
    Raised for a pending request whose reply could not be decoded into a
    valid response. The offending payload is kept in `raw`.
    """

    def __init__(self, message: str, raw: Any = None) -> None:
        super().__init__(message)
        self.raw = raw
