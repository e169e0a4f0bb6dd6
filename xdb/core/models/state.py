from enum import StrEnum


class ConnectionState(StrEnum):
    """
    Lifecycle of a single physical connection to the server.

        disconnected -> connecting -> connected -> (closed | errored)

    `connected` is the only state accepting commands. `closed` and
    `errored` are terminal: a new session is required to talk to the
    server again.
    """
    disconnected = "disconnected"
    connecting = "connecting"
    connected = "connected"
    closed = "closed"
    errored = "errored"

    @property
    def terminal(self) -> bool:
        return self in (ConnectionState.closed, ConnectionState.errored)
