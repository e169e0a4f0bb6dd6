from dataclasses import dataclass

XDB_PORT = 8080
"""
The XDB server only ever listens on this port. It is part of the protocol
and is not configurable.
"""

DEFAULT_HOST = "127.0.0.1"


@dataclass
class ClientConfig:
    """
    Static configuration of one XDB session.
    """
    host: str = DEFAULT_HOST
    """
    IP address or hostname of the XDB server.
    """

    @property
    def port(self) -> int:
        return XDB_PORT

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"
