import asyncio
import logging
from typing import Any

from xdb.core.errors import ConnectionClosedError, InvalidStateError, NotConnectedError
from xdb.core.helpers.utils import is_connection_refused
from xdb.core.models.config import ClientConfig, XDB_PORT
from xdb.core.models.state import ConnectionState
from xdb.core.ports.serializer import Serializer
from xdb.core.transport.correlator import Correlator
from xdb.core.transport.flow import FlowControl
from xdb.core.transport.framer import LineFramer


class Session(asyncio.Protocol):
    """
    Owns the single TCP connection to an XDB server and its lifecycle.

    Session is the asyncio protocol attached to the transport. Raw bytes
    from `data_received` go to the LineFramer; every complete frame it
    yields goes to the Correlator, which settles the oldest pending
    request. Outgoing commands take the opposite path through `request()`:
    the Correlator serializes the message and queues a future once
    `send()` has written the frame.

    The port is always XDB_PORT; only the host comes from the
    configuration.

    Failures are reported the way the server's users expect to read them:
    a refused connection logs an error plus a hint that the server may not
    be running, any other socket error logs the error itself. A transport
    error fails the oldest pending request with that error. When nothing
    is pending, the error belongs to the connection attempt and is raised
    from `connect()`.

    The connection is single-use. Once lost, every request still pending
    is failed with ConnectionClosedError, since asyncio will not report
    anything more on this transport. `closed` and `errored` are terminal
    states and a new Session is needed to talk to the server again.

    Without an explicit `loop`, the session binds to the loop running
    `connect()`, so it can be built before that loop exists.
    """
    def __init__(
        self,
        config: ClientConfig,
        serializer: Serializer,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._transport: asyncio.Transport | None = None
        self._config = config
        self._loop = loop
        self._framer = LineFramer()
        self._correlator = Correlator(serializer, loop=self._loop)
        self._flow = FlowControl()
        self._closed: asyncio.Future[None] | None = None
        self.state = ConnectionState.disconnected
        self._logger = logging.getLogger("core.transport.session")

    @property
    def address(self) -> str:
        return f"{self._config.host}:{XDB_PORT}"

    @property
    def pending(self) -> int:
        """Number of requests sent and still waiting for a reply."""
        return len(self._correlator)

    async def connect(self) -> None:
        if self.state is not ConnectionState.disconnected:
            raise InvalidStateError(
                f"Cannot connect a session in state '{self.state}'"
            )

        self.state = ConnectionState.connecting
        self._loop = self._loop or asyncio.get_running_loop()
        try:
            await self._loop.create_connection(
                lambda: self,
                host=self._config.host,
                port=XDB_PORT,
            )
        except OSError as exc:
            self._on_error(exc)
            raise
        except BaseException:
            self.state = ConnectionState.errored
            raise

    def connection_made(self, transport: asyncio.Transport) -> None:
        self._transport = transport
        self._closed = (self._loop or asyncio.get_running_loop()).create_future()
        self.state = ConnectionState.connected
        self._logger.info(f"Connection established to {self.address}")

    def data_received(self, data: bytes) -> None:
        for frame in self._framer.feed(data):
            self._correlator.resolve(frame)

    def eof_received(self) -> None:
        pass

    def connection_lost(self, exc: Exception | None) -> None:
        self._flow.connection_lost(exc)

        if exc is None:
            self.state = ConnectionState.closed
            self._logger.debug(f"{self.address} - Connection closed.")
            error = ConnectionClosedError("Connection closed before a reply was received")
        else:
            self._on_error(exc)
            error = ConnectionClosedError(f"Connection lost: {exc}")
            error.__cause__ = exc

        if drained := self._correlator.drain(error):
            self._logger.warning(
                f"{drained} pending request(s) failed, connection to {self.address} is gone"
            )

        if self._closed is not None and not self._closed.done():
            self._closed.set_result(None)

    def pause_writing(self) -> None:
        self._flow.pause_writing()

    def resume_writing(self) -> None:
        self._flow.resume_writing()

    def send(self, data: bytes) -> None:
        if self.state is not ConnectionState.connected or self._transport is None:
            raise NotConnectedError("Client is not connected to XDB Server.")

        self._transport.write(data)
        self._logger.debug(f"Sent frame: {data!r}")

    async def request(self, message: Any) -> Any:
        """
        Send one command and wait for the decoded reply.

        Raises NotConnectedError immediately when the session is not
        connected. Otherwise the reply, or the failure standing in for it,
        arrives through the future queued by the Correlator.
        """
        future = self._correlator.dispatch(message, self.send)

        if self._flow.write_paused:
            try:
                await self._flow.drain()
            except ConnectionClosedError:
                # the connection loss has already failed `future`
                pass

        return await future

    async def close(self) -> None:
        """Close the transport and wait until the connection is released."""
        if self._transport is None or self.state.terminal:
            return

        self._transport.close()
        if self._closed is not None:
            await asyncio.shield(self._closed)

    def _on_error(self, exc: BaseException) -> None:
        self.state = ConnectionState.errored

        if is_connection_refused(exc):
            self._logger.error(f"Failed to connect to host {self.address}")
            self._logger.warning(
                "Hint: Is the XDB server running? Try starting it with './bin/server'"
            )
        else:
            self._logger.error(f"Socket error occurred: {exc}")

        # one error answers one pending request
        self._correlator.fail(exc)
