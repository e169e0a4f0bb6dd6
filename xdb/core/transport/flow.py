import asyncio

from xdb.core.errors import ConnectionClosedError


class FlowControl:
    """
    Write backpressure for the client session.

    asyncio calls `pause_writing()` on the protocol when the transport's
    write buffer goes over its high-water mark and `resume_writing()` once
    it drains below the low-water mark. The Session forwards both calls
    here; `drain()` lets a coroutine wait until writing is allowed again.

    Once the connection is lost, pending and future drains fail with
    ConnectionClosedError instead of waiting for a resume that will never
    come.
    """

    def __init__(self) -> None:
        self._writable = asyncio.Event()
        self._writable.set()
        self._lost: BaseException | None = None
        self.write_paused = False

    async def drain(self) -> None:
        """Block until writing is allowed again."""
        self._raise_if_lost()
        await self._writable.wait()
        self._raise_if_lost()

    def pause_writing(self) -> None:
        self.write_paused = True
        self._writable.clear()

    def resume_writing(self) -> None:
        if self.write_paused:
            self.write_paused = False
            self._writable.set()

    def connection_lost(self, exc: BaseException | None) -> None:
        """Fail current and future drains, then wake every waiter."""
        self._lost = ConnectionClosedError("Connection lost while writing")
        if exc is not None:
            self._lost.__cause__ = exc
        self.write_paused = False
        self._writable.set()

    def _raise_if_lost(self) -> None:
        if self._lost is not None:
            raise self._lost
