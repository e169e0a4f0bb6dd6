import asyncio
import logging
from collections import deque
from typing import Any, Callable

from xdb.core.errors import MalformedMessageError
from xdb.core.ports.serializer import Serializer


class Correlator:
    """
    Pairs outstanding requests with the replies that answer them.

    The XDB protocol carries no request identifier: the server answers
    requests strictly in the order it received them, and the client relies
    on that order alone. The Correlator therefore keeps one future per
    dispatched request in a FIFO queue, and the N-th complete frame read
    off the wire settles the N-th future still outstanding. A server that
    reorders replies is undetectable here and will silently mis-pair them.

    Each future is settled exactly once:
    - with the decoded reply, when a frame parses;
    - with MalformedMessageError, when it does not;
    - with the transport error, when the connection fails while the
      future is the oldest one outstanding;
    - with the error given to `drain()` once the connection is terminal.

    A future cancelled by its caller keeps its place in the queue. Its
    reply is still coming, and consuming it keeps every later request
    aligned with its own reply.
    """
    def __init__(
        self,
        serializer: Serializer,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._serializer = serializer
        self._loop = loop
        self._pending: deque[asyncio.Future[Any]] = deque()
        self._logger = logging.getLogger("core.transport.correlator")

    def __len__(self) -> int:
        return len(self._pending)

    def dispatch(
        self,
        message: Any,
        send: Callable[[bytes], None],
    ) -> asyncio.Future[Any]:
        """
        Serialize `message`, hand the frame to `send` and queue a future
        for its reply.

        The future is queued only after `send` returns, so a send refused
        because the session is not connected leaves the queue untouched.
        Nothing can interleave between the two steps on the event loop.
        """
        frame = self._serializer.serialize(message)
        future = (self._loop or asyncio.get_running_loop()).create_future()
        send(frame)
        self._pending.append(future)
        return future

    def resolve(self, frame: bytes) -> None:
        """Settle the oldest outstanding request with a complete frame."""
        if not self._pending:
            self._logger.warning(
                f"Protocol violation: response with no pending request, dropped: {frame!r}"
            )
            return

        future = self._pending.popleft()
        try:
            value = self._serializer.deserialize(frame)
        except (ValueError, RecursionError) as exc:
            self._logger.error(
                f"Protocol violation: malformed JSON received: {frame!r}"
            )
            error = MalformedMessageError("Malformed JSON received", raw=frame)
            error.__cause__ = exc
            self._set_exception(future, error)
            return

        if not future.done():
            future.set_result(value)

    def fail(self, exc: BaseException) -> bool:
        """
        Fail the oldest outstanding request with a transport error.

        Returns False when nothing was pending, in which case the error
        belongs to the connection attempt rather than to a request.
        """
        if not self._pending:
            return False

        self._set_exception(self._pending.popleft(), exc)
        return True

    def drain(self, exc: BaseException) -> int:
        """Fail every outstanding request. Returns how many were failed."""
        count = 0
        while self._pending:
            self._set_exception(self._pending.popleft(), exc)
            count += 1
        return count

    @staticmethod
    def _set_exception(future: asyncio.Future[Any], exc: BaseException) -> None:
        if not future.done():
            future.set_exception(exc)
