import asyncio
import logging
from typing import Any

from xdb.core.errors import ConnectionClosedError
from xdb.core.models.config import ClientConfig, DEFAULT_HOST
from xdb.core.models.message import Action, Request, Response
from xdb.core.models.state import ConnectionState
from xdb.core.ports.serializer import Serializer
from xdb.core.transport.session import Session


class XDBClient:
    """
    Asynchronous client for the XDB document server.

    Every command is one JSON line sent over a single persistent TCP
    connection. Commands may be issued concurrently: replies are matched to
    requests in the order the requests were sent.

        async with XDBClient(JsonSerializer()) as db:
            created = await db.insert("users", {"name": "Ada"})
            found = await db.find("users", {"name": "Ada"}, limit=10)

    Each command returns a Response. A reply with `status == "error"` is
    returned, not raised. Exceptions are reserved for client-side faults:
    NotConnectedError, MalformedMessageError, ConnectionClosedError and
    the OSError subclasses reported by the transport.
    """
    def __init__(
        self,
        serializer: Serializer,
        host: str = DEFAULT_HOST,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = ClientConfig(host=host)
        self._session = Session(self._config, serializer, loop=loop)
        self._logger = logging.getLogger("core.client")

    @property
    def state(self) -> ConnectionState:
        return self._session.state

    @property
    def address(self) -> str:
        return self._config.address

    async def __aenter__(self) -> "XDBClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def connect(self) -> None:
        await self._session.connect()

    async def insert(self, collection: str, data: dict[str, Any]) -> Response:
        """Insert a document. The reply carries it with its generated `_id`."""
        return await self._request(
            Request(action=Action.insert, collection=collection, data=data)
        )

    async def find(
        self,
        collection: str,
        query: dict[str, Any] | None = None,
        limit: int = 0,
    ) -> Response:
        """
        Find documents matching `query` (all documents by default).
        A `limit` of 0 means unlimited.
        """
        return await self._request(
            Request(
                action=Action.find,
                collection=collection,
                query=query if query is not None else {},
                limit=limit,
            )
        )

    async def update(self, collection: str, id: str, data: dict[str, Any]) -> Response:
        """
        Merge `data` into the document `id`. Fields absent from `data` are
        left untouched and `_id` is never sent as part of the body.
        """
        return await self._request(
            Request(
                action=Action.update,
                collection=collection,
                id=id,
                data=_without_id(data),
            )
        )

    async def upsert(
        self,
        collection: str,
        id: str | None,
        data: dict[str, Any],
    ) -> Response:
        """
        Update the document `id` if it exists, insert `data` otherwise.
        Pass None as `id` to always insert.
        """
        return await self._request(
            Request(
                action=Action.upsert,
                collection=collection,
                id=id,
                data=_without_id(data),
            )
        )

    async def delete(self, collection: str, id: str) -> Response:
        return await self._request(
            Request(action=Action.delete, collection=collection, id=id)
        )

    async def count(self, collection: str) -> Response:
        return await self._request(
            Request(action=Action.count, collection=collection)
        )

    async def snapshot(self) -> Response:
        """Ask the server for a point-in-time snapshot of its state."""
        return await self._request(Request(action=Action.snapshot))

    async def close(self) -> None:
        """
        Send `exit`, wait for its reply, then close the connection.
        Does nothing when the client is not connected.
        """
        if self.state is not ConnectionState.connected:
            return

        try:
            await self._request(Request(action=Action.exit))
        except ConnectionClosedError as ex:
            self._logger.debug(f"Server closed the connection on exit: {ex}")
        finally:
            await self._session.close()

        self._logger.info("Session terminated gracefully.")

    async def _request(self, request: Request) -> Response:
        payload = await self._session.request(request.to_dict())
        return Response.from_dict(payload)


def _without_id(data: dict[str, Any] | None) -> dict[str, Any]:
    if not isinstance(data, dict):
        return {}
    return {k: v for k, v in data.items() if k != "_id"}
