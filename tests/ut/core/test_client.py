import asyncio
import json
import logging

import pytest

from tests.fake.fake_transport import FakeTransport
from xdb.core.client import XDBClient
from xdb.core.errors import MalformedMessageError, NotConnectedError
from xdb.core.models.message import Response
from xdb.core.models.state import ConnectionState


async def start(coro) -> asyncio.Task:
    task = asyncio.create_task(coro)
    await asyncio.sleep(0)
    return task


def reply(payload: dict) -> bytes:
    return json.dumps(payload).encode() + b"\n"


@pytest.mark.ut
@pytest.mark.asyncio
async def test_insert_sends_document_and_returns_response(client, transport):
    mock_response = {"status": "ok", "message": "Document Inserted", "data": {"_id": "123"}}

    task = await start(client.insert("users", {"name": "Test"}))
    transport.feed(reply(mock_response))
    result = await task

    assert transport.sent() == [
        {"action": "insert", "collection": "users", "data": {"name": "Test"}}
    ]
    assert transport.buffer.endswith(b"\n")
    assert result == Response(status="ok", message="Document Inserted", data={"_id": "123"})


@pytest.mark.ut
@pytest.mark.asyncio
async def test_find_defaults_to_match_all_unlimited(client, transport):
    task = await start(client.find("users"))
    transport.feed(reply({"status": "ok", "message": "", "data": []}))
    await task

    assert transport.sent() == [
        {"action": "find", "collection": "users", "query": {}, "limit": 0}
    ]


@pytest.mark.ut
@pytest.mark.asyncio
async def test_update_strips_id_from_body(client, transport):
    task = await start(client.update("users", "abc", {"_id": "abc", "active": False}))
    transport.feed(reply({"status": "ok", "message": "Updated", "data": {"active": False}}))
    await task

    assert transport.sent() == [
        {"action": "update", "collection": "users", "id": "abc", "data": {"active": False}}
    ]


@pytest.mark.ut
@pytest.mark.asyncio
async def test_upsert_with_null_id(client, transport):
    task = await start(client.upsert("users", None, {"_id": "x", "score": 100}))
    transport.feed(reply({"status": "ok", "message": "Inserted"}))
    await task

    assert transport.sent() == [
        {"action": "upsert", "collection": "users", "id": None, "data": {"score": 100}}
    ]


@pytest.mark.ut
@pytest.mark.asyncio
async def test_delete_count_and_snapshot_payloads(client, transport):
    tasks = [
        await start(client.delete("users", "abc")),
        await start(client.count("users")),
        await start(client.snapshot()),
    ]
    transport.feed(
        reply({"status": "ok", "message": "Deleted"})
        + reply({"status": "ok", "message": "", "data": {"count": 4}})
        + reply({"status": "ok", "message": "Snapshot created"})
    )
    deleted, counted, snap = await asyncio.gather(*tasks)

    assert transport.sent() == [
        {"action": "delete", "collection": "users", "id": "abc"},
        {"action": "count", "collection": "users"},
        {"action": "snapshot"},
    ]
    assert deleted.message == "Deleted"
    assert counted.data == {"count": 4}
    assert snap.message == "Snapshot created"


@pytest.mark.ut
@pytest.mark.asyncio
async def test_two_replies_in_one_chunk_resolve_in_dispatch_order(client, transport):
    first = await start(client.find("users"))
    second = await start(client.find("admins"))

    transport.feed(b'{"status":"ok","id":1}\n{"status":"ok","id":2}\n')

    assert (await first).extra == {"id": 1}
    assert (await second).extra == {"id": 2}


@pytest.mark.ut
@pytest.mark.asyncio
async def test_reply_split_after_ten_bytes(client, transport):
    raw = reply({"status": "ok", "data": {"count": 5}})

    task = await start(client.count("users"))
    transport.feed(raw[:10])
    await asyncio.sleep(0)
    assert not task.done()

    transport.feed(raw[10:])
    result = await task

    assert result.ok
    assert result.data == {"count": 5}


@pytest.mark.ut
@pytest.mark.asyncio
async def test_many_concurrent_requests_in_arbitrary_chunks(client, transport):
    tasks = [await start(client.count(f"c{i}")) for i in range(20)]
    stream = b"".join(
        reply({"status": "ok", "message": "", "data": {"count": i}}) for i in range(20)
    )

    for offset in range(0, len(stream), 7):
        transport.feed(stream[offset:offset + 7])

    results = await asyncio.gather(*tasks)
    assert [r.data["count"] for r in results] == list(range(20))


@pytest.mark.ut
@pytest.mark.asyncio
async def test_application_error_is_returned(client, transport):
    task = await start(client.delete("users", "missing"))
    transport.feed(reply({"status": "error", "message": "Document not found"}))

    result = await task
    assert not result.ok
    assert result.message == "Document not found"


@pytest.mark.ut
@pytest.mark.asyncio
async def test_malformed_json_rejects_the_request(client, transport, caplog):
    task = await start(client.find("users"))

    with caplog.at_level(logging.ERROR):
        transport.feed(b"INVALID_JSON\n")

    with pytest.raises(MalformedMessageError, match="Malformed JSON"):
        await task
    assert "Protocol violation: malformed JSON" in caplog.text


@pytest.mark.ut
@pytest.mark.asyncio
async def test_reply_that_is_not_an_object_is_malformed(client, transport):
    task = await start(client.count("users"))
    transport.feed(b"[1,2,3]\n")

    with pytest.raises(MalformedMessageError):
        await task


@pytest.mark.ut
@pytest.mark.asyncio
async def test_command_before_connect_is_rejected(serializer):
    client = XDBClient(serializer, loop=asyncio.get_running_loop())

    with pytest.raises(NotConnectedError):
        await client.count("users")


@pytest.mark.ut
@pytest.mark.asyncio
async def test_close_sends_exit_then_closes(client, transport, caplog):
    with caplog.at_level(logging.INFO, logger="core.client"):
        task = await start(client.close())
        assert transport.sent() == [{"action": "exit"}]

        transport.feed(reply({"status": "ok", "message": "Bye"}))
        await task

    assert transport.is_closing()
    assert client.state is ConnectionState.closed
    assert "Session terminated gracefully." in caplog.text


@pytest.mark.ut
@pytest.mark.asyncio
async def test_close_when_server_hangs_up_on_exit(client, transport):
    task = await start(client.close())
    client._session.connection_lost(None)
    await task

    assert client.state is ConnectionState.closed


@pytest.mark.ut
@pytest.mark.asyncio
async def test_close_without_connection_is_noop(serializer, transport):
    client = XDBClient(serializer, loop=asyncio.get_running_loop())

    await client.close()

    assert client.state is ConnectionState.disconnected
    assert transport.buffer == b""


@pytest.mark.ut
@pytest.mark.asyncio
async def test_async_context_manager(serializer, fake_server, transport):
    async with XDBClient(serializer, host="10.0.0.5", loop=asyncio.get_running_loop()) as db:
        assert db.state is ConnectionState.connected
        assert db.address == "10.0.0.5:8080"
        # answer the exit sent on the way out
        asyncio.get_running_loop().call_soon(transport.feed, reply({"status": "ok", "message": ""}))

    assert fake_server == [("10.0.0.5", 8080)]
    assert db.state is ConnectionState.closed


@pytest.mark.ut
@pytest.mark.asyncio
async def test_close_releases_transport_when_exit_reply_is_invalid(client, transport):
    task = await start(client.close())
    transport.feed(b'{"unexpected":true}\n')

    with pytest.raises(MalformedMessageError):
        await task

    assert transport.is_closing()
    assert client.state is ConnectionState.closed


@pytest.mark.ut
def test_client_built_before_the_loop_runs(serializer, monkeypatch):
    transport = FakeTransport()

    async def create_connection(self, protocol_factory, host=None, port=None, **kwargs):
        protocol = protocol_factory()
        transport.set_protocol(protocol)
        protocol.connection_made(transport)
        return transport, protocol

    monkeypatch.setattr(asyncio.BaseEventLoop, "create_connection", create_connection)
    client = XDBClient(serializer)

    async def main():
        await client.connect()
        task = await start(client.count("users"))
        transport.feed(reply({"status": "ok", "data": {"count": 1}}))
        counted = await task
        closing = await start(client.close())
        transport.feed(reply({"status": "ok", "message": ""}))
        await closing
        return counted

    counted = asyncio.run(main())

    assert counted.data == {"count": 1}
    assert client.state is ConnectionState.closed
