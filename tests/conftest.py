import asyncio
import os

import pytest
import pytest_asyncio

from tests.fake.fake_transport import FakeTransport
from xdb.core.client import XDBClient
from xdb.core.models.config import ClientConfig
from xdb.core.transport.session import Session
from xdb.infra.json_serializer import JsonSerializer


@pytest.fixture
def serializer():
    return JsonSerializer()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """Run with no XDB_* variables and an empty working directory."""
    for name in list(os.environ):
        if name.startswith("XDB"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest_asyncio.fixture
async def session(serializer):
    return Session(ClientConfig(), serializer, loop=asyncio.get_running_loop())


@pytest_asyncio.fixture
async def connected_session(session, transport):
    transport.set_protocol(session)
    session.connection_made(transport)
    return session


@pytest_asyncio.fixture
async def fake_server(monkeypatch, transport):
    """
    Replace loop.create_connection so that connecting attaches the
    protocol to the FakeTransport. Returns the (host, port) of each call.
    """
    loop = asyncio.get_running_loop()
    calls: list[tuple[str, int]] = []

    async def create_connection(protocol_factory, host=None, port=None, **kwargs):
        calls.append((host, port))
        protocol = protocol_factory()
        transport.set_protocol(protocol)
        protocol.connection_made(transport)
        return transport, protocol

    monkeypatch.setattr(loop, "create_connection", create_connection)
    return calls


@pytest_asyncio.fixture
async def client(serializer, fake_server):
    client = XDBClient(serializer, loop=asyncio.get_running_loop())
    await client.connect()
    return client
