import argparse

from xdb.core.client import XDBClient
from xdb.core.models.message import Response
from xdbctl.bootstrap.deps import get_dispatcher

dispatcher = get_dispatcher()


@dispatcher.command("insert")
async def insert(client: XDBClient, namespace: argparse.Namespace) -> Response:
    return await client.insert(namespace.collection, namespace.document)


@dispatcher.command("find")
async def find(client: XDBClient, namespace: argparse.Namespace) -> Response:
    return await client.find(namespace.collection, namespace.query, limit=namespace.limit)


@dispatcher.command("update")
async def update(client: XDBClient, namespace: argparse.Namespace) -> Response:
    return await client.update(namespace.collection, namespace.id, namespace.document)


@dispatcher.command("upsert")
async def upsert(client: XDBClient, namespace: argparse.Namespace) -> Response:
    return await client.upsert(namespace.collection, namespace.id, namespace.document)


@dispatcher.command("delete")
async def delete(client: XDBClient, namespace: argparse.Namespace) -> Response:
    return await client.delete(namespace.collection, namespace.id)


@dispatcher.command("count")
async def count(client: XDBClient, namespace: argparse.Namespace) -> Response:
    return await client.count(namespace.collection)


@dispatcher.command("snapshot")
async def snapshot(client: XDBClient, _: argparse.Namespace) -> Response:
    return await client.snapshot()
