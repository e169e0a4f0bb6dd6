import argparse
import functools
from typing import Protocol

from xdb.core.client import XDBClient
from xdb.core.models.message import Response


class CommandHandler(Protocol):
    async def __call__(
        self,
        client: XDBClient,
        namespace: argparse.Namespace,
    ) -> Response:
        ...


class CommandDispatcher:
    def __init__(self) -> None:
        self._commands: dict[str, CommandHandler] = {}

    @property
    def names(self) -> list[str]:
        return list(self._commands)

    async def dispatch(
        self,
        name: str,
        *,
        client: XDBClient,
        namespace: argparse.Namespace
    ) -> Response:
        command = self._commands.get(name)
        if command is None:
            raise RuntimeError(f"Unknown '{name}' Command")
        return await command(client, namespace)

    def command(self, name: str):
        def decorator(func: CommandHandler):

            @functools.wraps(func)
            async def wrapper(
                client: XDBClient,
                namespace: argparse.Namespace,
            ) -> Response:
                return await func(client, namespace)

            self._commands[name] = wrapper

            return wrapper

        return decorator
