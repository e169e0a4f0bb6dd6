import argparse
import asyncio
import cmd
import os
import shlex

from xdb.bootstrap.config.loader import CONFIG_ENV
from xdb.bootstrap.config.settings import XDBConfig
from xdb.bootstrap.deps import create_client, get_config
from xdb.core.client import XDBClient
from xdb.core.helpers.utils import setup_logging
from xdbctl.core.dispatcher import CommandDispatcher
from xdbctl.core.parser import parse_document, parse_existing_id, parse_id, parse_query
from xdbctl.core.ports.render import Renderer


class XDBCmd(cmd.Cmd):
    """
    Interactive shell and one-shot command runner for an XDB server.

    Without a command on the command line, xdbctl enters an interactive
    loop where every document command is typed as a line. With a command,
    it runs it once and exits.

    The shell owns one event loop and one XDBClient. The client connects
    on the first command; if its connection is lost, the next command
    starts a new one.
    """
    intro = "Entering xdbctl interactive mode. Type 'exit' or 'quit' to leave."
    prompt = "xdbctl> "

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        renderers: dict[str, Renderer],
        argv: list[str] | None = None,
    ) -> None:
        super().__init__()

        self._dispatcher = dispatcher
        self._argparser, self._parsers = self._argparse()
        self._args = self._argparser.parse_args(argv)
        self._config = self._load_config()
        self._renderer = renderers[self._args.output]
        self._loop = asyncio.new_event_loop()
        self._client: XDBClient | None = None

        setup_logging(self._config.logging.level)
        self.prompt = f"xdbctl({self._config.client.host})> "

    @property
    def args(self) -> argparse.Namespace:
        return self._args

    @property
    def config(self) -> XDBConfig:
        return self._config

    @property
    def interactive(self) -> bool:
        return self._args.namespace is None

    def close(self) -> None:
        try:
            if self._client is not None:
                self._loop.run_until_complete(self._client.close())
        finally:
            self._loop.close()

    def handle(self, name: str, line: str) -> None:
        namespace = self._command_args(name, line)
        if namespace is None:
            return

        try:
            client = self._get_client()
            response = self._loop.run_until_complete(
                self._dispatcher.dispatch(name, client=client, namespace=namespace)
            )
            print(self._renderer.render(response.to_dict()))
        except Exception as ex:
            print(str(ex))

    def do_insert(self, line):
        """insert <collection> <document-json>"""
        self.handle("insert", line)

    def do_find(self, line):
        """find <collection> [query-json] [--limit N]"""
        self.handle("find", line)

    def do_update(self, line):
        """update <collection> <id> <fields-json>"""
        self.handle("update", line)

    def do_upsert(self, line):
        """upsert <collection> <id|-> <document-json>"""
        self.handle("upsert", line)

    def do_delete(self, line):
        """delete <collection> <id>"""
        self.handle("delete", line)

    def do_count(self, line):
        """count <collection>"""
        self.handle("count", line)

    def do_snapshot(self, line):
        """snapshot"""
        self.handle("snapshot", line)

    def do_exit(self, arg):
        return True

    def do_quit(self, arg):
        return True

    def do_EOF(self, arg):
        print()
        return True

    def emptyline(self) -> bool:
        return False

    def _command_args(self, name: str, line: str) -> argparse.Namespace | None:
        if not self.interactive:
            return self._args

        try:
            return self._parsers[name].parse_args(shlex.split(line))
        except ValueError as ex:
            print(str(ex))
        except SystemExit:
            # argparse already printed the usage
            pass
        return None

    def _get_client(self) -> XDBClient:
        if self._client is not None and not self._client.state.terminal:
            return self._client

        client = create_client(self._config, loop=self._loop)
        self._client = client
        self._loop.run_until_complete(client.connect())
        return client

    def _load_config(self) -> XDBConfig:
        if self._args.config:
            os.environ[CONFIG_ENV] = self._args.config

        overrides: dict = {}
        if self._args.host:
            overrides["client"] = {"host": self._args.host}
        if self._args.log_level:
            overrides["logging"] = {"level": self._args.log_level}

        return get_config(**overrides)

    @staticmethod
    def _argparse() -> tuple[argparse.ArgumentParser, dict[str, argparse.ArgumentParser]]:
        global_opts = argparse.ArgumentParser(prog="xdbctl")
        global_opts.add_argument("--config", help="Path to an xdb.yaml configuration file")
        global_opts.add_argument("--host", help="XDB server address (the port is always 8080)")
        global_opts.add_argument("--output", choices=["yaml", "json"], default="yaml")
        global_opts.add_argument(
            "--log-level",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        )

        sub = global_opts.add_subparsers(dest="namespace")
        parsers: dict[str, argparse.ArgumentParser] = {}

        def add(name: str) -> list[argparse.ArgumentParser]:
            interactive = argparse.ArgumentParser(prog=name)
            parsers[name] = interactive
            return [sub.add_parser(name), interactive]

        for p in add("insert"):
            p.add_argument("collection")
            p.add_argument("document", type=parse_document)

        for p in add("find"):
            p.add_argument("collection")
            p.add_argument("query", nargs="?", type=parse_query)
            p.add_argument("--limit", type=int, default=0)

        for p in add("update"):
            p.add_argument("collection")
            p.add_argument("id", type=parse_existing_id)
            p.add_argument("document", type=parse_document)

        for p in add("upsert"):
            p.add_argument("collection")
            p.add_argument("id", type=parse_id, help="document id, or '-' to insert a new one")
            p.add_argument("document", type=parse_document)

        for p in add("delete"):
            p.add_argument("collection")
            p.add_argument("id", type=parse_existing_id)

        for p in add("count"):
            p.add_argument("collection")

        add("snapshot")

        return global_opts, parsers
