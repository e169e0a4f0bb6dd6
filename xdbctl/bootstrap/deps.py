from functools import lru_cache

from xdbctl.core.cmd import XDBCmd
from xdbctl.core.dispatcher import CommandDispatcher
from xdbctl.infra.format_renderer import JsonRenderer, YamlRenderer


@lru_cache
def get_dispatcher() -> CommandDispatcher:
    return CommandDispatcher()


@lru_cache
def get_cli() -> XDBCmd:
    renderers = {
        "yaml": YamlRenderer(),
        "json": JsonRenderer(),
    }
    return XDBCmd(get_dispatcher(), renderers)
