import asyncio
import json
from functools import lru_cache

from pydantic import ValidationError

from xdb.bootstrap.config.settings import XDBConfig
from xdb.core.client import XDBClient
from xdb.infra.json_serializer import JsonSerializer


@lru_cache
def get_serializer() -> JsonSerializer:
    return JsonSerializer()


def get_config(**overrides) -> XDBConfig:
    try:
        return XDBConfig(**overrides)
    except FileNotFoundError as ex:
        raise SystemExit(f"Provide a correct configuration file path: {ex}")
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}")
        raise SystemExit("\n".join(msg))


def create_client(
    config: XDBConfig | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> XDBClient:
    config = config or get_config()
    return XDBClient(
        serializer=get_serializer(),
        host=config.client.host,
        loop=loop,
    )
