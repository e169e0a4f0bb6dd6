import json
from typing import Any

from xdb.core.ports.serializer import Serializer


class JsonSerializer(Serializer):
    """
    JSON implementation of the Serializer interface, matching the XDB wire
    format: one compact UTF-8 JSON document per line.

    json.dumps escapes control characters inside strings, so an encoded
    message never contains a raw newline before its terminator.
    """
    def serialize(self, message: Any) -> bytes:
        text = json.dumps(message, separators=(",", ":"), ensure_ascii=False)
        return text.encode("utf-8") + b"\n"

    def deserialize(self, data: bytes) -> Any:
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        return json.loads(data.decode("utf-8"))
