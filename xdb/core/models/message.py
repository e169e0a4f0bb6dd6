from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from xdb.core.errors import MalformedMessageError


class Action(StrEnum):
    """
    Commands understood by the XDB server.
    The value is sent verbatim in the `action` field of a request.
    """
    insert = "insert"
    find = "find"
    update = "update"
    upsert = "upsert"
    delete = "delete"
    count = "count"
    snapshot = "snapshot"
    exit = "exit"


@dataclass
class Request:
    """
    A single command sent to the server as one JSON line.

    Only the fields relevant to the action are put on the wire: unset
    fields are omitted from `to_dict()`. The one exception is `upsert`,
    which always carries `id`, null meaning "insert a new document".
    """
    action: Action

    collection: str | None = None

    data: dict[str, Any] | None = None
    """
    Document body for insert/update/upsert.
    """

    query: dict[str, Any] | None = None
    """
    Filter criteria for find. An empty object matches everything.
    """

    limit: int | None = None
    """
    Maximum number of documents returned by find, 0 for unlimited.
    """

    id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"action": str(self.action)}
        for name in ("collection", "data", "query", "limit", "id"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value

        if self.action == Action.upsert:
            payload.setdefault("id", None)

        return payload


@dataclass
class Response:
    """
    A reply from the server.

    A response with `status == "error"` is not a client fault: it is
    returned to the caller like any other reply and interpreting it is
    left to the application.
    """
    status: str

    message: str = ""

    data: Any = None

    extra: dict[str, Any] = field(default_factory=dict, repr=False)
    """
    Any top-level field the server sent beyond status/message/data.
    """

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def from_dict(cls, payload: Any) -> "Response":
        if not isinstance(payload, dict):
            raise MalformedMessageError(
                f"Expected a JSON object, got {type(payload).__name__}",
                raw=payload,
            )

        status = payload.get("status")
        if status not in ("ok", "error"):
            raise MalformedMessageError(
                f"Invalid response status: {status!r}",
                raw=payload,
            )

        extra = {
            k: v for k, v in payload.items()
            if k not in ("status", "message", "data")
        }
        return cls(
            status=status,
            message=payload.get("message") or "",
            data=payload.get("data"),
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the response as it was received on the wire."""
        result: dict[str, Any] = {"status": self.status, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        result.update(self.extra)
        return result
