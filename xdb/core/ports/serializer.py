from typing import Protocol, Any


class Serializer(Protocol):
    """
    Defines the interface for encoding/decoding the line-delimited
    messages exchanged with the XDB server.

    Implementations must be:
    - deterministic
    - pure (no side effects)
    - line-safe: `serialize` returns exactly one line, newline included
    - strict: `deserialize` raises ValueError on malformed input
    """

    def serialize(self, message: Any) -> bytes:
        """Encode a Python object into one newline-terminated frame."""

    def deserialize(self, data: bytes) -> Any:
        """Decode one frame (without its newline) into a Python object."""
