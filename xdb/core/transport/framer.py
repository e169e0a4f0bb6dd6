from typing import Iterator


class LineFramer:
    """
    Reassembles the raw TCP byte stream into newline-delimited frames.

    TCP preserves no message boundaries: a single reply may arrive split
    across several `data_received` calls, and several replies may arrive
    in one. LineFramer accumulates bytes in an internal buffer and, on
    every `feed()`, returns the frames completed by the new data.

    The bytes after the last newline are, by construction, either empty
    or an incomplete frame. They stay in the buffer and are never emitted.
    Blank or whitespace-only lines are discarded: the protocol allows them
    as no-ops.

    The buffer persists for the lifetime of the connection; each call
    continues from the state left by the previous one. Splitting happens on
    bytes, before any decoding, so a multi-byte UTF-8 sequence cut between
    two reads is reassembled intact.
    """

    DELIMITER = b"\n"

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def buffered(self) -> bytes:
        """Bytes received but not yet part of a complete frame."""
        return bytes(self._buffer)

    def feed(self, data: bytes) -> Iterator[bytes]:
        self._buffer.extend(data)

        # the buffer never holds a delimiter between calls
        if self.DELIMITER not in data:
            return iter(())

        *frames, self._buffer = self._buffer.split(self.DELIMITER)
        return (bytes(frame) for frame in frames if frame.strip())
