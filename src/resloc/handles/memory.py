import io
import typing as t

from .base import StreamHandle, HandleKind


class BytesHandle(StreamHandle):
    """Handle over an in-memory byte buffer.

        Useful as the target of an identifier override when the data for an
        identifier is already in memory.
    """

    kind = HandleKind.PLAIN

    def __init__(self, data: t.Union[bytes, bytearray] = b"", writable: bool = True, **kwargs):
        super().__init__(io.BytesIO(data), writable=writable, **kwargs)

    def getvalue(self) -> bytes:
        return self._stream.getvalue()

    def _measure(self) -> int:
        return len(self._stream.getvalue())
