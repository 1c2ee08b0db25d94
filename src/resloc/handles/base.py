import enum
import functools
import io
import struct
import typing as t

from resloc.exc import HandleError


class HandleKind(enum.Enum):
    """The kinds of handle the resolver can produce."""

    MAPPED_OVERRIDE = "mapped_override"
    URL_BACKED = "url"
    ZIP = "zip"
    GZIP = "gzip"
    BZIP2 = "bzip2"
    PLAIN = "file"


def handle_error_wrap(cb):
    """Converts typical I/O errors into HandleErrors with recoverable set properly."""

    @functools.wraps(cb)
    def _inner(*args, **kwargs):
        try:
            return cb(*args, **kwargs)
        except HandleError:
            raise
        except FileNotFoundError as ex:
            raise HandleError(f"File not found: {ex.filename}", 1002) from ex
        except PermissionError as ex:
            raise HandleError(f"Access to file denied: {ex.filename}", 1003, True) from ex
        except IsADirectoryError as ex:
            raise HandleError(f"File is a directory: {ex.filename}", 1004) from ex
        except (OSError, ValueError) as ex:
            raise HandleError(f"Exception processing file: {ex.__class__.__name__}: {str(ex)}", 1005) from ex

    return _inner


class RandomAccessHandle:
    """Random-access reader/writer for a single resource.

        Every backend answers the same calls: read, write (when writable),
        seek/tell and length, plus typed reads that honour the handle's byte
        order. Handles are owned by whoever obtained them and must be closed;
        they support the context manager protocol for that purpose.
    """

    kind: HandleKind = None

    def __init__(self, writable: bool = False, little_endian: bool = False):
        self._writable = writable
        self.little_endian = little_endian

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def writable(self) -> bool:
        return self._writable

    @property
    def closed(self) -> bool:
        raise NotImplementedError

    def read(self, size: int = -1) -> bytes:
        """Read up to size bytes (all remaining bytes if size is negative)."""
        raise NotImplementedError

    def write(self, data: t.Union[bytes, bytearray]) -> int:
        """Write data at the current position."""
        raise NotImplementedError

    def seek(self, position: int):
        """Move to an absolute position."""
        raise NotImplementedError

    def tell(self) -> int:
        """Current position."""
        raise NotImplementedError

    def length(self) -> int:
        """Total number of bytes available through the handle."""
        raise NotImplementedError

    def close(self):
        raise NotImplementedError

    def read_fully(self, size: int) -> bytes:
        """Read exactly size bytes."""
        data = self.read(size)
        if len(data) < size:
            raise HandleError(f"End of data reached after {len(data)} of {size} bytes", 1010)
        return data

    def _check_writable(self):
        if not self._writable:
            raise HandleError(f"{self.__class__.__name__} is not writable", 1011)

    def _unpack(self, fmt: str, size: int):
        prefix = "<" if self.little_endian else ">"
        return struct.unpack(f"{prefix}{fmt}", self.read_fully(size))[0]

    def read_byte(self) -> int:
        return self._unpack("b", 1)

    def read_unsigned_byte(self) -> int:
        return self._unpack("B", 1)

    def read_short(self) -> int:
        return self._unpack("h", 2)

    def read_unsigned_short(self) -> int:
        return self._unpack("H", 2)

    def read_int(self) -> int:
        return self._unpack("i", 4)

    def read_long(self) -> int:
        return self._unpack("q", 8)

    def read_float(self) -> float:
        return self._unpack("f", 4)

    def read_double(self) -> float:
        return self._unpack("d", 8)


class StreamHandle(RandomAccessHandle):
    """Handle built on top of a seekable binary stream."""

    def __init__(self, stream: t.BinaryIO, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._stream = stream
        self._length: t.Optional[int] = None

    @property
    def closed(self) -> bool:
        return self._stream.closed

    @handle_error_wrap
    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            return self._stream.read()
        return self._stream.read(size)

    @handle_error_wrap
    def write(self, data: t.Union[bytes, bytearray]) -> int:
        self._check_writable()
        self._length = None
        return self._stream.write(data)

    @handle_error_wrap
    def seek(self, position: int):
        if position < 0:
            raise HandleError(f"Cannot seek to negative position {position}", 1012)
        self._stream.seek(position, io.SEEK_SET)

    @handle_error_wrap
    def tell(self) -> int:
        return self._stream.tell()

    @handle_error_wrap
    def length(self) -> int:
        if self._length is None:
            self._length = self._measure()
        return self._length

    def _measure(self) -> int:
        """Find the length by seeking to the end; override when it is known up front."""
        current = self._stream.tell()
        end = self._stream.seek(0, io.SEEK_END)
        self._stream.seek(current, io.SEEK_SET)
        return end

    def close(self):
        self._stream.close()
