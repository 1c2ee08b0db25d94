"""Local file handle"""
import os
import pathlib
import typing as t

from .base import StreamHandle, HandleKind, handle_error_wrap
from resloc.exc import HandleError


class FileHandle(StreamHandle):
    """Handle for a file stored on a local disk or accessible network drive.

        Mode "r" opens the file read-only; mode "rw" opens it for reading and
        writing and creates it if it does not exist yet.
    """

    kind = HandleKind.PLAIN

    @handle_error_wrap
    def __init__(self, path: t.Union[str, pathlib.Path], mode: str = "r", **kwargs):
        if mode not in ("r", "rw"):
            raise HandleError(f"Invalid file mode [{mode}]", 1001)
        self._path = pathlib.Path(path).expanduser().absolute()
        if mode == "r":
            stream = open(self._path, "rb")
        elif self._path.exists():
            stream = open(self._path, "r+b")
        else:
            stream = open(self._path, "w+b")
        super().__init__(stream, writable=(mode == "rw"), **kwargs)

    def path(self) -> str:
        return str(self._path)

    def _measure(self) -> int:
        if self._writable:
            self._stream.flush()
        return os.fstat(self._stream.fileno()).st_size

    @handle_error_wrap
    def set_length(self, new_length: int):
        """Truncate or extend the file."""
        self._check_writable()
        self._stream.truncate(new_length)
        self._length = None

    @staticmethod
    def supports(file_path: str) -> bool:
        return True

    @classmethod
    def build(cls, file_path: str, writable: bool = False) -> StreamHandle:
        return cls(file_path, "rw" if writable else "r")
