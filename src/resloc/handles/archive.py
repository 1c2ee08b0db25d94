"""Read-only handles over compressed files, and the signature checks that detect them.

    The signature checks only look at the leading bytes of a local file, so a
    file is recognized by its content regardless of its name.
"""
import bz2
import functools
import gzip
import pathlib
import typing as t
import zipfile
import zlib

from .base import StreamHandle, HandleKind, handle_error_wrap
from resloc.exc import HandleError

ZIP_SIGNATURE = b"PK\x03\x04"
GZIP_SIGNATURE = b"\x1f\x8b"
BZIP2_SIGNATURE = b"BZh"


def read_signature(file_path: t.Union[str, pathlib.Path], size: int) -> bytes:
    """Read the first bytes of a local file; empty if it cannot be read."""
    try:
        with open(file_path, "rb") as h:
            return h.read(size)
    except (OSError, ValueError):
        return b""


def is_zip_file(file_path: t.Union[str, pathlib.Path]) -> bool:
    return read_signature(file_path, len(ZIP_SIGNATURE)) == ZIP_SIGNATURE


def is_gzip_file(file_path: t.Union[str, pathlib.Path]) -> bool:
    return read_signature(file_path, len(GZIP_SIGNATURE)) == GZIP_SIGNATURE


def is_bzip2_file(file_path: t.Union[str, pathlib.Path]) -> bool:
    return read_signature(file_path, len(BZIP2_SIGNATURE)) == BZIP2_SIGNATURE


def wrap_decompression_errors(cb):
    """Corrupt compressed data is reported the same way as other I/O errors."""

    @functools.wraps(cb)
    def _inner(*args, **kwargs):
        try:
            return cb(*args, **kwargs)
        except (zipfile.BadZipFile, zlib.error, EOFError) as ex:
            raise HandleError(f"Corrupt compressed data: {ex.__class__.__name__}: {str(ex)}", 1020) from ex

    return _inner


class _ArchiveHandle(StreamHandle):
    """Common behaviour for decompressing handles."""

    def __init__(self, path: t.Union[str, pathlib.Path], stream: t.BinaryIO, **kwargs):
        self._path = pathlib.Path(path).absolute()
        super().__init__(stream, writable=False, **kwargs)

    def path(self) -> str:
        return str(self._path)

    @wrap_decompression_errors
    def read(self, size: int = -1) -> bytes:
        return super().read(size)

    @wrap_decompression_errors
    def seek(self, position: int):
        super().seek(position)

    @wrap_decompression_errors
    def length(self) -> int:
        return super().length()

    def write(self, data: t.Union[bytes, bytearray]) -> int:
        raise HandleError(f"{self.__class__.__name__} is read-only", 1011)

    @classmethod
    def build(cls, file_path: str, writable: bool = False) -> StreamHandle:
        return cls(file_path)


class ZipHandle(_ArchiveHandle):
    """The first file stored in a zip archive."""

    kind = HandleKind.ZIP

    @handle_error_wrap
    @wrap_decompression_errors
    def __init__(self, path: t.Union[str, pathlib.Path], entry_name: t.Optional[str] = None, **kwargs):
        self._archive = zipfile.ZipFile(path, "r")
        try:
            entries = [x for x in self._archive.infolist() if not x.is_dir()]
            if entry_name is not None:
                entries = [x for x in entries if x.filename == entry_name]
            if not entries:
                raise HandleError(f"No matching entry in zip archive [{path}]", 1021)
            self._entry = entries[0]
            stream = self._archive.open(self._entry, "r")
        except BaseException:
            self._archive.close()
            raise
        super().__init__(path, stream, **kwargs)

    def entry_name(self) -> str:
        return self._entry.filename

    def _measure(self) -> int:
        return self._entry.file_size

    def close(self):
        try:
            super().close()
        finally:
            self._archive.close()

    @staticmethod
    def supports(file_path: str) -> bool:
        return is_zip_file(file_path)


class GZipHandle(_ArchiveHandle):
    """A gzip-compressed file."""

    kind = HandleKind.GZIP

    @handle_error_wrap
    def __init__(self, path: t.Union[str, pathlib.Path], **kwargs):
        super().__init__(path, gzip.open(path, "rb"), **kwargs)

    @staticmethod
    def supports(file_path: str) -> bool:
        return is_gzip_file(file_path)


class BZip2Handle(_ArchiveHandle):
    """A bzip2-compressed file."""

    kind = HandleKind.BZIP2

    @handle_error_wrap
    def __init__(self, path: t.Union[str, pathlib.Path], **kwargs):
        super().__init__(path, bz2.open(path, "rb"), **kwargs)

    @staticmethod
    def supports(file_path: str) -> bool:
        return is_bzip2_file(file_path)
