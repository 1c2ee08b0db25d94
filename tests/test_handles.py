import bz2
import gzip
import pathlib
import struct
import tempfile
import unittest as ut
import zipfile

from resloc.exc import HandleError
from resloc.handles import (
    FileHandle, BytesHandle, ZipHandle, GZipHandle, BZip2Handle, HandleKind,
    is_zip_file, is_gzip_file, is_bzip2_file,
)

CONTENT = bytes(range(256)) * 4


class _TempDirTestCase(ut.TestCase):

    def setUp(self):
        self._temp_dir = tempfile.TemporaryDirectory()
        self.dir = pathlib.Path(self._temp_dir.name)

    def tearDown(self):
        self._temp_dir.cleanup()

    def write(self, name: str, data: bytes) -> pathlib.Path:
        path = self.dir / name
        with open(path, "wb") as h:
            h.write(data)
        return path


class FileHandleTests(_TempDirTestCase):

    def test_read_seek_tell(self):
        path = self.write("plain.bin", CONTENT)
        with FileHandle(path) as handle:
            self.assertEqual(handle.kind, HandleKind.PLAIN)
            self.assertFalse(handle.writable)
            self.assertEqual(handle.length(), len(CONTENT))
            self.assertEqual(handle.read(4), b"\x00\x01\x02\x03")
            self.assertEqual(handle.tell(), 4)
            handle.seek(300)
            self.assertEqual(handle.read(2), CONTENT[300:302])
            handle.seek(len(CONTENT) - 1)
            self.assertEqual(handle.read(10), CONTENT[-1:])
            self.assertEqual(handle.read(10), b"")
        self.assertTrue(handle.closed)

    def test_read_only_rejects_writes(self):
        path = self.write("plain.bin", CONTENT)
        with FileHandle(path) as handle:
            with self.assertRaises(HandleError):
                handle.write(b"abc")

    def test_read_write_creates_file(self):
        path = self.dir / "new.bin"
        with FileHandle(path, "rw") as handle:
            self.assertTrue(handle.writable)
            self.assertEqual(handle.length(), 0)
            handle.write(b"hello world")
            self.assertEqual(handle.length(), 11)
            handle.seek(6)
            self.assertEqual(handle.read(), b"world")
            handle.set_length(5)
            self.assertEqual(handle.length(), 5)
        with open(path, "rb") as h:
            self.assertEqual(h.read(), b"hello")

    def test_read_write_keeps_existing_content(self):
        path = self.write("existing.bin", b"abcdef")
        with FileHandle(path, "rw") as handle:
            handle.seek(2)
            handle.write(b"XY")
        with open(path, "rb") as h:
            self.assertEqual(h.read(), b"abXYef")

    def test_missing_file(self):
        with self.assertRaises(HandleError) as ctx:
            FileHandle(self.dir / "missing.bin")
        self.assertIn("HANDLE-1002", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, FileNotFoundError)

    def test_invalid_mode(self):
        path = self.write("plain.bin", CONTENT)
        with self.assertRaises(HandleError):
            FileHandle(path, "w")

    def test_negative_seek(self):
        path = self.write("plain.bin", CONTENT)
        with FileHandle(path) as handle:
            with self.assertRaises(HandleError):
                handle.seek(-1)


class TypedReadTests(ut.TestCase):

    def test_big_endian_by_default(self):
        data = struct.pack(">bBhHiqfd", -2, 200, -300, 60000, -70000, 2 ** 40, 1.5, -2.25)
        handle = BytesHandle(data)
        self.assertEqual(handle.read_byte(), -2)
        self.assertEqual(handle.read_unsigned_byte(), 200)
        self.assertEqual(handle.read_short(), -300)
        self.assertEqual(handle.read_unsigned_short(), 60000)
        self.assertEqual(handle.read_int(), -70000)
        self.assertEqual(handle.read_long(), 2 ** 40)
        self.assertEqual(handle.read_float(), 1.5)
        self.assertEqual(handle.read_double(), -2.25)

    def test_little_endian(self):
        handle = BytesHandle(struct.pack("<ih", 123456, -5), little_endian=True)
        self.assertEqual(handle.read_int(), 123456)
        self.assertEqual(handle.read_short(), -5)

    def test_short_read_raises(self):
        handle = BytesHandle(b"\x00\x01")
        with self.assertRaises(HandleError):
            handle.read_int()

    def test_read_fully(self):
        handle = BytesHandle(b"abcdef")
        self.assertEqual(handle.read_fully(4), b"abcd")
        with self.assertRaises(HandleError):
            handle.read_fully(4)


class BytesHandleTests(ut.TestCase):

    def test_write_then_read(self):
        handle = BytesHandle()
        handle.write(b"12345")
        self.assertEqual(handle.length(), 5)
        handle.seek(1)
        self.assertEqual(handle.read(2), b"23")
        self.assertEqual(handle.getvalue(), b"12345")

    def test_read_only(self):
        handle = BytesHandle(b"abc", writable=False)
        with self.assertRaises(HandleError):
            handle.write(b"d")


class ArchiveHandleTests(_TempDirTestCase):

    def _zip(self, name: str, entries: dict) -> pathlib.Path:
        path = self.dir / name
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for entry_name, data in entries.items():
                zf.writestr(entry_name, data)
        return path

    def test_signatures(self):
        zip_path = self._zip("a.zip", {"a.bin": CONTENT})
        gz_path = self.write("a.gz", gzip.compress(CONTENT))
        bz_path = self.write("a.bz2", bz2.compress(CONTENT))
        plain_path = self.write("a.bin", CONTENT)
        self.assertTrue(is_zip_file(zip_path))
        self.assertFalse(is_zip_file(gz_path))
        self.assertTrue(is_gzip_file(gz_path))
        self.assertFalse(is_gzip_file(bz_path))
        self.assertTrue(is_bzip2_file(bz_path))
        self.assertFalse(is_bzip2_file(plain_path))
        self.assertFalse(is_zip_file(self.dir / "missing.zip"))
        self.assertFalse(is_gzip_file(self.dir))

    def test_zip_reads_first_entry(self):
        path = self._zip("a.zip", {"first.bin": CONTENT, "second.bin": b"other"})
        with ZipHandle(path) as handle:
            self.assertEqual(handle.kind, HandleKind.ZIP)
            self.assertEqual(handle.entry_name(), "first.bin")
            self.assertEqual(handle.length(), len(CONTENT))
            handle.seek(500)
            self.assertEqual(handle.read(3), CONTENT[500:503])
            handle.seek(10)
            self.assertEqual(handle.read(2), CONTENT[10:12])

    def test_zip_named_entry(self):
        path = self._zip("a.zip", {"first.bin": CONTENT, "second.bin": b"other"})
        with ZipHandle(path, entry_name="second.bin") as handle:
            self.assertEqual(handle.read(), b"other")

    def test_zip_without_files(self):
        path = self.dir / "empty.zip"
        with zipfile.ZipFile(path, "w"):
            pass
        with self.assertRaises(HandleError):
            ZipHandle(path)

    def test_gzip(self):
        path = self.write("a.gz", gzip.compress(CONTENT))
        with GZipHandle(path) as handle:
            self.assertEqual(handle.kind, HandleKind.GZIP)
            self.assertEqual(handle.length(), len(CONTENT))
            self.assertEqual(handle.tell(), 0)
            handle.seek(1000)
            self.assertEqual(handle.read(), CONTENT[1000:])
            handle.seek(2)
            self.assertEqual(handle.read(2), CONTENT[2:4])

    def test_bzip2(self):
        path = self.write("a.bz2", bz2.compress(CONTENT))
        with BZip2Handle(path) as handle:
            self.assertEqual(handle.kind, HandleKind.BZIP2)
            self.assertEqual(handle.length(), len(CONTENT))
            handle.seek(256)
            self.assertEqual(handle.read(4), CONTENT[256:260])

    def test_archives_are_read_only(self):
        path = self.write("a.gz", gzip.compress(CONTENT))
        with GZipHandle(path) as handle:
            with self.assertRaises(HandleError):
                handle.write(b"abc")

    def test_corrupt_gzip(self):
        path = self.write("bad.gz", b"\x1f\x8b" + b"not really gzip data")
        with GZipHandle(path) as handle:
            with self.assertRaises(HandleError):
                handle.read()
