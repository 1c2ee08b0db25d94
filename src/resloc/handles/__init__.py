"""Random-access handles for the resources an identifier can resolve to.

    The resolver that picks between them lives in resloc.handles.core.
"""
from .base import RandomAccessHandle, StreamHandle, HandleKind
from .local import FileHandle
from .memory import BytesHandle
from .url import URLHandle
from .archive import ZipHandle, GZipHandle, BZip2Handle, is_zip_file, is_gzip_file, is_bzip2_file
