"""
    Resource location and handle resolution.

    Location gives file-like queries over either a local path or an HTTP
    resource. get_handle() turns an identifier into an open random-access
    handle, choosing between HTTP, zip, gzip, bzip2 and plain files by looking
    at the identifier and at the first bytes of the file it names.

    Both consult the process-wide IdentifierMap first, so an identifier can be
    redirected to another pathname with map_id() or to an already open handle
    with map_file().
"""
from .exc import ResolverError, HandleError, UnsupportedOperationError
from .idmap import IdentifierMap, map_id, map_file, get_mapped_id, get_mapped_file, get_id_map, set_id_map
from .handles import RandomAccessHandle, HandleKind, FileHandle, BytesHandle, URLHandle, ZipHandle, GZipHandle, BZip2Handle
from .handles.core import HandleResolver, get_handle, resolve_kind
from .location import Location, BackendKind
from .boot import __VERSION__
