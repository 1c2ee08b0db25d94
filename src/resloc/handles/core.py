import typing as t

import zrlog
from autoinject import injector

from resloc.idmap import IdentifierMap
from resloc.exc import HandleError
from .base import RandomAccessHandle, HandleKind
from .url import URLHandle
from .archive import ZipHandle, GZipHandle, BZip2Handle
from .local import FileHandle


@injector.injectable_global
class HandleResolver:
    """Resolver that identifies the correct handle for a given identifier.

        mapped to a handle with map_file() -> that handle, as is
        http://... or https://...          -> URLHandle
        starts with PK\\x03\\x04            -> ZipHandle
        starts with \\x1f\\x8b              -> GZipHandle
        starts with BZh                    -> BZip2Handle
        (anything else)                    -> FileHandle

        Identifiers are passed through the IdentifierMap before any check;
        the content checks look at the file the identifier is mapped to.
    """

    id_map: IdentifierMap = None

    @injector.construct
    def __init__(self, id_map: t.Optional[IdentifierMap] = None):
        if id_map is not None:
            self.id_map = id_map
        self._log = zrlog.get_logger("resloc.resolver")
        # Order matters, a file could satisfy more than one check
        self.handle_classes = [
            URLHandle,
            ZipHandle,
            GZipHandle,
            BZip2Handle,
        ]
        self.default_handle = FileHandle

    def _select(self, target: str) -> type:
        for cls in self.handle_classes:
            if cls.supports(target):
                return cls
        return self.default_handle

    def _classify(self, id_: str) -> tuple[str, type]:
        if id_ is None:
            raise HandleError("No identifier given", 1000)
        target = self.id_map.get_mapped_id(id_)
        return target, self._select(target)

    def resolve_kind(self, id_: str) -> HandleKind:
        """Determine which kind of handle get_handle() would return."""
        if self.id_map.get_mapped_file(id_) is not None:
            return HandleKind.MAPPED_OVERRIDE
        return self._classify(id_)[1].kind

    def get_handle(self, id_: str, writable: bool = False) -> RandomAccessHandle:
        """Build an appropriate handle for the given identifier.

            The caller owns the returned handle and must close it, except for
            handles installed with map_file(), which remain owned by whoever
            installed them.
        """
        mapped = self.id_map.get_mapped_file(id_)
        if mapped is not None:
            self._log.debug(f"Using mapped handle for [{id_}]")
            return mapped
        target, cls = self._classify(id_)
        self._log.debug(f"Resolved [{id_}] to {cls.__name__} for [{target}]")
        try:
            return cls.build(target, writable=writable)
        except HandleError as ex:
            self._log.warning(f"Could not open [{target}] as {cls.kind.value}: {str(ex)}")
            raise


@injector.inject
def get_handle(id_: str, writable: bool = False, resolver: HandleResolver = None) -> RandomAccessHandle:
    return resolver.get_handle(id_, writable)


@injector.inject
def resolve_kind(id_: str, resolver: HandleResolver = None) -> HandleKind:
    return resolver.resolve_kind(id_)
