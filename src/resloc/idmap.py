"""Process-wide identifier remapping.

    An identifier may be mapped either to a replacement pathname (a string) or
    to a pre-built RandomAccessHandle. The two are mutually exclusive per key:
    the last write wins, and each accessor only answers for its own kind.

    The process-wide table is provided by autoinject; code that wants an
    isolated table can construct its own IdentifierMap and pass it along.
"""
import threading
import typing as t

import zirconium as zr
import zrlog
from autoinject import injector

from resloc.handles.base import RandomAccessHandle


MapValue = t.Union[str, RandomAccessHandle]


@injector.injectable_global
class IdentifierMap:

    config: zr.ApplicationConfig = None

    @injector.construct
    def __init__(self,
                 table: t.Optional[t.Mapping[str, MapValue]] = None,
                 config: t.Optional[zr.ApplicationConfig] = None):
        if config is not None:
            self.config = config
        self._lock = threading.RLock()
        self._log = zrlog.get_logger("resloc.idmap")
        self._table: dict[str, MapValue] = {}
        if table is not None:
            self._table.update(table)
        elif self.config is not None:
            preload = self.config.as_dict(("resloc", "id_map"), default={}) or {}
            # zirconium hands back a MutableDeepDict, which has no items()
            for id_ in preload.keys():
                self._table[str(id_)] = str(preload[id_])
            if preload:
                self._log.debug(f"Preloaded {len(preload)} identifier mappings from configuration")

    def map_id(self, id_: t.Optional[str], filename: t.Optional[str]):
        """Map id_ to a replacement pathname, or remove the mapping if filename is None."""
        if id_ is None:
            return
        with self._lock:
            if filename is None:
                self._table.pop(id_, None)
            else:
                self._table[id_] = filename

    def map_file(self, id_: t.Optional[str], handle: t.Optional[RandomAccessHandle]):
        """Map id_ to an open handle, or remove the mapping if handle is None."""
        if id_ is None:
            return
        with self._lock:
            if handle is None:
                self._table.pop(id_, None)
            else:
                self._table[id_] = handle

    def get_mapped_id(self, id_: t.Optional[str]) -> t.Optional[str]:
        """Return the pathname id_ is mapped to, or id_ itself."""
        if id_ is None:
            return None
        with self._lock:
            value = self._table.get(id_)
        return value if isinstance(value, str) else id_

    def get_mapped_file(self, id_: t.Optional[str]) -> t.Optional[RandomAccessHandle]:
        """Return the handle id_ is mapped to, if any."""
        if id_ is None:
            return None
        with self._lock:
            value = self._table.get(id_)
        return value if isinstance(value, RandomAccessHandle) else None

    def get_id_map(self) -> dict[str, MapValue]:
        """Snapshot of the whole table."""
        with self._lock:
            return dict(self._table)

    def set_id_map(self, table: t.Optional[t.Mapping[str, MapValue]]):
        """Replace the whole table; None resets it to empty."""
        with self._lock:
            self._table = dict(table) if table is not None else {}

    def __contains__(self, id_):
        with self._lock:
            return id_ in self._table

    def __len__(self):
        with self._lock:
            return len(self._table)


@injector.inject
def map_id(id_: t.Optional[str], filename: t.Optional[str], id_map: IdentifierMap = None):
    id_map.map_id(id_, filename)


@injector.inject
def map_file(id_: t.Optional[str], handle: t.Optional[RandomAccessHandle], id_map: IdentifierMap = None):
    id_map.map_file(id_, handle)


@injector.inject
def get_mapped_id(id_: t.Optional[str], id_map: IdentifierMap = None) -> t.Optional[str]:
    return id_map.get_mapped_id(id_)


@injector.inject
def get_mapped_file(id_: t.Optional[str], id_map: IdentifierMap = None) -> t.Optional[RandomAccessHandle]:
    return id_map.get_mapped_file(id_)


@injector.inject
def get_id_map(id_map: IdentifierMap = None) -> dict[str, MapValue]:
    return id_map.get_id_map()


@injector.inject
def set_id_map(table: t.Optional[t.Mapping[str, MapValue]], id_map: IdentifierMap = None):
    id_map.set_id_map(table)
