"""Path-like access to local files and HTTP resources.

    A Location is built from a pathname, which is first passed through the
    IdentifierMap. If the result is an http or https URL, the Location is
    URL-backed; otherwise it is a local path. The choice is made once, when
    the Location is built, and every query is answered by the chosen backend.

    URL-backed locations answer metadata queries on a best effort basis: if
    the server cannot be reached, exists() is False and last_modified() and
    length() are 0. A URL is treated as a directory when the server does not
    report a modification time for it, which is how most index pages behave.
"""
import atexit
import datetime
import enum
import os
import pathlib
import stat
import typing as t
from urllib.parse import urlparse, ParseResult

import requests
import zrlog
from autoinject import injector

from resloc.exc import UnsupportedOperationError
from resloc.idmap import IdentifierMap
from resloc.listing import DirectoryLister
from resloc.net import HttpResourceClient

URL_SCHEMES = ("http", "https")
DEFAULT_PORTS = {"http": 80, "https": 443}


class BackendKind(enum.Enum):

    URL = "url"
    FILE = "file"


def parse_url(value: str) -> t.Optional[ParseResult]:
    """Parse value as a URL the network layer can use; None if it isn't one."""
    try:
        parsed = urlparse(value)
        # Reading the port validates it
        parsed.port
    except ValueError:
        return None
    if parsed.scheme.lower() not in URL_SCHEMES or not parsed.netloc:
        return None
    return parsed


class _Backend:

    kind: BackendKind = None

    def key(self) -> tuple:
        """Values that decide equality between two backends of the same kind."""
        raise NotImplementedError

    def exists(self) -> bool:
        raise NotImplementedError

    def can_read(self) -> bool:
        raise NotImplementedError

    def can_write(self) -> bool:
        raise NotImplementedError

    def is_directory(self) -> bool:
        raise NotImplementedError

    def is_file(self) -> bool:
        raise NotImplementedError

    def is_hidden(self) -> bool:
        raise NotImplementedError

    def last_modified(self) -> int:
        raise NotImplementedError

    def length(self) -> int:
        raise NotImplementedError

    def name(self) -> str:
        raise NotImplementedError

    def parent(self) -> t.Optional[str]:
        raise NotImplementedError

    def list(self, location) -> t.Optional[t.List[str]]:
        raise NotImplementedError

    def create_new_file(self) -> bool:
        raise NotImplementedError

    def delete(self) -> bool:
        raise NotImplementedError

    def delete_on_exit(self):
        raise NotImplementedError

    def absolute_path(self) -> str:
        raise NotImplementedError

    def canonical_path(self) -> str:
        raise NotImplementedError

    def path(self) -> str:
        raise NotImplementedError

    def is_absolute(self) -> bool:
        raise NotImplementedError

    def to_url(self) -> str:
        raise NotImplementedError

    def __str__(self):
        raise NotImplementedError


class _UrlBackend(_Backend):

    kind = BackendKind.URL

    def __init__(self, url: str, parsed: ParseResult, http: HttpResourceClient):
        self._url = url
        self._parsed = parsed
        self._http = http
        self._log = zrlog.get_logger("resloc.location")

    def key(self) -> tuple:
        scheme = self._parsed.scheme.lower()
        return (
            scheme,
            (self._parsed.hostname or "").lower(),
            self._parsed.port or DEFAULT_PORTS.get(scheme),
            self._parsed.path,
            self._parsed.params,
            self._parsed.query,
            self._parsed.fragment,
        )

    def exists(self) -> bool:
        return self._http.content_exists(self._url)

    def can_read(self) -> bool:
        return True

    def can_write(self) -> bool:
        return False

    def _raw_last_modified(self) -> t.Optional[int]:
        return self._http.last_modified(self._url)

    def is_directory(self) -> bool:
        return self._raw_last_modified() == 0

    def is_file(self) -> bool:
        last_modified = self._raw_last_modified()
        return last_modified is not None and last_modified > 0

    def is_hidden(self) -> bool:
        return False

    def last_modified(self) -> int:
        return self._raw_last_modified() or 0

    def length(self) -> int:
        return self._http.content_length(self._url) or 0

    def name(self) -> str:
        path = self._parsed.path
        return path[path.rfind("/") + 1:]

    def parent(self) -> t.Optional[str]:
        cut = self._url.rfind("/")
        # No path left, only the slashes of "scheme://"
        if cut < self._url.find("://") + 3:
            return None
        return self._url[:cut]

    def list(self, location) -> t.Optional[t.List[str]]:
        if not self.is_directory():
            return None
        try:
            return DirectoryLister(self._http).list_names(location)
        except (requests.RequestException, OSError) as ex:
            self._log.debug(f"Could not list {self._url}: {ex.__class__.__name__}: {str(ex)}")
            return None

    def create_new_file(self) -> bool:
        raise UnsupportedOperationError(f"Cannot create files at URL [{self._url}]", 1001)

    def delete(self) -> bool:
        return False

    def delete_on_exit(self):
        pass

    def absolute_path(self) -> str:
        return self._url

    def canonical_path(self) -> str:
        return self._url

    def path(self) -> str:
        return (self._parsed.hostname or "") + self._parsed.path

    def is_absolute(self) -> bool:
        return True

    def to_url(self) -> str:
        return self._url

    def __str__(self):
        return self._url


class _FileBackend(_Backend):

    kind = BackendKind.FILE

    def __init__(self, path: pathlib.Path):
        self._path = path

    def key(self) -> tuple:
        return (self._path,)

    def exists(self) -> bool:
        return self._path.exists()

    def can_read(self) -> bool:
        return self._path.exists() and os.access(self._path, os.R_OK)

    def can_write(self) -> bool:
        return self._path.exists() and os.access(self._path, os.W_OK)

    def is_directory(self) -> bool:
        return self._path.is_dir()

    def is_file(self) -> bool:
        return self._path.is_file()

    def is_hidden(self) -> bool:
        if self._path.name.startswith("."):
            return True
        try:
            attributes = getattr(self._path.stat(), "st_file_attributes", 0)
        except OSError:
            return False
        return bool(attributes & getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0))

    def last_modified(self) -> int:
        try:
            return int(self._path.stat().st_mtime * 1000)
        except OSError:
            return 0

    def length(self) -> int:
        try:
            return self._path.stat().st_size
        except OSError:
            return 0

    def name(self) -> str:
        return self._path.name

    def parent(self) -> t.Optional[str]:
        path = str(self._path)
        parent = os.path.dirname(path)
        if not parent or parent == path:
            return None
        return parent

    def list(self, location) -> t.Optional[t.List[str]]:
        if not self._path.is_dir():
            return None
        try:
            return sorted(os.listdir(self._path))
        except OSError:
            return None

    def create_new_file(self) -> bool:
        try:
            with open(self._path, "x"):
                pass
            return True
        except FileExistsError:
            return False

    def delete(self) -> bool:
        try:
            if self._path.is_dir():
                self._path.rmdir()
            else:
                self._path.unlink()
            return True
        except OSError:
            return False

    def delete_on_exit(self):
        atexit.register(self.delete)

    def absolute_path(self) -> str:
        return str(self._path.absolute())

    def canonical_path(self) -> str:
        return os.path.realpath(self._path)

    def path(self) -> str:
        return str(self._path)

    def is_absolute(self) -> bool:
        return self._path.is_absolute()

    def to_url(self) -> str:
        return self._path.absolute().as_uri()

    def __str__(self):
        return str(self._path)


class Location:
    """A local file or an HTTP resource, queried like a file.

        Location("data/image.tif")               -> local file
        Location("http://example.com/data")      -> URL
        Location(pathlib.Path("image.tif"))      -> local file, never remapped
        Location("http://example.com", "a.txt")  -> http://example.com/a.txt
        Location(other_location, "a.txt")        -> child of other_location

        Joining a parent and a child inserts a single "/" and does no other
        normalization. The joined string is then resolved like any other
        pathname.
    """

    id_map: IdentifierMap = None
    http: HttpResourceClient = None

    @injector.construct
    def __init__(self,
                 pathname: t.Union[str, pathlib.PurePath, "Location"],
                 child: t.Optional[str] = None,
                 id_map: t.Optional[IdentifierMap] = None,
                 http: t.Optional[HttpResourceClient] = None):
        if id_map is not None:
            self.id_map = id_map
        if http is not None:
            self.http = http
        if isinstance(pathname, Location):
            pathname = pathname.absolute_path()
        if child is not None:
            pathname = f"{pathname}/{child}"
        elif isinstance(pathname, pathlib.PurePath):
            self._backend = _FileBackend(pathlib.Path(pathname))
            return
        mapped = self.id_map.get_mapped_id(str(pathname))
        parsed = parse_url(mapped)
        if parsed is not None:
            self._backend = _UrlBackend(mapped, parsed, self.http)
        else:
            self._backend = _FileBackend(pathlib.Path(mapped))

    def _derive(self, pathname: str, child: t.Optional[str] = None) -> "Location":
        return Location(pathname, child, id_map=self.id_map, http=self.http)

    @property
    def kind(self) -> BackendKind:
        return self._backend.kind

    def is_url(self) -> bool:
        return self._backend.kind == BackendKind.URL

    def child(self, name: str) -> "Location":
        return self._derive(self.absolute_path(), name)

    def exists(self) -> bool:
        return self._backend.exists()

    def can_read(self) -> bool:
        return self._backend.can_read()

    def can_write(self) -> bool:
        return self._backend.can_write()

    def is_directory(self) -> bool:
        return self._backend.is_directory()

    def is_file(self) -> bool:
        return self._backend.is_file()

    def is_hidden(self) -> bool:
        return self._backend.is_hidden()

    def last_modified(self) -> int:
        """Modification time in milliseconds since the epoch, 0 if unknown."""
        return self._backend.last_modified()

    def modified_datetime(self) -> t.Optional[datetime.datetime]:
        millis = self.last_modified()
        if millis <= 0:
            return None
        return datetime.datetime.fromtimestamp(millis / 1000, datetime.timezone.utc)

    def length(self) -> int:
        """Size in bytes, 0 if unknown."""
        return self._backend.length()

    def name(self) -> str:
        return self._backend.name()

    def parent(self) -> t.Optional[str]:
        return self._backend.parent()

    def parent_file(self) -> t.Optional["Location"]:
        parent = self.parent()
        return self._derive(parent) if parent is not None else None

    def list(self) -> t.Optional[t.List[str]]:
        """Names of the entries of this directory, or None if it isn't a listable directory."""
        return self._backend.list(self)

    def list_files(self) -> t.Optional[t.List["Location"]]:
        names = self.list()
        if names is None:
            return None
        return [self.child(name).absolute_file() for name in names]

    def create_new_file(self) -> bool:
        """Create an empty file, False if it already exists."""
        return self._backend.create_new_file()

    def delete(self) -> bool:
        return self._backend.delete()

    def delete_on_exit(self):
        self._backend.delete_on_exit()

    def absolute_path(self) -> str:
        return self._backend.absolute_path()

    def absolute_file(self) -> "Location":
        return self._derive(self.absolute_path())

    def canonical_path(self) -> str:
        return self._backend.canonical_path()

    def canonical_file(self) -> "Location":
        return self._derive(self.canonical_path())

    def path(self) -> str:
        return self._backend.path()

    def is_absolute(self) -> bool:
        return self._backend.is_absolute()

    def to_url(self) -> str:
        return self._backend.to_url()

    def __eq__(self, other):
        if not isinstance(other, Location):
            return NotImplemented
        return self.kind == other.kind and self._backend.key() == other._backend.key()

    def __hash__(self):
        return hash((self.kind, self._backend.key()))

    def __str__(self):
        return str(self._backend)

    def __repr__(self):
        return f"Location({str(self)!r})"
