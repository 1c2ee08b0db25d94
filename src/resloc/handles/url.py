"""Handle for a resource served over HTTP."""
import functools
import typing as t

import requests
import zrlog
from autoinject import injector

from .base import RandomAccessHandle, HandleKind
from resloc.exc import HandleError
from resloc.net import HttpResourceClient


def wrap_http_errors(cb):

    @functools.wraps(cb)
    def _inner(*args, **kwargs):
        try:
            return cb(*args, **kwargs)
        except requests.HTTPError as ex:
            status = ex.response.status_code if ex.response is not None else None
            if status == 404:
                raise HandleError(f"HTTP: Resource not found: {str(ex)}", 2004) from ex
            raise HandleError(f"HTTP: Error status {status}: {str(ex)}", 2000, status is not None and status >= 500) from ex
        except requests.Timeout as ex:
            raise HandleError(f"HTTP: Timeout: {ex.__class__.__name__}: {str(ex)}", 2001, True) from ex
        except requests.ConnectionError as ex:
            raise HandleError(f"HTTP: Connection error: {ex.__class__.__name__}: {str(ex)}", 2002, True) from ex
        except requests.RequestException as ex:
            raise HandleError(f"HTTP: {ex.__class__.__name__}: {str(ex)}", 2003) from ex

    return _inner


class URLHandle(RandomAccessHandle):
    """Read access to an HTTP resource.

        Reads are made with Range requests from the current position. When
        the server ignores the Range header, the body it sent back is kept
        and all further reads are served from it.
    """

    kind = HandleKind.URL_BACKED
    http: HttpResourceClient = None

    @injector.construct
    @wrap_http_errors
    def __init__(self, url: str, mode: str = "r", http: t.Optional[HttpResourceClient] = None, **kwargs):
        super().__init__(writable=(mode == "rw"), **kwargs)
        if http is not None:
            self.http = http
        self._log = zrlog.get_logger("resloc.handles.url")
        self._url = url
        self._position = 0
        self._closed = False
        self._buffer: t.Optional[bytes] = None
        response = self.http.probe(url)
        self._length: t.Optional[int] = None
        if "Content-Length" in response.headers:
            try:
                self._length = int(response.headers["Content-Length"])
            except ValueError:
                self._length = None

    def url(self) -> str:
        return self._url

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self):
        if self._closed:
            raise HandleError("Handle is closed", 1013)

    @wrap_http_errors
    def _load_body(self):
        if self._buffer is None:
            self._buffer = self.http.read_body(self._url)
            self._length = len(self._buffer)

    @wrap_http_errors
    def read(self, size: int = -1) -> bytes:
        self._check_open()
        if size is None or size < 0:
            self._load_body()
        if self._buffer is not None:
            if size is None or size < 0:
                data = self._buffer[self._position:]
            else:
                data = self._buffer[self._position:self._position + size]
        else:
            if size == 0 or (self._length is not None and self._position >= self._length):
                return b""
            ranged, data = self.http.read_range(self._url, self._position, size)
            if not ranged:
                self._log.debug(f"Server ignored range request for {self._url}, keeping full body")
                self._buffer = data
                self._length = len(data)
                data = self._buffer[self._position:self._position + size]
        self._position += len(data)
        return data

    def write(self, data: t.Union[bytes, bytearray]) -> int:
        self._check_open()
        raise HandleError("URL handles cannot be written to", 1011)

    def seek(self, position: int):
        self._check_open()
        if position < 0:
            raise HandleError(f"Cannot seek to negative position {position}", 1012)
        self._position = position

    def tell(self) -> int:
        return self._position

    def length(self) -> int:
        self._check_open()
        if self._length is None:
            self._load_body()
        return self._length

    def close(self):
        self._closed = True
        self._buffer = None

    @staticmethod
    def supports(file_path: str) -> bool:
        return file_path.startswith("http://") or file_path.startswith("https://")

    @classmethod
    def build(cls, file_path: str, writable: bool = False) -> RandomAccessHandle:
        return cls(file_path, "rw" if writable else "r")
