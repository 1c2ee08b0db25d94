"""HTTP access for URL-backed locations and handles.

    This is the only place that talks to the network. Methods that answer
    metadata questions return None when the server cannot be reached and callers
    decide what default that maps to. Methods that fetch content raise
    requests exceptions.
"""
import datetime
import email.utils
import typing as t

import requests
import zirconium as zr
import zrlog
from autoinject import injector

from resloc.boot import __VERSION__

# Statuses a server answers HEAD with when it only implements GET
HEAD_NOT_SUPPORTED = (405, 501)


@injector.injectable_global
class HttpResourceClient:

    config: zr.ApplicationConfig = None

    @injector.construct
    def __init__(self, config: t.Optional[zr.ApplicationConfig] = None):
        if config is not None:
            self.config = config
        self._log = zrlog.get_logger("resloc.net")
        self.timeout = self.config.as_float(("resloc", "http", "timeout"), default=None)
        self.user_agent = self.config.as_str(("resloc", "http", "user_agent"), default=f"resloc/{__VERSION__}")
        self.chunk_size = self.config.as_int(("resloc", "http", "chunk_size"), default=8192)

    def _request(self, method: str, url: str, headers: t.Optional[dict] = None, **kwargs) -> requests.Response:
        all_headers = {"User-Agent": self.user_agent}
        if headers:
            all_headers.update(headers)
        self._log.debug(f"{method} {url}")
        return requests.request(method, url, headers=all_headers, timeout=self.timeout, **kwargs)

    def fetch(self, url: str, headers: t.Optional[dict] = None) -> requests.Response:
        """Open a streaming GET for the URL, raising for error statuses."""
        response = self._request("GET", url, headers=headers, stream=True)
        try:
            response.raise_for_status()
        except requests.HTTPError:
            response.close()
            raise
        return response

    def _headers(self, url: str) -> requests.Response:
        """Fetch the response headers only, the body is never read."""
        response = self._request("HEAD", url, allow_redirects=True)
        response.close()
        if response.status_code in HEAD_NOT_SUPPORTED:
            self._log.debug(f"HEAD not supported for {url}, reading headers from GET")
            response = self._request("GET", url, stream=True)
            response.close()
        return response

    def probe(self, url: str) -> requests.Response:
        """Read the response headers for the URL, raising for error statuses."""
        response = self._headers(url)
        response.raise_for_status()
        return response

    def connect(self, url: str) -> t.Optional[requests.Response]:
        """Read the response headers; None if the server cannot be reached or answers with an error."""
        try:
            return self.probe(url)
        except requests.RequestException as ex:
            self._log.debug(f"Could not connect to {url}: {ex.__class__.__name__}: {str(ex)}")
            return None

    def content_exists(self, url: str) -> bool:
        """Check that the content of the URL can be retrieved."""
        try:
            with self.fetch(url):
                return True
        except requests.RequestException as ex:
            self._log.debug(f"Cannot fetch {url}: {ex.__class__.__name__}: {str(ex)}")
            return False

    def last_modified(self, url: str) -> t.Optional[int]:
        """Modification time in milliseconds since the epoch.

            Returns 0 when the server answers without a usable Last-Modified
            header and None when no answer could be obtained at all.
        """
        response = self.connect(url)
        if response is None:
            return None
        return http_date_to_millis(response.headers.get("Last-Modified"))

    def content_length(self, url: str) -> t.Optional[int]:
        """Content-Length header value; 0 if missing, None if unreachable."""
        response = self.connect(url)
        if response is None:
            return None
        try:
            return max(int(response.headers.get("Content-Length", 0)), 0)
        except ValueError:
            return 0

    def iter_text(self, url: str) -> t.Iterable[str]:
        """Yield the decoded body of the URL as it arrives."""
        with self.fetch(url) as response:
            if response.encoding is None:
                response.encoding = "utf-8"
            for chunk in response.iter_content(self.chunk_size, decode_unicode=True):
                if chunk:
                    yield chunk

    def read_body(self, url: str) -> bytes:
        """Read the complete body of the URL."""
        with self.fetch(url) as response:
            return b"".join(response.iter_content(self.chunk_size))

    def read_range(self, url: str, start: int, length: int) -> tuple[bool, bytes]:
        """Request a byte range.

            Returns (True, data) when the server honoured the range and
            (False, full_body) when it sent the whole resource instead.
        """
        headers = {"Range": f"bytes={start}-{start + length - 1}"}
        try:
            with self.fetch(url, headers=headers) as response:
                body = b"".join(response.iter_content(self.chunk_size))
                return response.status_code == 206, body
        except requests.HTTPError as ex:
            # Range beyond the end of the resource
            if ex.response is not None and ex.response.status_code == 416:
                return True, b""
            raise


def http_date_to_millis(value: t.Optional[str]) -> int:
    if not value:
        return 0
    try:
        dt = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return 0
    if dt is None:
        return 0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return int(dt.timestamp() * 1000)
