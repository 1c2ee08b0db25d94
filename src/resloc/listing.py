"""Directory listings for URL-backed locations.

    Web servers usually answer a request for a directory with an HTML index
    page. The names of the entries are scraped from the anchors on that page:
    every occurrence of ``a href`` followed by a quoted value is a candidate,
    and a candidate is kept only if the location it names exists. This is a
    best effort scraper and not an HTML parser; it accepts whatever markup it
    is given.
"""
import typing as t

import zrlog

from resloc.net import HttpResourceClient

ANCHOR_TOKEN = "a href"
END_MARKER = "</html>"


def _attribute_value(text: str, index: int) -> tuple[t.Optional[str], t.Optional[int]]:
    """Read the attribute value that follows index.

        Returns (value, end) when a value was found, (None, end) when the
        token was not followed by a value and (None, None) when the text ends
        before the value is complete.
    """
    length = len(text)
    while index < length and text[index].isspace():
        index += 1
    if index >= length:
        return None, None
    if text[index] != "=":
        return None, index
    index += 1
    while index < length and text[index].isspace():
        index += 1
    if index >= length:
        return None, None
    quote = text[index]
    if quote in "\"'":
        end = text.find(quote, index + 1)
        if end < 0:
            return None, None
        return text[index + 1:end], end + 1
    end = index
    while end < length and not text[end].isspace() and text[end] != ">":
        end += 1
    if end >= length:
        return None, None
    return text[index:end], end


def scan_anchors(chunks: t.Iterable[str]) -> t.Iterable[str]:
    """Yield the anchor targets found in the text, read chunk by chunk.

        Scanning stops once the closing html tag has been seen or the chunks
        run out. Unlike a naive per-chunk search, an anchor split across two
        chunks is still found.
    """
    buffer = ""
    tail = ""
    for chunk in chunks:
        buffer += chunk
        ended = END_MARKER in (tail + chunk).lower()
        tail = (tail + chunk)[-(len(END_MARKER) - 1):]
        pos = 0
        while True:
            start = buffer.find(ANCHOR_TOKEN, pos)
            if start < 0:
                pos = max(pos, len(buffer) - len(ANCHOR_TOKEN) + 1)
                break
            value, end = _attribute_value(buffer, start + len(ANCHOR_TOKEN))
            if end is None:
                pos = start
                break
            if value is not None:
                yield value
            pos = end
        buffer = buffer[pos:]
        if ended:
            return


class DirectoryLister:

    def __init__(self, http: HttpResourceClient):
        self._http = http
        self._log = zrlog.get_logger("resloc.listing")

    def list_names(self, location) -> list[str]:
        """Names of the entries linked from the location's index page that exist.

            Errors from fetching the index page are raised to the caller.
        """
        names = []
        url = location.absolute_path()
        for href in scan_anchors(self._http.iter_text(url)):
            if not href:
                continue
            check = location.child(href)
            if not check.exists():
                self._log.debug(f"Skipping [{href}] from {url}, it does not exist")
                continue
            name = check.name()
            if name and name not in names:
                names.append(name)
        return names
