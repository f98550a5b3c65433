from __future__ import annotations

import json as _json
import logging
import typing
import zlib
from dataclasses import dataclass, field

from ._collections import HTTPHeaderDict
from .util.request import ContentType
from .util.url import parse_query

log = logging.getLogger(__name__)

_TYPE_CONTENT = typing.Union[str, typing.Dict[str, typing.Any], typing.Any]


@dataclass(frozen=True)
class Status:
    """Status line and headers of a response. Header names are lower case."""

    code: int
    text: str
    headers: HTTPHeaderDict = field(default_factory=HTTPHeaderDict)


@dataclass(frozen=True)
class Result:
    """What every request returns: the status and the decoded body."""

    status: Status
    content: _TYPE_CONTENT


class ContentDecoder:
    def decompress(self, data: bytes) -> bytes:
        raise NotImplementedError()

    def flush(self) -> bytes:
        raise NotImplementedError()


class DeflateDecoder(ContentDecoder):
    # Servers disagree on whether "deflate" means a zlib stream or a raw
    # deflate stream, so the first chunk decides which one we decode.
    def __init__(self) -> None:
        self._first_try = True
        self._data = b""
        self._obj = zlib.decompressobj()

    def decompress(self, data: bytes) -> bytes:
        if not data:
            return data

        if not self._first_try:
            return self._obj.decompress(data)

        self._data += data
        try:
            decompressed = self._obj.decompress(data)
            if decompressed:
                self._first_try = False
                self._data = None  # type: ignore[assignment]
            return decompressed
        except zlib.error:
            self._first_try = False
            self._obj = zlib.decompressobj(-zlib.MAX_WBITS)
            try:
                return self.decompress(self._data)
            finally:
                self._data = None  # type: ignore[assignment]

    def flush(self) -> bytes:
        return self._obj.flush()


class GzipDecoderState:
    FIRST_MEMBER = 0
    OTHER_MEMBERS = 1
    SWALLOW_DATA = 2


class GzipDecoder(ContentDecoder):
    def __init__(self) -> None:
        self._obj = zlib.decompressobj(16 + zlib.MAX_WBITS)
        self._state = GzipDecoderState.FIRST_MEMBER

    def decompress(self, data: bytes) -> bytes:
        ret = bytearray()
        if self._state == GzipDecoderState.SWALLOW_DATA or not data:
            return bytes(ret)
        while True:
            try:
                ret += self._obj.decompress(data)
            except zlib.error:
                previous_state = self._state
                # Ignore data after the first error
                self._state = GzipDecoderState.SWALLOW_DATA
                if previous_state == GzipDecoderState.OTHER_MEMBERS:
                    # Allow trailing garbage acceptable in other gzip clients
                    return bytes(ret)
                raise
            data = self._obj.unused_data
            if not data:
                return bytes(ret)
            self._state = GzipDecoderState.OTHER_MEMBERS
            self._obj = zlib.decompressobj(16 + zlib.MAX_WBITS)

    def flush(self) -> bytes:
        return self._obj.flush()


CONTENT_DECODERS = {"gzip": GzipDecoder, "deflate": DeflateDecoder}

DECODER_ERROR_CLASSES: tuple[type[Exception], ...] = (zlib.error,)


def get_decoder(content_encoding: str | None) -> ContentDecoder | None:
    """
    Returns a fresh decoder for the given ``Content-Encoding`` value, or
    ``None`` when the body should be passed through unmodified.
    """
    decoder_cls = CONTENT_DECODERS.get((content_encoding or "").strip().lower())
    return decoder_cls() if decoder_cls is not None else None


def find_content_type(headers: typing.Mapping[str, str] | None) -> tuple[str, str]:
    """
    Finds the ``Content-Type`` header case-insensitively.

    :returns:
        The header name as spelled in ``headers`` (``"Content-Type"`` when
        absent) and the lower-cased media type without parameters (``""``
        when absent).
    """
    name = "Content-Type"
    value = ""
    for key in headers or ():
        if key.lower() == "content-type":
            name = key
            value = headers[key] or ""  # type: ignore[index]
    return name, value.split(";", 1)[0].strip().lower()


def convert_response(headers: typing.Mapping[str, str] | None, body: typing.Any) -> _TYPE_CONTENT:
    """
    Converts a response body according to its content type.

    JSON and URL-encoded bodies become mappings; when they cannot be parsed
    (or JSON holds ``null``) an empty mapping is returned instead. Any other
    content type, or none at all, returns the body string unchanged. This
    never raises.
    """
    if not isinstance(body, str):
        body = ""
    content_type = find_content_type(headers)[1] or ContentType.PLAIN_TEXT

    if content_type == ContentType.JSON:
        try:
            content = _json.loads(body)
        except (ValueError, RecursionError):
            log.debug("Response declared as JSON could not be parsed")
            return {}
        return {} if content is None else content

    if content_type == ContentType.URL_ENCODED:
        # Form encoding writes spaces as "+", the query parser keeps "+" as-is
        return parse_query(body.replace("+", "%20"))

    return body
