"""
Sending requests from a web browser with a synchronous XMLHttpRequest.

A few caveats -

Browsers refuse to let scripts set some request headers (``Cookie``, ``Host``,
``Content-Length`` and others). Those are dropped before the request is sent.

Timeouts are only available inside a web worker. On the main browser thread a
request waits as long as the browser lets it, and a warning is logged once.
"""
from __future__ import annotations

import logging
import typing

from ..._base_transport import RequestParameters
from ..._collections import HTTPHeaderDict
from ...exceptions import (
    BrowserConnectionError,
    RequestAbortedError,
    RequestTimeoutError,
)
from ...response import Result, Status, convert_response
from ...util.request import is_upstream_method
from ...util.url import split_auth

log = logging.getLogger(__name__)

#: Request headers the browser controls itself. Compared in lower case.
FORBIDDEN_HEADERS = frozenset(
    [
        "accept-charset",
        "accept-encoding",
        "access-control-request-headers",
        "access-control-request-method",
        "connection",
        "content-length",
        "cookie",
        "cookie2",
        "date",
        "dnt",
        "expect",
        "host",
        "keep-alive",
        "origin",
        "referer",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
        "via",
    ]
)
FORBIDDEN_HEADER_PREFIXES = ("proxy-", "sec-")

# Internet Explorer reports 204 responses this way
_IE_NO_CONTENT_STATUS = 1223


def is_forbidden_header(name: str) -> bool:
    name = name.lower()
    return name in FORBIDDEN_HEADERS or name.startswith(FORBIDDEN_HEADER_PREFIXES)


# check if we are in a worker or not
def is_in_browser_main_thread(window: typing.Any) -> bool:
    return (
        hasattr(window, "window")
        and hasattr(window, "self")
        and window.self == window.window
    )


_SHOWN_TIMEOUT_WARNING = False


def _show_timeout_warning() -> None:
    global _SHOWN_TIMEOUT_WARNING
    if not _SHOWN_TIMEOUT_WARNING:
        _SHOWN_TIMEOUT_WARNING = True
        log.warning("Timeout is not available on main browser thread")


def parse_response_headers(raw: str | None) -> HTTPHeaderDict:
    """
    Parses the block returned by ``getAllResponseHeaders()``. Names are
    lower-cased and lines without a name are skipped.
    """
    headers = HTTPHeaderDict()
    for line in (raw or "").splitlines():
        name, sep, value = line.partition(":")
        name = name.strip().lower()
        if not sep or not name:
            continue
        headers.add(name, value.strip())
    return headers


class BrowserTransport:
    """
    Executes requests through the browser's ``XMLHttpRequest``.

    :param window:
        The global scope providing ``XMLHttpRequest``. Defaults to Pyodide's
        :mod:`js` module.

    :param js_error:
        The exception type JavaScript errors surface as. Defaults to
        :class:`pyodide.ffi.JsException`.
    """

    #: The browser adds its own Accept-Encoding and User-Agent.
    default_headers: typing.Mapping[str, str] = {}

    def __init__(
        self, window: typing.Any = None, js_error: type[BaseException] | None = None
    ) -> None:
        if window is None:
            import js  # type: ignore[import]

            window = js
        if js_error is None:
            from pyodide.ffi import JsException  # type: ignore[import]

            js_error = JsException
        self.window = window
        self.js_error = js_error

    def _open(self, parameters: RequestParameters) -> typing.Any:
        uri = parameters.uri
        user, password = split_auth(uri.auth)
        xhr = self.window.XMLHttpRequest.new()
        xhr.open(
            parameters.method,
            uri._replace(auth=None, fragment=None).url,
            False,
            user,
            password,
        )

        if parameters.with_credentials:
            xhr.withCredentials = True

        if not is_in_browser_main_thread(self.window):
            xhr.timeout = int(parameters.timeout)
        else:
            # timeout isn't available on the main thread
            _show_timeout_warning()

        for name, value in parameters.headers.itermerged():
            if is_forbidden_header(name):
                log.debug("Dropping header the browser does not allow: %s", name)
                continue
            xhr.setRequestHeader(name, value)
        return xhr

    def execute(self, parameters: RequestParameters) -> Result:
        """
        Sends the request and waits for the whole response.

        :raises RequestAbortedError: When the request was aborted.
        :raises RequestTimeoutError: When the request timed out.
        :raises BrowserConnectionError: On any other network failure.
        """
        xhr = None
        try:
            xhr = self._open(parameters)
            if is_upstream_method(parameters.method):
                xhr.send(parameters.data)
            else:
                xhr.send()
        except self.js_error as err:
            name = getattr(err, "name", None)
            if name == "AbortError":
                raise RequestAbortedError() from err
            if name == "TimeoutError":
                raise RequestTimeoutError() from err
            status_text = getattr(xhr, "statusText", None) if xhr is not None else None
            raise BrowserConnectionError(status_text or None) from err

        code = int(xhr.status)
        if code == 0:
            raise BrowserConnectionError(xhr.statusText or None)

        text = xhr.statusText or ""
        if code == _IE_NO_CONTENT_STATUS:
            code, text = 204, "No Content"

        headers = parse_response_headers(xhr.getAllResponseHeaders())
        log.debug(
            '%s "%s %s" %s',
            parameters.uri.authority,
            parameters.method,
            parameters.uri.request_uri,
            code,
        )
        return Result(
            Status(code=code, text=text, headers=headers),
            convert_response(headers, xhr.responseText),
        )
