from __future__ import annotations

import contextlib
import gzip
import json
import logging
import typing
import zlib
from io import BytesIO
from urllib.parse import urlencode, urlsplit

from tornado import httputil
from tornado.web import RequestHandler

log = logging.getLogger(__name__)


class Response:
    def __init__(
        self,
        body: str | bytes = "",
        status: str = "200 OK",
        headers: typing.Sequence[tuple[str, str]] | None = None,
        json: typing.Any | None = None,
    ) -> None:
        self.body = body
        self.status = status
        if json is not None:
            self.headers = headers or [("Content-type", "application/json")]
            self.body = json
        else:
            self.headers = headers or [("Content-type", "text/plain")]

    def __call__(self, request_handler: RequestHandler) -> None:
        status, reason = self.status.split(" ", 1)
        request_handler.set_status(int(status), reason)
        # Tornado adds its own text/html default otherwise
        request_handler.clear_header("Content-Type")
        for header, value in self.headers:
            request_handler.add_header(header, value)

        if not self.body:
            return
        if isinstance(self.body, str):
            request_handler.write(self.body.encode())
        elif isinstance(self.body, bytes):
            request_handler.write(self.body)
        else:
            request_handler.write(json.dumps(self.body).encode())


def request_params(request: httputil.HTTPServerRequest) -> dict[str, str]:
    params = {}
    for k, v in request.arguments.items():
        params[k] = next(iter(v)).decode("utf-8")
    return params


def _compress(data: bytes, encoding: str) -> bytes:
    if encoding == "gzip":
        file_ = BytesIO()
        with contextlib.closing(gzip.GzipFile("", mode="w", fileobj=file_)) as zipfile:
            zipfile.write(data)
        return file_.getvalue()
    if encoding == "deflate":
        return zlib.compress(data)
    if encoding == "raw-deflate":
        compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
        return compressor.compress(data) + compressor.flush()
    return data


class TestingApp(RequestHandler):
    """
    Simple app that performs various operations, useful for testing an HTTP
    library.

    Given any path, it will attempt to load a corresponding local method if
    it exists. Status code 200 indicates success, 400 indicates failure. Each
    method has its own conditions for success/failure.
    """

    def get(self) -> None:
        """Handle GET requests"""
        self._call_method()

    def post(self) -> None:
        """Handle POST requests"""
        self._call_method()

    def put(self) -> None:
        """Handle PUT requests"""
        self._call_method()

    def patch(self) -> None:
        """Handle PATCH requests"""
        self._call_method()

    def delete(self) -> None:
        """Handle DELETE requests"""
        self._call_method()

    def options(self) -> None:
        """Handle OPTIONS requests"""
        self._call_method()

    def head(self) -> None:
        """Handle HEAD requests"""
        self._call_method()

    def _call_method(self) -> None:
        """Call the correct method in this class based on the incoming URI"""
        req = self.request

        path = req.path[:]
        if not path.startswith("/"):
            path = urlsplit(path).path

        target = path[1:].split("/", 1)[0]
        method = getattr(self, target, self.index)

        resp = method(req)
        resp(self)

    def index(self, _request: httputil.HTTPServerRequest) -> Response:
        "Render simple message"
        return Response("Dummy server!")

    def empty(self, _request: httputil.HTTPServerRequest) -> Response:
        "Nothing at all, not even a content type"
        return Response(headers=[("X-Empty", "1")])

    def echo_request(self, request: httputil.HTTPServerRequest) -> Response:
        "Describe the request as it arrived"
        return Response(
            json={
                "method": request.method,
                "uri": request.uri,
                "headers": {k.lower(): v for k, v in request.headers.get_all()},
                "body": request.body.decode("utf-8"),
            }
        )

    def echo(self, request: httputil.HTTPServerRequest) -> Response:
        "Echo back the body, keeping the content type it was sent with"
        content_type = request.headers.get("Content-Type", "text/plain")
        return Response(request.body, headers=[("Content-Type", content_type)])

    def json(self, _request: httputil.HTTPServerRequest) -> Response:
        return Response(json={"test": "hello world", "test2": 100500, "boolean": True})

    def json_null(self, _request: httputil.HTTPServerRequest) -> Response:
        return Response("null", headers=[("Content-Type", "application/json")])

    def broken_json(self, _request: httputil.HTTPServerRequest) -> Response:
        return Response("{not json", headers=[("Content-Type", "application/json")])

    def urlencoded(self, _request: httputil.HTTPServerRequest) -> Response:
        body = urlencode({"test": "hello world", "test2": 100500, "boolean": "true"})
        return Response(
            body, headers=[("Content-Type", "application/x-www-form-urlencoded")]
        )

    def plain(self, _request: httputil.HTTPServerRequest) -> Response:
        return Response("test", headers=[("Content-Type", "text/plain")])

    def encoded(self, request: httputil.HTTPServerRequest) -> Response:
        "Compress the text given in ?text= with the codec given in ?encoding="
        params = request_params(request)
        encoding = params.get("encoding", "identity")
        data = _compress(params.get("text", "").encode("utf-8"), encoding)
        if encoding == "raw-deflate":
            encoding = "deflate"
        if encoding.startswith("garbage-"):
            encoding = encoding[len("garbage-") :]
            data = b"garbage"
        return Response(
            data,
            headers=[("Content-Type", "text/plain"), ("Content-Encoding", encoding)],
        )

    def status(self, request: httputil.HTTPServerRequest) -> Response:
        "Respond with ?status= and echo the body back"
        params = request_params(request)
        status = params.get("status", "200 OK")
        return Response(
            request.body, status=status, headers=[("Content-Type", "text/plain")]
        )
