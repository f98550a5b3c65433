from __future__ import annotations

import http.client
import logging
import re
import socket
import ssl
import typing
from http.client import HTTPConnection as _HTTPConnection
from socket import timeout as SocketTimeout

from ._base_transport import RequestParameters
from ._collections import HTTPHeaderDict
from ._version import __version__
from .exceptions import DecodeError, RequestTimeoutError
from .response import DECODER_ERROR_CLASSES, Result, Status, convert_response, get_decoder
from .util.request import ACCEPT_ENCODING, is_upstream_method, make_headers
from .util.ssl_ import create_uhr_context
from .util.url import split_auth

__all__ = ["HTTPConnection", "HTTPSConnection", "ServerTransport"]

log = logging.getLogger(__name__)

port_by_scheme = {"http": 80, "https": 443}

# Control characters (and whitespace) must never reach the request line.
_CONTAINS_CONTROL_CHAR_RE = re.compile(r"[^-!#$%&'*+.^_`|~0-9a-zA-Z]")


class HTTPConnection(_HTTPConnection):
    """
    Based on :class:`http.client.HTTPConnection`, but sends exactly the headers
    it is given: ``Host`` and ``Accept-Encoding`` are never added implicitly.

    One connection serves one request and is closed afterwards.
    """

    default_port = port_by_scheme["http"]

    def __init__(
        self, host: str, port: int | None = None, timeout: float | None = None
    ) -> None:
        # An IPv6 literal without a port would be split on its last colon
        super().__init__(host=host, port=port or self.default_port, timeout=timeout)

    @property  # type: ignore[override]
    def host(self) -> str:  # type: ignore[override]
        """
        The host without a trailing dot. Certificates don't include the dot
        of a fully-qualified domain name, but DNS resolution still needs it,
        so the original value is kept for connecting.
        """
        return self._dns_host.rstrip(".")

    @host.setter
    def host(self, value: str) -> None:
        self._dns_host = value

    def _new_conn(self) -> socket.socket:
        return socket.create_connection(
            (self._dns_host, self.port), self.timeout, self.source_address
        )

    def connect(self) -> None:
        self.sock = self._new_conn()

    def putrequest(
        self,
        method: str,
        url: str,
        skip_host: bool = False,
        skip_accept_encoding: bool = False,
    ) -> None:
        """"""
        # Empty docstring because the indentation of CPython's implementation
        # is broken but we don't want this method in our documentation.
        match = _CONTAINS_CONTROL_CHAR_RE.search(method)
        if match:
            raise ValueError(
                f"Method cannot contain non-token characters {method!r} (found at least {match.group()!r})"
            )

        return super().putrequest(
            method, url, skip_host=skip_host, skip_accept_encoding=skip_accept_encoding
        )

    # `request` method's signature intentionally violates LSP.
    def request(  # type: ignore[override]
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        headers: typing.Mapping[str, str] | None = None,
    ) -> None:
        self.putrequest(method, url, skip_host=True, skip_accept_encoding=True)
        for header, value in (headers or {}).items():
            self.putheader(header, value)
        if body is not None:
            self.putheader("Content-Length", str(len(body)))
        self.endheaders(body)


class HTTPSConnection(HTTPConnection):
    """
    Many of the parameters to this constructor are passed to the underlying
    SSL socket by means of :py:meth:`ssl.SSLContext.wrap_socket`.
    """

    default_port = port_by_scheme["https"]

    def __init__(
        self,
        host: str,
        port: int | None = None,
        timeout: float | None = None,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        super().__init__(host, port=port, timeout=timeout)
        self.ssl_context = ssl_context or create_uhr_context()

    def connect(self) -> None:
        sock = self._new_conn()
        try:
            self.sock = self.ssl_context.wrap_socket(sock, server_hostname=self.host)
        except BaseException:
            sock.close()
            raise


connection_cls_by_scheme: dict[str, type[HTTPConnection]] = {
    "http": HTTPConnection,
    "https": HTTPSConnection,
}


def _get_default_user_agent() -> str:
    return f"uhr/{__version__}"


class ServerTransport:
    """
    Executes requests over a plain socket (or a TLS socket for ``https``)
    using :mod:`http.client`.

    :param user_agent:
        Value of the default ``User-Agent`` header, ``uhr/<version>`` when
        omitted.

    :param ca_certs:
        Path of a PEM bundle used instead of the system CAs to verify HTTPS
        servers.

    :param ssl_context:
        A ready :class:`ssl.SSLContext` for verified HTTPS requests. Requests
        with ``unsafe_https`` always use an unverified context.
    """

    def __init__(
        self,
        user_agent: str | None = None,
        ca_certs: str | None = None,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self.default_headers = make_headers(
            accept_encoding=ACCEPT_ENCODING,
            user_agent=user_agent or _get_default_user_agent(),
        )
        self.ca_certs = ca_certs
        self.ssl_context = ssl_context

    def __repr__(self) -> str:
        return f"{type(self).__name__}(user_agent={self.default_headers['User-Agent']!r})"

    def _new_connection(self, parameters: RequestParameters) -> HTTPConnection:
        uri = parameters.uri
        conn_cls = connection_cls_by_scheme[typing.cast(str, uri.scheme)]
        port = uri.port or conn_cls.default_port
        timeout = parameters.timeout / 1000

        if conn_cls is HTTPSConnection:
            if parameters.unsafe_https:
                context = create_uhr_context(cert_reqs=ssl.CERT_NONE)
            elif self.ssl_context is not None:
                context = self.ssl_context
            else:
                context = create_uhr_context(ca_certs=self.ca_certs)
            return HTTPSConnection(
                typing.cast(str, uri.host), port, timeout=timeout, ssl_context=context
            )
        return conn_cls(typing.cast(str, uri.host), port, timeout=timeout)

    def _prepare_headers(self, parameters: RequestParameters) -> HTTPHeaderDict:
        uri = parameters.uri
        headers = parameters.headers.copy()

        # RFC 7230 5.4. This header is required
        headers.discard("Host")
        headers["Host"] = typing.cast(str, uri.authority)
        # Computed from the body that is actually sent
        headers.discard("Content-Length")

        if uri.auth and "Authorization" not in headers:
            user, password = split_auth(uri.auth)
            headers.extend(make_headers(basic_auth=f"{user or ''}:{password or ''}"))
        return headers

    def execute(self, parameters: RequestParameters) -> Result:
        """
        Sends the request and reads the whole response.

        :raises RequestTimeoutError:
            When connecting or any read takes longer than the timeout.
        :raises DecodeError:
            When the ``Content-Encoding`` of the body cannot be decoded.

        Other socket, TLS and protocol errors propagate as they are.
        """
        uri = parameters.uri
        headers = self._prepare_headers(parameters)
        body = parameters.data.encode("utf-8") if is_upstream_method(parameters.method) else None

        conn = self._new_connection(parameters)
        try:
            try:
                conn.request(
                    parameters.method,
                    uri.request_uri,
                    body=body,
                    headers=dict(headers.itermerged()),
                )
                response = conn.getresponse()
                raw = response.read()
            except SocketTimeout as e:
                raise RequestTimeoutError() from e

            log.debug(
                '%s://%s:%s "%s %s" %s',
                uri.scheme,
                conn.host,
                conn.port,
                parameters.method,
                uri.request_uri,
                response.status,
            )

            response_headers = HTTPHeaderDict()
            for name, value in response.getheaders():
                response_headers.add(name.lower(), value)

            data = self._decode(raw, response_headers.get("content-encoding"))
        finally:
            conn.close()

        status = Status(
            code=response.status,
            text=response.reason or http.client.responses.get(response.status, ""),
            headers=response_headers,
        )
        return Result(status, convert_response(response_headers, data))

    @staticmethod
    def _decode(raw: bytes, content_encoding: str | None) -> str:
        decoder = get_decoder(content_encoding)
        if decoder is not None:
            try:
                raw = decoder.decompress(raw) + decoder.flush()
            except DECODER_ERROR_CLASSES as e:
                raise DecodeError(
                    "Received response with content-encoding: %s, but "
                    "failed to decode it." % content_encoding
                ) from e
        return raw.decode("utf-8", errors="replace")
