from __future__ import annotations

import decimal
import json as _json
import numbers
import typing

from ._base_transport import _TYPE_DATA, BaseTransport, RequestParameters
from ._collections import HTTPHeaderDict
from .exceptions import (
    InvalidDataError,
    InvalidMethodError,
    InvalidParametersError,
    InvalidTimeoutError,
    MissingHostError,
    MissingSchemeError,
    UnsupportedSchemeError,
    URLRequiredError,
)
from .response import Result, _TYPE_CONTENT, convert_response, find_content_type
from .util.request import (
    DEFAULT_GENERAL_HEADERS,
    DEFAULT_TIMEOUT,
    METHODS,
    PLAIN_TEXT_ENTITY_CONTENT_TYPE,
    URL_ENCODED_ENTITY_CONTENT_TYPE,
    ContentType,
    is_upstream_method,
)
from .util.url import encode_query, parse_url, to_query_str

__all__ = ["RequestBase"]

_TYPE_PARAMETERS = typing.Mapping[str, typing.Any]
_TYPE_HEADERS = typing.Mapping[str, typing.Optional[str]]

_SUPPORTED_SCHEMES = ("http", "https")


def _is_structured(data: typing.Any) -> bool:
    return isinstance(data, (typing.Mapping, list, tuple))


def _as_pairs(
    data: typing.Mapping[str, typing.Any] | typing.Sequence[typing.Any],
) -> typing.Mapping[str, typing.Any] | list[tuple[str, typing.Any]]:
    if isinstance(data, typing.Mapping):
        return data
    pairs = []
    for item in data:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise InvalidDataError()
        pairs.append((item[0], item[1]))
    return pairs


class RequestBase:
    """
    Validates and encodes requests and hands them to a transport, which does
    the network part.

    Provides a shortcut for each common HTTP method and decides how ``data``
    is encoded:

    Downstream methods (such as GET, HEAD, DELETE) merge a mapping ``data``,
    or a list of ``(name, value)`` pairs, into the query string of the URL.
    A list or tuple holding anything else raises
    :class:`~uhr.exceptions.InvalidDataError`, unless it is sent as a JSON
    body, where it becomes an array.

    Upstream methods (POST, PUT and PATCH) send ``data`` as the request body,
    encoded as JSON when the ``Content-Type`` header says so, as
    ``application/x-www-form-urlencoded`` for any other mapping, or as plain
    text otherwise.

    Initializer parameters:

    :param transport:
        The object that executes validated requests. See
        :class:`uhr._base_transport.BaseTransport`.

    :param headers:
        Headers to include with all requests, unless other headers are given
        explicitly. A value of ``None`` removes a default header.
    """

    def __init__(
        self, transport: BaseTransport, headers: _TYPE_HEADERS | None = None
    ) -> None:
        self.transport = transport
        self.headers = dict(headers or {})

    def get(self, url: str, parameters: _TYPE_PARAMETERS | None = None) -> Result:
        """Does a GET request to the HTTP server."""
        return self._request_method("GET", url, parameters)

    def post(self, url: str, parameters: _TYPE_PARAMETERS | None = None) -> Result:
        """Does a POST request to the HTTP server."""
        return self._request_method("POST", url, parameters)

    def put(self, url: str, parameters: _TYPE_PARAMETERS | None = None) -> Result:
        """Does a PUT request to the HTTP server."""
        return self._request_method("PUT", url, parameters)

    def patch(self, url: str, parameters: _TYPE_PARAMETERS | None = None) -> Result:
        """Does a PATCH request to the HTTP server."""
        return self._request_method("PATCH", url, parameters)

    def delete(self, url: str, parameters: _TYPE_PARAMETERS | None = None) -> Result:
        """Does a DELETE request to the HTTP server."""
        return self._request_method("DELETE", url, parameters)

    def head(self, url: str, parameters: _TYPE_PARAMETERS | None = None) -> Result:
        """Does a HEAD request to the HTTP server."""
        return self._request_method("HEAD", url, parameters)

    def options(self, url: str, parameters: _TYPE_PARAMETERS | None = None) -> Result:
        """Does an OPTIONS request to the HTTP server."""
        return self._request_method("OPTIONS", url, parameters)

    def _request_method(
        self, method: str, url: str, parameters: _TYPE_PARAMETERS | None
    ) -> Result:
        if parameters is None:
            parameters = {}
        elif not isinstance(parameters, typing.Mapping):
            raise InvalidParametersError()
        merged = dict(parameters)
        merged["method"] = method
        merged["url"] = url
        return self.request(merged)

    def request(self, parameters: _TYPE_PARAMETERS) -> Result:
        """
        Make a request using the configured transport.

        ``parameters`` is a mapping with the keys ``method``, ``url`` and,
        optionally, ``headers``, ``data``, ``timeout`` (milliseconds),
        ``unsafe_https`` and ``with_credentials``. It is not modified.

        :raises RequestValidationError:
            Before any network activity when the parameters are invalid.
        :returns:
            The :class:`~uhr.response.Result` with the status and the body
            decoded according to its content type.
        """
        validated = self._validate_request(parameters)
        return self._do_request(validated)

    def _do_request(self, parameters: RequestParameters) -> Result:
        return self.transport.execute(parameters)

    def _validate_request(self, parameters: typing.Any) -> RequestParameters:
        if not isinstance(parameters, typing.Mapping):
            raise InvalidParametersError()

        url = parameters.get("url")
        if not isinstance(url, str):
            raise URLRequiredError()

        uri = parse_url(url)
        if not uri.scheme:
            raise MissingSchemeError()
        if uri.scheme not in _SUPPORTED_SCHEMES:
            raise UnsupportedSchemeError(uri.scheme)
        if not uri.host:
            raise MissingHostError()

        method = parameters.get("method")
        if not isinstance(method, str) or method.upper() not in METHODS:
            raise InvalidMethodError()
        method = method.upper()

        timeout = self._validate_timeout(parameters.get("timeout"))
        headers = self.create_headers(parameters.get("headers"))
        data = parameters.get("data")

        if not is_upstream_method(method):
            if _is_structured(data) and data:
                uri = uri.with_query_values(_as_pairs(data))
            body = ""
        else:
            body = self._get_data_to_send(headers, data)

        return RequestParameters(
            method=method,
            url=uri.url,
            uri=uri,
            headers=headers,
            data=body,
            timeout=timeout,
            # Only an explicit True switches these on
            unsafe_https=parameters.get("unsafe_https") is True,
            with_credentials=parameters.get("with_credentials") is True,
        )

    @staticmethod
    def _validate_timeout(timeout: typing.Any) -> float:
        if timeout is None:
            return float(DEFAULT_TIMEOUT)
        if isinstance(timeout, bool) or not isinstance(
            timeout, (numbers.Real, decimal.Decimal)
        ):
            raise InvalidTimeoutError()
        try:
            value = float(timeout)
        except ValueError:
            # Signaling NaN
            raise InvalidTimeoutError("Timeout should be a non-negative number") from None
        if value == 0:
            return float(DEFAULT_TIMEOUT)
        # Also rejects NaN
        if not value >= 0:
            raise InvalidTimeoutError("Timeout should be a non-negative number")
        return value

    def create_headers(self, headers: typing.Any = None) -> HTTPHeaderDict:
        """
        Creates the headers for a request: the general defaults, overlaid
        with the transport's defaults, the client's headers and finally
        ``headers``. Names match case-insensitively and a ``None`` value
        removes the header. ``headers`` that is not a mapping is ignored.
        """
        merged = HTTPHeaderDict(DEFAULT_GENERAL_HEADERS)
        layers = (
            getattr(self.transport, "default_headers", None),
            self.headers,
            headers,
        )
        for layer in layers:
            if not isinstance(layer, typing.Mapping):
                continue
            for name, value in layer.items():
                if value is None:
                    merged.discard(name)
                else:
                    merged[name] = str(value)
        return merged

    @staticmethod
    def _get_data_to_send(headers: HTTPHeaderDict, data: _TYPE_DATA) -> str:
        """
        Encodes the body of an upstream request, setting ``Content-Type`` in
        ``headers`` where the encoding requires it.
        """
        content_type_header, content_type = find_content_type(headers)

        if not _is_structured(data):
            if not content_type:
                headers[content_type_header] = PLAIN_TEXT_ENTITY_CONTENT_TYPE
            return to_query_str(data) if data else ""

        if content_type == ContentType.JSON:
            if isinstance(data, typing.Mapping):
                data = dict(data)
            return _json.dumps(data, separators=(",", ":"))

        # Everything else is sent as a form
        headers[content_type_header] = URL_ENCODED_ENTITY_CONTENT_TYPE
        # encode_query() already escapes "+", so only spaces need rewriting
        return encode_query(_as_pairs(data)).replace("%20", "+")

    @staticmethod
    def convert_response(
        headers: typing.Mapping[str, str] | None, body: typing.Any
    ) -> _TYPE_CONTENT:
        """See :func:`uhr.response.convert_response`."""
        return convert_response(headers, body)
