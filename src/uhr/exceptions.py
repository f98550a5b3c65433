from __future__ import annotations

import typing

_TYPE_REDUCE_RESULT = typing.Tuple[
    typing.Callable[..., object], typing.Tuple[object, ...]
]

# Base Exceptions


class UHRError(Exception):
    """Base exception used by this module."""

    pass


class RequestValidationError(UHRError, ValueError):
    """Raised before any network activity when request parameters are invalid."""

    default_message = "Invalid request parameters"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class TransportError(UHRError):
    """Base exception for failures while a transport executes a request."""

    default_message = "Transport error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class DecodeError(UHRError):
    """Raised when decompressing a response based on Content-Encoding fails."""

    pass


# Leaf Exceptions


class InvalidParametersError(RequestValidationError):
    """Raised when the request parameters are not a mapping."""

    default_message = "Request parameters argument should be an object"


class URLRequiredError(RequestValidationError):
    """Raised when no URL string was given."""

    default_message = '"url" is a required parameter'


class URLParseError(RequestValidationError):
    """Raised when the URL cannot be split into its components."""

    def __init__(self, location: str) -> None:
        super().__init__(f"Failed to parse: {location}")
        self.location = location

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.location,)


class MissingSchemeError(RequestValidationError):
    """Raised when the URL has no scheme."""

    default_message = '"url" should contain a protocol (scheme)'


class UnsupportedSchemeError(RequestValidationError):
    """Raised when the URL scheme is neither http nor https."""

    def __init__(self, scheme: str) -> None:
        super().__init__(f'"{scheme}" protocol (scheme) is unsupported')
        self.scheme = scheme

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.scheme,)


class MissingHostError(RequestValidationError):
    """Raised when the URL has no host."""

    default_message = '"url" should contain a host'


class InvalidMethodError(RequestValidationError):
    """Raised when the HTTP method is missing or unknown."""

    default_message = "HTTP method is a required parameter"


class InvalidTimeoutError(RequestValidationError):
    """Raised when the timeout is not a non-negative number."""

    default_message = "Timeout should be a number"


class InvalidDataError(RequestValidationError):
    """
    Raised when a list or tuple ``data`` has to become a query or a form but
    its items are not ``(name, value)`` pairs.
    """

    default_message = "Request data should be a mapping or a sequence of pairs"


class RequestTimeoutError(TransportError, TimeoutError):
    """Raised when no response arrived before the request timeout elapsed."""

    default_message = "Request timeout"


class RequestAbortedError(TransportError):
    """Raised when the underlying request was aborted."""

    default_message = "Request aborted"


class BrowserConnectionError(TransportError, ConnectionError):
    """Raised when the browser reports a network error for a request."""

    default_message = "Connection error"
