"""
Universal HTTP(S) request client: one request API for servers and for Python running in a web browser
"""

from __future__ import annotations

# Set default logging handler to avoid "No handler found" warnings.
import logging
import sys
import typing
from logging import NullHandler

from . import exceptions
from ._base_transport import BaseTransport, RequestParameters
from ._collections import HTTPHeaderDict
from ._request_methods import RequestBase
from ._version import __version__
from .client import UHR
from .connection import ServerTransport
from .response import Result, Status, convert_response
from .util.request import DEFAULT_TIMEOUT, make_headers

__license__ = "MIT"
__version__ = __version__

__all__ = (
    "BaseTransport",
    "DEFAULT_TIMEOUT",
    "HTTPHeaderDict",
    "RequestBase",
    "RequestParameters",
    "Result",
    "ServerTransport",
    "Status",
    "UHR",
    "add_stderr_logger",
    "convert_response",
    "exceptions",
    "make_headers",
    "request",
)

logging.getLogger(__name__).addHandler(NullHandler())


def add_stderr_logger(
    level: int = logging.DEBUG,
) -> logging.StreamHandler[typing.TextIO]:
    """
    Helper for quickly adding a StreamHandler to the logger. Useful for
    debugging.

    Returns the handler after adding it.
    """
    # This method needs to be in this __init__.py to get the __name__ correct
    # even if uhr is vendored within another package.
    logger = logging.getLogger(__name__)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.debug("Added a stderr logging handler to logger: %s", __name__)
    return handler


# ... Clean up.
del NullHandler


if sys.platform == "emscripten":
    from .contrib.emscripten import inject_into_uhr  # noqa: 401

    inject_into_uhr()


_DEFAULT_CLIENT: UHR | None = None


def request(parameters: typing.Mapping[str, typing.Any]) -> Result:
    """
    A convenience, top-level request method. It uses a module-global
    :class:`UHR` instance, created on first use.
    To use other default headers or another transport create a new
    :class:`UHR` instance and use it instead.
    """
    global _DEFAULT_CLIENT
    if _DEFAULT_CLIENT is None:
        _DEFAULT_CLIENT = UHR()
    return _DEFAULT_CLIENT.request(parameters)
