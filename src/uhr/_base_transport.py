from __future__ import annotations

import typing
from dataclasses import dataclass

from ._collections import HTTPHeaderDict
from .util.url import Url

if typing.TYPE_CHECKING:
    from .response import Result

_TYPE_DATA = typing.Union[
    typing.Mapping[str, typing.Any],
    typing.Sequence[typing.Any],
    str,
    int,
    float,
    bool,
    None,
]


@dataclass(frozen=True)
class RequestParameters:
    """
    A validated, normalized request. Built once per call by
    :meth:`uhr.RequestBase.request` and handed to exactly one transport.

    ``data`` is already in its wire form: the encoded body for upstream
    methods, an empty string for downstream methods (whose structured data was
    merged into ``uri.query``).
    """

    method: str
    url: str
    uri: Url
    headers: HTTPHeaderDict
    data: str
    timeout: float
    unsafe_https: bool = False
    with_credentials: bool = False


class BaseTransport(typing.Protocol):
    """
    What :class:`uhr.RequestBase` needs from an environment-specific transport.
    """

    #: Headers the transport contributes on top of the general defaults.
    #: Callers can override or remove them like any other default header.
    default_headers: typing.Mapping[str, str]

    def execute(self, parameters: RequestParameters) -> Result:
        """
        Performs the network operation for a validated request and returns
        its result, or raises. Must not mutate ``parameters``.
        """
        ...
