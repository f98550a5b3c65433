from __future__ import annotations

import typing

from ._base_transport import BaseTransport
from ._request_methods import RequestBase
from .connection import ServerTransport

__all__ = ["UHR"]


class UHR(RequestBase):
    """
    Universal HTTP(S) request client.

    Uses :class:`~uhr.connection.ServerTransport` unless a ``transport`` is
    given. Under Emscripten the browser transport is the default instead.

    Example:

    .. code-block:: python

        import uhr

        client = uhr.UHR(headers={"X-Requested-With": "uhr"})
        result = client.get("http://example.com/api", {"data": {"page": 2}})
        print(result.status.code, result.content)
    """

    #: Transport class instantiated when no ``transport`` is given.
    TransportCls: typing.Callable[[], BaseTransport] = ServerTransport

    def __init__(
        self,
        transport: BaseTransport | None = None,
        headers: typing.Mapping[str, typing.Optional[str]] | None = None,
    ) -> None:
        if transport is None:
            transport = self.TransportCls()
        super().__init__(transport, headers=headers)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(transport={self.transport!r})"
