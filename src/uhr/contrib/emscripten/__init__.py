"""
The uhr.contrib.emscripten submodule contains support for using uhr within an Emscripten webassembly environment.

Currently this supports Pyodide (https://www.pyodide.org) in web-browser environments only. Requests are
sent with a synchronous XMLHttpRequest, so the browser applies its own rules on top of ours: forbidden
headers are dropped, and timeouts only work inside a web worker.

You shouldn't need to call anything in this module directly, :func:`inject_into_uhr` runs when you import uhr
in emscripten.
"""

from __future__ import annotations

from ...client import UHR
from .fetch import BrowserTransport


def inject_into_uhr() -> None:
    """
    Make :class:`~uhr.contrib.emscripten.fetch.BrowserTransport` the transport of new
    :class:`~uhr.UHR` clients. This is automatically called on import, so you shouldn't
    need to use it.
    """
    UHR.TransportCls = BrowserTransport


__all__ = ["BrowserTransport", "inject_into_uhr"]
