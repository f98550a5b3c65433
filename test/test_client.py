from __future__ import annotations

import logging

import pytest

import uhr
from uhr import UHR, ServerTransport
from uhr.connection import _get_default_user_agent
from uhr.contrib.emscripten import BrowserTransport, inject_into_uhr
from uhr.util.request import ACCEPT_ENCODING

from . import RecordingTransport


class TestUHR:
    def test_default_transport(self) -> None:
        client = UHR()
        assert isinstance(client.transport, ServerTransport)
        assert repr(client) == (
            f"UHR(transport=ServerTransport(user_agent='uhr/{uhr.__version__}'))"
        )

    def test_explicit_transport(self) -> None:
        transport = RecordingTransport()
        assert UHR(transport).transport is transport

    def test_client_headers_are_copied(self) -> None:
        headers = {"X-Test": "1"}
        client = UHR(RecordingTransport(), headers=headers)
        headers["X-Test"] = "2"
        assert client.headers == {"X-Test": "1"}

    def test_transport_cls(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(UHR, "TransportCls", RecordingTransport)
        assert isinstance(UHR().transport, RecordingTransport)

    def test_inject_into_uhr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(UHR, "TransportCls", ServerTransport)
        inject_into_uhr()
        assert UHR.TransportCls is BrowserTransport


class TestServerTransportDefaults:
    def test_default_headers(self) -> None:
        transport = ServerTransport()
        assert transport.default_headers == {
            "Accept-Encoding": ACCEPT_ENCODING,
            "User-Agent": _get_default_user_agent(),
        }

    def test_user_agent(self) -> None:
        transport = ServerTransport(user_agent="catalog/2.1")
        assert transport.default_headers["User-Agent"] == "catalog/2.1"
        assert repr(transport) == "ServerTransport(user_agent='catalog/2.1')"

    def test_transport_headers_are_merged(self) -> None:
        headers = UHR(ServerTransport()).create_headers()
        assert list(headers) == ["Accept", "Accept-Charset", "Accept-Encoding", "User-Agent"]
        assert headers["user-agent"].startswith("uhr/")


class TestModuleLevelRequest:
    def test_request_uses_module_client(self, monkeypatch: pytest.MonkeyPatch) -> None:
        transport = RecordingTransport()
        monkeypatch.setattr(uhr, "_DEFAULT_CLIENT", UHR(transport))
        result = uhr.request({"method": "GET", "url": "http://localhost/page"})
        assert result is transport.result
        assert transport.last.uri.path == "/page"

    def test_request_creates_client_lazily(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(uhr, "_DEFAULT_CLIENT", None)
        monkeypatch.setattr(UHR, "TransportCls", RecordingTransport)
        uhr.request({"method": "GET", "url": "http://localhost/"})
        assert isinstance(uhr._DEFAULT_CLIENT, UHR)
        assert isinstance(uhr._DEFAULT_CLIENT.transport, RecordingTransport)

    def test_request_validates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(uhr, "_DEFAULT_CLIENT", UHR(RecordingTransport()))
        with pytest.raises(uhr.exceptions.URLRequiredError):
            uhr.request({"method": "GET"})


class TestLogging:
    def test_add_stderr_logger(self) -> None:
        logger = logging.getLogger("uhr")
        level = logger.level
        handler = uhr.add_stderr_logger()
        try:
            assert handler in logger.handlers
            assert logger.level == logging.DEBUG
            assert isinstance(handler, logging.StreamHandler)
        finally:
            logger.removeHandler(handler)
            logger.setLevel(level)

    def test_null_handler(self) -> None:
        handlers = logging.getLogger("uhr").handlers
        assert any(isinstance(h, logging.NullHandler) for h in handlers)
