# For convenience, expose the helpers that callers of the library may need.
from __future__ import annotations

from .request import (
    ACCEPT_ENCODING,
    DEFAULT_GENERAL_HEADERS,
    DEFAULT_TIMEOUT,
    METHODS,
    UPSTREAM_METHODS,
    ContentType,
    is_upstream_method,
    make_headers,
)
from .ssl_ import ALPN_PROTOCOLS, create_uhr_context, resolve_cert_reqs
from .url import Url, encode_query, parse_query, parse_url, split_auth

__all__ = (
    "ACCEPT_ENCODING",
    "ALPN_PROTOCOLS",
    "ContentType",
    "DEFAULT_GENERAL_HEADERS",
    "DEFAULT_TIMEOUT",
    "METHODS",
    "UPSTREAM_METHODS",
    "Url",
    "create_uhr_context",
    "encode_query",
    "is_upstream_method",
    "make_headers",
    "parse_query",
    "parse_url",
    "resolve_cert_reqs",
    "split_auth",
)
