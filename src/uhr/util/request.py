from __future__ import annotations

import typing
from base64 import b64encode
from types import MappingProxyType

#: Every method a request may use.
METHODS = frozenset(
    ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"]
)

#: Methods whose ``data`` travels in the request body. All other methods fold
#: structured ``data`` into the query string.
UPSTREAM_METHODS = frozenset(["POST", "PUT", "PATCH"])

#: Request timeout in milliseconds used when none is given.
DEFAULT_TIMEOUT = 30000

CHARSET = "UTF-8"


class ContentType:
    URL_ENCODED = "application/x-www-form-urlencoded"
    JSON = "application/json"
    PLAIN_TEXT = "text/plain"
    HTML = "text/html"


CHARSET_PARAMETER = f"; charset={CHARSET}"
URL_ENCODED_ENTITY_CONTENT_TYPE = ContentType.URL_ENCODED + CHARSET_PARAMETER
PLAIN_TEXT_ENTITY_CONTENT_TYPE = ContentType.PLAIN_TEXT + CHARSET_PARAMETER

DEFAULT_GENERAL_HEADERS: typing.Mapping[str, str] = MappingProxyType(
    {
        "Accept": (
            f"{ContentType.JSON}; q=0.7, "
            f"{ContentType.HTML}; q=0.2, "
            f"{ContentType.PLAIN_TEXT}; q=0.1"
        ),
        "Accept-Charset": f"{CHARSET}; q=1",
    }
)

ACCEPT_ENCODING = "gzip; q=0.7, deflate; q=0.2, identity; q=0.1"


def is_upstream_method(method: str) -> bool:
    return method in UPSTREAM_METHODS


def make_headers(
    accept_encoding: bool | list[str] | str | None = None,
    user_agent: str | None = None,
    basic_auth: str | None = None,
) -> dict[str, str]:
    """
    Shortcuts for generating request headers.

    :param accept_encoding:
        Can be a boolean, list, or string.
        ``True`` translates to the default weighted
        'gzip; q=0.7, deflate; q=0.2, identity; q=0.1'.
        List will get joined by comma.
        String will be used as provided.

    :param user_agent:
        String representing the user-agent you want, such as
        "uhr/1.0"

    :param basic_auth:
        Colon-separated username:password string for 'authorization: basic ...'
        auth header.

    Example:

    .. code-block:: python

        import uhr

        print(uhr.util.make_headers(user_agent="Batman/1.0"))
        # {'User-Agent': 'Batman/1.0'}
        print(uhr.util.make_headers(basic_auth="user:secret"))
        # {'Authorization': 'Basic dXNlcjpzZWNyZXQ='}
    """
    headers: dict[str, str] = {}
    if accept_encoding:
        if isinstance(accept_encoding, str):
            pass
        elif isinstance(accept_encoding, list):
            accept_encoding = ", ".join(accept_encoding)
        else:
            accept_encoding = ACCEPT_ENCODING
        headers["Accept-Encoding"] = accept_encoding

    if user_agent:
        headers["User-Agent"] = user_agent

    if basic_auth:
        headers[
            "Authorization"
        ] = f"Basic {b64encode(basic_auth.encode('utf-8')).decode()}"

    return headers
