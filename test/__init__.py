from __future__ import annotations

import os
import platform
import typing

from uhr import RequestParameters, Result, Status
from uhr._collections import HTTPHeaderDict

# We need a host that will not immediately close the connection with a TCP
# Reset.
if platform.system() == "Windows":
    # Reserved loopback subnet address
    TARPIT_HOST = "127.0.0.0"
else:
    # Reserved internet scoped address
    # https://www.iana.org/assignments/iana-ipv4-special-registry/iana-ipv4-special-registry.xhtml
    TARPIT_HOST = "240.0.0.0"

# Request timeouts in milliseconds.
#
# 1. To make sure that the operation times out, we can use a short timeout.
# 2. To make sure that the test does not hang even if the operation should
#    succeed, we want to use a long timeout, even more so on CI where tests
#    can be really slow.
SHORT_TIMEOUT = 50
LONG_TIMEOUT = 5000
if os.environ.get("CI") or os.environ.get("GITHUB_ACTIONS") == "true":
    LONG_TIMEOUT = 30000


class RecordingTransport:
    """
    A transport that performs no I/O. It remembers every request it was
    given and answers with ``result`` (or raises ``error``).
    """

    def __init__(
        self,
        default_headers: typing.Mapping[str, str] | None = None,
        result: Result | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.default_headers = dict(default_headers or {})
        self.result = result or Result(Status(200, "OK", HTTPHeaderDict()), "")
        self.error = error
        self.requests: list[RequestParameters] = []

    @property
    def last(self) -> RequestParameters:
        return self.requests[-1]

    def execute(self, parameters: RequestParameters) -> Result:
        self.requests.append(parameters)
        if self.error is not None:
            raise self.error
        return self.result
