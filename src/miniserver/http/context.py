"""
The request/response pair a handler receives.

Handlers take a single RequestContext and finish by closing
``ctx.response`` (directly, or through one of the serve_* helpers).
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from .request import HTTPRequest, parse_request
from .response import HTTPResponse

if TYPE_CHECKING:
    from ..core.connection import Connection


@dataclass
class RequestContext:
    """One accepted request and the response that answers it."""

    request: HTTPRequest
    response: HTTPResponse = field(default_factory=HTTPResponse)
    connection: Optional["Connection"] = field(default=None, repr=False)

    def release(self) -> None:
        """
        Make sure the client socket is closed.

        Called by the server after dispatch. A handler that never closed
        its response sends whatever it built so far.
        """
        if not self.response.closed:
            self.response.close()
        if self.connection is not None:
            self.connection.close()

    @classmethod
    def for_path(cls, raw_url: str, method: str = "GET") -> "RequestContext":
        """
        Build a socket-less context for ``raw_url``.

        Used to drive MiniServer.handle() directly, e.g. from tests.
        """
        data = f"{method} {raw_url} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode("utf-8")
        return cls(request=parse_request(data))
