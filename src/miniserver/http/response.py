"""
=============================================================================
HTTP RESPONSE
=============================================================================

The response half of a request context. Handlers fill it in and close it:

    response.status_code = 200
    response.content_type = "text/html; charset=utf-8"
    response.write("<h1>Hi</h1>")
    response.close()          ──► serialize ──► send ──► close connection

Nothing reaches the client until close(). A handler that raises before
closing leaves the response open, which is how the server knows it can
still turn the failure into a 500.

=============================================================================
WIRE FORMAT
=============================================================================

    HTTP/1.1 200 OK\\r\\n                        ← status line
    Content-Type: text/html; charset=utf-8\\r\\n
    Content-Length: 11\\r\\n                     ← from body unless set
    Date: Sat, 17 Oct 2026 12:00:00 GMT\\r\\n    ← auto-added
    Server: MiniServer/1.0.0\\r\\n               ← auto-added
    Connection: close\\r\\n                      ← always, one request each
    \\r\\n
    <h1>Hi</h1>

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Dict, Union

from .status_codes import HTTPStatus, reason_phrase
from ..template import render_simple_page

if TYPE_CHECKING:
    from ..core.connection import Connection


HTML_CONTENT_TYPE = "text/html; charset=utf-8"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass
class HTTPResponse:
    """
    An HTTP response bound (optionally) to a client connection.

    Without a connection, close() only marks the response as finished and
    the serialized bytes are kept on `sent`, which is what unit tests read.
    """

    status_code: int = HTTPStatus.OK
    content_type: Optional[str] = None
    content_length: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"
    server_name: str = "MiniServer"

    connection: Optional["Connection"] = field(default=None, repr=False)
    sent: bytes = field(default=b"", repr=False)

    _closed: bool = field(default=False, repr=False)
    _aborted: bool = field(default=False, repr=False)

    @property
    def closed(self) -> bool:
        """True once close() or abort() has run."""
        return self._closed

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status_code)} {reason_phrase(self.status_code)}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def write(self, data: Union[str, bytes]) -> "HTTPResponse":
        """
        Append to the body. Strings are encoded as UTF-8.

        Raises:
            RuntimeError: If the response was already closed.
        """
        if self._closed:
            raise RuntimeError("Response already closed")
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.body += data
        return self

    def to_bytes(self) -> bytes:
        """Serialize status line, headers and body."""
        response_headers: Dict[str, str] = {}

        if self.content_type:
            response_headers["Content-Type"] = self.content_type

        length = self.content_length if self.content_length is not None else len(self.body)
        response_headers["Content-Length"] = str(length)
        response_headers["Date"] = format_http_date(datetime.now(timezone.utc))
        response_headers["Server"] = self.server_name
        response_headers["Connection"] = "close"

        # Explicit headers win over the generated ones
        response_headers.update(self.headers)

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body

    def close(self) -> None:
        """
        Finish the response: send it and close the connection.

        Closing twice is a no-op.
        """
        if self._closed:
            return
        self._closed = True

        self.sent = self.to_bytes()
        if self.connection is not None:
            self.connection.send(self.sent)
            self.connection.close()

    def abort(self) -> None:
        """Close the connection without writing any response at all."""
        if self._closed:
            return
        self._closed = True
        self._aborted = True

        if self.connection is not None:
            self.connection.close()


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Example: Wed, 01 Jan 2026 12:00:00 GMT
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# RESPONSE HELPERS
# =============================================================================
#
# Each helper writes a complete response and closes it.


def serve_error(response: HTTPResponse, status: int) -> None:
    """Status only: zero Content-Length, no body."""
    response.status_code = status
    response.content_type = None
    response.content_length = 0
    response.body = b""
    response.close()


def serve_json(response: HTTPResponse, json_text: Optional[str]) -> None:
    """
    Send already-serialized JSON.

    A blank payload becomes 204 No Content; otherwise 200 with the trimmed
    text. The content type is application/json either way.
    """
    response.content_type = JSON_CONTENT_TYPE

    if not json_text or not json_text.strip():
        response.status_code = HTTPStatus.NO_CONTENT
        response.body = b""
    else:
        response.status_code = HTTPStatus.OK
        response.body = json_text.strip().encode("utf-8")

    response.close()


def serve_simple_html(
    response: HTTPResponse,
    body: Optional[str],
    title: Optional[str] = None,
) -> None:
    """200 with `body` wrapped in the simple HTML shell."""
    response.status_code = HTTPStatus.OK
    response.content_type = HTML_CONTENT_TYPE
    response.body = render_simple_page(body, title).encode("utf-8")
    response.close()
