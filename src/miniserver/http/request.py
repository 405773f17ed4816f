"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes of one HTTP/1.x request into an HTTPRequest.

The server only ever needs three things from a request: the path it asked
for, the query string (for callback codes and /test?echo=), and the raw URL
for its "unknown request" log line. Headers and body are parsed anyway so
custom route handlers can read them.

=============================================================================
WHAT GETS KEPT, AND HOW
=============================================================================

    GET /Docs/Read%20Me.md?echo=a&echo=b HTTP/1.1
        │   │                     │
        │   │                     └── query_params  {"echo": ["a", "b"]}
        │   │
        │   └── raw_url     "/Docs/Read%20Me.md?echo=a&echo=b"  (as sent)
        │       path        "/Docs/Read Me.md"                  (decoded,
        │                                                       case kept)
        └── method          "GET"

Case is kept in `path` because file names on disk may be case-sensitive.
Dispatch lowercases its own copy when it compares against route names.

Paths are NOT checked for ".." segments. File resolution joins the request
path under the root folder verbatim; the server is loopback-only.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict
from urllib.parse import parse_qs, urlsplit, unquote
import re

from ..errors import HTTPParseError


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Header names are stored lowercase; HTTP header names are
    case-insensitive, so lookups go through get_header().
    """

    method: str
    path: str
    raw_url: str = ""
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""

    client_address: tuple[str, int] = ("", 0)

    def __post_init__(self):
        if not self.raw_url:
            self.raw_url = self.path

    @property
    def local_path(self) -> str:
        """Decoded path, lowercased. This is what routes are matched on."""
        return self.path.lower()

    @property
    def content_length(self) -> int:
        """Content-Length as an integer, 0 when missing or invalid."""
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 (undecodable bytes replaced)."""
        return self.body.decode("utf-8", errors="replace")

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        First value of a query parameter.

        Example:
            # URL: /callback?code=abc&state=xyz
            request.get_query("code")  # "abc"
        """
        values = self.query_params.get(name, [])
        return values[0] if values else default

    def get_query_list(self, name: str) -> list[str]:
        """
        All values of a query parameter, in the order they were sent.

        Example:
            # URL: /test?echo=hello&echo=world
            request.get_query_list("echo")  # ["hello", "world"]
        """
        return self.query_params.get(name, [])


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSING STEPS
    ==========================================================================

        1. Size check              too large?      → HTTPParseError(413)
        2. Find \\r\\n\\r\\n           not found?      → HTTPParseError(400)
        3. Request line            malformed?      → HTTPParseError(400/405/505)
        4. Headers                 "Name: Value", names lowercased
        5. Body                    exactly Content-Length bytes

    ==========================================================================
    """

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")
    ABSOLUTE_URI_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")

    VALID_METHODS = frozenset({
        "GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS",
    })

    def __init__(self, max_request_size: int = 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw HTTP request bytes from the socket.
            client_address: Client's (ip, port) tuple.

        Raises:
            HTTPParseError: If the request is malformed or too large.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        if not lines or not lines[0]:
            raise HTTPParseError("Empty request")

        method, raw_url, path, query_params, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError(
                f"Invalid Content-Length: {headers['content-length']!r}"
            ) from None

        if content_length < 0:
            raise HTTPParseError(f"Invalid Content-Length: {content_length}")

        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            raw_url=raw_url,
            version=version,
            headers=headers,
            query_params=query_params,
            body=body[:content_length],
            client_address=client_address,
        )

    def _parse_request_line(
        self,
        line: str
    ) -> tuple[str, str, str, Dict[str, list[str]], str]:
        """
        Split "METHOD SP REQUEST-URI SP HTTP-VERSION".

        Returns:
            (method, raw_url, decoded path, query_params, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505
            )

        # Absolute-form targets ("http://localhost:50005/x") keep only the path.
        # Origin-form targets are split by hand so "//docs" stays a path.
        try:
            if self.ABSOLUTE_URI_PATTERN.match(uri):
                parsed = urlsplit(uri)
                raw_path, query = parsed.path, parsed.query
            else:
                raw_path, _, query = uri.partition("#")[0].partition("?")

            path = unquote(raw_path) or "/"
            query_params = parse_qs(query, keep_blank_values=True)
        except ValueError as e:
            raise HTTPParseError(f"Invalid request target: {uri} ({e})") from None

        return method, uri, path, query_params, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse header lines into a dict with lowercase names.

        Continuation lines (leading whitespace) extend the previous header.
        Repeated headers are joined with ", ". Malformed lines are skipped.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 1024 * 1024
) -> HTTPRequest:
    """Parse one request with a throwaway RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
