"""
Unit tests for HTTP request parsing.
"""

import pytest

from miniserver.http.request import (
    HTTPRequest,
    RequestParser,
    parse_request,
)
from miniserver.errors import HTTPParseError


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_callback(self, sample_callback_request: bytes):
        """Test parsing a redirect callback."""
        parser = RequestParser()
        request = parser.parse(sample_callback_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/Callback"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_path_keeps_case_local_path_lowercases(self, sample_callback_request: bytes):
        request = parse_request(sample_callback_request)

        assert request.path == "/Callback"
        assert request.local_path == "/callback"

    def test_raw_url_is_request_target(self, sample_callback_request: bytes):
        request = parse_request(sample_callback_request)

        assert request.raw_url == "/Callback?code=abc123&state=xyz"

    def test_parse_headers(self, sample_callback_request: bytes):
        request = parse_request(sample_callback_request)

        assert request.host == "localhost:50005"
        assert request.get_header("User-Agent") == "pytest"
        assert request.headers["accept"] == "text/html"

    def test_parse_query_params(self, sample_callback_request: bytes):
        request = parse_request(sample_callback_request)

        assert request.get_query("code") == "abc123"
        assert request.get_query("state") == "xyz"
        assert request.get_query("missing") is None
        assert request.get_query("missing", "default") == "default"

    def test_parse_post_with_body(self, sample_post_request: bytes):
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/json"
        assert request.content_length == len(request.body)
        assert request.text == '{"name": "John"}'

    def test_percent_encoded_path_is_decoded(self):
        data = b"GET /docs/Read%20Me.md HTTP/1.1\r\nHost: localhost\r\n\r\n"
        request = parse_request(data)

        assert request.path == "/docs/Read Me.md"
        assert request.raw_url == "/docs/Read%20Me.md"

    def test_dot_segments_are_not_rejected(self):
        """Paths are joined under the root verbatim; the parser leaves them be."""
        data = b"GET /../outside.txt HTTP/1.1\r\nHost: localhost\r\n\r\n"
        request = parse_request(data)

        assert request.path == "/../outside.txt"

    def test_absolute_form_target(self):
        data = b"GET http://localhost:50005/sig?x=1 HTTP/1.1\r\nHost: localhost\r\n\r\n"
        request = parse_request(data)

        assert request.path == "/sig"
        assert request.get_query("x") == "1"

    def test_leading_double_slash_stays_in_path(self):
        data = b"GET //docs/page.htm?a=1 HTTP/1.1\r\nHost: localhost\r\n\r\n"
        request = parse_request(data)

        assert request.path == "//docs/page.htm"
        assert request.get_query("a") == "1"

    def test_double_slash_shutdown_is_not_root(self):
        request = parse_request(b"GET //shutdown HTTP/1.1\r\n\r\n")

        assert request.path == "//shutdown"

    def test_fragment_is_dropped(self):
        request = parse_request(b"GET /test#top?echo=x HTTP/1.1\r\n\r\n")

        assert request.path == "/test"
        assert request.query_params == {}

    def test_bad_absolute_target_is_400(self):
        data = b"GET http://[x HTTP/1.1\r\nHost: localhost\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc:
            parse_request(data)

        assert exc.value.status_code == 400

    def test_parse_invalid_method(self):
        data = b"BREW /pot HTTP/1.1\r\nHost: localhost\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc:
            parse_request(data)

        assert exc.value.status_code == 405

    def test_parse_invalid_request_line(self):
        data = b"GARBAGE\r\nHost: localhost\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc:
            parse_request(data)

        assert exc.value.status_code == 400

    def test_parse_missing_terminator(self):
        data = b"GET / HTTP/1.1\r\nHost: localhost\r\n"

        with pytest.raises(HTTPParseError, match="no header terminator"):
            parse_request(data)

    def test_parse_request_too_large(self):
        parser = RequestParser(max_request_size=100)
        data = b"GET /" + b"a" * 200 + b" HTTP/1.1\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc:
            parser.parse(data)

        assert exc.value.status_code == 413

    def test_unsupported_version(self):
        data = b"GET / HTTP/2.0\r\nHost: localhost\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc:
            parse_request(data)

        assert exc.value.status_code == 505

    def test_short_body_rejected(self):
        data = b"POST /json HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc"

        with pytest.raises(HTTPParseError, match="Incomplete body"):
            parse_request(data)

    def test_negative_content_length_rejected(self):
        data = b"POST /json HTTP/1.1\r\nContent-Length: -2\r\n\r\nabcd"

        with pytest.raises(HTTPParseError) as exc:
            parse_request(data)

        assert exc.value.status_code == 400

    def test_repeated_headers_are_joined(self):
        data = (
            b"GET / HTTP/1.1\r\n"
            b"Accept: text/html\r\n"
            b"accept: application/json\r\n"
            b"\r\n"
        )
        request = parse_request(data)

        assert request.get_header("accept") == "text/html, application/json"


class TestHTTPRequest:
    """Tests for HTTPRequest accessors."""

    def test_get_header_default(self):
        request = HTTPRequest(method="GET", path="/")

        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "fallback") == "fallback"

    def test_query_list(self):
        request = parse_request(
            b"GET /test?echo=hello&echo=world HTTP/1.1\r\nHost: localhost\r\n\r\n"
        )

        assert request.get_query_list("echo") == ["hello", "world"]
        assert request.get_query_list("missing") == []

    def test_blank_query_values_are_kept(self):
        request = parse_request(b"GET /test?echo= HTTP/1.1\r\n\r\n")

        assert request.get_query_list("echo") == [""]

    def test_raw_url_defaults_to_path(self):
        request = HTTPRequest(method="GET", path="/sig")

        assert request.raw_url == "/sig"
