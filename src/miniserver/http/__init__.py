"""
HTTP layer: parse requests, build responses, look up routes and MIME types.

    request.py       HTTPRequest, RequestParser
    response.py      HTTPResponse, serve_error/serve_json/serve_simple_html
    context.py       RequestContext (request + response)
    router.py        RouteTable
    mime_types.py    extension allow-list
    status_codes.py  HTTPStatus
"""

from .status_codes import HTTPStatus
from .request import HTTPRequest, RequestParser, parse_request
from .response import (
    HTTPResponse,
    format_http_date,
    serve_error,
    serve_json,
    serve_simple_html,
)
from .context import RequestContext
from .router import Handler, RouteTable, normalize_route
from .mime_types import MimeEntry, get_content_type, get_mime_type, is_supported

__all__ = [
    "HTTPStatus",
    "HTTPRequest",
    "RequestParser",
    "parse_request",
    "HTTPResponse",
    "format_http_date",
    "serve_error",
    "serve_json",
    "serve_simple_html",
    "RequestContext",
    "Handler",
    "RouteTable",
    "normalize_route",
    "MimeEntry",
    "get_content_type",
    "get_mime_type",
    "is_supported",
]
