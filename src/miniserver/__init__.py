"""
=============================================================================
MINISERVER
=============================================================================

A tiny loopback-only HTTP server to embed in desktop and command-line
applications.

Typical jobs:

    1. Catch an OAuth redirect
       The app opens the browser at the identity provider with
       redirect_uri=http://localhost:50005/callback, and a special route
       reads the ?code= off the callback request.

    2. Serve local help
       Point root_folder at a folder of HTML/Markdown/images and the
       server renders it, converting .md files on the fly.

=============================================================================
QUICK START
=============================================================================

    from miniserver import MiniServer, serve_simple_html

    server = MiniServer(port=50005)

    @server.route("/callback")
    def callback(ctx):
        print("code:", ctx.request.get_query("code"))
        serve_simple_html(ctx.response, "Done. You can close this tab.")
        server.shutdown()

    server.serve()

=============================================================================
PACKAGE MAP
=============================================================================

    miniserver/
    ├── server.py        MiniServer: accept loop and dispatch
    ├── config.py        ServerConfig
    ├── log.py           LogHook: where log events go
    ├── markdown.py      Markdown converters
    ├── template.py      the $TITLE$/$BODY$ HTML shell
    ├── errors.py        exception hierarchy
    ├── core/            loopback listener, client connection
    ├── http/            request, response, routes, MIME types
    └── handlers/        static files, /sig, /test, /favicon.ico

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .errors import (
    HTTPParseError,
    MarkdownNotInstalledError,
    MiniServerError,
    NotFoundError,
    UnsupportedExtension,
)
from .http.context import RequestContext
from .http.response import serve_error, serve_json, serve_simple_html
from .log import LogHook, LogLevel, get_log_hook, logging_subscriber, set_log_hook
from .markdown import PatitasConverter, unsupported_markdown
from .server import STARTUP_UNSUPPORTED, MiniServer
from .template import SIMPLE_HTML_TEMPLATE, format_html_template

__all__ = [
    "MiniServer",
    "ServerConfig",
    "RequestContext",
    "STARTUP_UNSUPPORTED",
    "LogHook",
    "LogLevel",
    "get_log_hook",
    "set_log_hook",
    "logging_subscriber",
    "PatitasConverter",
    "unsupported_markdown",
    "SIMPLE_HTML_TEMPLATE",
    "format_html_template",
    "serve_error",
    "serve_json",
    "serve_simple_html",
    "MiniServerError",
    "UnsupportedExtension",
    "NotFoundError",
    "MarkdownNotInstalledError",
    "HTTPParseError",
    "__version__",
]
