"""
Built-in request handlers.

A handler takes a RequestContext and finishes by closing its response:

    def on_callback(ctx):
        code = ctx.request.get_query("code")
        serve_simple_html(ctx.response, "You can close this window now.")

- static:       files under the root folder (with Markdown conversion)
- diagnostics:  /sig, /test and /favicon.ico
"""

from .static import (
    Content,
    StaticFileHandler,
    load_content,
    resolve_path,
    serve_file,
)
from .diagnostics import serve_favicon, serve_signature, serve_test, utc_timestamp

__all__ = [
    "Content",
    "StaticFileHandler",
    "load_content",
    "resolve_path",
    "serve_file",
    "serve_favicon",
    "serve_signature",
    "serve_test",
    "utc_timestamp",
]
