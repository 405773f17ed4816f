"""
Built-in diagnostic pages.

    /sig           "<server name> <version> <UTC time>"   (is it up? which build?)
    /test?echo=x   echoes every echo value, space-joined  (round-trip check)
    /favicon.ico   <root>/favicon.ico as image/x-icon

/sig and /test live in the route table and can be replaced. The favicon is
resolved before the table and cannot.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..http.context import RequestContext
from ..http.mime_types import get_mime_type
from ..http.response import serve_error, serve_simple_html
from ..http.status_codes import HTTPStatus
from ..log import LogHook


FAVICON = "favicon.ico"


def utc_timestamp() -> str:
    """Current UTC time, ISO 8601, to the second."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def serve_signature(ctx: RequestContext, server_name: str, version: str) -> None:
    serve_simple_html(ctx.response, f"{server_name} {version} {utc_timestamp()}")


def serve_test(ctx: RequestContext) -> None:
    """
    Echo the ``echo`` query values, joined by one space.

    With no echo value the page shows "/test = <UTC time>" instead.
    Values are echoed as-is, not HTML-escaped.
    """
    values = ctx.request.get_query_list("echo")
    message = " ".join(values) if values else f"/test = {utc_timestamp()}"
    serve_simple_html(ctx.response, message)


def serve_favicon(
    ctx: RequestContext,
    root: Optional[Path],
    hook: Optional[LogHook] = None,
    source: Any = None,
) -> bool:
    """
    Send <root>/favicon.ico, or 404 if there isn't one.

    Returns:
        True if an icon was sent.
    """
    icon = b""
    if root is not None and Path(root).is_dir():
        path = Path(root) / FAVICON
        if path.is_file():
            icon = path.read_bytes()

    if not icon:
        if hook is not None:
            hook.error(source, "Asking for the favicon but there isn't one.")
        serve_error(ctx.response, HTTPStatus.NOT_FOUND)
        return False

    response = ctx.response
    response.status_code = HTTPStatus.OK
    response.content_type = get_mime_type(".ico")
    response.body = icon
    response.close()
    return True
