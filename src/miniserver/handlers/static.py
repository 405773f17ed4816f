"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves files from the root folder: map the URL path to a file, decide what
it is, read it, send it.

=============================================================================
PIPELINE
=============================================================================

    GET /docs/Guide.md
         │
         ▼
    resolve_path()     "/docs/Guide.md" → <root>/docs/Guide.md
         │             "/"              → <root>/index.html
         ▼
    load_content()     missing file or extension not in the MIME table?
         │                 → NotFoundError → 404
         │
         ├── .md / .markdown:  read text → converter → HTML shell
         │                     (title = file name without extension)
         │
         └── anything else:    read bytes as-is
         ▼
    serve_file()       200 + Content-Type (+charset for text) + body

Files are read whole into memory. The content is a handful of help pages
and images, not downloads.

Request paths are joined under the root verbatim. There is no ".."
filtering; the listener only ever binds loopback.

=============================================================================
"""

from pathlib import Path
from typing import Any, NamedTuple, Optional, Union

from ..errors import NotFoundError
from ..http import mime_types
from ..http.response import HTTPResponse, serve_error
from ..http.status_codes import HTTPStatus
from ..log import LogHook
from ..markdown import MarkdownConverter, unsupported_markdown
from ..template import SIMPLE_HTML_TEMPLATE, format_html_template


class Content(NamedTuple):
    """A file ready to send."""
    body: bytes
    content_type: str


def resolve_path(
    url_path: Optional[str],
    root: Union[str, Path],
    home_page: str = "index.html",
) -> Path:
    """
    Map a request path to a file under `root`.

    Leading slashes (and surrounding whitespace) are stripped; an empty
    remainder means the home page.

    Examples:
        >>> resolve_path("/", "/site")
        PosixPath('/site/index.html')
        >>> resolve_path("/css/app.css", "/site")
        PosixPath('/site/css/app.css')
    """
    relative = (url_path or "").strip().lstrip("/")
    if not relative:
        relative = home_page
    return Path(root) / relative


def load_content(
    path: Union[str, Path],
    converter: Optional[MarkdownConverter] = None,
) -> Content:
    """
    Read a file and work out its Content-Type.

    Markdown is converted and wrapped in the HTML shell exactly once.

    Raises:
        NotFoundError: The file does not exist, or its extension is not
                       one the server is allowed to send.
    """
    path = Path(path)
    extension = path.suffix

    if not path.is_file():
        raise NotFoundError(path)

    if not mime_types.is_supported(extension):
        raise NotFoundError(path, "extension not allowed")

    if mime_types.is_markdown(extension):
        convert = converter or unsupported_markdown
        fragment = convert(path.read_text(encoding="utf-8", errors="replace"))
        page = format_html_template(SIMPLE_HTML_TEMPLATE, fragment, path.stem)
        return Content(page.encode("utf-8"), mime_types.format_content_type("text/html"))

    entry = mime_types.resolve(extension)
    return Content(path.read_bytes(), mime_types.format_content_type(entry.mime_type))


def serve_file(
    response: HTTPResponse,
    path: Union[str, Path],
    converter: Optional[MarkdownConverter] = None,
    hook: Optional[LogHook] = None,
    source: Any = None,
) -> bool:
    """
    Send a file, or a 404 if it can't be served.

    Args:
        response: Response to write and close.
        path: Physical file path.
        converter: Markdown converter for .md/.markdown files.
        hook: Optional log hook for the "Request for ..." / "not found" lines.
        source: Sender passed to the hook.

    Returns:
        True if the file was sent, False if a 404 was sent instead.
    """
    path = Path(path)

    try:
        content = load_content(path, converter)
    except NotFoundError:
        if hook is not None:
            hook.error(source, f"File {path.name} not found")
        serve_error(response, HTTPStatus.NOT_FOUND)
        return False

    if hook is not None:
        hook.info(source, f"Request for {path.absolute()}")

    response.status_code = HTTPStatus.OK
    response.content_type = content.content_type
    response.body = content.body
    response.close()
    return True


class StaticFileHandler:
    """
    Serves everything under one root folder.

    Usage:
        static = StaticFileHandler("/path/to/site", converter=PatitasConverter())
        static.handle(ctx)
    """

    def __init__(
        self,
        root_dir: Union[str, Path],
        home_page: str = "index.html",
        converter: Optional[MarkdownConverter] = None,
        hook: Optional[LogHook] = None,
        source: Any = None,
    ):
        self.root_dir = Path(root_dir)
        self.home_page = home_page
        self.converter = converter or unsupported_markdown
        self.hook = hook
        self.source = source if source is not None else self

    def handle(self, ctx) -> bool:
        """Resolve the request path under the root and serve it."""
        path = resolve_path(ctx.request.path, self.root_dir, self.home_page)
        return serve_file(ctx.response, path, self.converter, self.hook, self.source)
