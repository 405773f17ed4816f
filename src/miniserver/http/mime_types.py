"""
=============================================================================
MIME TYPE RESOLUTION
=============================================================================

Maps file extensions to MIME types and decides two things for the static
file pipeline:

    1. SUPPORTABILITY - is this extension on the allow-list at all?
       Unknown extensions are NOT served (404), even if the file exists.

    2. FORMATTING - which Content-Type header does an allowed file get?
       Text types carry "; charset=utf-8", binary types do not.

    ┌────────────────────────────────────────────────────────────────────┐
    │                    SUPPORTED EXTENSIONS                            │
    ├────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │  TEXT:    .html .htm .css .js .txt .csv                            │
    │  DATA:    .json .xml          (text, even though application/*)    │
    │  IMAGES:  .png .jpg .jpeg .gif .ico                                │
    │  MARKDOWN: .md .markdown      (converted, so served as text/html)  │
    │                                                                     │
    └────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from typing import NamedTuple

from ..errors import UnsupportedExtension


# Fallback when an already-validated extension is somehow missing
DEFAULT_MIME_TYPE = "text/html"

DEFAULT_CHARSET = "utf-8"

# Markdown variants are converted to HTML before they are served
MARKDOWN_EXTENSIONS = frozenset({".md", ".markdown"})


class MimeEntry(NamedTuple):
    """One row of the MIME table."""
    mime_type: str
    is_text: bool


# =============================================================================
# SUPPORTED EXTENSIONS
# =============================================================================
#
# Add an extension here to allow it to be served.

MIME_TYPES = {
    ".css": "text/css",
    ".csv": "text/csv",
    ".htm": "text/html",
    ".html": "text/html",
    ".gif": "image/gif",
    ".ico": "image/x-icon",         # Favicon
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".js": "text/javascript",
    ".json": "application/json",
    ".md": "text/html",             # converted to HTML before serving
    ".markdown": "text/html",
    ".png": "image/png",
    ".txt": "text/plain",
    ".xml": "application/xml",
}


# =============================================================================
# PUBLIC FUNCTIONS
# =============================================================================

def normalize_extension(extension: str) -> str:
    """
    Lowercase an extension and make sure it starts with a dot.

    Examples:
        >>> normalize_extension("PNG")
        '.png'
        >>> normalize_extension(".Md")
        '.md'

    Raises:
        ValueError: If the extension is blank.
    """
    if extension is None or not extension.strip():
        raise ValueError("No extension passed.")

    extension = extension.strip().lower()
    if not extension.startswith("."):
        extension = f".{extension}"
    return extension


def is_supported(extension: str) -> bool:
    """
    Check an extension against the allow-list.

    A blank extension (a file with no suffix) is simply not supported.
    """
    if extension is None or not extension.strip():
        return False
    return normalize_extension(extension) in MIME_TYPES


def resolve(extension: str) -> MimeEntry:
    """
    Resolve an extension to its MIME type and text/binary class.

    Raises:
        UnsupportedExtension: If the extension is not in the table.
    """
    if not is_supported(extension):
        raise UnsupportedExtension(extension)

    mime_type = MIME_TYPES[normalize_extension(extension)]
    return MimeEntry(mime_type, is_text(mime_type))


def get_mime_type(extension: str) -> str:
    """
    Get the MIME type for an extension, falling back to text/html.

    Use this for formatting an extension already known to be supported;
    use resolve() or is_supported() to decide whether to serve at all.

    Examples:
        >>> get_mime_type(".png")
        'image/png'
        >>> get_mime_type("xyz")
        'text/html'
    """
    return MIME_TYPES.get(normalize_extension(extension), DEFAULT_MIME_TYPE)


def is_text(mime_type: str) -> bool:
    """
    Check if a MIME type is served as text.

    All text/* types are text, and so are JSON and XML even though they
    live under application/.
    """
    mime_type = mime_type.lower()
    return (
        mime_type.startswith("text/")
        or mime_type == MIME_TYPES[".json"]
        or mime_type == MIME_TYPES[".xml"]
    )


def is_markdown(extension: str) -> bool:
    """Check if an extension is one of the Markdown variants."""
    if extension is None or not extension.strip():
        return False
    return normalize_extension(extension) in MARKDOWN_EXTENSIONS


def format_content_type(mime_type: str, charset: str = DEFAULT_CHARSET) -> str:
    """Append the charset parameter to text types, leave binary alone."""
    if is_text(mime_type):
        return f"{mime_type}; charset={charset}"
    return mime_type


def get_content_type(extension: str, charset: str = DEFAULT_CHARSET) -> str:
    """
    Get the full Content-Type header value for an extension.

    Examples:
        >>> get_content_type(".html")
        'text/html; charset=utf-8'
        >>> get_content_type(".json")
        'application/json; charset=utf-8'
        >>> get_content_type(".png")
        'image/png'
    """
    return format_content_type(get_mime_type(extension), charset)
