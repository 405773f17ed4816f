"""
Minimal HTML shell used for built-in pages and converted Markdown.

The shell has exactly two tokens, ``$TITLE$`` and ``$BODY$``. Body text is
substituted first, then the title, so a page is always wrapped exactly once.
"""

from typing import Optional


TITLE_TOKEN = "$TITLE$"
BODY_TOKEN = "$BODY$"

SIMPLE_HTML_TEMPLATE = (
    '<!DOCTYPE html><html lang="en"><head><meta charset="utf-8" />'
    f"<title>{TITLE_TOKEN}</title></head><body>{BODY_TOKEN}</body></html>"
)

# Substituted for a blank body so the page never renders empty
EMPTY_BODY = "&nbsp;"


def format_html_template(
    template: Optional[str],
    body: Optional[str],
    title: Optional[str] = None,
) -> str:
    """
    Replace the title and body tokens in an HTML template.

    Args:
        template: Template containing $TITLE$ and $BODY$. A blank template
                  falls back to a bare <html><body><div> wrapper.
        body: Page body. Trimmed; a blank body becomes &nbsp;.
        title: Page title. A blank title leaves the $TITLE$ token alone.

    Returns:
        The formatted HTML page.
    """
    if not template or not template.strip():
        return f"<html><body><div>{body or ''}</div></body></html>"

    if not body or not body.strip():
        body = EMPTY_BODY

    html = template.replace(BODY_TOKEN, body.strip())

    if title and title.strip():
        html = html.replace(TITLE_TOKEN, title)

    return html


def render_simple_page(body: Optional[str], title: Optional[str] = None) -> str:
    """Wrap a body in SIMPLE_HTML_TEMPLATE."""
    return format_html_template(SIMPLE_HTML_TEMPLATE, body, title)
