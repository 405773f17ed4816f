"""Markdown to HTML converters.

A converter is any ``Callable[[str], str]`` taking Markdown source and
returning an HTML fragment. The server never converts Markdown itself; it
calls whatever converter it was given and wraps the result in the HTML shell.

The default converter does not parse anything, it just says Markdown is not
supported. Install the ``markdown`` extra to get ``PatitasConverter``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from .errors import MarkdownNotInstalledError

if TYPE_CHECKING:
    from patitas import Markdown


MarkdownConverter = Callable[[str], str]

MARKDOWN_UNSUPPORTED = "<h1>Markdown not supported!</h1>"


def unsupported_markdown(source: str) -> str:
    """Default converter: ignore the source, return a fixed placeholder."""
    return MARKDOWN_UNSUPPORTED


class PatitasConverter:
    """Render Markdown source to HTML via patitas.

    Instances are plain callables, so they plug straight into
    ``ServerConfig.markdown_converter``.

    Args:
        plugins: Patitas plugins to enable (default: all).
        highlight: Enable syntax highlighting for fenced code blocks.
    """

    def __init__(
        self,
        *,
        plugins: list[str] | None = None,
        highlight: bool = False,
    ) -> None:
        self._md: Markdown = _get_markdown(plugins=plugins, highlight=highlight)

    def __call__(self, source: str) -> str:
        if not source or not source.strip():
            return ""
        return self._md(source)


def _get_markdown(
    *,
    plugins: list[str] | None,
    highlight: bool,
) -> Markdown:
    """Create a patitas Markdown instance, raising a clear error if missing."""
    try:
        from patitas import Markdown
    except ImportError:
        msg = (
            "PatitasConverter requires 'patitas' for Markdown rendering. "
            "Install with: pip install miniserver[markdown]"
        )
        raise MarkdownNotInstalledError(msg) from None

    return Markdown(plugins=plugins or ["all"], highlight=highlight)
