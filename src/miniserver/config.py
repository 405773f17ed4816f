"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Everything an embedding application can tune, in one dataclass. There is
no configuration file format: the surface is programmatic, with an optional
environment-variable constructor for the CLI.

=============================================================================
CLAMP, DON'T REJECT
=============================================================================

The port is silently clamped into [1024, 65535]. A caller asking for port 80
gets 1024; a caller asking for 70000 gets 65535. Nothing is raised, because
an embedded callback catcher should start on *some* high port rather than
crash its host application.

    requested ──► max(1024, min(port, 65535)) ──► port

=============================================================================
FILE SERVING SWITCH
=============================================================================

    root_folder      enable_file_serve     static files served?
    ───────────      ─────────────────     ────────────────────
    None             (forced to False)     no
    /some/dir        True                  yes
    /some/dir        False                 no (special routes only)

=============================================================================
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .markdown import MarkdownConverter, unsupported_markdown


MIN_PORT = 1024
MAX_PORT = 65535
DEFAULT_PORT = 50005

HOME_PAGE = "index.html"


def clamp_port(port: int) -> int:
    """Clamp a port into [MIN_PORT, MAX_PORT]."""
    return max(MIN_PORT, min(int(port), MAX_PORT))


def _as_root(value: Union[str, os.PathLike, None]) -> Optional[Path]:
    """Blank strings and None both mean "no root folder"."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return Path(value)


@dataclass
class ServerConfig:
    """
    Configuration for a MiniServer.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    CONTENT
    - root_folder, enable_file_serve, home_page, markdown_converter

    NETWORK
    - port, backlog, buffer_size, max_request_size, read_timeout,
      poll_interval

    IDENTITY
    - server_name

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    port: int = DEFAULT_PORT
    """Loopback port to listen on. Clamped to [1024, 65535]."""

    root_folder: Optional[Path] = None
    """
    Physical folder static files are served from.
    None disables file serving entirely.
    """

    enable_file_serve: bool = True
    """When False only special routes answer, even with a root folder."""

    home_page: str = HOME_PAGE
    """Document served for "/" (a blank path under the root)."""

    markdown_converter: MarkdownConverter = field(default=unsupported_markdown, repr=False)
    """Markdown source -> HTML fragment. Defaults to a fixed placeholder."""

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    backlog: int = 16
    """Queued connections. Requests are handled one at a time anyway."""

    buffer_size: int = 8192
    """Bytes read per recv() call."""

    max_request_size: int = 1024 * 1024  # 1 MB
    """Larger requests get 413. Callbacks and page requests are tiny."""

    read_timeout: float = 10.0
    """
    Seconds to wait for a client to finish sending its request.
    With one request at a time, a stalled client holds up everyone.
    """

    poll_interval: float = 1.0
    """
    How long one wait for a connection lasts before the loop re-checks
    whether it was asked to stop.
    """

    # ─────────────────────────────────────────────────────────────────────
    # IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "MiniServer"
    """Shown by /sig and sent in the Server header."""

    def __post_init__(self):
        self.port = clamp_port(self.port)
        self.root_folder = _as_root(self.root_folder)

        if self.root_folder is None:
            self.enable_file_serve = False

        if self.markdown_converter is None:
            self.markdown_converter = unsupported_markdown

        if not self.home_page or not self.home_page.strip():
            self.home_page = HOME_PAGE

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        MINISERVER_PORT          Port (default: 50005, clamped)
        MINISERVER_ROOT          Root folder (default: none)
        MINISERVER_FILE_SERVE    "0"/"false"/"no" disables file serving
        MINISERVER_READ_TIMEOUT  Seconds (default: 10)

        =====================================================================
        """
        file_serve = os.getenv("MINISERVER_FILE_SERVE", "true").strip().lower()
        return cls(
            port=int(os.getenv("MINISERVER_PORT", str(DEFAULT_PORT))),
            root_folder=os.getenv("MINISERVER_ROOT"),
            enable_file_serve=file_serve not in ("0", "false", "no", "off"),
            read_timeout=float(os.getenv("MINISERVER_READ_TIMEOUT", "10")),
        )

    def validate(self) -> None:
        """
        Validate transport settings.

        The port is never rejected here; it was clamped at construction.
        """
        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_request_size < self.buffer_size:
            raise ValueError("max_request_size must be >= buffer_size")

        if self.read_timeout <= 0:
            raise ValueError("read_timeout must be > 0")

        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
