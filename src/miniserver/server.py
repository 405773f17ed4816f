"""
=============================================================================
MINISERVER
=============================================================================

A loopback-only HTTP server meant to live inside another application: catch
an OAuth redirect, show a couple of help pages, then go away.

=============================================================================
DISPATCH ORDER
=============================================================================

Each request is matched on its lowercased path, first match wins:

    ┌──────────────────────────────────────────────────────────────────────┐
    │  1. /shutdown       stop the loop. No HTTP response is written;      │
    │                     the connection is just closed.                   │
    │  2. /favicon.ico    <root>/favicon.ico, or 404                       │
    │  3. route table     exact match, e.g. /sig, /test, /callback         │
    │  4. file serving    if enabled and a root folder is set              │
    │  5. anything else   404                                               │
    └──────────────────────────────────────────────────────────────────────┘

/shutdown and /favicon.ico come before the table, so a route registered
under either name is stored but never reached.

=============================================================================
ONE REQUEST AT A TIME
=============================================================================

    serve()
      │
      ├── listener.start()
      │
      └── while running:
              ctx = listener.accept(poll_interval)    ← only blocking point
              handle(ctx)                             ← never raises
              ctx.release()

A handler that raises is logged and answered with 500; the next request is
served normally. shutdown() from another thread is seen within one
poll_interval.

=============================================================================
"""

import dataclasses
import threading
import traceback
from typing import Any, Optional

from . import __version__
from .config import ServerConfig
from .core.listener import Listener
from .handlers.diagnostics import serve_favicon, serve_signature, serve_test
from .handlers.static import resolve_path, serve_file
from .http.context import RequestContext
from .http.response import serve_error
from .http.router import Handler, RouteTable
from .http.status_codes import HTTPStatus
from .log import LogHook, get_log_hook
from .markdown import MarkdownConverter, unsupported_markdown


STARTUP_UNSUPPORTED = -1
"""serve() return value when the platform cannot run the listener."""

SHUTDOWN_PATH = "/shutdown"
FAVICON_PATH = "/favicon.ico"
SIGNATURE_PATH = "/sig"
TEST_PATH = "/test"


class MiniServer:
    """
    Embedded loopback HTTP server.

    Usage:
        server = MiniServer(port=50005, root_folder="./help")

        @server.route("/callback")
        def on_callback(ctx):
            code = ctx.request.get_query("code")
            serve_simple_html(ctx.response, "Signed in. You can close this tab.")
            server.shutdown()

        exit_code = server.serve()     # blocks until shutdown

    Args:
        config: Full configuration. Keyword overrides are applied on top.
        log_hook: Where log events go. Defaults to the process-wide hook.
        **overrides: Any ServerConfig field (port, root_folder, ...).
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        *,
        log_hook: Optional[LogHook] = None,
        **overrides: Any,
    ):
        if config is None:
            config = ServerConfig(**overrides)
        elif overrides:
            if "root_folder" in overrides:
                overrides.setdefault("enable_file_serve", True)
            config = dataclasses.replace(config, **overrides)

        config.validate()
        self.config = config

        self.log = log_hook if log_hook is not None else get_log_hook()

        self._routes = RouteTable()
        self._routes.register(SIGNATURE_PATH, self._serve_signature)
        self._routes.register(TEST_PATH, self._serve_test)

        self._stopped = threading.Event()
        self._listener: Optional[Listener] = None

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def port(self) -> int:
        return self.config.port

    @property
    def root_folder(self):
        return self.config.root_folder

    @property
    def server_name(self) -> str:
        return self.config.server_name

    @property
    def enable_file_serve(self) -> bool:
        return self.config.enable_file_serve

    @enable_file_serve.setter
    def enable_file_serve(self, value: bool) -> None:
        # Without a root folder there is nothing to serve
        self.config.enable_file_serve = bool(value) and self.config.root_folder is not None

    @property
    def markdown_converter(self) -> MarkdownConverter:
        return self.config.markdown_converter

    @markdown_converter.setter
    def markdown_converter(self, converter: Optional[MarkdownConverter]) -> None:
        self.config.markdown_converter = converter or unsupported_markdown

    @property
    def routes(self) -> RouteTable:
        return self._routes

    @property
    def is_running(self) -> bool:
        """False once shutdown() has been called. Never goes back to True."""
        return not self._stopped.is_set()

    @property
    def listener(self) -> Optional[Listener]:
        """The active listener while serve() is running."""
        return self._listener

    @staticmethod
    def get_version() -> str:
        return __version__

    # =========================================================================
    # ROUTES
    # =========================================================================

    def add_route(self, path: Optional[str], handler: Optional[Handler]) -> bool:
        """
        Add or replace a special route.

        Paths are case-insensitive and may omit the leading slash.

        Returns:
            False for a blank path or a missing handler.
        """
        return self._routes.register(path, handler)

    def route(self, path: str):
        """Decorator form of add_route()."""
        return self._routes.route(path)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def shutdown(self) -> None:
        """
        Ask the loop to stop.

        Safe from any thread; takes effect before the next request.
        """
        self._stopped.set()

    def serve(self) -> int:
        """
        Run the accept loop until shutdown.

        Returns:
            0 after a normal shutdown, STARTUP_UNSUPPORTED (-1) if the
            platform can't run the listener.

        Raises:
            OSError: If the loopback port cannot be bound.
        """
        if not Listener.is_supported():
            return STARTUP_UNSUPPORTED

        if not self.is_running:
            return 0

        listener = Listener(
            self.config,
            server_header=f"{self.server_name}/{self.get_version()}",
        )
        listener.start()

        try:
            for prefix in listener.prefixes:
                self.log.info(self, f"Listening at {prefix}")

            self._listener = listener

            while self.is_running:
                try:
                    ctx = listener.accept(self.config.poll_interval)
                except Exception as e:
                    self.log.error(self, f"Error accepting a request: {e}\n{traceback.format_exc()}")
                    continue

                if ctx is None:
                    continue

                try:
                    self.handle(ctx)
                finally:
                    ctx.release()
        finally:
            listener.stop()
            self._listener = None

        self.log.info(self, "Server stopped")
        return 0

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def handle(self, ctx: RequestContext) -> None:
        """
        Dispatch one request. Never raises.

        Any exception from dispatch is logged with its traceback and, if the
        response hasn't been sent yet, answered with 500.
        """
        try:
            self._dispatch(ctx)
        except Exception as e:
            self.log.error(
                self,
                f"Error serving '{ctx.request.raw_url}': {e}\n{traceback.format_exc()}",
            )
            if not ctx.response.closed:
                serve_error(ctx.response, HTTPStatus.INTERNAL_SERVER_ERROR)

    def _dispatch(self, ctx: RequestContext) -> None:
        path = ctx.request.local_path

        if path == SHUTDOWN_PATH:
            self.log.info(self, "Received shutdown command... Shutting down...")
            self.shutdown()
            ctx.response.abort()
            return

        if path == FAVICON_PATH:
            serve_favicon(ctx, self.config.root_folder, self.log, self)
            return

        handler = self._routes.lookup(path)
        if handler is not None:
            self.log.info(self, f"Request for special route {path}")
            handler(ctx)
            return

        if self.config.enable_file_serve and self.config.root_folder is not None:
            file_path = resolve_path(
                ctx.request.path, self.config.root_folder, self.config.home_page
            )
            serve_file(
                ctx.response, file_path, self.config.markdown_converter, self.log, self
            )
            return

        self.log.error(self, f"An unknown or invalid request of '{ctx.request.raw_url}'.")
        serve_error(ctx.response, HTTPStatus.NOT_FOUND)

    # =========================================================================
    # BUILT-IN ROUTES
    # =========================================================================

    def _serve_signature(self, ctx: RequestContext) -> None:
        serve_signature(ctx, self.server_name, self.get_version())

    def _serve_test(self, ctx: RequestContext) -> None:
        serve_test(ctx)
