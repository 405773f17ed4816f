"""
=============================================================================
EXAMPLE: OAUTH CALLBACK CATCHER
=============================================================================

The job MiniServer exists for. A desktop app wants an OAuth authorization
code without asking the user to copy and paste anything:

    1. App starts MiniServer on a loopback port
    2. App opens the browser at the identity provider:
           https://login.example.com/authorize
               ?client_id=...
               &redirect_uri=http://localhost:50001/callback
    3. User signs in; the provider redirects the browser to
           http://localhost:50001/callback?code=XYZ&state=...
    4. /callback grabs the code, thanks the user, stops the server
    5. serve() returns and the app exchanges the code for a token

Also shows the /json helper route, and serves ./www (with Markdown rendered
by patitas when it is installed) for anything else.

RUN IT:
    python examples/callback_server.py

    curl "http://localhost:50001/callback?code=XYZ"
    curl http://localhost:50001/json
    curl "http://localhost:50001/test?echo=hello"

=============================================================================
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Add src to path so the example runs from a checkout
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from miniserver import (
    MarkdownNotInstalledError,
    MiniServer,
    PatitasConverter,
    RequestContext,
    ServerConfig,
    get_log_hook,
    logging_subscriber,
    serve_json,
    serve_simple_html,
)


logger = logging.getLogger("callback_server")


class CallbackServer(MiniServer):
    """MiniServer plus the routes this app needs."""

    def __init__(self, config: ServerConfig):
        super().__init__(config)
        self.code: Optional[str] = None

        self.add_route("/json", self.serve_json_example)
        self.add_route("/callback", self.serve_callback)

    def serve_json_example(self, ctx: RequestContext) -> None:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "message": "My Special Object",
        }
        serve_json(ctx.response, json.dumps(payload))

    def serve_callback(self, ctx: RequestContext) -> None:
        self.code = ctx.request.get_query("code")

        if not self.code:
            error = ctx.request.get_query("error", "no code in the callback")
            serve_simple_html(ctx.response, f"Sign-in failed: {error}", "Sign-in")
            return

        serve_simple_html(ctx.response, "Signed in. You can close this tab.", "Sign-in")
        self.shutdown()


def make_converter():
    """patitas if it's installed, otherwise the built-in placeholder."""
    try:
        return PatitasConverter()
    except MarkdownNotInstalledError as e:
        logger.warning(f"{e}; Markdown pages will show a placeholder")
        return None


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    get_log_hook().subscribe(logging_subscriber())

    config = ServerConfig(
        port=50001,
        root_folder=Path(__file__).parent / "www",
        markdown_converter=make_converter(),
    )

    server = CallbackServer(config)
    result = server.serve()

    if server.code:
        print(f"Authorization code: {server.code}")

    return 0 if result == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
