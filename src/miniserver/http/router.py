"""
=============================================================================
ROUTE TABLE
=============================================================================

Special routes: exact-match paths that run a handler instead of serving a
file. No patterns, no methods, no parameters. A callback catcher needs
"/callback", not "/users/:id".

=============================================================================
NORMALIZATION
=============================================================================

Every path is normalized on the way in, and requests are lowercased before
lookup, so matching is case-insensitive:

    register("  Callback ")   ──►  "/callback"
    register("/OAuth/Done")   ──►  "/oauth/done"
    register("//x")           ──►  "/x"
    register("   ")           ──►  rejected (returns False)

Registering the same normalized path again replaces the handler in place.
There is no removal.

=============================================================================
THREADING
=============================================================================

The table has no lock. The server reads it from its own loop; an embedding
application that registers routes from another thread while the server is
running must synchronise that itself.

=============================================================================
"""

from typing import Callable, Dict, List, Optional

from .context import RequestContext


Handler = Callable[[RequestContext], None]


def normalize_route(path: Optional[str]) -> Optional[str]:
    """
    Normalize a route path: trimmed, lowercase, exactly one leading slash.

    Returns None for a blank path.
    """
    if path is None or not path.strip():
        return None
    path = path.strip().lower().lstrip("/")
    return f"/{path}"


class RouteTable:
    """
    Normalized path -> handler.

    Usage:
        routes = RouteTable()
        routes.register("/callback", on_callback)

        handler = routes.lookup("/Callback")   # on_callback
    """

    def __init__(self):
        self._routes: Dict[str, Handler] = {}

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        key = normalize_route(path)
        return key is not None and key in self._routes

    def register(self, path: Optional[str], handler: Optional[Handler]) -> bool:
        """
        Add or replace a route.

        Returns:
            False if the path is blank or the handler is not callable,
            True otherwise.
        """
        key = normalize_route(path)
        if key is None or handler is None or not callable(handler):
            return False

        self._routes[key] = handler
        return True

    def route(self, path: str) -> Callable[[Handler], Handler]:
        """
        Decorator form of register().

        Usage:
            @routes.route("/callback")
            def on_callback(ctx):
                ...
        """
        def decorator(handler: Handler) -> Handler:
            self.register(path, handler)
            return handler
        return decorator

    def lookup(self, path: Optional[str]) -> Optional[Handler]:
        """The handler for `path`, or None."""
        key = normalize_route(path)
        if key is None:
            return None
        return self._routes.get(key)

    def paths(self) -> List[str]:
        """Registered paths, in registration order."""
        return list(self._routes)
