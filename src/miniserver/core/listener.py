"""
=============================================================================
LOOPBACK LISTENER
=============================================================================

The transport under MiniServer: bind the loopback interface, wait for one
client at a time, read and parse its request, hand back a RequestContext.

=============================================================================
WHAT GETS BOUND
=============================================================================

    127.0.0.1:<port>       always; failure here fails startup
    ::1:<port>             (or whatever else "localhost" resolves to)
                           best effort; skipped if the address can't bind

    Announced prefixes:    http://localhost:<port>/
                           http://127.0.0.1:<port>/

Nothing except loopback is ever bound. The server is meant to catch a
browser redirect on the same machine, not to be reachable from outside.

=============================================================================
THE WAIT
=============================================================================

    accept(timeout)
        │
        ├── selector.select(timeout)        nothing?  → None
        │                                    (caller re-checks its stop flag)
        ├── sock.accept()
        ├── Connection.read_request()       client hung up?  → None
        │                                    too slow?        → 408, None
        │                                    too large?       → 413, None
        ├── RequestParser.parse()           malformed?       → 400, None
        │
        └── RequestContext(request, response)

Transport-level failures are answered here and never reach dispatch.

=============================================================================
"""

import selectors
import socket
import logging
from typing import List, Optional

from ..config import ServerConfig
from ..errors import HTTPParseError
from ..http.context import RequestContext
from ..http.request import RequestParser
from ..http.response import HTTPResponse, serve_error
from ..http.status_codes import HTTPStatus
from .connection import Connection, RequestTooLarge


logger = logging.getLogger(__name__)


LOOPBACK_IPV4 = "127.0.0.1"


class Listener:
    """
    Blocking loopback HTTP listener.

    Usage:
        listener = Listener(config)
        listener.start()
        try:
            while running:
                ctx = listener.accept(timeout=1.0)
                if ctx is not None:
                    handle(ctx)
        finally:
            listener.stop()
    """

    def __init__(self, config: ServerConfig, server_header: str = "MiniServer"):
        self.config = config
        self.server_header = server_header
        self.parser = RequestParser(max_request_size=config.max_request_size)

        self._sockets: List[socket.socket] = []
        self._selector: Optional[selectors.BaseSelector] = None

    @staticmethod
    def is_supported() -> bool:
        """
        Whether this platform can run the listener at all.

        Needs IPv4 stream sockets; ::1 is optional.
        """
        try:
            probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError:
            return False
        probe.close()
        return True

    @property
    def port(self) -> int:
        return self.config.port

    @property
    def prefixes(self) -> List[str]:
        """URL prefixes the listener answers on."""
        return [
            f"http://localhost:{self.port}/",
            f"http://{LOOPBACK_IPV4}:{self.port}/",
        ]

    @property
    def addresses(self) -> List[tuple]:
        """Socket addresses actually bound."""
        return [sock.getsockname() for sock in self._sockets]

    @property
    def is_listening(self) -> bool:
        return bool(self._sockets)

    def _create_socket(self, family: int) -> socket.socket:
        sock = socket.socket(family, socket.SOCK_STREAM)

        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        if family == socket.AF_INET6:
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)

        sock.setblocking(False)
        return sock

    def _bind(self, family: int, address: tuple) -> socket.socket:
        sock = self._create_socket(family)
        try:
            sock.bind(address)
            sock.listen(self.config.backlog)
        except OSError:
            sock.close()
            raise
        return sock

    def _localhost_addresses(self) -> List[tuple]:
        """Other loopback addresses "localhost" resolves to."""
        try:
            infos = socket.getaddrinfo(
                "localhost", self.port, type=socket.SOCK_STREAM
            )
        except socket.gaierror:
            return []

        extra = []
        for family, _, _, _, sockaddr in infos:
            if family not in (socket.AF_INET, socket.AF_INET6):
                continue
            if sockaddr[0] == LOOPBACK_IPV4:
                continue
            if (family, sockaddr) not in extra:
                extra.append((family, sockaddr))
        return extra

    def start(self) -> None:
        """
        Bind and listen.

        Raises:
            OSError: If 127.0.0.1:<port> cannot be bound.
        """
        try:
            primary = self._bind(socket.AF_INET, (LOOPBACK_IPV4, self.port))
        except OSError as e:
            logger.error(f"Failed to bind to {LOOPBACK_IPV4}:{self.port}: {e}")
            raise

        self._sockets = [primary]

        for family, sockaddr in self._localhost_addresses():
            try:
                self._sockets.append(self._bind(family, sockaddr))
            except OSError as e:
                logger.debug(f"Skipping localhost address {sockaddr[0]}: {e}")

        self._selector = selectors.DefaultSelector()
        for sock in self._sockets:
            self._selector.register(sock, selectors.EVENT_READ)

        logger.debug(f"Listening on {', '.join(str(a[0]) for a in self.addresses)}")

    def accept(self, timeout: Optional[float] = None) -> Optional[RequestContext]:
        """
        Wait up to `timeout` seconds for one request.

        Returns:
            A RequestContext whose response is bound to the client socket,
            or None if nothing usable arrived.
        """
        if self._selector is None:
            raise RuntimeError("Listener is not started")

        events = self._selector.select(timeout)
        if not events:
            return None

        key, _ = events[0]
        try:
            client_socket, client_address = key.fileobj.accept()
        except BlockingIOError:
            # Another waiter (or a reset client) took it first
            return None
        except OSError as e:
            logger.warning(f"Accept error: {e}")
            return None

        logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

        conn = Connection(
            socket=client_socket,
            address=client_address,
            buffer_size=self.config.buffer_size,
            timeout=self.config.read_timeout,
            max_request_size=self.config.max_request_size,
        )
        return self._read_context(conn)

    def _read_context(self, conn: Connection) -> Optional[RequestContext]:
        try:
            data = conn.read_request()
        except TimeoutError:
            logger.warning(f"[{conn.id}] Request read timeout")
            self._reject(conn, HTTPStatus.REQUEST_TIMEOUT)
            return None
        except RequestTooLarge as e:
            logger.warning(f"[{conn.id}] {e}")
            self._reject(conn, HTTPStatus.PAYLOAD_TOO_LARGE)
            return None

        if data is None:
            conn.close()
            return None

        try:
            request = self.parser.parse(data, conn.address)
        except HTTPParseError as e:
            logger.warning(f"[{conn.id}] Parse error: {e.message}")
            self._reject(conn, e.status_code)
            return None
        except Exception as e:
            logger.exception(f"[{conn.id}] Unexpected parse failure: {e}")
            self._reject(conn, HTTPStatus.BAD_REQUEST)
            return None

        response = HTTPResponse(server_name=self.server_header, connection=conn)
        return RequestContext(request=request, response=response, connection=conn)

    def _reject(self, conn: Connection, status: int) -> None:
        serve_error(HTTPResponse(server_name=self.server_header, connection=conn), status)

    def stop(self) -> None:
        """Close every listening socket. Safe to call twice."""
        if self._selector is not None:
            self._selector.close()
            self._selector = None

        for sock in self._sockets:
            try:
                sock.close()
            except OSError:
                pass
        self._sockets = []
