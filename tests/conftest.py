"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Generator, List, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from miniserver import MiniServer, ServerConfig, LogHook


@pytest.fixture
def sample_callback_request() -> bytes:
    """An OAuth-style redirect hitting the callback route."""
    return (
        b"GET /Callback?code=abc123&state=xyz HTTP/1.1\r\n"
        b"Host: localhost:50005\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """POST with a small JSON body."""
    body = b'{"name": "John"}'
    return (
        b"POST /json HTTP/1.1\r\n"
        b"Host: localhost:50005\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
        + body
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A small root folder with one file of each kind the tests need."""
    (tmp_path / "index.html").write_text("<h1>Home</h1>", encoding="utf-8")
    (tmp_path / "Guide.md").write_text("# Guide\n\nHello", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("plain notes", encoding="utf-8")
    (tmp_path / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\nfake")
    (tmp_path / "favicon.ico").write_bytes(b"\x00\x00\x01\x00icon")
    (tmp_path / "secret.bin").write_bytes(b"\x00\x01\x02")
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "page.htm").write_text("<p>nested</p>", encoding="utf-8")
    return tmp_path


class LogRecorder:
    """Subscriber that keeps every (message, level) it receives."""

    def __init__(self):
        self.events: List[Tuple[object, str, str]] = []

    def __call__(self, source, message, level):
        self.events.append((source, message, level))

    def messages(self, level: Optional[str] = None) -> List[str]:
        return [m for _, m, lvl in self.events if level is None or lvl == level]


@pytest.fixture
def log_hook() -> LogHook:
    return LogHook()


@pytest.fixture
def log_events(log_hook: LogHook) -> LogRecorder:
    recorder = LogRecorder()
    log_hook.subscribe(recorder)
    return recorder


class ServerThread:
    """Runs MiniServer.serve() in a background thread."""

    def __init__(self, server: MiniServer):
        self.server = server
        self.result: Optional[int] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.port

    def _run(self):
        self.result = self.server.serve()

    def start(self):
        """Start the server and wait until it is listening."""
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

        for _ in range(100):  # 5 seconds max
            if self.server.listener is not None:
                return
            time.sleep(0.05)

        raise RuntimeError("Server failed to start")

    def join(self, timeout: float = 5.0) -> bool:
        """Wait for serve() to return. True if it did."""
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            return not self._thread.is_alive()
        return True

    def stop(self):
        self.server.shutdown()
        self.join()


def http_request(
    port: int,
    target: str,
    method: str = "GET",
    body: bytes = b"",
    raw: Optional[bytes] = None,
    timeout: float = 5.0,
) -> Tuple[int, dict, bytes]:
    """
    Send one request over a raw socket and read until the server closes.

    Returns:
        (status, headers with lowercase names, body). status is 0 when the
        server closed the connection without answering.
    """
    if raw is None:
        head = (
            f"{method} {target} HTTP/1.1\r\n"
            f"Host: localhost:{port}\r\n"
            f"Content-Length: {len(body)}\r\n"
            "\r\n"
        )
        raw = head.encode("utf-8") + body

    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        s.sendall(raw)
        chunks = []
        while True:
            chunk = s.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)

    data = b"".join(chunks)
    if not data:
        return 0, {}, b""

    head, _, payload = data.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    status = int(lines[0].split(" ")[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return status, headers, payload


@pytest.fixture
def fetch():
    """The raw-socket request helper."""
    return http_request


@pytest.fixture
def make_server(free_port: int, log_hook: LogHook, log_events: LogRecorder):
    """
    Build and start servers on a free port; every one is stopped at teardown.

    Depends on log_events so the recorder sees the startup lines.
    """
    started: List[ServerThread] = []

    def factory(server_cls=MiniServer, **overrides) -> ServerThread:
        overrides.setdefault("port", free_port)
        overrides.setdefault("poll_interval", 0.05)
        overrides.setdefault("read_timeout", 2.0)
        server = server_cls(ServerConfig(**overrides), log_hook=log_hook)
        runner = ServerThread(server)
        runner.start()
        started.append(runner)
        return runner

    yield factory

    for runner in started:
        runner.stop()


@pytest.fixture
def running_server(make_server, site: Path) -> Generator[ServerThread, None, None]:
    """A server rooted at the `site` folder."""
    yield make_server(root_folder=site)
