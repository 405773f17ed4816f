"""
Unit tests for MiniServer dispatch, driven through handle() without sockets.
"""

import pytest

from miniserver import MiniServer, ServerConfig, serve_simple_html
from miniserver.http.context import RequestContext
from miniserver.markdown import MARKDOWN_UNSUPPORTED, unsupported_markdown


@pytest.fixture
def server(site, log_hook):
    return MiniServer(root_folder=site, log_hook=log_hook)


def dispatch(server: MiniServer, target: str) -> RequestContext:
    ctx = RequestContext.for_path(target)
    server.handle(ctx)
    return ctx


class TestConstruction:

    def test_builtin_routes_seeded(self, server):
        assert "/sig" in server.routes
        assert "/test" in server.routes
        assert len(server.routes) == 2

    def test_kwargs_override_config(self, site, log_hook):
        config = ServerConfig(port=50100)
        server = MiniServer(config, root_folder=site, log_hook=log_hook)

        assert server.port == 50100
        assert server.root_folder == site
        assert server.enable_file_serve is True

    def test_clamped_port(self, log_hook):
        assert MiniServer(port=22, log_hook=log_hook).port == 1024

    def test_file_serve_needs_root(self, log_hook):
        server = MiniServer(log_hook=log_hook)
        server.enable_file_serve = True

        assert server.enable_file_serve is False

    def test_none_converter_resets_to_stub(self, server):
        server.markdown_converter = None

        assert server.markdown_converter is unsupported_markdown

    def test_is_running_until_shutdown(self, server):
        assert server.is_running is True
        server.shutdown()
        assert server.is_running is False


class TestAddRoute:

    def test_route_case_insensitive(self, server):
        calls = []
        server.add_route("/Callback", lambda ctx: (calls.append(1), serve_simple_html(ctx.response, "ok")))

        ctx = dispatch(server, "/CALLBACK?code=1")

        assert calls == [1]
        assert ctx.response.status_code == 200

    def test_replace_route(self, server):
        server.add_route("/cb", lambda ctx: serve_simple_html(ctx.response, "first"))
        server.add_route("cb", lambda ctx: serve_simple_html(ctx.response, "second"))

        ctx = dispatch(server, "/cb")

        assert b"second" in ctx.response.body
        assert b"first" not in ctx.response.body

    def test_rejects_blank_and_missing(self, server):
        assert server.add_route("  ", lambda ctx: None) is False
        assert server.add_route("/x", None) is False

    def test_builtins_can_be_replaced(self, server):
        server.add_route("/sig", lambda ctx: serve_simple_html(ctx.response, "custom sig"))

        ctx = dispatch(server, "/sig")

        assert b"custom sig" in ctx.response.body

    def test_decorator(self, server):
        @server.route("/done")
        def done(ctx):
            serve_simple_html(ctx.response, "done")

        assert b"done" in dispatch(server, "/done").response.body


class TestPrecedence:

    def test_shutdown_wins_over_routes(self, server, log_events):
        called = []
        assert server.add_route("/shutdown", lambda ctx: called.append(1)) is True

        ctx = dispatch(server, "/SHUTDOWN")

        assert called == []
        assert server.is_running is False
        assert ctx.response.aborted is True
        assert ctx.response.sent == b""
        assert "Received shutdown command... Shutting down..." in log_events.messages("Info")

    def test_favicon_wins_over_routes(self, server):
        called = []
        server.add_route("/favicon.ico", lambda ctx: called.append(1))

        ctx = dispatch(server, "/favicon.ico")

        assert called == []
        assert ctx.response.status_code == 200
        assert ctx.response.content_type == "image/x-icon"
        assert ctx.response.body == b"\x00\x00\x01\x00icon"

    def test_route_wins_over_file(self, server):
        server.add_route("/index.html", lambda ctx: serve_simple_html(ctx.response, "route"))

        ctx = dispatch(server, "/index.html")

        assert b"route" in ctx.response.body

    def test_special_route_logged(self, server, log_events):
        dispatch(server, "/test")

        assert "Request for special route /test" in log_events.messages("Info")


class TestFileServing:

    def test_home_page(self, server):
        ctx = dispatch(server, "/")

        assert ctx.response.status_code == 200
        assert ctx.response.content_type == "text/html; charset=utf-8"
        assert ctx.response.body == b"<h1>Home</h1>"

    def test_unsupported_extension_404(self, server, log_events):
        ctx = dispatch(server, "/secret.bin")

        assert ctx.response.status_code == 404
        assert "File secret.bin not found" in log_events.messages("Error")

    def test_markdown_uses_converter(self, server):
        server.markdown_converter = lambda src: "<em>converted</em>"

        ctx = dispatch(server, "/Guide.md")

        assert b"<body><em>converted</em></body>" in ctx.response.body
        assert b"<title>Guide</title>" in ctx.response.body

    def test_markdown_default_stub(self, server):
        ctx = dispatch(server, "/Guide.md")

        assert MARKDOWN_UNSUPPORTED.encode() in ctx.response.body

    def test_disabled_file_serving_404(self, server, log_events):
        server.enable_file_serve = False

        ctx = dispatch(server, "/index.html?x=1")

        assert ctx.response.status_code == 404
        assert "An unknown or invalid request of '/index.html?x=1'." in log_events.messages("Error")


class TestFavicon:

    def test_no_root(self, log_hook, log_events):
        server = MiniServer(log_hook=log_hook)

        ctx = dispatch(server, "/favicon.ico")

        assert ctx.response.status_code == 404
        assert log_events.messages("Error")

    def test_missing_file(self, tmp_path, log_hook):
        server = MiniServer(root_folder=tmp_path, log_hook=log_hook)

        assert dispatch(server, "/favicon.ico").response.status_code == 404

    def test_empty_file(self, tmp_path, log_hook):
        (tmp_path / "favicon.ico").write_bytes(b"")
        server = MiniServer(root_folder=tmp_path, log_hook=log_hook)

        assert dispatch(server, "/favicon.ico").response.status_code == 404


class TestBuiltins:

    def test_echo(self, server):
        ctx = dispatch(server, "/test?echo=hello&echo=world")

        assert b"<body>hello world</body>" in ctx.response.body

    def test_echo_absent_shows_time(self, server):
        ctx = dispatch(server, "/test")

        assert b"/test = " in ctx.response.body

    def test_signature(self, server):
        ctx = dispatch(server, "/sig")

        assert f"MiniServer {MiniServer.get_version()} ".encode() in ctx.response.body


class TestFailureContainment:

    def test_handler_exception_is_500(self, server, log_events):
        def broken(ctx):
            raise RuntimeError("boom")

        server.add_route("/broken", broken)

        ctx = dispatch(server, "/broken")

        assert ctx.response.status_code == 500
        assert ctx.response.closed
        errors = log_events.messages("Error")
        assert len(errors) == 1
        assert "boom" in errors[0]
        assert "Traceback" in errors[0]

    def test_response_already_sent_is_left_alone(self, server):
        def half(ctx):
            serve_simple_html(ctx.response, "sent")
            raise RuntimeError("after send")

        server.add_route("/half", half)

        ctx = dispatch(server, "/half")

        assert ctx.response.status_code == 200

    def test_next_request_still_served(self, server):
        server.add_route("/broken", lambda ctx: 1 / 0)

        dispatch(server, "/broken")
        ctx = dispatch(server, "/test?echo=fine")

        assert ctx.response.status_code == 200
