"""Tests for webapp: path routing and request error handling."""

from __future__ import annotations

from aiohttp import web

from webapp import AppContext, Application, Request, RequestContext, Route, Router


def route() -> Route:
    async def handler(*_: object) -> None:
        return None

    return Route(handler)  # type: ignore[arg-type]


class PlainContext(AppContext[Route[RequestContext], RequestContext]):
    async def make_context(self, _: Route[RequestContext], __: Request) -> RequestContext:
        return RequestContext(self)


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------

class TestRouter:
    def setup_method(self) -> None:
        self.missing = route()
        self.index = route()
        self.socket = route()

        self.router = Router(self.missing)
        self.router.add("/", self.index).add("/ws", self.socket)

    def test_exact_paths(self):
        assert self.router.route("/") is self.index
        assert self.router.route("/ws") is self.socket

    def test_trailing_slash_is_ignored(self):
        assert self.router.route("/ws/") is self.socket

    def test_everything_else_is_missing(self):
        assert self.router.route("/wss") is self.missing
        assert self.router.route("/ws/deeper") is self.missing
        assert self.router.route("/api/category") is self.missing


# ---------------------------------------------------------------------------
# Handling
# ---------------------------------------------------------------------------

class TestHandle:
    async def test_routes_to_handler(self, aiohttp_raw_server, aiohttp_client):
        async def hello(_: RequestContext, __: Request) -> web.Response:
            return web.Response(text="hello")

        app = Application(PlainContext(), route())
        app.routes.add("/hello", Route(hello))
        client = await aiohttp_client(await aiohttp_raw_server(app.handle))

        resp = await client.get("/hello")

        assert resp.status == 200
        assert await resp.text() == "hello"

    async def test_handler_error_is_logged(self, aiohttp_raw_server, aiohttp_client, caplog):
        async def broken(_: RequestContext, __: Request) -> web.Response:
            raise RuntimeError("boom")

        app = Application(PlainContext(), route())
        app.routes.add("/broken", Route(broken))
        client = await aiohttp_client(await aiohttp_raw_server(app.handle))

        resp = await client.get("/broken")

        assert resp.status == 500
        assert "Unhandled error" in caplog.text
