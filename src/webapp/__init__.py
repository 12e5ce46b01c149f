# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

import types
from collections.abc import Awaitable, Callable
from typing import Generic, Protocol, Self, TypeVar

import abc
import asyncio
import ipaddress
import logging
import signal

import aiohttp.abc
import aiohttp.web

Bind = tuple[ipaddress.IPv4Address | ipaddress.IPv6Address, int]


class Request(aiohttp.web.BaseRequest):
    """A request whose handling task is named after the method and path."""

    def __init__(  # noqa: PLR0913 need 6 parameters for the super call.
        self,
        message: aiohttp.http.RawRequestMessage,
        payload: aiohttp.streams.StreamReader,
        protocol: aiohttp.web.RequestHandler,
        payload_writer: aiohttp.abc.AbstractStreamWriter,
        task: asyncio.Task[None],
    ) -> None:
        task.set_name(f"{message.method} {message.path}")
        loop = asyncio.get_running_loop()
        super().__init__(message, payload, protocol, payload_writer, task, loop)


class ResponseProtocol(Protocol):
    async def prepare(
        self,
        request: aiohttp.web.BaseRequest,
    ) -> aiohttp.abc.AbstractStreamWriter | None:
        pass

    async def write_eof(self, data: bytes = b"") -> None:
        pass

    @property
    def keep_alive(self) -> bool | None:
        pass

    def force_close(self) -> None:
        pass


class RequestContext:
    """Per-request state. Errors escaping a handler are logged on exit."""

    logger: logging.Logger

    def __init__(self, app_context: AppContext[Route[RequestContext], RequestContext]) -> None:
        self.logger = app_context.logger.getChild("request")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        if exc_type and exc_val and exc_tb:
            task = asyncio.current_task()
            self.logger.error(
                "Unhandled error in %s",
                task.get_name() if task else "request",
                exc_info=(exc_type, exc_val, exc_tb),
            )


RequestCtx = TypeVar("RequestCtx", bound=RequestContext)
Handler = Callable[[RequestCtx, Request], Awaitable[ResponseProtocol]]


class Route(Generic[RequestCtx]):
    handler: Handler[RequestCtx]

    __slots__ = ("handler",)

    def __init__(self, handler: Handler[RequestCtx]) -> None:
        self.handler = handler


AppRoute = TypeVar("AppRoute", bound=Route)  # type: ignore[type-arg]


class AppContext(abc.ABC, Generic[AppRoute, RequestCtx]):
    """Application-wide state, started before and shut down after the listeners."""

    logger: logging.Logger

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    async def start(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    @abc.abstractmethod
    async def make_context(self, route: AppRoute, request: Request) -> RequestContext:
        pass


AppCtx = TypeVar("AppCtx", bound=AppContext)  # type: ignore[type-arg]


class Router(Generic[AppRoute]):
    """Exact path routing. Trailing slashes are ignored; anything unknown gets the fallback."""

    _routes: dict[str, AppRoute]
    _fallback: AppRoute

    def __init__(self, fallback: AppRoute) -> None:
        self._routes = {}
        self._fallback = fallback

    def add(self, path: str, route: AppRoute) -> Self:
        self._routes[path.strip("/")] = route
        return self

    def route(self, path: str) -> AppRoute:
        return self._routes.get(path.strip("/"), self._fallback)


class Listeners:
    _logger: logging.Logger
    _binds: list[Bind]
    _sites: list[aiohttp.web.TCPSite]

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger
        self._binds = []
        self._sites = []

    def add(self, bind: Bind) -> None:
        if bind not in self._binds:
            self._binds.append(bind)

    async def start(self, runner: aiohttp.web.BaseRunner) -> None:
        for address, port in self._binds:
            site = aiohttp.web.TCPSite(runner, host=str(address), port=port)
            await site.start()
            self._sites.append(site)

        for address in runner.addresses:
            self._logger.warning("Listening on %s", address)

    async def stop(self) -> None:
        sites, self._sites = self._sites, []
        await asyncio.gather(*(site.stop() for site in sites))


class Application(Generic[AppCtx, RequestCtx, AppRoute]):
    """
    A low-level aiohttp server with its own routing.

    Use as an async context manager to serve until the block exits, or call
    `main()` to serve until SIGINT or SIGTERM. Nothing is shared between
    requests except the application context.
    """

    _app_context: AppCtx
    _router: Router[AppRoute]
    _listeners: Listeners
    _runner: aiohttp.web.ServerRunner | None
    _lock: asyncio.Lock

    def __init__(self, app_context: AppCtx, fallback: AppRoute) -> None:
        self._app_context = app_context
        self._router = Router(fallback)
        self._listeners = Listeners(app_context.logger)
        self._runner = None
        self._lock = asyncio.Lock()

    @property
    def context(self) -> AppCtx:
        return self._app_context

    @property
    def routes(self) -> Router[AppRoute]:
        return self._router

    def bind(self, bind: Bind) -> None:
        self._listeners.add(bind)

    async def handle(self, request: Request) -> ResponseProtocol:
        route = self._router.route(request.path)
        context = await self._app_context.make_context(route, request)

        try:
            async with context as request_context:
                return await route.handler(request_context, request)
        except Exception:  # noqa: BLE001 logged by the request context
            return aiohttp.web.HTTPInternalServerError()

    async def __aenter__(self) -> Self:
        async with self._lock:
            if self._runner:
                raise RuntimeError("Application is already running")  # noqa: TRY003

            server = aiohttp.web.Server(self.handle, request_factory=Request)  # type: ignore[arg-type]
            self._runner = aiohttp.web.ServerRunner(server)

            await self._app_context.start()
            await self._runner.setup()
            await self._listeners.start(self._runner)

        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        async with self._lock:
            runner, self._runner = self._runner, None
            if not runner:
                raise RuntimeError("Application is not running")  # noqa: TRY003

            logger = self._app_context.logger

            logger.warning("Closing listeners")
            await self._listeners.stop()
            await runner.shutdown()

            logger.warning("Stopping application")
            await self._app_context.shutdown()
            await runner.cleanup()

    async def main(self) -> None:
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop.set)

        async with self:
            await stop.wait()


__all__ = [
    "AppContext",
    "Application",
    "Bind",
    "Handler",
    "Request",
    "RequestContext",
    "ResponseProtocol",
    "Route",
    "Router",
]
