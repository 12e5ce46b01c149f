# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

import asyncio
import dataclasses
import logging
import random
import uuid

import aiohttp
from aiohttp.web import StreamResponse

from jeopardy.builder import BoardBuilder
from jeopardy.config import GameConfig
from jeopardy.endpoint import GameEndpoint
from jeopardy.game import Game
from jeopardy.source import ClueSource, FileClueSource, JServiceSource
from jeopardy.static import DocResponse
from webapp import AppContext, Handler, Request, RequestContext, ResponseProtocol, Route

SESSION_COOKIE = "_jeopardy"
SESSION_AGE = 86400 * 30


@dataclasses.dataclass
class Session:
    cookie: str
    game: Game | None
    endpoint: GameEndpoint | None

    __slots__ = ("cookie", "game", "endpoint")

    def __init__(self, cookie: str) -> None:
        self.cookie = cookie
        self.game = None
        self.endpoint = None


class JeopardyContext(RequestContext):
    session: Session

    __slots__ = ("session",)

    def __init__(self, app_ctx: JeopardyState, session: Session) -> None:
        super().__init__(app_ctx)  # type: ignore[arg-type]
        self.session = session


class JeopardyRoute(Route[JeopardyContext]):
    def __init__(self, handler: Handler[JeopardyContext]) -> None:
        async def inner(a: JeopardyContext, r: Request) -> ResponseProtocol:
            resp = await handler(a, r)
            if isinstance(resp, StreamResponse) and not resp.prepared:
                resp.set_cookie(
                    SESSION_COOKIE,
                    a.session.cookie,
                    max_age=SESSION_AGE,
                    samesite="lax",
                )
            elif isinstance(resp, DocResponse):
                resp.set_cookie(SESSION_COOKIE, a.session.cookie, max_age=SESSION_AGE)
            return resp

        super().__init__(inner)


class JeopardyState(AppContext[JeopardyRoute, JeopardyContext]):
    config: GameConfig
    source: ClueSource | None
    http: aiohttp.ClientSession | None
    rng: random.Random

    sessions: dict[str, Session]
    tasks: set[asyncio.Task[None]]

    def __init__(
        self,
        config: GameConfig,
        *,
        source: ClueSource | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(logging.getLogger("jeopardy"))
        self.config = config
        self.source = source
        self.rng = rng or random.Random()  # noqa: S311 - Not crypto
        self.http = None
        self.sessions = {}
        self.tasks = set()

    async def start(self) -> None:
        loop = asyncio.get_running_loop()

        if not self.source:
            self.source = self._make_source()
        self.logger.info("Using clue source %r", self.source)

        self.tasks.add(loop.create_task(self.reap_games(), name="reap-games"))

    def _make_source(self) -> ClueSource:
        if self.config.sample:
            return FileClueSource.sample()
        if self.config.clue_file:
            return FileClueSource(self.config.clue_file)

        self.http = aiohttp.ClientSession()
        return JServiceSource(
            self.http,
            self.config.api,
            timeout=self.config.timeout,
            logger=self.logger.getChild("source"),
        )

    async def reap_games(self) -> None:
        try:
            while True:
                await asyncio.sleep(2)
                await self.reap_idle()
        except asyncio.CancelledError:
            pass

    async def reap_idle(self) -> None:
        for cookie in list(self.sessions):
            session = self.sessions.get(cookie)
            if not session or not session.game:
                continue

            try:
                if not await session.game.reap():
                    continue

                if session.endpoint:
                    await session.endpoint.stop()
            except Exception as ex:  # noqa: BLE001 - Being passed to logger
                self.logger.error("Error reaping game for %s", cookie[0:8], exc_info=ex)

            session.game = None
            session.endpoint = None
            self.logger.info("Reaped idle game for %s", cookie[0:8])

    async def shutdown(self) -> None:
        self.logger.warning("Stopping active games")
        sessions = [session for session in self.sessions.values() if session.game]
        results = await asyncio.gather(
            *(self._stop_session(session) for session in sessions),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                self.logger.error("Error during shutdown", exc_info=result)
        # Allow to be garbage collected
        self.sessions = {}

        self.logger.warning("Closing background tasks")
        for task in self.tasks:
            task.cancel()
        results = await asyncio.gather(*self.tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                self.logger.error("Error during shutdown", exc_info=result)

        if self.http:
            self.logger.warning("Closing HTTP client")
            await self.http.close()

    async def _stop_session(self, session: Session) -> None:
        if session.endpoint:
            await session.endpoint.stop()
        if session.game:
            await session.game.stop()

    async def make_context(self, _: JeopardyRoute, request: Request) -> JeopardyContext:
        cookie = request.cookies.get(SESSION_COOKIE) or uuid.uuid4().hex
        session = self.sessions.setdefault(cookie, Session(cookie))

        return JeopardyContext(self, session)

    def game_for(self, session: Session) -> tuple[Game, GameEndpoint]:
        if session.game and session.endpoint and not session.game.stopped:
            return session.game, session.endpoint

        if not self.source:
            raise RuntimeError("Clue source not started")  # noqa: TRY003

        logger = self.logger.getChild("game").getChild(session.cookie[0:8])
        builder = BoardBuilder(
            self.source,
            self.rng,
            parallel=self.config.parallel,
            logger=logger.getChild("builder"),
        )
        session.game = Game(builder, self.config, logger)
        session.endpoint = GameEndpoint(session.game)
        self.logger.info("Created game for %s", session.cookie[0:8])

        return session.game, session.endpoint

    def add_task(self, task: asyncio.Task[None]) -> None:
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
