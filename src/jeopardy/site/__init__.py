# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

import asyncio
import ipaddress
import pathlib
import random

from jeopardy import render
from jeopardy.config import GameConfig
from jeopardy.source import ClueSource
from jeopardy.static import RESOURCE_TYPES, DocResponse, StaticResponse
from webapp import Application, Request, ResponseProtocol, Router

from .error_pages import not_found
from .state import JeopardyContext, JeopardyRoute, JeopardyState, Session

RESOURCES = (pathlib.Path(__file__).parent.parent / "resources").resolve()


class JeopardyApplication(Application[JeopardyState, JeopardyContext, JeopardyRoute]):
    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        config: GameConfig,
        *,
        source: ClueSource | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(JeopardyState(config, source=source, rng=rng), not_found())
        self.bind((ipaddress.ip_address(config.listen.host), config.listen.port))

        routes = self.routes
        routes.add("/", JeopardyRoute(self.index))
        routes.add("/ws", JeopardyRoute(self.websocket))
        add_resources(loop, self._app_context, routes, RESOURCES, optimise=config.optimize)

    async def index(self, ctx: JeopardyContext, _: Request) -> ResponseProtocol:
        game, _endpoint = self._app_context.game_for(ctx.session)
        game.ping()

        return DocResponse(render.page(game, "/ws"))

    async def websocket(self, ctx: JeopardyContext, request: Request) -> ResponseProtocol:
        _game, endpoint = self._app_context.game_for(ctx.session)

        return await endpoint(ctx, request)


def add_resources(
    loop: asyncio.AbstractEventLoop,
    context: JeopardyState,
    router: Router[JeopardyRoute],
    path: pathlib.Path,
    *,
    optimise: bool,
) -> None:
    for file in path.iterdir():
        if file.suffix not in RESOURCE_TYPES:
            continue

        router.add("/" + file.name, static(loop, context, file, optimise=optimise))


def static(
    loop: asyncio.AbstractEventLoop,
    context: JeopardyState,
    file: pathlib.Path,
    *,
    optimise: bool,
) -> JeopardyRoute:
    response = StaticResponse(context, loop, file, optimise=optimise)
    return JeopardyRoute(response)  # type: ignore[arg-type]


__all__ = ["JeopardyApplication", "JeopardyContext", "JeopardyState", "Session"]
