# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, ParamSpec

import asyncio
import json
import uuid

from aiohttp import WSMsgType, http_websocket, web

from webapp import Request, ResponseProtocol

from . import render
from .errors import InvalidInteraction

if TYPE_CHECKING:
    from .clues import JSONDict
    from .game import Game
    from .site.state import JeopardyContext, Session


P = ParamSpec("P")


def command(
    func: Callable[P, Awaitable[JSONDict | None]],
) -> Callable[P, Awaitable[JSONDict | None]]:
    func.__is_rpc__ = True  # type: ignore[attr-defined]
    return func


class Socket(web.WebSocketResponse):
    remote: str
    socket_id: str
    session: Session

    def __init__(self, session: Session, request: Request) -> None:
        super().__init__(heartbeat=15)

        self.remote = (
            request.headers.get("x-forwarded-for") or request.remote or "[unknown endpoint]"
        )
        self.socket_id = str(uuid.uuid4())
        self.session = session

    def __repr__(self) -> str:
        return (
            f"Socket<session={self.session.cookie[0:8]},"
            f"remote={self.remote},socket_id={self.socket_id[0:8]}>"
        )

    def __str__(self) -> str:
        return f"{self.session.cookie[0:8]} @ {self.remote}/{self.socket_id[0:4]}"


class GameEndpoint:
    """
    The websocket side of a Game.

    Every socket for the same game sees the same board: changes to the game
    are rendered once and sent to all of them.
    """

    game: Game
    _sockets: set[Socket]
    _tasks: set[asyncio.Task[Any]]
    _stopped: bool

    def __init__(self, game: Game) -> None:
        self.game = game
        self._sockets = set()
        self._tasks = set()
        self._stopped = False
        game.subscribe(self)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}<{self.game.logger.name} - {len(self._sockets)} clients>"

    @property
    def sockets(self) -> frozenset[Socket]:
        return frozenset(self._sockets)

    def _exception(
        self,
        ex: BaseException,
        msg: str,
        *args: Any,
        socket: Socket | None = None,
    ) -> None:
        self.game.logger.error(
            msg,
            *args,
            exc_info=ex,
            extra={"endpoint": repr(self), "socket": repr(socket)},
        )

    def _info(self, msg: str, *args: Any, socket: Socket | None = None) -> None:
        self.game.logger.info(
            msg,
            *args,
            extra={"endpoint": repr(self), "socket": repr(socket)},
        )

    def _error(self, msg: str, *args: Any, socket: Socket | None = None) -> None:
        self.game.logger.error(
            msg,
            *args,
            extra={"endpoint": repr(self), "socket": repr(socket)},
        )

    async def _fanout(self, data: JSONDict) -> None:
        sockets = [socket for socket in self._sockets if not socket.closed]
        results = await asyncio.gather(
            *(socket.send_json(data) for socket in sockets),
            return_exceptions=True,
        )

        for socket, result in zip(sockets, results, strict=True):
            if isinstance(result, Exception):
                self._exception(result, "Error in fanout", socket=socket)

    async def on_game_change(self, game: Game) -> None:
        await self._fanout(render.board_message(game))

    async def on_cell_change(self, game: Game, category_index: int, clue_index: int) -> None:
        await self._fanout(render.cell_message(game, category_index, clue_index))

    async def stop(self) -> None:
        self._stopped = True
        self.game.unsubscribe(self)

        for task in self._tasks:
            task.cancel()

        sockets = [socket for socket in self._sockets if not socket.closed]
        results = await asyncio.gather(
            *(self._close(socket) for socket in sockets),
            return_exceptions=True,
        )

        for socket, result in zip(sockets, results, strict=True):
            if isinstance(result, Exception):
                self._exception(result, "Error closing socket", socket=socket)

    async def _close(self, socket: Socket) -> None:
        self._info("Closing socket due to stop request", socket=socket)
        await socket.send_json({"cmd": "close"})
        await socket.close()

    async def __call__(self, ctx: JeopardyContext, request: Request) -> ResponseProtocol:
        if self._stopped:
            return web.HTTPNotFound()

        socket = Socket(ctx.session, request)
        self._info("Accepting new connection", socket=socket)
        await socket.prepare(request)

        self._sockets.add(socket)
        if task := asyncio.current_task():
            task.set_name(repr(socket))

        await self._process_messages(socket)

        self._sockets.discard(socket)
        self._info("Disconnecting %s", str(socket), socket=socket)

        return socket  # type: ignore[return-value]

    async def _process_messages(self, socket: Socket) -> None:
        message: http_websocket.WSMessage
        async for message in socket:
            if self._stopped:
                await socket.close()
                return

            if message.type != WSMsgType.TEXT:
                continue

            self.game.ping()
            await self._parse_message(socket, message)

    async def _parse_message(self, socket: Socket, message: http_websocket.WSMessage) -> None:
        try:
            data = message.json()
        except json.JSONDecodeError as ex:
            self._exception(ex, "Invalid JSON", socket=socket)
            return await socket.send_json(
                {"cmd": "error", "message": "Invalid JSON", "exception": str(ex)},
            )

        if not isinstance(data, dict):
            self._error("Message was not an object", socket=socket)
            return await socket.send_json({"cmd": "error", "message": "Expected an object"})

        cmd_name = data.pop("cmd", "[NO COMMAND SPECIFIED]")
        cmd = getattr(self, str(cmd_name), None)

        if not cmd or not hasattr(cmd, "__is_rpc__"):
            self._error("Invalid command %s", cmd_name, socket=socket)
            return await socket.send_json(
                {"cmd": "error", "message": f"Invalid command {cmd_name}"},
            )

        try:
            self._info("Running command %s", cmd_name, socket=socket)
            if resp := await cmd(socket, **data):
                await socket.send_json(resp)
        except (InvalidInteraction, TypeError) as ex:
            self._exception(ex, "Rejected command %s", cmd_name, socket=socket)
            await socket.send_json({"cmd": "error", "message": str(ex)})
        except Exception as ex:  # noqa: BLE001 - Being passed to logger
            self._exception(ex, "Error processing command %s", cmd_name, socket=socket)
            await socket.send_json(
                {"cmd": "error", "message": "Error processing command", "exception": str(ex)},
            )

    def _spawn(self, coroutine: Awaitable[Any], name: str) -> None:
        task = asyncio.ensure_future(coroutine)
        task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(self._log_failure)

    def _log_failure(self, task: asyncio.Task[Any]) -> None:
        if not task.cancelled() and (ex := task.exception()):
            self._exception(ex, "Background task %s failed", task.get_name())

    @command
    async def setup(self, _: Socket) -> JSONDict:
        return render.board_message(self.game)

    @command
    async def start(self, _: Socket) -> None:
        # A later start cancels this build.
        self._spawn(self.game.restart(), f"restart-{self.game.logger.name}")

    @command
    async def clear(self, _: Socket) -> None:
        await self.game.clear()

    @command
    async def reveal(self, _: Socket, category: Any = None, clue: Any = None) -> None:
        for value in (category, clue):
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidInteraction("Cell coordinates must be integers")

        await self.game.click(category, clue)


__all__ = ["GameEndpoint", "Socket", "command"]
