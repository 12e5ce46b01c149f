# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

from collections.abc import Coroutine, Iterable
from typing import Any, Protocol

import asyncio
import datetime
import logging

from .board import Board
from .builder import BoardBuilder
from .config import GameConfig
from .errors import GameError

TIMEOUT = datetime.timedelta(minutes=15)
TIMEZONE = datetime.UTC


class GameObserver(Protocol):
    async def on_game_change(self, game: Game) -> None:
        pass

    async def on_cell_change(self, game: Game, category_index: int, clue_index: int) -> None:
        pass


class Game:
    """
    One player's board and everything needed to rebuild it.

    A restart cancels any build still in flight, so only the most recent
    build can ever install its board. The loading flag is cleared however a
    build ends.
    """

    builder: BoardBuilder
    config: GameConfig
    logger: logging.Logger
    board: Board
    loading: bool
    error: str | None
    started: bool

    _observers: list[GameObserver]
    _build: asyncio.Task[bool] | None
    _dirty: list[tuple[int, int]]
    _redraw: bool
    _generation: int
    _stopped: bool
    _ping: datetime.datetime

    def __init__(self, builder: BoardBuilder, config: GameConfig, logger: logging.Logger) -> None:
        self.builder = builder
        self.config = config
        self.logger = logger
        self.loading = False
        self.error = None
        self.started = False

        self._observers = []
        self._build = None
        self._dirty = []
        self._redraw = False
        self._stopped = False
        self._generation = 0

        self.board = Board(logger=self.logger)
        self.board.subscribe(self)
        self.ping()

    def __str__(self) -> str:
        return f"{self.logger.name}: {self.board!r}"

    def subscribe(self, observer: GameObserver) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: GameObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    @property
    def building(self) -> bool:
        return self._build is not None and not self._build.done()

    async def restart(self) -> bool:
        """Throw away the current board and build a new one. True if it was installed."""
        self.ping()

        self._generation += 1
        generation = self._generation

        # Detach before cancelling so the stale build sees it has been superseded.
        stale, self._build = self._build, None
        if stale and not stale.done():
            self.logger.info("Cancelling in-flight build", extra={"game": str(self)})
            stale.cancel()

        self.board.clear()
        self._install(Board(logger=self.logger))
        self.loading = True
        self.error = None

        try:
            await self._flush()
        except asyncio.CancelledError:
            if self._generation == generation:
                self.loading = False
            raise

        if self._generation != generation:
            # A later restart, or a stop, arrived while observers were notified.
            return False

        task = asyncio.get_running_loop().create_task(
            self._run_build(),
            name=f"build-{self.logger.name}",
        )
        self._build = task

        await asyncio.wait({task})

        return not task.cancelled() and task.result()

    async def _run_build(self) -> bool:
        task = asyncio.current_task()
        self.logger.info("Building board", extra={"game": str(self)})

        try:
            board = await self.builder.build(
                self.config.category_count,
                self.config.clues_per_category,
                self.config.pool_size,
            )
        except GameError as ex:
            self.logger.error("Failed to build board", exc_info=ex, extra={"game": str(self)})
            if self._build is task:
                self.error = str(ex)
        except Exception as ex:  # noqa: BLE001 - Being passed to logger
            self.logger.error(
                "Unexpected error building board",
                exc_info=ex,
                extra={"game": str(self)},
            )
            if self._build is task:
                self.error = f"Unexpected error: {ex!s}"
        else:
            if self._build is task:
                self._install(board)
                self.started = True
                self.logger.info("Board ready", extra={"game": str(self)})
                return True
        finally:
            # A superseded or stopped build leaves the state to whoever replaced it.
            if self._build is task:
                self._build = None
                self.loading = False
                self._redraw = True
                await self._flush()

        return False

    def _install(self, board: Board) -> None:
        self.board.unsubscribe(self)
        self.board = board
        self.board.subscribe(self)
        self._redraw = True

    async def click(self, category_index: int, clue_index: int) -> str | None:
        self.ping()

        if self.loading:
            self.logger.info("Ignoring click while loading", extra={"game": str(self)})
            return None

        text = self.board.on_click(category_index, clue_index)
        await self._flush()
        return text

    async def clear(self) -> None:
        self.ping()
        self.board.clear()
        await self._flush()

    def on_reveal(self, _: Board, category_index: int, clue_index: int) -> None:
        self._dirty.append((category_index, clue_index))

    def on_reset(self, _: Board) -> None:
        self._redraw = True

    async def _flush(self) -> None:
        if self._redraw:
            self._redraw = False
            self._dirty.clear()
            await self._gather(
                (observer.on_game_change(self) for observer in list(self._observers)),
                "Error sending board update",
            )
            return

        dirty, self._dirty = self._dirty, []
        for category_index, clue_index in dirty:
            await self._gather(
                (
                    observer.on_cell_change(self, category_index, clue_index)
                    for observer in list(self._observers)
                ),
                "Error sending cell update for %d-%d",
                category_index,
                clue_index,
            )

    async def _gather(
        self,
        coroutines: Iterable[Coroutine[Any, Any, None]],
        msg: str,
        *args: Any,
    ) -> None:
        results = await asyncio.gather(*coroutines, return_exceptions=True)

        for result in results:
            if isinstance(result, Exception):
                self.logger.error(msg, *args, exc_info=result, extra={"game": str(self)})

    def ping(self) -> None:
        if self._stopped:
            return

        self._ping = datetime.datetime.now(TIMEZONE) + TIMEOUT

    async def reap(self) -> bool:
        if self._ping < datetime.datetime.now(TIMEZONE):
            await self.stop()

        return self._stopped

    async def stop(self) -> None:
        if self._stopped:
            return

        self.logger.info("Stopping game", extra={"game": str(self)})
        self._stopped = True

        self._generation += 1
        task, self._build = self._build, None
        self.loading = False
        if task and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    @property
    def stopped(self) -> bool:
        return self._stopped


__all__ = ["Game", "GameObserver"]
