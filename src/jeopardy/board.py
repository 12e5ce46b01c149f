# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

from collections.abc import Iterator, Sequence
from typing import Protocol

import enum
import logging

from .clues import Category, Clue

HIDDEN_TEXT = "?"


class RevealState(enum.StrEnum):
    HIDDEN = "hidden"
    QUESTION = "question"
    ANSWER = "answer"

    def next(self) -> RevealState:
        if self == RevealState.HIDDEN:
            return RevealState.QUESTION

        return RevealState.ANSWER


class BoardObserver(Protocol):
    def on_reveal(self, board: Board, category_index: int, clue_index: int) -> None:
        pass

    def on_reset(self, board: Board) -> None:
        pass


class Board:
    """
    The grid of reveal states for one set of categories.

    Cells are addressed as (category_index, clue_index): categories are the
    columns of the rendered table, clues the rows. Every category carries the
    same number of clues.
    """

    categories: tuple[Category, ...]
    logger: logging.Logger
    _states: list[list[RevealState]]
    _observers: list[BoardObserver]

    def __init__(
        self,
        categories: Sequence[Category] = (),
        logger: logging.Logger | None = None,
    ) -> None:
        self.categories = tuple(categories)
        self.logger = logger or logging.getLogger("jeopardy.board")
        self._observers = []

        heights = {len(category) for category in self.categories}
        if len(heights) > 1:
            raise ValueError(f"Categories have differing clue counts: {sorted(heights)}")

        self._states = [[RevealState.HIDDEN] * len(category) for category in self.categories]

    def __repr__(self) -> str:
        return f"Board<{self.width}x{self.height}>"

    @property
    def width(self) -> int:
        return len(self.categories)

    @property
    def height(self) -> int:
        return len(self.categories[0]) if self.categories else 0

    def __bool__(self) -> bool:
        return bool(self.categories)

    def subscribe(self, observer: BoardObserver) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: BoardObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def in_bounds(self, category_index: int, clue_index: int) -> bool:
        return 0 <= category_index < self.width and 0 <= clue_index < self.height

    def clue(self, category_index: int, clue_index: int) -> Clue:
        return self.categories[category_index].clues[clue_index]

    def state(self, category_index: int, clue_index: int) -> RevealState:
        return self._states[category_index][clue_index]

    def displayed(self, category_index: int, clue_index: int) -> str:
        state = self.state(category_index, clue_index)

        if state == RevealState.QUESTION:
            return self.clue(category_index, clue_index).question
        if state == RevealState.ANSWER:
            return self.clue(category_index, clue_index).answer

        return HIDDEN_TEXT

    def on_click(self, category_index: int, clue_index: int) -> str | None:
        """
        Advance one cell, returning the newly displayed text.

        Answered cells stay answered and return None, as do coordinates off
        the board.
        """
        if not self.in_bounds(category_index, clue_index):
            self.logger.warning(
                "Ignoring click outside the board at %d-%d",
                category_index,
                clue_index,
                extra={"board": repr(self)},
            )
            return None

        current = self.state(category_index, clue_index)
        if current == RevealState.ANSWER:
            return None

        self._states[category_index][clue_index] = current.next()

        for observer in list(self._observers):
            observer.on_reveal(self, category_index, clue_index)

        return self.displayed(category_index, clue_index)

    def clear(self) -> None:
        for column in self._states:
            column[:] = [RevealState.HIDDEN] * len(column)

        for observer in list(self._observers):
            observer.on_reset(self)

    def rows(self) -> Iterator[list[tuple[int, int]]]:
        """Cell coordinates row by row, in presentation order."""
        for clue_index in range(self.height):
            yield [(category_index, clue_index) for category_index in range(self.width)]


__all__ = ["HIDDEN_TEXT", "Board", "BoardObserver", "RevealState"]
