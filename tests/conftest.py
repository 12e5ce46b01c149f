"""Shared fixtures: an in-memory clue source and category factories."""

from __future__ import annotations

from collections.abc import Callable, Iterable

import asyncio
import logging
import random

import pytest

from jeopardy.board import Board
from jeopardy.builder import BoardBuilder
from jeopardy.clues import Category, Clue
from jeopardy.config import GameConfig
from jeopardy.errors import NetworkFailure
from jeopardy.game import Game
from jeopardy.source import ClueSource


def build_category(category_id: int, clues: int = 5, title: str | None = None) -> Category:
    return Category(
        category_id,
        title or f"Category {category_id}",
        tuple(Clue(f"Q{category_id}-{i}", f"A{category_id}-{i}") for i in range(clues)),
    )


class FakeSource(ClueSource):
    """Serves prepared categories; can be made to fail or to wait on a gate."""

    def __init__(
        self,
        categories: Iterable[Category],
        *,
        ids: Iterable[int] | None = None,
        fail_on: int | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.categories = {category.category_id: category for category in categories}
        self.ids = list(ids) if ids is not None else list(self.categories)
        self.fail_on = fail_on
        self.gate = gate
        self.requested: list[int] = []
        self.pool_requests: list[int] = []

    async def category_ids(self, count: int) -> list[int]:
        self.pool_requests.append(count)
        return self.ids[:count]

    async def category(self, category_id: int) -> Category:
        self.requested.append(category_id)
        if self.gate:
            await self.gate.wait()
        if category_id == self.fail_on:
            raise NetworkFailure(f"category {category_id} is unavailable")
        return self.categories[category_id]


@pytest.fixture
def make_category() -> Callable[..., Category]:
    return build_category


@pytest.fixture
def make_source() -> Callable[..., FakeSource]:
    def factory(count: int = 8, clues: int = 5, **kwargs: object) -> FakeSource:
        categories = [build_category(100 + i, clues) for i in range(count)]
        return FakeSource(categories, **kwargs)  # type: ignore[arg-type]

    return factory


@pytest.fixture
def config() -> GameConfig:
    return GameConfig(category_count=6, clues_per_category=5, pool_size=100, optimize=True)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def board(make_category: Callable[..., Category]) -> Board:
    return Board([make_category(i) for i in range(6)])


@pytest.fixture
def make_game(config: GameConfig, rng: random.Random) -> Callable[[ClueSource], Game]:
    def factory(source: ClueSource) -> Game:
        builder = BoardBuilder(source, rng)
        return Game(builder, config, logging.getLogger("jeopardy.test.game"))

    return factory
