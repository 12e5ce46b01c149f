# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

from collections.abc import MutableSequence
from typing import TypeVar

import asyncio
import logging
import random

from .board import Board
from .clues import Category
from .errors import DataShortfall
from .source import ClueSource

T = TypeVar("T")

DEFAULT_POOL_SIZE = 100


def shuffle(items: MutableSequence[T], rng: random.Random | None = None) -> MutableSequence[T]:
    """Fisher-Yates shuffle, in place. Every ordering is equally likely."""
    rng = rng or random.Random()  # noqa: S311 - Not crypto

    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]

    return items


class BoardBuilder:
    source: ClueSource
    parallel: bool
    _rng: random.Random
    _logger: logging.Logger

    def __init__(
        self,
        source: ClueSource,
        rng: random.Random | None = None,
        *,
        parallel: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self.source = source
        self.parallel = parallel
        self._rng = rng or random.Random()  # noqa: S311 - Not crypto
        self._logger = logger or logging.getLogger("jeopardy.builder")

    async def build(
        self,
        category_count: int,
        clues_per_category: int,
        pool_size: int = DEFAULT_POOL_SIZE,
    ) -> Board:
        ids = await self.pick_categories(category_count, pool_size)

        self._logger.info(
            "Fetching %d categories",
            len(ids),
            extra={"category_ids": ids, "parallel": self.parallel},
        )

        if self.parallel:
            fetched = await self._fetch_parallel(ids)
        else:
            fetched = [await self.source.category(cid) for cid in ids]

        categories = [self.prepare(category, clues_per_category) for category in fetched]

        self._logger.info(
            "Built board of %d categories",
            len(categories),
            extra={"titles": [category.title for category in categories]},
        )

        return Board(categories, self._logger.getChild("board"))

    async def _fetch_parallel(self, ids: list[int]) -> list[Category]:
        loop = asyncio.get_running_loop()
        tasks = [
            loop.create_task(self.source.category(cid), name=f"category-{cid}") for cid in ids
        ]

        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # One failure fails the build; don't leave the siblings fetching.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def pick_categories(self, category_count: int, pool_size: int) -> list[int]:
        pool = await self.source.category_ids(max(pool_size, category_count))

        # Keep first occurrences; sources have been seen to repeat ids.
        distinct = list(dict.fromkeys(pool))
        if len(distinct) < category_count:
            raise DataShortfall(
                f"Needed {category_count} categories, the source offered {len(distinct)}",
            )

        return list(shuffle(distinct, self._rng)[:category_count])

    def prepare(self, category: Category, clues_per_category: int) -> Category:
        clues = [clue for clue in category.clues if clue.is_playable]

        if len(clues) < clues_per_category:
            raise DataShortfall(
                f"Category '{category.title}' has {len(clues)} usable clues, "
                f"needed {clues_per_category}",
            )

        return category.with_clues(shuffle(clues, self._rng)[:clues_per_category])


__all__ = ["BoardBuilder", "shuffle"]
