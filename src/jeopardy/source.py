# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

from http import HTTPStatus
from importlib import resources
from typing import Any

import abc
import asyncio
import json
import logging
import pathlib

import aiohttp
import yarl

from .clues import Category
from .errors import NetworkFailure


class ClueSource(abc.ABC):
    """
    Where categories and clues come from.

    Implementations raise NetworkFailure for anything that prevents them
    answering; they never retry.
    """

    @abc.abstractmethod
    async def category_ids(self, count: int) -> list[int]:
        """Up to `count` category identifiers, in whatever order the source prefers."""

    @abc.abstractmethod
    async def category(self, category_id: int) -> Category:
        pass


class JServiceSource(ClueSource):
    _http: aiohttp.ClientSession
    _base: yarl.URL
    _timeout: aiohttp.ClientTimeout
    _logger: logging.Logger

    def __init__(
        self,
        http: aiohttp.ClientSession,
        base: str | yarl.URL,
        *,
        timeout: float = 15,
        logger: logging.Logger | None = None,
    ) -> None:
        self._http = http
        self._base = yarl.URL(base)
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._logger = logger or logging.getLogger("jeopardy.source")

    def __repr__(self) -> str:
        return f"JServiceSource<{self._base}>"

    async def category_ids(self, count: int) -> list[int]:
        data = await self._get("/api/categories", count=count)

        if not isinstance(data, list):
            raise NetworkFailure("Category listing was not a list")

        try:
            return [int(entry["id"]) for entry in data]
        except (KeyError, TypeError, ValueError) as ex:
            raise NetworkFailure(f"Malformed category listing: {ex!s}") from ex

    async def category(self, category_id: int) -> Category:
        return Category.from_json(await self._get("/api/category", id=category_id))

    async def _get(self, path: str, **query: int) -> Any:
        url = self._base.with_path(self._base.path.rstrip("/") + path).with_query(query)

        try:
            async with self._http.get(url, timeout=self._timeout) as resp:
                if resp.status != HTTPStatus.OK:
                    message = await resp.text(errors="replace")
                    self._logger.error(
                        "Error fetching %s: %s",
                        url,
                        message,
                        extra={"status_code": resp.status},
                    )
                    raise NetworkFailure(f"{url} returned HTTP {resp.status}")

                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as ex:
            raise NetworkFailure(f"Could not fetch {url}: {ex!s}") from ex
        except (json.JSONDecodeError, UnicodeDecodeError) as ex:
            raise NetworkFailure(f"{url} did not return JSON") from ex


class FileClueSource(ClueSource):
    """Categories held in a local JSON file, for offline play."""

    _path: pathlib.Path
    _categories: dict[int, Category] | None

    @classmethod
    def sample(cls) -> FileClueSource:
        return cls(pathlib.Path(str(resources.files(__package__) / "resources" / "clues.json")))

    def __init__(self, path: pathlib.Path) -> None:
        self._path = path
        self._categories = None

    def __repr__(self) -> str:
        return f"FileClueSource<{self._path}>"

    async def _load(self) -> dict[int, Category]:
        if self._categories is None:
            loop = asyncio.get_running_loop()
            self._categories = await loop.run_in_executor(None, self._read)

        return self._categories

    def _read(self) -> dict[int, Category]:
        try:
            with self._path.open("rb") as in_stream:
                contents = json.load(in_stream)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as ex:
            raise NetworkFailure(f"Could not read clue file {self._path}: {ex!s}") from ex

        if not isinstance(contents, list):
            raise NetworkFailure(f"Clue file {self._path} must hold a list of categories")

        categories = (Category.from_json(entry) for entry in contents)
        return {category.category_id: category for category in categories}

    async def category_ids(self, count: int) -> list[int]:
        return list(await self._load())[:count]

    async def category(self, category_id: int) -> Category:
        categories = await self._load()

        if category_id not in categories:
            raise NetworkFailure(f"No category {category_id} in {self._path}")

        return categories[category_id]


__all__ = ["ClueSource", "FileClueSource", "JServiceSource"]
