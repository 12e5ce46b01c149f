"""Tests for jeopardy.source against a stand-in trivia API and local files."""

from __future__ import annotations

from collections.abc import AsyncIterator

import asyncio
import json

import aiohttp
import pytest
from aiohttp import web

from jeopardy.clues import Category
from jeopardy.errors import NetworkFailure
from jeopardy.source import FileClueSource, JServiceSource

CATEGORY = {
    "id": 42,
    "title": "potent potables",
    "clues_count": 2,
    "clues": [
        {"id": 1, "question": "Gin and vermouth", "answer": "a martini", "value": 200},
        {"id": 2, "question": "Number of shots in a double", "answer": 2, "value": 400},
    ],
}


class FakeAPI:
    """Answers like the public trivia API; individual paths can be broken."""

    def __init__(self) -> None:
        self.status = 200
        self.body: str | None = None
        self.raw: bytes | None = None
        self.delay = 0.0
        self.seen: list[str] = []

    async def __call__(self, request: web.BaseRequest) -> web.StreamResponse:
        self.seen.append(str(request.rel_url))

        if self.delay:
            await asyncio.sleep(self.delay)

        if self.raw is not None:
            return web.Response(
                status=self.status,
                body=self.raw,
                content_type="application/json",
            )

        if self.body is not None:
            return web.Response(status=self.status, text=self.body)

        if request.path == "/api/categories":
            count = int(request.query["count"])
            listing = [{"id": 40 + i, "title": f"c{i}"} for i in range(count)]
            return web.json_response(listing, status=self.status)

        if request.path == "/api/category":
            return web.json_response(CATEGORY, status=self.status)

        return web.Response(status=404)


@pytest.fixture
def api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
async def http() -> AsyncIterator[aiohttp.ClientSession]:
    async with aiohttp.ClientSession() as session:
        yield session


@pytest.fixture
async def source(aiohttp_raw_server, api, http) -> JServiceSource:
    server = await aiohttp_raw_server(api)
    return JServiceSource(http, server.make_url("/"), timeout=0.2)


# ---------------------------------------------------------------------------
# JServiceSource
# ---------------------------------------------------------------------------

class TestJService:
    async def test_category_ids(self, source, api):
        assert await source.category_ids(3) == [40, 41, 42]
        assert api.seen == ["/api/categories?count=3"]

    async def test_category(self, source, api):
        category = await source.category(42)

        assert api.seen == ["/api/category?id=42"]
        assert category.category_id == 42
        assert category.title == "potent potables"
        assert [clue.answer for clue in category.clues] == ["a martini", "2"]

    async def test_base_path_is_kept(self, aiohttp_raw_server, api, http):
        server = await aiohttp_raw_server(api)
        source = JServiceSource(http, server.make_url("/trivia/"))

        with pytest.raises(NetworkFailure, match="HTTP 404"):
            await source.category_ids(1)
        assert api.seen == ["/trivia/api/categories?count=1"]

    async def test_server_error(self, source, api, caplog):
        api.status = 500
        api.body = "upstream is down"

        with pytest.raises(NetworkFailure, match="HTTP 500"):
            await source.category(1)
        assert "upstream is down" in caplog.text

    async def test_server_error_body_not_utf8(self, source, api, caplog):
        api.status = 500
        api.raw = b"\xff\xfe oops"

        with pytest.raises(NetworkFailure, match="HTTP 500"):
            await source.category_ids(6)
        assert "oops" in caplog.text

    async def test_body_not_utf8(self, source, api):
        api.raw = b'[{"id": 1, "title": "\xff\xfe"}]'

        with pytest.raises(NetworkFailure, match="did not return JSON"):
            await source.category_ids(6)

    async def test_not_json(self, source, api):
        api.body = "<html>maintenance</html>"

        with pytest.raises(NetworkFailure, match="did not return JSON"):
            await source.category_ids(6)

    async def test_listing_not_a_list(self, source, api):
        api.body = json.dumps({"error": "nope"})

        with pytest.raises(NetworkFailure, match="not a list"):
            await source.category_ids(6)

    async def test_listing_without_ids(self, source, api):
        api.body = json.dumps([{"title": "no id"}])

        with pytest.raises(NetworkFailure, match="Malformed category listing"):
            await source.category_ids(6)

    async def test_malformed_category(self, source, api):
        api.body = json.dumps({"id": 3, "clues": []})

        with pytest.raises(NetworkFailure, match="Malformed category"):
            await source.category(3)

    async def test_timeout(self, source, api):
        api.delay = 0.5

        with pytest.raises(NetworkFailure, match="Could not fetch"):
            await source.category_ids(1)

    async def test_unreachable(self, http):
        source = JServiceSource(http, "http://127.0.0.1:1/")

        with pytest.raises(NetworkFailure, match="Could not fetch"):
            await source.category_ids(1)


# ---------------------------------------------------------------------------
# FileClueSource
# ---------------------------------------------------------------------------

class TestFile:
    async def test_sample(self):
        source = FileClueSource.sample()

        ids = await source.category_ids(100)
        assert len(ids) == 8
        assert len(set(ids)) == 8

        for category_id in ids:
            category = await source.category(category_id)
            assert isinstance(category, Category)
            assert sum(clue.is_playable for clue in category.clues) >= 5

    async def test_count_limits_listing(self):
        assert len(await FileClueSource.sample().category_ids(3)) == 3

    async def test_unknown_category(self):
        with pytest.raises(NetworkFailure, match="No category 7"):
            await FileClueSource.sample().category(7)

    async def test_custom_file(self, tmp_path):
        path = tmp_path / "clues.json"
        path.write_text(json.dumps([CATEGORY]), encoding="utf-8")

        source = FileClueSource(path)

        assert await source.category_ids(6) == [42]
        assert (await source.category(42)).title == "potent potables"

    async def test_missing_file(self, tmp_path):
        with pytest.raises(NetworkFailure, match="Could not read clue file"):
            await FileClueSource(tmp_path / "absent.json").category_ids(1)

    async def test_file_not_utf8(self, tmp_path):
        path = tmp_path / "clues.json"
        path.write_bytes(b'[{"id": 1, "title": "\xff"}]')

        with pytest.raises(NetworkFailure, match="Could not read clue file"):
            await FileClueSource(path).category_ids(1)

    async def test_file_not_a_list(self, tmp_path):
        path = tmp_path / "clues.json"
        path.write_text(json.dumps(CATEGORY), encoding="utf-8")

        with pytest.raises(NetworkFailure, match="must hold a list"):
            await FileClueSource(path).category_ids(1)
