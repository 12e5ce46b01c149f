# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

from collections.abc import Callable
from http import HTTPStatus
from typing import TYPE_CHECKING

import asyncio
import gzip
import hashlib
import http.cookies
import pathlib

import aiohttp.web
import asyncinotify
import brotli  # type: ignore[import-untyped]
import multidict
import rcssmin  # type: ignore[import-untyped]
import rjsmin  # type: ignore[import-untyped]

import dom
from webapp import ResponseProtocol

if TYPE_CHECKING:
    from .site.state import JeopardyContext, JeopardyState

# Suffix to content type and minifier.
RESOURCE_TYPES: dict[str, tuple[str, Callable[[bytes], bytes]]] = {
    ".js": ("text/javascript", rjsmin.jsmin),
    ".css": ("text/css", rcssmin.cssmin),
}


class RawResponse:
    """
    Written straight to the request's stream writer, bypassing StreamResponse.

    Subclasses implement `prepare` and call `_send` exactly once.
    """

    async def _send(
        self,
        request: aiohttp.web.BaseRequest,
        status: HTTPStatus,
        headers: multidict.CIMultiDict[str],
        body: bytes = b"",
    ) -> None:
        version = request.version
        status_line = f"HTTP/{version.major}.{version.minor} {status.value} {status.phrase}"

        await request.writer.write_headers(status_line, headers)
        await request.writer.write_eof(body)

    async def write_eof(self, data: bytes = b"") -> None:
        pass

    @property
    def keep_alive(self) -> bool:
        return True

    def force_close(self) -> None:
        pass


class Encoded:
    headers: multidict.CIMultiDict[str]
    body: bytes

    __slots__ = ("headers", "body")

    def __init__(self, headers: dict[str, str], body: bytes) -> None:
        self.headers = multidict.CIMultiDict(headers)
        self.body = body


class StaticResponse(RawResponse):
    """
    A script or stylesheet, loaded once and served from memory.

    The file is held pre-compressed in every encoding offered. With
    optimisation on it is minified; with it off the file is watched and
    reloaded whenever it changes.
    """

    _task: asyncio.Future[None]
    _file: pathlib.Path
    _optimise: bool
    _tag: str | None
    _versions: dict[str, Encoded]

    def __init__(
        self,
        context: JeopardyState,
        loop: asyncio.AbstractEventLoop,
        file: pathlib.Path,
        *,
        optimise: bool = False,
    ) -> None:
        if file.suffix not in RESOURCE_TYPES:
            raise ValueError(f"Can not serve {file.name} as a resource")  # noqa: TRY003

        self._file = file
        self._tag = None
        self._optimise = optimise
        self._versions = {}
        self._task = loop.run_in_executor(None, self._load)

        if not optimise:
            context.add_task(loop.create_task(self._watch(loop), name=f"inotify[{file}]"))

    def _load(self) -> None:
        mime, minify = RESOURCE_TYPES[self._file.suffix]
        content = self._file.read_bytes()

        if self._optimise:
            content = minify(content)

        self._tag = hashlib.sha1(content, usedforsecurity=False).hexdigest()
        common = {
            "Content-Type": mime,
            "Cache-Control": (
                "public, max-age=3600, stale-if-error=86400"
                if self._optimise
                else "max-age=0, no-store"
            ),
            "ETag": self._tag,
            "Vary": "accept-encoding",
        }

        # Preference order; identity matches any Accept-Encoding.
        encodings = {
            "br": brotli.compress(content),
            "gzip": gzip.compress(content),
            "": content,
        }

        versions = {}
        for encoding, body in encodings.items():
            headers = {"Content-Length": str(len(body))}
            if encoding:
                headers["Content-Encoding"] = encoding
            headers.update(common)
            versions[encoding] = Encoded(headers, body)

        self._versions = versions

    async def _watch(self, loop: asyncio.AbstractEventLoop) -> None:
        with asyncinotify.Inotify() as inotify:
            inotify.add_watch(self._file, asyncinotify.Mask.MODIFY)

            try:
                async for _ in inotify:
                    await loop.run_in_executor(None, self._load)
            except asyncio.CancelledError:
                return

    async def prepare(self, request: aiohttp.web.BaseRequest) -> None:
        await self._task

        if self._tag and self._tag in request.headers.getall("If-None-Match", []):
            headers = multidict.CIMultiDict({"ETag": self._tag})
            await self._send(request, HTTPStatus.NOT_MODIFIED, headers)
            return

        accepted = request.headers.get("Accept-Encoding", "")
        encoding = next(name for name in self._versions if name in accepted)
        version = self._versions[encoding]

        await self._send(request, HTTPStatus.OK, version.headers, version.body)

    async def __call__(self, _: JeopardyContext, __: aiohttp.web.BaseRequest) -> ResponseProtocol:
        return self


class DocResponse(RawResponse):
    """A rendered page. Never cached, since it shows the live board."""

    _document: dom.Document
    _status: HTTPStatus
    _cookies: http.cookies.SimpleCookie

    def __init__(self, document: dom.Document, status: int = 200) -> None:
        self._document = document
        self._status = HTTPStatus(status)
        self._cookies = http.cookies.SimpleCookie()

    def set_cookie(self, name: str, value: str, *, max_age: int) -> None:
        self._cookies[name] = value
        self._cookies[name].update({"max-age": max_age, "path": "/", "samesite": "Lax"})

    async def prepare(self, request: aiohttp.web.BaseRequest) -> None:
        body = self._document.html.encode("utf-8")

        headers: multidict.CIMultiDict[str] = multidict.CIMultiDict()
        for morsel in self._cookies.values():
            headers.add("Set-Cookie", morsel.OutputString())
        headers["Content-Type"] = "text/html; charset=utf-8"
        headers["Cache-Control"] = "must-revalidate, no-cache, no-store, private"

        if "br" in request.headers.get("Accept-Encoding", ""):
            body = brotli.compress(body)
            headers["Content-Encoding"] = "br"

        headers["Content-Length"] = str(len(body))

        await self._send(request, self._status, headers, body)


__all__ = ["RESOURCE_TYPES", "DocResponse", "RawResponse", "StaticResponse"]
