# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

from dom import Document, Element
from jeopardy.static import DocResponse
from webapp import Request, ResponseProtocol

from .state import JeopardyContext, JeopardyRoute


class HTTPNotFoundError(DocResponse, Exception):
    def __init__(self, reason: str = "") -> None:
        super().__init__(doc("Page not found. ", reason), status=404)


def doc(*body: str) -> Document:
    return Document(
        "Jeopardy! - Error",
        Element("header", Element("a", Element("h1", "Jeopardy!"), href="/")),
        Element(
            "main",
            Element("article", *body, class_="panel"),
            Element("article", Element("a", "Back to the board", href="/"), class_="panel"),
            class_="container",
        ),
        styles=["/style.css"],
    )


def not_found() -> JeopardyRoute:
    async def call(_: JeopardyContext, request: Request) -> ResponseProtocol:
        return HTTPNotFoundError(f"Nothing lives at {request.path}")

    return JeopardyRoute(call)
