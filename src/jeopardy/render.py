# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

from typing import TYPE_CHECKING

from dom import Document, Element, Node, NodeList

from .board import Board

if TYPE_CHECKING:
    from .clues import JSONDict
    from .game import Game


def cell_id(category_index: int, clue_index: int) -> str:
    return f"{category_index}-{clue_index}"


def cell(board: Board, category_index: int, clue_index: int) -> Element:
    state = board.state(category_index, clue_index)

    return Element(
        "td",
        board.displayed(category_index, clue_index),
        id=cell_id(category_index, clue_index),
        class_=f"data-cell {state}",
        data_category=str(category_index),
        data_clue=str(clue_index),
    )


def board_table(board: Board) -> Element:
    return Element(
        "table",
        Element(
            "thead",
            Element(
                "tr",
                *(Element("th", category.title) for category in board.categories),
                class_="header-row",
            ),
        ),
        Element(
            "tbody",
            *(
                Element(
                    "tr",
                    *(cell(board, c, r) for c, r in row),
                    class_="body-row",
                )
                for row in board.rows()
            ),
            class_="body",
        ),
        id="jeopardy",
    )


def status(game: Game) -> Node:
    return NodeList(
        Element("div", Element("div", class_="spinner"), id="loading") if game.loading else "",
        Element("div", game.error, id="error", class_="panel warning") if game.error else "",
    )


def game_area(game: Game) -> Element:
    return Element(
        "section",
        status(game),
        board_table(game.board) if game.board else "",
        id="game",
        class_="loading" if game.loading else None,
    )


def start_label(game: Game) -> str:
    return "Restart" if game.started else "Start"


def page(game: Game, socket: str) -> Document:
    return Document(
        "Jeopardy!",
        Element(
            "header",
            Element("h1", "Jeopardy!"),
            Element("button", start_label(game), class_="start button", type="button"),
        ),
        Element("main", game_area(game), class_="container"),
        styles=["/style.css"],
        scripts=["/jeopardy.js"],
        class_="connecting",
        data_socket=socket,
    )


def board_message(game: Game) -> JSONDict:
    return {
        "cmd": "board",
        "html": game_area(game).html,
        "loading": game.loading,
        "error": game.error,
        "started": game.started,
        "label": start_label(game),
    }


def cell_message(game: Game, category_index: int, clue_index: int) -> JSONDict:
    board = game.board

    return {
        "cmd": "cell",
        "id": cell_id(category_index, clue_index),
        "html": cell(board, category_index, clue_index).html,
        "state": str(board.state(category_index, clue_index)),
    }


__all__ = ["board_message", "board_table", "cell", "cell_message", "page"]
