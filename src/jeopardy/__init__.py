# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

from .board import Board, RevealState
from .builder import BoardBuilder, shuffle
from .clues import Category, Clue
from .errors import DataShortfall, GameError, InvalidInteraction, NetworkFailure
from .game import Game

__all__ = [
    "Board",
    "BoardBuilder",
    "Category",
    "Clue",
    "DataShortfall",
    "Game",
    "GameError",
    "InvalidInteraction",
    "NetworkFailure",
    "RevealState",
    "shuffle",
]
