# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations


class GameError(Exception):
    """Base for every error the game reports to a player."""


class NetworkFailure(GameError):
    """The clue source could not be reached, or answered with something unusable."""


class DataShortfall(GameError):
    """The clue source returned fewer categories or clues than the board needs."""


class InvalidInteraction(GameError):
    """A player command that could not be understood."""


__all__ = ["DataShortfall", "GameError", "InvalidInteraction", "NetworkFailure"]
