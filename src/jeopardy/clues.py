# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

from collections.abc import Iterable, MutableMapping, MutableSequence
from typing import Any, TypeAlias, Union

import dataclasses

from .errors import NetworkFailure

JSON: TypeAlias = Union[None, int, str, bool, float, "JSONDict", "JSONList"]
JSONList: TypeAlias = MutableSequence[JSON]
JSONDict: TypeAlias = MutableMapping[str, JSON]


@dataclasses.dataclass(frozen=True)
class Clue:
    question: str
    answer: str

    @classmethod
    def from_json(cls, data: Any) -> Clue:
        if not isinstance(data, dict):
            raise NetworkFailure(f"Expected a clue object, got {type(data).__name__}")

        return cls(
            question=_text(data.get("question")),
            answer=_text(data.get("answer")),
        )

    @property
    def is_playable(self) -> bool:
        return bool(self.question.strip() and self.answer.strip())


@dataclasses.dataclass(frozen=True)
class Category:
    category_id: int
    title: str
    clues: tuple[Clue, ...]

    @classmethod
    def from_json(cls, data: Any) -> Category:
        if not isinstance(data, dict):
            raise NetworkFailure(f"Expected a category object, got {type(data).__name__}")

        try:
            category_id = int(data["id"])
            title = _text(data["title"])
            raw_clues = data.get("clues") or []
        except (KeyError, TypeError, ValueError) as ex:
            raise NetworkFailure(f"Malformed category: {ex!s}") from ex

        if not isinstance(raw_clues, list):
            raise NetworkFailure(f"Malformed clue list for category {category_id}")

        return cls(category_id, title, tuple(Clue.from_json(clue) for clue in raw_clues))

    def with_clues(self, clues: Iterable[Clue]) -> Category:
        return dataclasses.replace(self, clues=tuple(clues))

    def __len__(self) -> int:
        return len(self.clues)


def _text(value: Any) -> str:
    # Answers in the wild are occasionally numbers.
    if value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value)
    raise NetworkFailure(f"Expected text, got {type(value).__name__}")


__all__ = ["JSON", "JSONDict", "JSONList", "Category", "Clue"]
