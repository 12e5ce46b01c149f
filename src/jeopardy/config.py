# SPDX-FileCopyrightText: 2024 Benedict Harcourt <ben.harcourt@harcourtprogramming.co.uk>
#
# SPDX-License-Identifier: BSD-2-Clause

from __future__ import annotations as _future_annotations

from collections.abc import Mapping, Sequence

import argparse
import dataclasses
import os
import pathlib

DEFAULT_API = "https://jservice.io"


@dataclasses.dataclass
class PublicEndpoint:
    host: str
    port: int


@dataclasses.dataclass
class GameConfig:
    listen: PublicEndpoint = dataclasses.field(
        default_factory=lambda: PublicEndpoint("127.0.0.1", 33333),
    )
    api: str = DEFAULT_API
    clue_file: pathlib.Path | None = None
    sample: bool = False
    category_count: int = 6
    clues_per_category: int = 5
    pool_size: int = 100
    timeout: float = 15
    parallel: bool = False
    local: bool = False
    optimize: bool = False

    def validate(self) -> GameConfig:
        if self.category_count < 1:
            raise ValueError("At least one category is needed")  # noqa: TRY003
        if self.clues_per_category < 1:
            raise ValueError("At least one clue per category is needed")  # noqa: TRY003
        if self.pool_size < self.category_count:
            raise ValueError(  # noqa: TRY003
                f"Pool of {self.pool_size} can not supply {self.category_count} categories",
            )
        if self.timeout <= 0:
            raise ValueError("Timeout must be positive")  # noqa: TRY003

        return self


def _flag(value: str | None) -> bool:
    return (value or "").lower() in {"1", "true", "yes", "on"}


def parse_args(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> GameConfig:
    env = os.environ if environ is None else environ

    parser = argparse.ArgumentParser(prog="jeopardy", description="Serve a trivia board game.")
    parser.add_argument("--host", default=env.get("JEOPARDY_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(env.get("JEOPARDY_PORT", "33333")))
    parser.add_argument("--api", default=env.get("JEOPARDY_API", DEFAULT_API))
    parser.add_argument("--clue-file", type=pathlib.Path, default=env.get("JEOPARDY_CLUE_FILE"))
    parser.add_argument("--sample", action="store_true", default=False)
    parser.add_argument(
        "--categories",
        type=int,
        default=int(env.get("JEOPARDY_CATEGORIES", "6")),
    )
    parser.add_argument("--clues", type=int, default=int(env.get("JEOPARDY_CLUES", "5")))
    parser.add_argument("--pool", type=int, default=int(env.get("JEOPARDY_POOL", "100")))
    parser.add_argument("--timeout", type=float, default=float(env.get("JEOPARDY_TIMEOUT", "15")))
    parser.add_argument(
        "--parallel",
        action="store_true",
        default=_flag(env.get("JEOPARDY_PARALLEL")),
    )
    parser.add_argument("--local", action="store_true", default=False)
    parser.add_argument("--optimize", action="store_true", default=False)
    args = parser.parse_args(argv)

    config = GameConfig(
        listen=PublicEndpoint(args.host, args.port),
        api=args.api,
        clue_file=pathlib.Path(args.clue_file) if args.clue_file else None,
        sample=args.sample,
        category_count=args.categories,
        clues_per_category=args.clues,
        pool_size=args.pool,
        timeout=args.timeout,
        parallel=args.parallel,
        local=args.local,
        optimize=args.optimize,
    )

    try:
        config.validate()
    except ValueError as ex:
        parser.error(str(ex))

    return config


__all__ = ["DEFAULT_API", "GameConfig", "PublicEndpoint", "parse_args"]
