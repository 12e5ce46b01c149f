"""Tests for jeopardy.config: flags, environment and validation."""

from __future__ import annotations

import pathlib

import pytest

from jeopardy.config import DEFAULT_API, GameConfig, PublicEndpoint, parse_args


class TestParseArgs:
    def test_defaults(self):
        config = parse_args([], {})

        assert config.listen == PublicEndpoint("127.0.0.1", 33333)
        assert config.api == DEFAULT_API
        assert config.clue_file is None
        assert not config.sample
        assert (config.category_count, config.clues_per_category, config.pool_size) == (6, 5, 100)
        assert config.timeout == 15
        assert not config.parallel
        assert not config.local
        assert not config.optimize

    def test_flags(self):
        config = parse_args(
            [
                "--host", "0.0.0.0",
                "--port", "8080",
                "--api", "http://localhost:3000",
                "--categories", "4",
                "--clues", "3",
                "--pool", "10",
                "--timeout", "2.5",
                "--parallel",
                "--sample",
                "--local",
                "--optimize",
            ],
            {},
        )

        assert config.listen == PublicEndpoint("0.0.0.0", 8080)  # noqa: S104
        assert config.api == "http://localhost:3000"
        assert (config.category_count, config.clues_per_category, config.pool_size) == (4, 3, 10)
        assert config.timeout == 2.5
        assert config.parallel
        assert config.sample
        assert config.local
        assert config.optimize

    def test_environment(self):
        config = parse_args(
            [],
            {
                "JEOPARDY_HOST": "::1",
                "JEOPARDY_PORT": "9000",
                "JEOPARDY_CLUE_FILE": "/srv/clues.json",
                "JEOPARDY_CATEGORIES": "3",
                "JEOPARDY_PARALLEL": "yes",
            },
        )

        assert config.listen == PublicEndpoint("::1", 9000)
        assert config.clue_file == pathlib.Path("/srv/clues.json")
        assert config.category_count == 3
        assert config.parallel

    def test_flags_override_environment(self):
        config = parse_args(["--port", "1234"], {"JEOPARDY_PORT": "9000"})
        assert config.listen.port == 1234

    @pytest.mark.parametrize(
        "argv",
        [
            ["--categories", "0"],
            ["--clues", "0"],
            ["--categories", "8", "--pool", "5"],
            ["--timeout", "0"],
        ],
    )
    def test_invalid(self, argv, capsys):
        with pytest.raises(SystemExit):
            parse_args(argv, {})
        assert "error:" in capsys.readouterr().err


class TestValidate:
    def test_returns_self(self):
        config = GameConfig()
        assert config.validate() is config

    def test_pool_smaller_than_board(self):
        with pytest.raises(ValueError, match="can not supply"):
            GameConfig(category_count=6, pool_size=3).validate()
