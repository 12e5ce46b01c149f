"""Tests for per-session state: idle reaping and endpoint shutdown."""

from __future__ import annotations

import datetime

import pytest

from jeopardy.endpoint import GameEndpoint
from jeopardy.site.state import JeopardyState, Session

IDLE = datetime.datetime.now(datetime.UTC) - datetime.timedelta(seconds=1)


class FakeSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.closed = False
        self.broken = broken
        self.sent: list[dict[str, str]] = []

    async def send_json(self, data: dict[str, str]) -> None:
        if self.broken:
            raise ConnectionResetError("Cannot write to closing transport")
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def state(config, make_source, rng) -> JeopardyState:
    return JeopardyState(config, source=make_source(), rng=rng)


def open_session(state: JeopardyState, cookie: str) -> Session:
    session = state.sessions.setdefault(cookie, Session(cookie))
    state.game_for(session)
    return session


# ---------------------------------------------------------------------------
# Endpoint shutdown
# ---------------------------------------------------------------------------

class TestEndpointStop:
    async def test_every_socket_is_closed(self, make_game, make_source):
        endpoint = GameEndpoint(make_game(make_source()))
        first, second = FakeSocket(), FakeSocket()
        endpoint._sockets.update({first, second})

        await endpoint.stop()

        assert first.sent == second.sent == [{"cmd": "close"}]
        assert first.closed
        assert second.closed

    async def test_broken_socket_does_not_stop_the_rest(self, make_game, make_source, caplog):
        endpoint = GameEndpoint(make_game(make_source()))
        broken, healthy = FakeSocket(broken=True), FakeSocket()
        endpoint._sockets.update({broken, healthy})

        await endpoint.stop()

        assert healthy.closed
        assert "Error closing socket" in caplog.text

    async def test_closed_sockets_are_skipped(self, make_game, make_source):
        endpoint = GameEndpoint(make_game(make_source()))
        gone = FakeSocket(broken=True)
        gone.closed = True
        endpoint._sockets.add(gone)

        await endpoint.stop()


# ---------------------------------------------------------------------------
# Idle reaping
# ---------------------------------------------------------------------------

class TestReapIdle:
    async def test_active_games_are_kept(self, state):
        session = open_session(state, "a" * 32)

        await state.reap_idle()

        assert session.game is not None
        assert not session.game.stopped

    async def test_idle_games_are_stopped(self, state):
        session = open_session(state, "a" * 32)
        game = session.game
        game._ping = IDLE

        await state.reap_idle()

        assert game.stopped
        assert session.game is None
        assert session.endpoint is None

    async def test_failure_does_not_stop_reaping(self, state, caplog):
        first = open_session(state, "a" * 32)
        second = open_session(state, "b" * 32)
        second_game = second.game
        first.game._ping = IDLE
        second_game._ping = IDLE

        async def broken() -> None:
            raise ConnectionResetError("Cannot write to closing transport")

        first.endpoint.stop = broken

        await state.reap_idle()

        assert "Error reaping game for aaaaaaaa" in caplog.text
        assert first.game is None
        assert second.game is None
        assert second_game.stopped
