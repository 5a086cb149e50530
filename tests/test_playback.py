"""Tests for the playback controller — navigation and auto-advance."""

import asyncio

import pytest

from walkthrough.catalog import LAST_INDEX
from walkthrough.models import Stage
from walkthrough.playback import PlaybackController
from tests.conftest import settle


class ManualTicker:
    """Stand-in for asyncio.sleep that only returns when the test ticks."""

    def __init__(self) -> None:
        self._ticks: asyncio.Queue[None] = asyncio.Queue()
        self.sleeps = 0

    async def sleep(self, _interval: float) -> None:
        self.sleeps += 1
        await self._ticks.get()

    async def tick(self, n: int = 1) -> None:
        for _ in range(n):
            self._ticks.put_nowait(None)
            await settle()


@pytest.fixture()
def ticker():
    return ManualTicker()


class TestNavigation:
    def test_initial_state(self):
        c = PlaybackController()
        assert c.current_index == 0
        assert c.current_stage == Stage.IDLE
        assert not c.is_playing

    def test_six_advances_reach_secure_tunnel(self):
        c = PlaybackController()
        for _ in range(6):
            c.advance()
        assert c.current_index == 6
        assert c.current_stage == Stage.SECURE_TUNNEL
        c.advance()
        assert c.current_index == 6

    def test_retreat_at_zero_is_noop(self):
        c = PlaybackController()
        c.retreat()
        assert c.current_index == 0

    def test_retreat_never_wraps(self):
        c = PlaybackController()
        c.advance()
        c.retreat()
        c.retreat()
        assert c.current_index == 0

    def test_reset(self):
        c = PlaybackController()
        c.advance()
        c.advance()
        c.reset()
        assert c.current_index == 0
        assert not c.is_playing

    def test_listener_sees_adjacent_steps_only(self):
        c = PlaybackController()
        seen: list[int] = []
        c.on_index_change(seen.append)
        for _ in range(10):
            c.advance()
        c.retreat()
        assert seen == [1, 2, 3, 4, 5, 6, 5]

    def test_noop_moves_do_not_notify(self):
        c = PlaybackController()
        seen: list[int] = []
        c.on_index_change(seen.append)
        c.retreat()
        c.reset()
        assert seen == []

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError, match="positive"):
            PlaybackController(interval_seconds=0)


class TestAutoAdvance:
    @pytest.mark.asyncio
    async def test_advance_at_end_clears_play_flag(self, ticker):
        c = PlaybackController(sleep=ticker.sleep)
        for _ in range(LAST_INDEX - 1):
            c.advance()
        c.toggle_play()
        assert c.is_playing
        c.advance()
        assert c.current_index == LAST_INDEX
        assert not c.is_playing
        c.advance()
        assert c.current_index == LAST_INDEX
        assert not c.is_playing
        await c.close()

    @pytest.mark.asyncio
    async def test_toggle_at_end_replays(self, ticker):
        c = PlaybackController(sleep=ticker.sleep)
        for _ in range(LAST_INDEX):
            c.advance()
        c.toggle_play()
        assert c.current_index == 0
        assert c.is_playing
        assert c.timer_active
        await c.close()

    @pytest.mark.asyncio
    async def test_timer_advances_one_step_per_tick(self, ticker):
        c = PlaybackController(sleep=ticker.sleep)
        c.toggle_play()
        await settle()
        assert c.current_index == 0
        await ticker.tick()
        assert c.current_index == 1
        await ticker.tick(2)
        assert c.current_index == 3
        await c.close()

    @pytest.mark.asyncio
    async def test_timer_stops_at_terminal(self, ticker):
        c = PlaybackController(sleep=ticker.sleep)
        c.toggle_play()
        await settle()
        await ticker.tick(LAST_INDEX)
        assert c.current_index == LAST_INDEX
        assert not c.is_playing
        await settle()
        assert not c.timer_active

    @pytest.mark.asyncio
    async def test_pause_cancels_timer(self, ticker):
        c = PlaybackController(sleep=ticker.sleep)
        c.toggle_play()
        await ticker.tick()
        c.toggle_play()
        assert not c.is_playing
        await settle()
        assert not c.timer_active
        await ticker.tick(3)
        assert c.current_index == 1

    @pytest.mark.asyncio
    async def test_close_leaves_no_timer(self, ticker):
        c = PlaybackController(sleep=ticker.sleep)
        c.toggle_play()
        await settle()
        await c.close()
        assert not c.timer_active
        c.toggle_play()
        assert not c.is_playing
        await ticker.tick(3)
        assert c.current_index == 0

    @pytest.mark.asyncio
    async def test_real_sleep_interval(self):
        c = PlaybackController(interval_seconds=0.01)
        c.toggle_play()
        for _ in range(200):
            if not c.is_playing:
                break
            await asyncio.sleep(0.01)
        assert c.current_index == LAST_INDEX
        assert not c.is_playing
        await c.close()

    @pytest.mark.asyncio
    async def test_play_listener(self, ticker):
        c = PlaybackController(sleep=ticker.sleep)
        flags: list[bool] = []
        c.on_play_change(flags.append)
        c.toggle_play()
        c.toggle_play()
        assert flags == [True, False]
        await c.close()

    @pytest.mark.asyncio
    async def test_manual_step_restarts_countdown(self, ticker):
        c = PlaybackController(sleep=ticker.sleep)
        c.toggle_play()
        await settle()
        assert ticker.sleeps == 1

        c.advance()
        await settle()
        # The old wait was dropped and a fresh one started for the new stage
        assert ticker.sleeps == 2
        assert c.current_index == 1

        await ticker.tick()
        assert c.current_index == 2
        await c.close()

    @pytest.mark.asyncio
    async def test_manual_step_gets_full_interval(self):
        c = PlaybackController(interval_seconds=0.3)
        c.toggle_play()
        await asyncio.sleep(0.2)
        c.advance()
        await asyncio.sleep(0.15)
        assert c.current_index == 1
        assert c.is_playing
        await c.close()

    @pytest.mark.asyncio
    async def test_retreat_while_playing_keeps_one_timer(self, ticker):
        c = PlaybackController(sleep=ticker.sleep)
        c.toggle_play()
        await ticker.tick(2)
        c.retreat()
        await settle()
        assert c.current_index == 1
        await ticker.tick()
        assert c.current_index == 2
        await c.close()
