"""Stage playback controller: navigation plus timer-driven auto-advance."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from walkthrough.catalog import LAST_INDEX, stage_at
from walkthrough.models import PlaybackState, Stage

logger = logging.getLogger(__name__)

IndexListener = Callable[[int], None]
PlayListener = Callable[[bool], None]


class PlaybackController:
    """Sole owner of the current stage index and the auto-advance flag.

    All mutation goes through advance/retreat/reset/toggle_play. Listeners
    are called synchronously after every index change, so observers always
    see the new index before the next event is processed.

    Auto-advance runs as an asyncio task, so toggle_play() must be called
    from inside a running event loop when it starts playback.
    """

    def __init__(
        self,
        interval_seconds: float = 6.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive: {interval_seconds}")
        self.interval_seconds = interval_seconds
        self._sleep = sleep
        self._index = 0
        self._playing = False
        self._timer: asyncio.Task[None] | None = None
        self._closed = False
        self._index_listeners: list[IndexListener] = []
        self._play_listeners: list[PlayListener] = []

    # --- Read side ---

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_stage(self) -> Stage:
        return stage_at(self._index)

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def is_terminal(self) -> bool:
        return self._index == LAST_INDEX

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def state(self) -> PlaybackState:
        return PlaybackState(current_index=self._index, is_auto_advancing=self._playing)

    def on_index_change(self, listener: IndexListener) -> None:
        self._index_listeners.append(listener)

    def on_play_change(self, listener: PlayListener) -> None:
        self._play_listeners.append(listener)

    # --- Navigation ---

    def advance(self) -> None:
        """Step forward one stage. At the last stage, stop auto-advance instead."""
        if not self.is_terminal:
            self._set_index(self._index + 1)
            if self.is_terminal and self._playing:
                # Nothing left to play; stop without waiting for one more tick
                self._set_playing(False)
        else:
            self._set_playing(False)

    def retreat(self) -> None:
        if self._index > 0:
            self._set_index(self._index - 1)

    def reset(self) -> None:
        self._set_playing(False)
        self._set_index(0)

    def toggle_play(self) -> None:
        """Flip auto-advance; at the last stage, replay from the start."""
        if self.is_terminal:
            self.reset()
            self._set_playing(True)
        else:
            self._set_playing(not self._playing)

    async def close(self) -> None:
        """Stop auto-advance for good. Safe to call more than once."""
        timer = self._timer
        self._closed = True
        self._set_playing(False)
        if timer is not None and timer is not asyncio.current_task():
            timer.cancel()
            try:
                await timer
            except asyncio.CancelledError:
                pass

    # --- Internals ---

    def _set_index(self, index: int) -> None:
        if index == self._index:
            return
        previous, self._index = self._index, index
        logger.debug("Stage %d -> %d (%s)", previous, index, self.current_stage.value)
        for listener in list(self._index_listeners):
            listener(index)
        # A manual step while playing gives the new stage a full interval
        if self._playing and self._timer is not asyncio.current_task():
            self._start_timer()

    def _set_playing(self, playing: bool) -> None:
        if playing and self._closed:
            logger.warning("Ignoring play request on a closed controller")
            return
        if playing == self._playing:
            return
        self._playing = playing
        if playing:
            self._start_timer()
        else:
            self._stop_timer()
        for listener in list(self._play_listeners):
            listener(playing)

    def _start_timer(self) -> None:
        self._stop_timer()
        self._timer = asyncio.get_running_loop().create_task(self._run_timer())
        logger.debug("Auto-advance started (every %.1fs)", self.interval_seconds)

    def _stop_timer(self) -> None:
        timer = self._timer
        if timer is None:
            return
        self._timer = None
        # The timer task stops itself by observing _playing; cancelling it
        # from inside its own advance() call would abort the listeners.
        if timer is not asyncio.current_task():
            timer.cancel()
        logger.debug("Auto-advance stopped at stage %d", self._index)

    async def _run_timer(self) -> None:
        me = asyncio.current_task()
        while self._playing and self._timer is me:
            await self._sleep(self.interval_seconds)
            if not self._playing or self._timer is not me:
                break
            self.advance()
