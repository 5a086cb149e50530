"""Per-stage deep-dive fetching with late-response filtering."""

import asyncio
import logging
from collections.abc import Callable

from walkthrough.catalog import metadata_for
from walkthrough.config import MessagesConfig
from walkthrough.explainer import BaseExplainer, ExplainerError, MissingCredentialsError
from walkthrough.models import EnrichmentResult, Stage

logger = logging.getLogger(__name__)

TextListener = Callable[[str], None]


class EnrichmentOrchestrator:
    """Keeps the analyst text in step with the stage on screen.

    Every stage entry bumps a generation counter and fires one request
    tagged with (stage, generation). A result is applied only if both still
    match when it arrives; anything else is dropped. Requests are never
    cancelled on stage change, only on close().
    """

    def __init__(self, explainer: BaseExplainer, messages: MessagesConfig | None = None) -> None:
        self.explainer = explainer
        self.messages = messages or MessagesConfig()
        self._stage: Stage = Stage.IDLE
        self._generation = 0
        self._text = self.messages.ready
        self._pending: set[asyncio.Task[None]] = set()
        self._listeners: list[TextListener] = []
        self.discarded = 0

    @property
    def text(self) -> str:
        return self._text

    @property
    def current_stage(self) -> Stage:
        return self._stage

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    def on_text_change(self, listener: TextListener) -> None:
        self._listeners.append(listener)

    def stage_entered(self, stage: Stage) -> None:
        """Show the placeholder for a new stage and start its fetch."""
        self._stage = stage
        self._generation += 1

        if stage == Stage.IDLE:
            self._set_text(self.messages.ready)
            return

        self._set_text(self.messages.pending)
        task = asyncio.get_running_loop().create_task(
            self._fetch(stage, self._generation)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        logger.debug("Deep dive requested for %s (generation %d)", stage.value, self._generation)

    async def wait_idle(self) -> None:
        """Wait until every outstanding fetch has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()

    async def _fetch(self, stage: Stage, generation: int) -> None:
        result = await self.fetch(stage)
        self._apply(result, generation)

    async def fetch(self, stage: Stage) -> EnrichmentResult:
        """Request one deep dive. Failures come back as fallback text, never raised."""
        title = metadata_for(stage).title
        try:
            text = await self.explainer.explain_stage(title)
        except MissingCredentialsError:
            logger.warning("Deep dive skipped for %s: no API key configured", stage.value)
            text = self.messages.deep_dive_missing_key
        except ExplainerError as e:
            logger.error("Deep dive failed for %s: %s", stage.value, e)
            text = self.messages.deep_dive_failed
        except Exception as e:
            logger.error("Unexpected deep dive error for %s: %s", stage.value, e)
            text = self.messages.deep_dive_failed
        else:
            if not text:
                text = self.messages.deep_dive_empty
        return EnrichmentResult(for_stage=stage, text=text)

    def _apply(self, result: EnrichmentResult, generation: int) -> bool:
        if result.for_stage != self._stage or generation != self._generation:
            self.discarded += 1
            logger.debug(
                "Discarding stale deep dive for %s (now on %s)",
                result.for_stage.value, self._stage.value,
            )
            return False
        self._set_text(result.text)
        logger.info("Deep dive applied for %s", result.for_stage.value)
        return True

    def _set_text(self, text: str) -> None:
        self._text = text
        for listener in list(self._listeners):
            listener(text)
