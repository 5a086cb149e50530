"""Walkthrough session — wires the controller, enrichment and chat together."""

import logging

from walkthrough.catalog import metadata_for, stage_at
from walkthrough.chat import ChatSession
from walkthrough.config import Config
from walkthrough.enrichment import EnrichmentOrchestrator
from walkthrough.explainer import BaseExplainer, GeminiExplainer
from walkthrough.models import ChatTurn, PlayerView, RenderState
from walkthrough.playback import PlaybackController
from walkthrough.render import build_player_view, derive_render_state

logger = logging.getLogger(__name__)


class WalkthroughSession:
    """One viewer's handshake walkthrough.

    The presentation layer reads `render_state`, `transcript` and `view()`
    and drives everything else through the navigation and `ask` methods.
    Must be created and used inside a running event loop.
    """

    def __init__(self, config: Config, explainer: BaseExplainer | None = None) -> None:
        self.config = config
        self.explainer = explainer or GeminiExplainer(config)
        self.controller = PlaybackController(config.playback.interval_seconds)
        self.enrichment = EnrichmentOrchestrator(self.explainer, config.messages)
        self.chat = ChatSession(
            self.explainer,
            stage_title=lambda: metadata_for(self.controller.current_stage).title,
            messages=config.messages,
        )
        if not self.explainer.available:
            logger.warning("No API key configured; analyst and chat will show fallback text")
        self._render_state = derive_render_state(self.controller.current_index)
        self.controller.on_index_change(self._on_index_change)

    def _on_index_change(self, index: int) -> None:
        self._render_state = derive_render_state(index)
        self.enrichment.stage_entered(stage_at(index))

    # --- Read side ---

    @property
    def render_state(self) -> RenderState:
        return self._render_state

    @property
    def transcript(self) -> tuple[ChatTurn, ...]:
        return self.chat.transcript

    def view(self) -> PlayerView:
        return build_player_view(
            self.controller.state,
            enrichment=self.enrichment.text,
            chat_busy=self.chat.is_busy,
        )

    # --- Mutation entry points ---

    def advance(self) -> None:
        self.controller.advance()

    def retreat(self) -> None:
        self.controller.retreat()

    def reset(self) -> None:
        self.controller.reset()

    def toggle_play(self) -> None:
        self.controller.toggle_play()

    async def ask(self, question: str) -> bool:
        return await self.chat.submit(question)

    async def close(self) -> None:
        await self.controller.close()
        await self.enrichment.close()
        logger.debug("Session closed")
