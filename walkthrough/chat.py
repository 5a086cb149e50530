"""Question/answer dialogue about the stage on screen."""

import logging
from collections.abc import Callable

from walkthrough.config import MessagesConfig
from walkthrough.explainer import BaseExplainer, ExplainerError, MissingCredentialsError
from walkthrough.models import ChatRole, ChatTurn

logger = logging.getLogger(__name__)


class ChatSession:
    """Append-only transcript with at most one question in flight.

    Each request carries only the new question and the current stage title.
    The transcript is never sent back to the service.
    """

    def __init__(
        self,
        explainer: BaseExplainer,
        stage_title: Callable[[], str],
        messages: MessagesConfig | None = None,
    ) -> None:
        self.explainer = explainer
        self._stage_title = stage_title
        self.messages = messages or MessagesConfig()
        self._turns: list[ChatTurn] = []
        self._busy = False

    @property
    def transcript(self) -> tuple[ChatTurn, ...]:
        return tuple(self._turns)

    @property
    def is_busy(self) -> bool:
        return self._busy

    async def submit(self, question: str) -> bool:
        """Ask one question. Returns False if it was ignored.

        Blank questions and questions sent while an answer is outstanding
        are ignored without touching the transcript.
        """
        if not question or not question.strip():
            return False
        if self._busy:
            logger.debug("Question ignored: previous answer still pending")
            return False

        # Both happen before the first await so overlapping calls see them
        self._busy = True
        self._turns.append(ChatTurn(role=ChatRole.ASKER, text=question))
        context = self._stage_title()
        try:
            reply = await self._ask(question, context)
        finally:
            self._busy = False
        self._turns.append(reply)
        return True

    async def _ask(self, question: str, context: str) -> ChatTurn:
        try:
            text = await self.explainer.answer_question(question, context)
        except MissingCredentialsError:
            logger.warning("Question not sent: no API key configured")
            return self._failed(self.messages.chat_missing_key)
        except ExplainerError as e:
            logger.error("Question failed: %s", e)
            return self._failed(self.messages.chat_failed)
        except Exception as e:
            logger.error("Unexpected question error: %s", e)
            return self._failed(self.messages.chat_failed)
        return ChatTurn(role=ChatRole.RESPONDER, text=text or self.messages.chat_empty)

    @staticmethod
    def _failed(text: str) -> ChatTurn:
        return ChatTurn(role=ChatRole.RESPONDER, text=text, failed=True)
