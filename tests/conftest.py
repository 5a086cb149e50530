"""Shared test fixtures for walkthrough tests."""

import asyncio

import pytest

from walkthrough.config import Config, LLMConfig, MessagesConfig, PlaybackConfig
from walkthrough.explainer import BaseExplainer, ExplainerError

API_KEY_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


class ScriptedExplainer(BaseExplainer):
    """In-memory text service whose answers are released by the test.

    Each call parks on its own gate until the test calls release(); that way
    tests decide the order in which responses arrive.
    """

    def __init__(self) -> None:
        self.stage_calls: list[str] = []
        self.question_calls: list[tuple[str, str]] = []
        self._gates: dict[str, asyncio.Event] = {}
        self._answers: dict[str, str | Exception] = {}
        self.auto_release = False

    def release(self, key: str, answer: str | Exception) -> None:
        self._answers[key] = answer
        self._gates.setdefault(key, asyncio.Event()).set()

    async def _wait(self, key: str) -> str:
        if not self.auto_release:
            await self._gates.setdefault(key, asyncio.Event()).wait()
        answer = self._answers.get(key, f"answer for {key}")
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def explain_stage(self, stage_title: str) -> str:
        self.stage_calls.append(stage_title)
        return await self._wait(stage_title)

    async def answer_question(self, question: str, stage_title: str) -> str:
        self.question_calls.append((question, stage_title))
        return await self._wait(question)


class FailingExplainer(BaseExplainer):
    async def explain_stage(self, stage_title: str) -> str:
        raise ExplainerError("service down")

    async def answer_question(self, question: str, stage_title: str) -> str:
        raise ExplainerError("service down")


@pytest.fixture()
def config():
    """Default config with a fast auto-advance interval."""
    return Config(
        llm=LLMConfig(),
        playback=PlaybackConfig(interval_seconds=0.01),
        messages=MessagesConfig(),
    )


@pytest.fixture()
def no_api_key(monkeypatch):
    """Remove every credential variable the explainer looks at."""
    for name in API_KEY_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def scripted():
    return ScriptedExplainer()


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run up to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)
