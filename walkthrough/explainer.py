"""Text-generation client — stage deep dives and viewer questions via Gemini."""

import abc
import asyncio
import logging
from pathlib import Path
from typing import Any

import yaml
from google import genai
from google.genai import types

from walkthrough.config import Config

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"


class ExplainerError(Exception):
    """The text service could not produce an answer."""


class MissingCredentialsError(ExplainerError):
    """No API key is configured, so no request was sent."""


def render_prompt(path: Path, **variables: str) -> tuple[str | None, str]:
    """Load a prompt YAML file and fill in its placeholders.

    Returns (system_instruction, user_prompt). The system part is optional.
    """
    raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
    if "user" not in raw:
        raise ValueError(f"Prompt file has no 'user' section: {path}")
    system = raw.get("system")
    user = raw["user"].format(**variables)
    return (system.strip() if system else None), user.strip()


class BaseExplainer(abc.ABC):
    """Request/response interface to the external text service."""

    @property
    def available(self) -> bool:
        """False when calls are known to fail up front (e.g. no credential)."""
        return True

    @abc.abstractmethod
    async def explain_stage(self, stage_title: str) -> str:
        """Return a short in-depth explanation of one handshake stage.

        Raises:
            ExplainerError: the service failed or no credential is configured.
        """
        ...

    @abc.abstractmethod
    async def answer_question(self, question: str, stage_title: str) -> str:
        """Answer a viewer question, using the visible stage as context.

        Only the single question is sent; earlier transcript turns are not.

        Raises:
            ExplainerError: the service failed or no credential is configured.
        """
        ...


class GeminiExplainer(BaseExplainer):
    """Gemini-backed explainer. Empty answers come back as empty strings."""

    def __init__(self, config: Config, client: genai.Client | None = None) -> None:
        self.config = config
        self._client = client

    @property
    def available(self) -> bool:
        return self._client is not None or self.config.resolve_api_key() is not None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            api_key = self.config.resolve_api_key()
            if not api_key:
                raise MissingCredentialsError(
                    f"No API key found in {', '.join(self.config.llm.api_key_env)}"
                )
            self._client = genai.Client(api_key=api_key)
        return self._client

    async def explain_stage(self, stage_title: str) -> str:
        system, prompt = render_prompt(
            PROMPTS_DIR / "stage_deep_dive.yaml", stage_title=stage_title,
        )
        return await self._generate(prompt, system, task="deep_dive")

    async def answer_question(self, question: str, stage_title: str) -> str:
        system, prompt = render_prompt(
            PROMPTS_DIR / "question_answer.yaml",
            stage_title=stage_title,
            question=question,
        )
        return await self._generate(prompt, system, task="question")

    async def _generate(self, prompt: str, system: str | None, task: str) -> str:
        client = self._get_client()
        gen_config = (
            types.GenerateContentConfig(system_instruction=system) if system else None
        )
        logger.debug("Gemini %s request (%d chars)", task, len(prompt))
        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self.config.llm.model,
                    contents=prompt,
                    config=gen_config,
                ),
                timeout=self.config.llm.request_timeout,
            )
        except asyncio.TimeoutError as e:
            raise ExplainerError(
                f"Gemini {task} timed out after {self.config.llm.request_timeout}s"
            ) from e
        except Exception as e:
            raise ExplainerError(f"Gemini {task} failed: {e}") from e

        return response.text or ""
