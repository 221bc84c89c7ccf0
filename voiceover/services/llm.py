"""Language model collaborator: protocol and PydanticAI implementation."""

import logging
import os
from typing import Optional, Protocol, Type, TypeVar

from pydantic import BaseModel
from pydantic_ai import Agent

from voiceover.utils.errors import LLMError
from voiceover.utils.retry import with_retry

logger = logging.getLogger(__name__)

OutputT = TypeVar("OutputT", bound=BaseModel)


class LanguageModel(Protocol):
    """Structured-output text generation."""

    async def generate(
        self,
        system: str,
        prompt: str,
        output_type: Type[OutputT],
        max_tokens: int,
        temperature: float,
    ) -> OutputT:
        """Return an instance of ``output_type``. Raises LLMError on failure."""
        ...


class AgentLanguageModel:
    """Runs one-shot PydanticAI agents with a typed output."""

    def __init__(self, model: str, retries: int = 2) -> None:
        """
        Initialize the AgentLanguageModel.

        Args:
            model: PydanticAI model name, e.g. "anthropic:claude-sonnet-4-20250514"
            retries: Output validation retries inside the agent
        """
        self.model = model
        self.retries = retries

    @with_retry(max_attempts=2, base_delay=1.0, exceptions=(LLMError,))
    async def generate(
        self,
        system: str,
        prompt: str,
        output_type: Type[OutputT],
        max_tokens: int,
        temperature: float,
    ) -> OutputT:
        """
        Run the prompt and return validated structured output.

        Raises:
            LLMError: If the agent fails or produces no output
        """
        try:
            agent: Agent[None, OutputT] = Agent(
                self.model,
                system_prompt=system,
                output_type=output_type,
                retries=self.retries,
            )
            result = await agent.run(
                prompt,
                model_settings={"max_tokens": max_tokens, "temperature": temperature},
            )
        except Exception as e:
            raise LLMError(f"Language model call failed: {e}")

        if not result or result.output is None:
            raise LLMError("Language model returned no output")
        return result.output


def create_language_model(model: Optional[str] = None) -> AgentLanguageModel:
    """
    Create an AgentLanguageModel using application settings.

    Returns:
        Configured AgentLanguageModel instance
    """
    from voiceover.config import get_settings

    settings = get_settings()

    # Set environment variable for pydantic-ai to pick up
    if settings.anthropic_api_key:
        os.environ["ANTHROPIC_API_KEY"] = settings.anthropic_api_key

    return AgentLanguageModel(model=model or settings.llm_model)
