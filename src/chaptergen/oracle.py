"""
Labeling oracle: the LLM that turns a segment digest into chapter titles.
"""

import logging
from typing import Protocol

from openai import AsyncOpenAI, OpenAIError

from .errors import CollaboratorFailure
from .prompt import LabelRequest

logger = logging.getLogger("chaptergen")


class LabelingOracle(Protocol):
    """Anything that can answer a LabelRequest with free text."""

    async def complete(self, request: LabelRequest) -> str: ...


class OpenAIOracle:
    """Labeling oracle backed by OpenAI chat completions."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "gpt-4o-mini",
        *,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ):
        if client is None:
            raise RuntimeError("OpenAI client is not initialized (missing OPENAI_API_KEY)")
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def complete(self, request: LabelRequest) -> str:
        logger.info(f"Requesting {request.band.min}-{request.band.max} chapters from {self.model}")
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": request.system},
                    {"role": "user", "content": request.user},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI chapter generation failed: {e}")
            raise CollaboratorFailure("labeling oracle", str(e)) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
