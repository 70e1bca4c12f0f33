from __future__ import annotations

import logging
import time
from typing import Optional, Tuple

from harvardplate.features.recipes.domain.fallback import build_fallback_recipe
from harvardplate.features.recipes.domain.models import RecipeDraft, RecipeGenerationRequest, RecipeResponse
from harvardplate.features.recipes.domain.parsing import ParseError, parse_json_response, parse_text_response
from harvardplate.features.recipes.domain.prompts import ResponseFormat, build_messages
from harvardplate.shared.config.settings import Settings
from harvardplate.shared.llm.openai_client import ChatCompletion, LLMClient, LLMUnavailableError
from harvardplate.shared.utils.id_utils import new_id

logger = logging.getLogger(__name__)


def _finalize(draft: RecipeDraft, completion: Optional[ChatCompletion] = None) -> RecipeResponse:
    return RecipeResponse(
        id=new_id(),
        **draft.model_dump(),
        usage=completion.usage if completion else None,
        created=completion.created if completion else int(time.time()),
    )


class RecipeGenerator:
    """
    Generates one recipe per call: prompt -> model -> parser -> RecipeResponse.

    Holds no per-request state, so a single instance serves concurrent requests.
    """

    def __init__(
        self,
        llm: LLMClient,
        *,
        response_format: ResponseFormat = "json",
        temperature: float = 0.7,
        max_tokens: int = 1200,
        parse_retries: int = 1,
        fallback_enabled: bool = True,
    ) -> None:
        self.llm = llm
        self.response_format = response_format
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.parse_retries = max(0, parse_retries)
        self.fallback_enabled = fallback_enabled

    @classmethod
    def from_settings(cls, llm: LLMClient, cfg: Settings) -> "RecipeGenerator":
        return cls(
            llm,
            response_format=cfg.RECIPE_RESPONSE_FORMAT,
            temperature=cfg.RECIPE_TEMPERATURE,
            max_tokens=cfg.RECIPE_MAX_TOKENS,
            parse_retries=cfg.RECIPE_PARSE_RETRIES,
            fallback_enabled=cfg.RECIPE_FALLBACK_ENABLED,
        )

    @property
    def model(self) -> str:
        return self.llm.model

    def fallback_recipe(self, request: RecipeGenerationRequest) -> RecipeResponse:
        return _finalize(build_fallback_recipe(request))

    def _parse(self, text: str, request: RecipeGenerationRequest) -> RecipeDraft:
        if self.response_format == "json":
            return parse_json_response(text)
        return parse_text_response(text, request)

    async def _complete_and_parse(
        self, request: RecipeGenerationRequest
    ) -> Tuple[ChatCompletion, RecipeDraft]:
        messages = build_messages(request, self.response_format)
        attempts = 1 + (self.parse_retries if self.response_format == "json" else 0)
        attempt = 0
        while True:
            attempt += 1
            completion = await self.llm.complete_chat(
                messages, temperature=self.temperature, max_tokens=self.max_tokens
            )
            try:
                return completion, self._parse(completion.content, request)
            except ParseError as e:
                logger.warning(f"Unparseable model reply (attempt {attempt}/{attempts}): {e}")
                if attempt >= attempts:
                    raise

    async def generate_recipe(self, request: RecipeGenerationRequest) -> RecipeResponse:
        """
        Ask the model for a recipe and parse the reply.

        Raises LLMUnavailableError or ParseError only when the fallback recipe
        is disabled; otherwise those failures are answered with the fallback.
        """
        try:
            completion, draft = await self._complete_and_parse(request)
        except (LLMUnavailableError, ParseError) as e:
            if not self.fallback_enabled:
                raise
            logger.warning(f"Recipe generation failed ({type(e).__name__}), serving fallback recipe")
            return self.fallback_recipe(request)

        if not draft.is_complete:
            # Labeled-text replies never fail to parse but may lack ingredients or steps.
            logger.info("Parsed recipe has no ingredients or steps, serving fallback recipe")
            return _finalize(build_fallback_recipe(request), completion)

        logger.info(f"Generated recipe '{draft.title}' ({completion.usage.total_tokens} tokens)")
        return _finalize(draft, completion)
