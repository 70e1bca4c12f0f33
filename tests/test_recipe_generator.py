import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import make_request

from harvardplate.features.recipes.app.use_cases import RecipeGenerator
from harvardplate.features.recipes.domain.parsing import ParseError
from harvardplate.shared.config.settings import Settings
from harvardplate.shared.llm.openai_client import ChatCompletion, LLMUnavailableError, TokenUsage

GOOD_JSON = json.dumps(
    {
        "title": "Tomato Rice",
        "ingredients": [{"name": "Tomato", "quantity": "2", "category": "vegetable"}],
        "steps": ["Cook the rice.", "Add tomatoes."],
    }
)
TEXT_REPLY = "TITLE: Tomato Rice\nINGREDIENTS:\n• Tomato - 2 pcs - vegetable\nSTEPS:\n1. Cook.\n"


def completion(content: str) -> ChatCompletion:
    return ChatCompletion(
        content=content,
        usage=TokenUsage(prompt_tokens=5, completion_tokens=7, total_tokens=12),
        created=1700000000,
        model="test-model",
    )


def fake_llm(*replies) -> MagicMock:
    llm = MagicMock()
    llm.model = "test-model"
    llm.complete_chat = AsyncMock(side_effect=list(replies))
    return llm


class TestRecipeGenerator:
    @pytest.mark.asyncio
    async def test_json_reply_becomes_recipe(self):
        llm = fake_llm(completion(GOOD_JSON))
        recipe = await RecipeGenerator(llm).generate_recipe(make_request(["Tomato"]))

        assert recipe.title == "Tomato Rice"
        assert recipe.id
        assert recipe.usage.total_tokens == 12
        assert recipe.created == 1700000000
        llm.complete_chat.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_json_parse_failure_is_retried(self):
        llm = fake_llm(completion("no json here"), completion(GOOD_JSON))
        recipe = await RecipeGenerator(llm, parse_retries=1).generate_recipe(make_request(["Tomato"]))

        assert recipe.title == "Tomato Rice"
        assert llm.complete_chat.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_serve_fallback(self):
        llm = fake_llm(completion("no json here"), completion("still nothing"))
        recipe = await RecipeGenerator(llm, parse_retries=1).generate_recipe(make_request(["Tomato"]))

        assert recipe.title == 'Salad "Tomato"'
        assert recipe.usage is None
        assert llm.complete_chat.await_count == 2

    @pytest.mark.asyncio
    async def test_parse_error_propagates_without_fallback(self):
        llm = fake_llm(completion("no json here"))
        generator = RecipeGenerator(llm, parse_retries=0, fallback_enabled=False)

        with pytest.raises(ParseError):
            await generator.generate_recipe(make_request())

    @pytest.mark.asyncio
    async def test_unavailable_llm_serves_fallback(self):
        llm = fake_llm(LLMUnavailableError("down"))
        recipe = await RecipeGenerator(llm).generate_recipe(make_request(["Tomato", "Rice"]))

        assert recipe.title == 'Salad "Tomato, Rice"'
        assert recipe.is_complete

    @pytest.mark.asyncio
    async def test_unavailable_llm_propagates_without_fallback(self):
        llm = fake_llm(LLMUnavailableError("down"))
        with pytest.raises(LLMUnavailableError):
            await RecipeGenerator(llm, fallback_enabled=False).generate_recipe(make_request())

    @pytest.mark.asyncio
    async def test_text_reply_is_parsed_once(self):
        llm = fake_llm(completion(TEXT_REPLY))
        recipe = await RecipeGenerator(llm, response_format="text").generate_recipe(make_request(["Tomato"]))

        assert recipe.title == "Tomato Rice"
        assert recipe.steps == ["Cook."]
        messages = llm.complete_chat.await_args.args[0]
        assert "TITLE" in messages[0]["content"]

    @pytest.mark.asyncio
    async def test_incomplete_text_reply_serves_fallback_with_usage(self):
        llm = fake_llm(completion("Sorry, I cannot help with that."))
        recipe = await RecipeGenerator(llm, response_format="text", parse_retries=3).generate_recipe(
            make_request(["Tomato"])
        )

        assert recipe.title == 'Salad "Tomato"'
        assert recipe.usage.total_tokens == 12
        llm.complete_chat.assert_awaited_once()


def test_from_settings_copies_generation_options():
    cfg = Settings(
        _env_file=None,
        RECIPE_RESPONSE_FORMAT="text",
        RECIPE_TEMPERATURE=0.2,
        RECIPE_MAX_TOKENS=500,
        RECIPE_PARSE_RETRIES=2,
        RECIPE_FALLBACK_ENABLED=False,
    )
    generator = RecipeGenerator.from_settings(fake_llm(), cfg)

    assert generator.response_format == "text"
    assert generator.temperature == 0.2
    assert generator.max_tokens == 500
    assert generator.parse_retries == 2
    assert generator.fallback_enabled is False
    assert generator.model == "test-model"
