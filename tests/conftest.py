from datetime import datetime, timezone
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from harvardplate.app import create_app
from harvardplate.features.plates.infra.plates_repo import PlatesRepository
from harvardplate.features.recipes.domain.models import (
    Ingredient,
    RecipeGenerationRequest,
    RecipeIngredient,
    RecipeResponse,
)
from harvardplate.features.recipes.infra.history_repo import RecipeHistoryRepository
from harvardplate.features.users.infra.users_repo import UsersRepository
from harvardplate.shared.api.deps import (
    get_history_repo,
    get_plates_repo,
    get_recipe_generator,
    get_users_repo,
)
from harvardplate.shared.config.settings import Settings
from harvardplate.shared.llm.openai_client import LLMClient, TokenUsage

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_request(names: Optional[List[str]] = None, **kwargs) -> RecipeGenerationRequest:
    names = names or ["Broccoli", "Quinoa", "Salmon"]
    categories = ["vegetable", "grain", "protein", "fat"]
    ingredients = [Ingredient(name=n, category=categories[i % 4]) for i, n in enumerate(names)]
    return RecipeGenerationRequest(ingredients=ingredients, **kwargs)


def make_recipe(**overrides) -> RecipeResponse:
    data = dict(
        id="recipe-1",
        title="Salmon Quinoa Bowl",
        description="A warm bowl.",
        cooking_time=25,
        difficulty="easy",
        ingredients=[RecipeIngredient(name="Salmon", quantity="150 g", category="protein")],
        steps=["Cook the quinoa.", "Bake the salmon."],
        usage=TokenUsage(prompt_tokens=10, completion_tokens=20, total_tokens=30),
        created=1700000000,
    )
    data.update(overrides)
    return RecipeResponse(**data)


def models_transport(status_code: int = 200, payload: Optional[dict] = None) -> httpx.MockTransport:
    body = payload if payload is not None else {"data": [{"id": "test-model"}]}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=body)

    return httpx.MockTransport(handler)


@pytest.fixture
def cfg() -> Settings:
    return Settings(
        _env_file=None,
        LOG_LEVEL="WARNING",
        AUTH_DISABLED=True,
        SERVICE_TOKEN="svc-token",
        BOT_TOKEN="123456:TEST",
        RATE_LIMIT_ENABLED=False,
        CHAT_MODEL="test-model",
    )


@pytest.fixture
def generator():
    gen = MagicMock()
    gen.model = "test-model"
    gen.generate_recipe = AsyncMock(return_value=make_recipe())
    return gen


@pytest.fixture
def history_repo():
    return MagicMock(spec=RecipeHistoryRepository)


@pytest.fixture
def users_repo():
    return MagicMock(spec=UsersRepository)


@pytest.fixture
def plates_repo():
    return MagicMock(spec=PlatesRepository)


@pytest.fixture
def llm(cfg):
    return LLMClient(
        api_key="test-key",
        base_url="http://llm.test/v1",
        model=cfg.CHAT_MODEL,
        transport=models_transport(),
    )


@pytest.fixture
def app(cfg, llm, generator, history_repo, users_repo, plates_repo):
    application = create_app(cfg, db=MagicMock(), llm=llm)
    application.dependency_overrides[get_recipe_generator] = lambda: generator
    application.dependency_overrides[get_history_repo] = lambda: history_repo
    application.dependency_overrides[get_users_repo] = lambda: users_repo
    application.dependency_overrides[get_plates_repo] = lambda: plates_repo
    return application


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def auth_headers():
    return {"X-User-Id": "42"}
