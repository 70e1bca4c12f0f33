from unittest.mock import MagicMock

from conftest import FIXED_NOW, make_recipe, make_request

from harvardplate.features.recipes.domain.models import RecipeHistoryRecord
from harvardplate.features.recipes.domain.parsing import ParseError
from harvardplate.shared.llm.openai_client import LLMUnavailableError

BODY = {
    "userId": 42,
    "ingredients": [
        {"name": "Broccoli", "category": "vegetable"},
        {"name": "Quinoa", "category": "grain"},
    ],
    "userPrompt": "Quick dinner",
    "cookingTime": 30,
}


def history_record(telegram_id: int = 42) -> RecipeHistoryRecord:
    return RecipeHistoryRecord(
        id="h1",
        telegram_id=telegram_id,
        request_data=make_request(["Broccoli", "Quinoa"]),
        response_data=make_recipe(),
        created_at=FIXED_NOW,
    )


class TestGenerateRecipe:
    def test_generates_and_logs(self, client, auth_headers, generator, history_repo, plates_repo):
        resp = client.post("/api/recipes/generate", json=BODY, headers=auth_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["title"] == "Salmon Quinoa Bowl"
        assert body["data"]["cookingTime"] == 25
        assert body["meta"]["model"] == "test-model"
        assert body["meta"]["tokenUsage"]["total_tokens"] == 30
        assert body["meta"]["savedPlateId"] is None

        request = generator.generate_recipe.await_args.args[0]
        assert [i.name for i in request.ingredients] == ["Broccoli", "Quinoa"]
        assert request.cooking_time == 30
        assert history_repo.log_request.call_args.args[0] == 42
        plates_repo.save.assert_not_called()

    def test_save_plate(self, client, auth_headers, plates_repo):
        plates_repo.save.return_value = MagicMock(id="plate-1")

        resp = client.post("/api/recipes/generate?savePlate=true", json=BODY, headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json()["meta"]["savedPlateId"] == "plate-1"
        args = plates_repo.save.call_args.args
        assert args[0] == 42
        assert args[2] == "Salmon Quinoa Bowl"

    def test_body_user_must_match_caller(self, client, auth_headers, generator):
        resp = client.post("/api/recipes/generate", json={**BODY, "userId": 7}, headers=auth_headers)
        assert resp.status_code == 403
        generator.generate_recipe.assert_not_awaited()

    def test_requires_authentication(self, client):
        resp = client.post("/api/recipes/generate", json=BODY)
        assert resp.status_code == 401
        assert resp.json()["code"] == "AUTH_REQUIRED"

    def test_empty_ingredients_rejected(self, client, auth_headers):
        resp = client.post("/api/recipes/generate", json={**BODY, "ingredients": []}, headers=auth_headers)

        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"][0]["field"] == "ingredients"

    def test_too_many_ingredients_rejected(self, client, auth_headers):
        ingredients = [{"name": f"Veg {i}", "category": "vegetable"} for i in range(16)]
        resp = client.post("/api/recipes/generate", json={**BODY, "ingredients": ingredients}, headers=auth_headers)
        assert resp.status_code == 400

    def test_unknown_category_rejected(self, client, auth_headers):
        body = {**BODY, "ingredients": [{"name": "Sugar", "category": "sweet"}]}
        resp = client.post("/api/recipes/generate", json=body, headers=auth_headers)
        assert resp.status_code == 400

    def test_cooking_time_out_of_range(self, client, auth_headers):
        resp = client.post("/api/recipes/generate", json={**BODY, "cookingTime": 2}, headers=auth_headers)
        assert resp.status_code == 400

    def test_llm_unavailable(self, client, auth_headers, generator):
        generator.generate_recipe.side_effect = LLMUnavailableError("down")
        resp = client.post("/api/recipes/generate", json=BODY, headers=auth_headers)

        assert resp.status_code == 503
        assert resp.json()["code"] == "AI_SERVICE_UNAVAILABLE"

    def test_unparseable_reply(self, client, auth_headers, generator):
        generator.generate_recipe.side_effect = ParseError("bad", "no json here")
        resp = client.post("/api/recipes/generate", json=BODY, headers=auth_headers)

        assert resp.status_code == 502
        assert resp.json()["code"] == "AI_RESPONSE_INVALID"

    def test_unexpected_error(self, client, auth_headers, generator):
        generator.generate_recipe.side_effect = RuntimeError("boom")
        resp = client.post("/api/recipes/generate", json=BODY, headers=auth_headers)

        assert resp.status_code == 500
        assert resp.json()["code"] == "INTERNAL_ERROR"


class TestRecipeHistory:
    def test_paginates(self, client, auth_headers, history_repo):
        history_repo.list_for_user.return_value = [history_record()]
        history_repo.count_for_user.return_value = 3

        resp = client.get("/api/recipes/history/42?limit=2&page=2", headers=auth_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["data"][0]["id"] == "h1"
        assert body["data"][0]["requestData"]["ingredients"][0]["name"] == "Broccoli"
        assert body["data"][0]["responseData"]["title"] == "Salmon Quinoa Bowl"
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
        history_repo.list_for_user.assert_called_once_with(42, limit=2, skip=2)

    def test_default_limit(self, client, auth_headers, history_repo):
        history_repo.list_for_user.return_value = []
        history_repo.count_for_user.return_value = 0

        resp = client.get("/api/recipes/history/42", headers=auth_headers)

        assert resp.json()["pagination"]["limit"] == 20
        history_repo.list_for_user.assert_called_once_with(42, limit=20, skip=0)

    def test_bad_user_id(self, client, auth_headers):
        assert client.get("/api/recipes/history/abc", headers=auth_headers).status_code == 400

    def test_other_user(self, client, auth_headers):
        assert client.get("/api/recipes/history/7", headers=auth_headers).status_code == 403


class TestRegenerateRecipe:
    def test_regenerates_from_stored_request(self, client, auth_headers, generator, history_repo):
        history_repo.get.return_value = history_record()

        resp = client.post("/api/recipes/regenerate/h1", headers=auth_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["isRegenerated"] is True
        assert body["originalRequestId"] == "h1"
        request = generator.generate_recipe.await_args.args[0]
        assert [i.name for i in request.ingredients] == ["Broccoli", "Quinoa"]

    def test_unknown_history(self, client, auth_headers, history_repo):
        history_repo.get.return_value = None
        resp = client.post("/api/recipes/regenerate/missing", headers=auth_headers)
        assert resp.status_code == 404

    def test_foreign_history(self, client, auth_headers, history_repo, generator):
        history_repo.get.return_value = history_record(telegram_id=7)
        resp = client.post("/api/recipes/regenerate/h1", headers=auth_headers)

        assert resp.status_code == 403
        generator.generate_recipe.assert_not_awaited()
