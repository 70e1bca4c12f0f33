import json

import httpx
import pytest

from harvardplate.shared.llm.openai_client import LLMClient, LLMUnavailableError


def make_client(handler) -> LLMClient:
    return LLMClient(
        api_key="sk-test",
        base_url="http://llm.test/v1",
        model="test-model",
        transport=httpx.MockTransport(handler),
    )


class TestCompleteChat:
    @pytest.mark.asyncio
    async def test_returns_content_and_usage(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "created": 1700000000,
                    "model": "test-model",
                    "choices": [{"message": {"role": "assistant", "content": "hello"}}],
                    "usage": {"prompt_tokens": 3, "completion_tokens": 4, "total_tokens": 7},
                },
            )

        client = make_client(handler)
        result = await client.complete_chat([{"role": "user", "content": "hi"}], temperature=0.5, max_tokens=100)
        await client.aclose()

        assert result.content == "hello"
        assert result.usage.total_tokens == 7
        assert result.created == 1700000000
        assert seen["path"] == "/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "test-model"
        assert seen["body"]["temperature"] == 0.5
        assert seen["body"]["max_tokens"] == 100

    @pytest.mark.asyncio
    async def test_http_error_raises_unavailable(self):
        client = make_client(lambda request: httpx.Response(500, json={"error": "boom"}))
        with pytest.raises(LLMUnavailableError):
            await client.complete_chat([], temperature=0.5, max_tokens=10)

    @pytest.mark.asyncio
    async def test_empty_content_raises_unavailable(self):
        client = make_client(lambda request: httpx.Response(200, json={"choices": [{"message": {"content": "  "}}]}))
        with pytest.raises(LLMUnavailableError):
            await client.complete_chat([], temperature=0.5, max_tokens=10)

    @pytest.mark.asyncio
    async def test_non_json_body_raises_unavailable(self):
        client = make_client(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(LLMUnavailableError):
            await client.complete_chat([], temperature=0.5, max_tokens=10)

    @pytest.mark.asyncio
    async def test_missing_usage_defaults_to_zero(self):
        client = make_client(lambda request: httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]}))
        result = await client.complete_chat([], temperature=0.5, max_tokens=10)
        assert result.usage.total_tokens == 0
        assert result.created > 0


class TestCheckAvailability:
    @pytest.mark.asyncio
    async def test_models_listed(self):
        client = make_client(lambda request: httpx.Response(200, json={"data": [{"id": "test-model"}]}))
        assert await client.check_availability() is True

    @pytest.mark.asyncio
    async def test_no_models(self):
        client = make_client(lambda request: httpx.Response(200, json={"data": []}))
        assert await client.check_availability() is False

    @pytest.mark.asyncio
    async def test_provider_down(self):
        client = make_client(lambda request: httpx.Response(503))
        assert await client.check_availability() is False
