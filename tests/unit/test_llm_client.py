"""Tests for the Gemini client using httpx's mock transport."""
import json

import httpx
import pytest

from guide_qa.llm_client import MISSING_KEY_MESSAGE, ConfigError, GeminiClient, LLMError


BASE_URL = "https://gemini.test/v1beta"


def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def make_client(handler, api_key: str = "test-key") -> GeminiClient:
    return GeminiClient(
        api_key=api_key,
        base_url=BASE_URL,
        model="gemini-2.5-flash",
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_generate_sends_prompt_and_config():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["key"] = request.headers.get("x-goog-api-key")
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=gemini_reply("Answer (Page 2)"))

    client = make_client(handler)
    text = await client.generate("question", system_instruction="be brief", temperature=0.3)

    assert text == "Answer (Page 2)"
    assert captured["url"] == f"{BASE_URL}/models/gemini-2.5-flash:generateContent"
    assert captured["key"] == "test-key"
    assert captured["body"]["contents"] == [{"role": "user", "parts": [{"text": "question"}]}]
    assert captured["body"]["systemInstruction"] == {"parts": [{"text": "be brief"}]}
    assert captured["body"]["generationConfig"] == {"temperature": 0.3}


@pytest.mark.asyncio
async def test_generate_with_schema_requests_json():
    schema = {"type": "OBJECT", "properties": {}}
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=gemini_reply('{"relevant_document_ids": []}'))

    await make_client(handler).generate("pick", response_schema=schema, temperature=0)

    config = captured["body"]["generationConfig"]
    assert config["responseMimeType"] == "application/json"
    assert config["responseSchema"] == schema
    assert config["temperature"] == 0
    assert "systemInstruction" not in captured["body"]


@pytest.mark.asyncio
async def test_missing_key_fails_before_any_request():
    def handler(request):
        raise AssertionError("no request expected")

    client = make_client(handler, api_key="")

    with pytest.raises(ConfigError) as exc_info:
        await client.generate("question")
    assert str(exc_info.value) == MISSING_KEY_MESSAGE
    assert not client.is_configured


@pytest.mark.asyncio
async def test_rejected_key_is_config_error():
    def handler(request):
        return httpx.Response(
            400,
            json={"error": {"code": 400, "message": "API key not valid. Please pass a valid API key.", "status": "INVALID_ARGUMENT"}},
        )

    with pytest.raises(ConfigError, match="API key not valid"):
        await make_client(handler).generate("question")


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [429, 500, 503])
async def test_service_errors_are_llm_errors(status):
    client = make_client(lambda request: httpx.Response(status, json={"error": {"message": "busy"}}))

    with pytest.raises(LLMError) as exc_info:
        await client.generate("question")
    assert not isinstance(exc_info.value, ConfigError)


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [["unexpected"], "overloaded", {"error": "overloaded"}])
async def test_unusual_error_bodies_are_llm_errors(body):
    client = make_client(lambda request: httpx.Response(500, json=body))

    with pytest.raises(LLMError, match="Gemini API error: 500") as exc_info:
        await client.generate("question")
    assert not isinstance(exc_info.value, ConfigError)


@pytest.mark.asyncio
async def test_forbidden_with_list_body_is_config_error():
    client = make_client(lambda request: httpx.Response(403, json=[{"error": "denied"}]))

    with pytest.raises(ConfigError, match="Invalid API_KEY: Forbidden"):
        await client.generate("question")


@pytest.mark.asyncio
async def test_connection_error_is_llm_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(LLMError, match="Could not connect"):
        await make_client(handler).generate("question")


@pytest.mark.asyncio
async def test_blocked_prompt_is_llm_error():
    client = make_client(
        lambda request: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})
    )

    with pytest.raises(LLMError, match="SAFETY"):
        await client.generate("question")


@pytest.mark.asyncio
async def test_list_models_strips_prefix():
    client = make_client(
        lambda request: httpx.Response(
            200, json={"models": [{"name": "models/gemini-2.5-flash"}, {"name": "models/gemini-2.5-pro"}]}
        )
    )

    assert await client.list_models() == ["gemini-2.5-flash", "gemini-2.5-pro"]
