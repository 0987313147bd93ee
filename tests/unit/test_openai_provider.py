import asyncio
import json

import httpx
import pytest

from salesbot.llm.base import CompletionError, CompletionRequest, DialogueTurn
from salesbot.llm.openai_compat import OpenAICompatibleProvider
from salesbot.llm.prompts import FUNCTION_CATALOG


def provider_with(handler, **kwargs):
    kwargs.setdefault("base_url", "https://api.example.com/v1")
    return OpenAICompatibleProvider("test-key", transport=httpx.MockTransport(handler), **kwargs)


def request():
    return CompletionRequest(
        system_prompt="You are helpful.",
        messages=[DialogueTurn(role="user", content="hi")],
        functions=list(FUNCTION_CATALOG),
    )


def test_complete_sends_tools_and_parses_tool_calls():
    captured = {}

    def handler(http_request):
        captured["url"] = str(http_request.url)
        captured["headers"] = http_request.headers
        captured["body"] = json.loads(http_request.content)
        return httpx.Response(
            200,
            json={
                "model": "gpt-4o-mini",
                "choices": [
                    {
                        "message": {
                            "content": None,
                            "tool_calls": [
                                {
                                    "id": "call_1",
                                    "type": "function",
                                    "function": {"name": "search_products", "arguments": '{"query": "laptop"}'},
                                }
                            ],
                        }
                    }
                ],
                "usage": {"total_tokens": 77},
            },
        )

    result = asyncio.run(provider_with(handler).complete(request()))

    assert captured["url"] == "https://api.example.com/v1/chat/completions"
    assert captured["headers"]["authorization"] == "Bearer test-key"
    assert "http-referer" not in captured["headers"]
    assert captured["body"]["messages"][0] == {"role": "system", "content": "You are helpful."}
    assert captured["body"]["tool_choice"] == "auto"
    assert captured["body"]["tools"][0]["function"]["name"] == "search_products"
    assert captured["body"]["temperature"] == 0.7
    assert captured["body"]["max_tokens"] == 1000
    assert result.content == ""
    assert result.function_call.name == "search_products"
    assert json.loads(result.function_call.arguments) == {"query": "laptop"}
    assert result.total_tokens == 77


def test_legacy_function_call_with_object_arguments():
    def handler(http_request):
        return httpx.Response(
            200,
            json={
                "choices": [
                    {
                        "message": {
                            "content": "  Let me check.  ",
                            "function_call": {"name": "generate_coupon", "arguments": {"amount": 10}},
                        }
                    }
                ],
            },
        )

    result = asyncio.run(provider_with(handler, model="legacy-model").complete(request()))

    assert result.content == "Let me check."
    assert result.function_call.name == "generate_coupon"
    assert json.loads(result.function_call.arguments) == {"amount": 10}
    assert result.model == "legacy-model"


def test_request_without_functions_omits_tools():
    provider = provider_with(lambda http_request: httpx.Response(200, json={}))

    payload = provider.build_payload(CompletionRequest(system_prompt="sys", temperature=0.3, max_tokens=500))

    assert "tools" not in payload
    assert payload["temperature"] == 0.3
    assert payload["max_tokens"] == 500


def test_openrouter_headers():
    captured = {}

    def handler(http_request):
        captured["headers"] = http_request.headers
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    provider = provider_with(
        handler,
        base_url="https://openrouter.ai/api/v1",
        referer="https://shop.example.com",
        title="Shop Assistant",
    )
    asyncio.run(provider.complete(request()))

    assert captured["headers"]["http-referer"] == "https://shop.example.com"
    assert captured["headers"]["x-title"] == "Shop Assistant"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, content=b"<html>not json</html>"),
        httpx.Response(200, json={"choices": []}),
    ],
)
def test_provider_failures_raise_completion_error(response):
    provider = provider_with(lambda http_request: response)

    with pytest.raises(CompletionError):
        asyncio.run(provider.complete(request()))


def test_transport_error_raises_completion_error():
    def handler(http_request):
        raise httpx.ConnectError("unreachable", request=http_request)

    with pytest.raises(CompletionError):
        asyncio.run(provider_with(handler).complete(request()))


def test_missing_api_key_is_reported():
    provider = OpenAICompatibleProvider(None)

    assert provider.enabled is False
    with pytest.raises(CompletionError):
        asyncio.run(provider.complete(request()))
