import json

import httpx
import openai
import pytest
import requests
from openai.types.chat import ChatCompletion

from learning_assistant.core.errors import ConfigurationError, UpstreamRequestError
from learning_assistant.core.factory import get_completion_endpoint, normalize_provider
from learning_assistant.providers import http
from learning_assistant.providers.llm_anthropic import AnthropicEndpoint, AnthropicEndpointConfig
from learning_assistant.providers.llm_gemini import GeminiEndpoint, GeminiEndpointConfig
from learning_assistant.providers.llm_openai import OpenAIEndpoint, OpenAIEndpointConfig
from learning_assistant.tools import TOOL_CATALOG
from learning_assistant.tools.definitions import ProviderMessage, ToolCallRequest, ToolExecutionResult

from conftest import FakeResponse


def tool_turns(raw, call_ids, names=("video_search", "web_search")):
    """Assistant tool-request turn plus the matching tool-result turn."""
    results = [
        ToolExecutionResult(call_id=call_ids[0], tool_name=names[0], items=[{"id": "v1"}]),
        ToolExecutionResult(call_id=call_ids[1], tool_name=names[1], error="Failed to execute web_search"),
    ]
    return [
        ProviderMessage(
            role="assistant",
            tool_calls=tuple(ToolCallRequest(id=i, name=n, arguments={}) for i, n in zip(call_ids, names)),
            raw=raw,
        ),
        ProviderMessage(role="tool", tool_results=tuple(results)),
    ]


class FakeCompletions:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.response


class FakeOpenAIClient:
    def __init__(self, completions):
        self.chat = type("Chat", (), {"completions": completions})()


def chat_completion(message):
    return ChatCompletion.model_validate(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "gpt-4o-mini",
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "tool_calls" if message.get("tool_calls") else "stop",
                    "message": message,
                }
            ],
        }
    )


def test_openai_request_and_tool_calls():
    completions = FakeCompletions(
        chat_completion(
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {"name": "video_search", "arguments": '{"query": "볶음밥"}'},
                    },
                    {
                        "id": "call_2",
                        "type": "function",
                        "function": {"name": "web_search", "arguments": "{not json"},
                    },
                ],
            }
        )
    )
    endpoint = OpenAIEndpoint(OpenAIEndpointConfig(api_key="sk"), client=FakeOpenAIClient(completions))

    resp = endpoint.send("system!", [ProviderMessage(role="user", content="hi")], TOOL_CATALOG, "required")

    kwargs = completions.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["tool_choice"] == "required"
    assert kwargs["max_tokens"] == 3000
    assert kwargs["messages"] == [
        {"role": "system", "content": "system!"},
        {"role": "user", "content": "hi"},
    ]
    assert kwargs["tools"][0]["type"] == "function"
    assert kwargs["tools"][0]["function"]["name"] == "video_search"

    assert [(c.id, c.name) for c in resp.tool_calls] == [("call_1", "video_search"), ("call_2", "web_search")]
    assert resp.tool_calls[0].arguments == {"query": "볶음밥"}
    assert resp.tool_calls[1].arguments == {}
    assert resp.raw_message["role"] == "assistant"
    assert resp.raw_message["tool_calls"][0]["id"] == "call_1"


def test_openai_tool_result_messages():
    completions = FakeCompletions(chat_completion({"role": "assistant", "content": "Final"}))
    endpoint = OpenAIEndpoint(OpenAIEndpointConfig(api_key="sk"), client=FakeOpenAIClient(completions))
    raw = {"role": "assistant", "content": None, "tool_calls": [{"id": "call_1"}, {"id": "call_2"}]}
    transcript = [ProviderMessage(role="user", content="hi")] + tool_turns(raw, ["call_1", "call_2"])

    resp = endpoint.send("sys", transcript, TOOL_CATALOG, "auto")

    messages = completions.kwargs["messages"]
    assert completions.kwargs["tool_choice"] == "auto"
    assert messages[2] == raw
    assert messages[3] == {"role": "tool", "tool_call_id": "call_1", "content": json.dumps([{"id": "v1"}])}
    assert messages[4]["tool_call_id"] == "call_2"
    assert json.loads(messages[4]["content"]) == {"error": "Failed to execute web_search"}
    assert resp.text == "Final"
    assert resp.tool_calls == []


def test_openai_status_error_is_upstream_error():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    error = openai.APIStatusError(
        "rate limited", response=httpx.Response(429, request=request), body=None
    )
    endpoint = OpenAIEndpoint(
        OpenAIEndpointConfig(api_key="sk"), client=FakeOpenAIClient(FakeCompletions(error=error))
    )

    with pytest.raises(UpstreamRequestError) as excinfo:
        endpoint.send("sys", [ProviderMessage(role="user", content="hi")], TOOL_CATALOG)
    assert excinfo.value.status_code == 429
    assert excinfo.value.provider == "openai"


def test_anthropic_request_shape_and_parsing(monkeypatch):
    captured = {}

    def fake_post(url, headers=None, params=None, json=None, timeout=None):
        captured.update(url=url, headers=headers, payload=json)
        return FakeResponse(
            200,
            {
                "stop_reason": "tool_use",
                "content": [
                    {"type": "text", "text": "Let me look."},
                    {"type": "tool_use", "id": "toolu_1", "name": "video_search", "input": {"query": "q"}},
                    {"type": "tool_use", "id": "toolu_2", "name": "web_search", "input": {"query": "q"}},
                ],
            },
        )

    monkeypatch.setattr(http.requests, "post", fake_post)
    endpoint = AnthropicEndpoint(AnthropicEndpointConfig(api_key="sk-ant"))

    resp = endpoint.send("sys", [ProviderMessage(role="user", content="hi")], TOOL_CATALOG, "required")

    assert captured["url"] == "https://api.anthropic.com/v1/messages"
    assert captured["headers"]["x-api-key"] == "sk-ant"
    assert captured["headers"]["anthropic-version"] == "2023-06-01"
    payload = captured["payload"]
    assert payload["system"] == "sys"
    assert payload["tool_choice"] == {"type": "any"}
    assert payload["tools"][1]["name"] == "web_search"
    assert "input_schema" in payload["tools"][1]
    assert payload["messages"] == [{"role": "user", "content": "hi"}]

    assert [c.id for c in resp.tool_calls] == ["toolu_1", "toolu_2"]
    assert resp.text == "Let me look."
    assert len(resp.raw_message) == 3


def test_anthropic_tool_results_are_one_user_turn(monkeypatch):
    captured = {}

    def fake_post(url, headers=None, params=None, json=None, timeout=None):
        captured["payload"] = json
        return FakeResponse(200, {"content": [{"type": "text", "text": "Answer"}]})

    monkeypatch.setattr(http.requests, "post", fake_post)
    raw_blocks = [{"type": "tool_use", "id": "toolu_1"}, {"type": "tool_use", "id": "toolu_2"}]
    transcript = [ProviderMessage(role="user", content="hi")] + tool_turns(raw_blocks, ["toolu_1", "toolu_2"])

    resp = AnthropicEndpoint(AnthropicEndpointConfig(api_key="k")).send("sys", transcript, TOOL_CATALOG)

    messages = captured["payload"]["messages"]
    assert captured["payload"]["tool_choice"] == {"type": "auto"}
    assert messages[1] == {"role": "assistant", "content": raw_blocks}
    assert messages[2]["role"] == "user"
    ok_block, error_block = messages[2]["content"]
    assert ok_block["type"] == "tool_result"
    assert ok_block["tool_use_id"] == "toolu_1"
    assert "is_error" not in ok_block
    assert error_block["tool_use_id"] == "toolu_2"
    assert error_block["is_error"] is True
    assert resp.text == "Answer"


def test_gemini_request_shape_and_synthesized_ids(monkeypatch):
    captured = {}

    def fake_post(url, headers=None, params=None, json=None, timeout=None):
        captured.update(url=url, headers=headers, params=params, payload=json)
        return FakeResponse(
            200,
            {
                "candidates": [
                    {
                        "content": {
                            "role": "model",
                            "parts": [
                                {"functionCall": {"name": "video_search", "args": {"query": "q"}}},
                                {"functionCall": {"name": "web_search", "args": {"query": "q"}, "id": "fc-9"}},
                            ],
                        }
                    }
                ]
            },
        )

    monkeypatch.setattr(http.requests, "post", fake_post)
    endpoint = GeminiEndpoint(GeminiEndpointConfig(api_key="gm"))
    history = [
        ProviderMessage(role="user", content="hi"),
        ProviderMessage(role="assistant", content="hello"),
        ProviderMessage(role="user", content="teach me"),
    ]

    resp = endpoint.send("sys", history, TOOL_CATALOG, "required")

    assert captured["url"].endswith("/models/gemini-flash-latest:generateContent")
    assert captured["params"] is None
    assert captured["headers"]["x-goog-api-key"] == "gm"
    assert "gm" not in captured["url"]
    payload = captured["payload"]
    assert payload["systemInstruction"] == {"parts": [{"text": "sys"}]}
    assert payload["toolConfig"] == {"functionCallingConfig": {"mode": "ANY"}}
    assert payload["generationConfig"] == {"temperature": 0.7, "maxOutputTokens": 3000}
    assert [d["name"] for d in payload["tools"][0]["functionDeclarations"]] == ["video_search", "web_search"]
    assert [c["role"] for c in payload["contents"]] == ["user", "model", "user"]

    assert [c.id for c in resp.tool_calls] == ["video_search-0", "fc-9"]
    assert resp.text is None
    assert resp.raw_message["role"] == "model"


def test_gemini_function_responses(monkeypatch):
    captured = {}

    def fake_post(url, headers=None, params=None, json=None, timeout=None):
        captured["payload"] = json
        return FakeResponse(200, {"candidates": [{"content": {"parts": [{"text": "Answer"}]}}]})

    monkeypatch.setattr(http.requests, "post", fake_post)
    raw = {
        "role": "model",
        "parts": [
            {"functionCall": {"name": "video_search", "args": {}}},
            {"functionCall": {"name": "web_search", "args": {}, "id": "fc-9"}},
        ],
    }
    transcript = [ProviderMessage(role="user", content="hi")] + tool_turns(raw, ["video_search-0", "fc-9"])

    resp = GeminiEndpoint(GeminiEndpointConfig(api_key="gm")).send("sys", transcript, TOOL_CATALOG)

    payload = captured["payload"]
    assert payload["toolConfig"]["functionCallingConfig"]["mode"] == "AUTO"
    contents = payload["contents"]
    assert contents[1] == raw
    first, second = (p["functionResponse"] for p in contents[2]["parts"])
    assert contents[2]["role"] == "user"
    assert first == {"name": "video_search", "response": {"result": [{"id": "v1"}]}}
    assert second["id"] == "fc-9"
    assert second["response"] == {"result": {"error": "Failed to execute web_search"}}
    assert resp.text == "Answer"


@pytest.mark.parametrize(
    "outcome, status",
    [
        (FakeResponse(500, {}, text="server error"), 500),
        (FakeResponse(200, None), 200),
        (requests.ConnectionError("unreachable"), None),
    ],
)
def test_http_failures_raise_upstream_error(monkeypatch, outcome, status):
    def fake_post(*args, **kwargs):
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(http.requests, "post", fake_post)
    endpoint = GeminiEndpoint(GeminiEndpointConfig(api_key="gm"))

    with pytest.raises(UpstreamRequestError) as excinfo:
        endpoint.send("sys", [ProviderMessage(role="user", content="hi")], TOOL_CATALOG)
    assert excinfo.value.provider == "gemini"
    assert excinfo.value.status_code == status
    assert excinfo.value.round is None


def test_factory_aliases_and_missing_keys(credentials):
    assert normalize_provider(" GPT ") == "openai"
    assert normalize_provider("anthropic") == "claude"
    assert normalize_provider("google") == "gemini"
    assert isinstance(get_completion_endpoint("claude", credentials), AnthropicEndpoint)
    assert isinstance(get_completion_endpoint("gemini", credentials), GeminiEndpoint)

    with pytest.raises(ConfigurationError):
        AnthropicEndpointConfig.from_env("")
    with pytest.raises(ConfigurationError):
        normalize_provider("mistral")


def test_model_override_from_env(monkeypatch):
    monkeypatch.setenv("GEMINI_MODEL", "gemini-2.5-pro")
    monkeypatch.setenv("GEMINI_MAX_TOKENS", "1024")
    cfg = GeminiEndpointConfig.from_env("gm")
    assert cfg.model == "gemini-2.5-pro"
    assert cfg.max_tokens == 1024
