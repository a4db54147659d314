import json
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from app import config
from app.errors import ErrorKind
from app.models.chat import ChatTurn, ChatRole
from app.services.completion_gateway import (
    OpenRouterGateway, OpenAIGateway, assemble_messages, build_gateway,
    EMPTY_CONTENT_MESSAGE, DEFAULT_REJECTION_DETAIL, UNREACHABLE_DETAIL,
)


def openrouter(handler, api_key="or-key"):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return OpenRouterGateway(api_key=api_key, model="mistralai/mistral-7b-instruct",
                             base_url="https://openrouter.test/api/v1",
                             referer="http://localhost:5500", title="Student Info Chat",
                             temperature=0.2, client=client)


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_assemble_messages_order():
    prior = [ChatTurn(role=ChatRole.USER, content="hi"), ChatTurn(role=ChatRole.ASSISTANT, content="hello")]
    messages = assemble_messages("rules", "question", prior)
    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert messages[-1]["content"] == "question"


def test_assemble_messages_without_system_prompt():
    assert assemble_messages(None, "question") == [{"role": "user", "content": "question"}]


def test_openrouter_success_sends_expected_request():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion("There are 2 students."))

    result = openrouter(handler).send("rules", "How many?",
                                      [ChatTurn(role=ChatRole.USER, content="earlier")])

    assert result.success
    assert result.message == "There are 2 students."
    assert result.model == "mistralai/mistral-7b-instruct"
    assert seen["url"] == "https://openrouter.test/api/v1/chat/completions"
    assert seen["headers"]["authorization"] == "Bearer or-key"
    assert seen["headers"]["http-referer"] == "http://localhost:5500"
    assert seen["headers"]["x-title"] == "Student Info Chat"
    assert seen["body"]["model"] == "mistralai/mistral-7b-instruct"
    assert seen["body"]["temperature"] == 0.2
    assert "max_tokens" not in seen["body"]
    assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user", "user"]


def test_openrouter_missing_key_makes_no_request():
    handler = MagicMock()
    result = openrouter(handler, api_key=None).send("rules", "q")

    assert not result.success
    assert result.error_kind == ErrorKind.CONFIGURATION_MISSING
    assert result.detail == "OPENROUTER_API_KEY is not set."
    assert result.status_code == 500
    handler.assert_not_called()


@pytest.mark.parametrize("body,detail", [
    ({"error": {"message": "Invalid API key", "code": 401}}, "Invalid API key"),
    ({"error": "Rate limited"}, "Rate limited"),
    ({"unexpected": True}, DEFAULT_REJECTION_DETAIL),
])
def test_openrouter_rejection_uses_provider_message(body, detail):
    result = openrouter(lambda request: httpx.Response(401, json=body)).send("rules", "q")

    assert not result.success
    assert result.error_kind == ErrorKind.UPSTREAM_REJECTED
    assert result.detail == detail
    assert result.upstream_status == 401
    assert result.status_code == 401


def test_openrouter_rejection_with_non_json_body():
    result = openrouter(lambda request: httpx.Response(503, text="<html>down</html>")).send("rules", "q")
    assert result.error_kind == ErrorKind.UPSTREAM_REJECTED
    assert result.detail == DEFAULT_REJECTION_DETAIL
    assert result.status_code == 503


def test_openrouter_transport_failure_is_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = openrouter(handler).send("rules", "q")

    assert result.error_kind == ErrorKind.UPSTREAM_UNREACHABLE
    assert result.detail == UNREACHABLE_DETAIL
    assert result.status_code == 502


@pytest.mark.parametrize("body", [
    completion(""),
    completion(None),
    {"choices": []},
    {},
])
def test_openrouter_empty_content_falls_back(body):
    result = openrouter(lambda request: httpx.Response(200, json=body)).send("rules", "q")
    assert result.success
    assert result.message == EMPTY_CONTENT_MESSAGE


def test_openrouter_returns_text_verbatim():
    text = "  - Jane Doe\n  - John Cruz\n"
    result = openrouter(lambda request: httpx.Response(200, json=completion(text))).send("rules", "q")
    assert result.message == text


def fake_openai_client(content=None, side_effect=None):
    client = MagicMock()
    if side_effect is not None:
        client.chat.completions.create.side_effect = side_effect
    else:
        message = MagicMock()
        message.content = content
        choice = MagicMock()
        choice.message = message
        response = MagicMock()
        response.choices = [choice]
        client.chat.completions.create.return_value = response
    return client


def test_openai_success():
    client = fake_openai_client("Two students.")
    gateway = OpenAIGateway(api_key="sk-test", model="gpt-4o-mini", temperature=0.2,
                            max_tokens=600, client=client)

    result = gateway.send("rules", "How many?")

    assert result.success
    assert result.message == "Two students."
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["max_tokens"] == 600
    assert kwargs["messages"][0] == {"role": "system", "content": "rules"}


def test_openai_empty_content_falls_back():
    gateway = OpenAIGateway(api_key="sk-test", client=fake_openai_client(None))
    assert gateway.send("rules", "q").message == EMPTY_CONTENT_MESSAGE


def test_openai_status_error_is_rejected():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    error = openai.APIStatusError("Error code: 429", response=httpx.Response(429, request=request),
                                  body={"message": "Rate limit reached", "type": "requests"})
    gateway = OpenAIGateway(api_key="sk-test", client=fake_openai_client(side_effect=error))

    result = gateway.send("rules", "q")

    assert result.error_kind == ErrorKind.UPSTREAM_REJECTED
    assert result.detail == "Rate limit reached"
    assert result.status_code == 429


def test_openai_connection_error_is_unreachable():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    gateway = OpenAIGateway(api_key="sk-test",
                            client=fake_openai_client(side_effect=openai.APIConnectionError(request=request)))

    result = gateway.send("rules", "q")

    assert result.error_kind == ErrorKind.UPSTREAM_UNREACHABLE


def test_openai_missing_key():
    result = OpenAIGateway(api_key=None).send("rules", "q")
    assert result.error_kind == ErrorKind.CONFIGURATION_MISSING
    assert result.detail == "OPENAI_API_KEY is not set."


def test_build_gateway_selects_provider():
    assert isinstance(build_gateway("openai"), OpenAIGateway)
    assert isinstance(build_gateway("openrouter"), OpenRouterGateway)
    with pytest.raises(ValueError):
        build_gateway("somewhere")


def test_openai_other_sdk_errors_are_rejected():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    error = openai.APIResponseValidationError(response=httpx.Response(200, request=request), body={"bad": 1})
    gateway = OpenAIGateway(api_key="sk-test", client=fake_openai_client(side_effect=error))

    result = gateway.send("rules", "q")

    assert not result.success
    assert result.error_kind == ErrorKind.UPSTREAM_REJECTED
    assert result.detail
    assert result.status_code == 502


def test_build_gateway_applies_completion_max_tokens(monkeypatch):
    monkeypatch.setattr(config, "COMPLETION_MAX_TOKENS", 123)
    assert build_gateway("openrouter").max_tokens == 123
    assert build_gateway("openai").max_tokens == 123


def test_build_gateway_max_tokens_defaults(monkeypatch):
    monkeypatch.setattr(config, "COMPLETION_MAX_TOKENS", None)
    assert build_gateway("openrouter").max_tokens is None
    assert build_gateway("openai").max_tokens == config.OPENAI_DEFAULT_MAX_TOKENS


@pytest.mark.parametrize("raw,expected", [("123", 123), (" 42 ", 42), ("", None)])
def test_int_env(monkeypatch, raw, expected):
    monkeypatch.setenv("COMPLETION_MAX_TOKENS", raw)
    assert config.int_env("COMPLETION_MAX_TOKENS") == expected


def test_int_env_unset(monkeypatch):
    monkeypatch.delenv("COMPLETION_MAX_TOKENS", raising=False)
    assert config.int_env("COMPLETION_MAX_TOKENS") is None
