"""Tests for the completion gateway: message conversion and response parsing."""

import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from orchestra.errors import ConfigurationError, MalformedResponseError, ProviderError
from orchestra.llm_io import (
    CompletionModel,
    OpenAICompletionModel,
    complete_text,
    parse_tool_arguments,
    to_openai_messages,
)
from orchestra.models.completion import CompletionRequest
from orchestra.models.message import Message, ToolCallPart, ToolCallRequest, ToolResult
from orchestra.models.tool import ToolDefinition

from tests.conftest import FakeCompletionModel


def _completion(content=None, tool_calls=None, usage=None, model="gpt-4o-mini"):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=usage, model=model)


def _tool_call(id, name, arguments):
    return SimpleNamespace(id=id, function=SimpleNamespace(name=name, arguments=arguments))


class FakeClient:
    """Stands in for openai.OpenAI: records kwargs, returns or raises a canned value."""

    def __init__(self, result):
        self.result = result
        self.kwargs = None
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class TestParseToolArguments:
    def test_object(self):
        assert parse_tool_arguments('{"x": 4, "y": 5}') == {"x": 4, "y": 5}

    def test_empty_is_empty_object(self):
        assert parse_tool_arguments("") == {}
        assert parse_tool_arguments(None) == {}

    def test_fenced_json_recovered(self):
        assert parse_tool_arguments('```json\n{"x": 1}\n```') == {"x": 1}

    def test_not_json(self):
        with pytest.raises(MalformedResponseError):
            parse_tool_arguments("x equals four", tool_name="add")

    def test_not_an_object(self):
        with pytest.raises(MalformedResponseError):
            parse_tool_arguments("[1, 2]")


class TestToOpenAIMessages:
    def test_roles_and_tool_round_trip(self):
        call = ToolCallRequest(id="call_1", name="add", arguments={"x": 4, "y": 5})
        request = CompletionRequest(
            preamble="You are a calculator.",
            messages=[
                Message.user("what is 4 plus 5"),
                Message(role="assistant", content=(ToolCallPart(call=call),)),
                Message.tool_results([ToolResult(call_id="call_1", name="add", output=9)]),
            ],
        )
        out = to_openai_messages(request)

        assert [m["role"] for m in out] == ["system", "user", "assistant", "tool"]
        assert out[0]["content"] == "You are a calculator."
        assert out[2]["content"] is None
        assert out[2]["tool_calls"][0]["function"] == {"name": "add", "arguments": '{"x": 4, "y": 5}'}
        assert out[3] == {"role": "tool", "tool_call_id": "call_1", "content": "9"}

    def test_error_result_is_json(self):
        request = CompletionRequest(messages=[
            Message.tool_results([ToolResult(call_id="c", name="divide", error="division by zero")]),
        ])
        assert json.loads(to_openai_messages(request)[0]["content"]) == {"error": "division by zero"}


class TestOpenAICompletionModel:
    def test_text_response(self):
        usage = SimpleNamespace(prompt_tokens=5, completion_tokens=2, total_tokens=7)
        client = FakeClient(_completion(content="Hello!", usage=usage))
        model = OpenAICompletionModel("gpt-4o-mini", client=client, temperature=0.2)

        response = model.complete(CompletionRequest(messages=[Message.user("hi")]))

        assert response.text == "Hello!"
        assert not response.has_tool_calls
        assert response.usage.total_tokens == 7
        assert client.kwargs["model"] == "gpt-4o-mini"
        assert client.kwargs["temperature"] == 0.2
        assert "tools" not in client.kwargs

    def test_tool_call_response(self):
        client = FakeClient(_completion(tool_calls=[_tool_call("call_9", "add", '{"x": 4, "y": 5}')]))
        model = OpenAICompletionModel(client=client)
        add = ToolDefinition(name="add", description="Add", parameters={"type": "object", "properties": {}})

        response = model.complete(CompletionRequest(messages=[Message.user("4+5")], tools=[add]))

        assert response.tool_calls == [ToolCallRequest(id="call_9", name="add", arguments={"x": 4, "y": 5})]
        assert client.kwargs["tools"][0]["function"]["name"] == "add"
        assert client.kwargs["tool_choice"] == "auto"

    def test_empty_message_is_empty_text(self):
        model = OpenAICompletionModel(client=FakeClient(_completion(content=None)))
        response = model.complete(CompletionRequest(messages=[Message.user("hi")]))
        assert response.text == ""
        assert response.content == ()

    def test_no_choices_is_malformed(self):
        model = OpenAICompletionModel(client=FakeClient(SimpleNamespace(choices=[], usage=None, model="m")))
        with pytest.raises(MalformedResponseError):
            model.complete(CompletionRequest(messages=[Message.user("hi")]))

    def test_bad_tool_arguments_are_malformed(self):
        client = FakeClient(_completion(tool_calls=[_tool_call("c", "add", "not json")]))
        with pytest.raises(MalformedResponseError):
            OpenAICompletionModel(client=client).complete(CompletionRequest(messages=[Message.user("hi")]))

    def test_transport_error_is_provider_error(self):
        error = openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
        model = OpenAICompletionModel(client=FakeClient(error))
        with pytest.raises(ProviderError) as excinfo:
            model.complete(CompletionRequest(messages=[Message.user("hi")]))
        assert excinfo.value.__cause__ is error

    def test_missing_key_is_configuration_error(self, monkeypatch):
        monkeypatch.setattr("orchestra.config.OPENAI_API_KEY", None)
        with pytest.raises(ConfigurationError):
            OpenAICompletionModel()

    def test_satisfies_protocol(self):
        assert isinstance(OpenAICompletionModel(client=FakeClient(None)), CompletionModel)


def test_complete_text_sends_single_user_message():
    model = FakeCompletionModel(["summary"])
    assert complete_text(model, "Summarize this", preamble="Be brief.") == "summary"
    request = model.requests[0]
    assert [m.text for m in request.messages] == ["Summarize this"]
    assert request.preamble == "Be brief."
