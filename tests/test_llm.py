from types import SimpleNamespace

import pytest
from openai import OpenAIError

from utils import llm


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(monkeypatch, **kwargs):
    completions = FakeCompletions(**kwargs)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    monkeypatch.setattr(llm, "get_client", lambda: client)
    return completions


def test_chat_returns_message_content(monkeypatch):
    completions = _client(monkeypatch, content="hello")

    assert llm.chat("sys", "usr", model="gpt-test") == "hello"
    assert completions.kwargs["model"] == "gpt-test"
    assert completions.kwargs["messages"][0] == {"role": "system", "content": "sys"}
    assert "response_format" not in completions.kwargs


def test_chat_none_content_is_empty_string(monkeypatch):
    _client(monkeypatch, content=None)
    assert llm.chat("sys", "usr") == ""


def test_sdk_errors_become_generation_errors(monkeypatch):
    _client(monkeypatch, error=OpenAIError("rate limited"))
    with pytest.raises(llm.GenerationError, match="rate limited"):
        llm.chat("sys", "usr")


def test_chat_json_requests_json_mode_and_parses(monkeypatch):
    completions = _client(monkeypatch, content='{"vision": "v"}')

    assert llm.chat_json("sys", "usr") == {"vision": "v"}
    assert completions.kwargs["response_format"] == {"type": "json_object"}


def test_chat_json_rejects_invalid_json(monkeypatch):
    _client(monkeypatch, content="not json")
    with pytest.raises(llm.GenerationError, match="JSON parse failed"):
        llm.chat_json("sys", "usr")


def test_chat_json_rejects_non_object(monkeypatch):
    _client(monkeypatch, content="[1, 2]")
    with pytest.raises(llm.GenerationError, match="Expected a JSON object"):
        llm.chat_json("sys", "usr")
