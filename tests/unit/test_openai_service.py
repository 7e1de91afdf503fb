"""
Tests for the OpenAI correction service with a stub client.
"""

import json
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from cinearchive.config import ServiceConfig
from cinearchive.exceptions import ConfigurationError, CorrectionServiceError
from cinearchive.service import OpenAICorrectionService, create_openai_service
from cinearchive.service.prompts import SYSTEM_PROMPT

REPLY = json.dumps({"corrections": [], "formattingChanges": [], "correctedText": "", "confidence": 1.0})


class StubCompletions:
    def __init__(self, content=REPLY, finish_reason="stop", usage=True, error=None):
        self.calls = []
        self._content = content
        self._finish_reason = finish_reason
        self._usage = usage
        self._error = error

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return SimpleNamespace(
            choices=[
                SimpleNamespace(
                    message=SimpleNamespace(content=self._content),
                    finish_reason=self._finish_reason,
                )
            ],
            usage=SimpleNamespace(prompt_tokens=120, completion_tokens=80) if self._usage else None,
        )


def stub_client(completions: StubCompletions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


@pytest.mark.asyncio
async def test_request_corrections_returns_reply() -> None:
    completions = StubCompletions()
    service = OpenAICorrectionService(stub_client(completions), "gpt-4o-mini")

    reply = await service.request_corrections("الفلم الجميل")

    assert reply.raw.text == REPLY
    assert reply.model == "gpt-4o-mini"
    assert (reply.input_tokens, reply.output_tokens) == (120, 80)


@pytest.mark.asyncio
async def test_request_parameters() -> None:
    completions = StubCompletions()
    service = OpenAICorrectionService(
        stub_client(completions), "gpt-4o", temperature=0.3, max_tokens=500
    )

    await service.request_corrections("الفلم الجميل")

    [call] = completions.calls
    assert call["model"] == "gpt-4o"
    assert call["temperature"] == 0.3
    assert call["max_tokens"] == 500
    assert call["response_format"] == {"type": "json_object"}
    assert call["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert "الفلم الجميل" in call["messages"][1]["content"]


@pytest.mark.asyncio
async def test_truncated_reply_still_returned(caplog) -> None:
    completions = StubCompletions(content='{"corrections": [', finish_reason="length")
    service = OpenAICorrectionService(stub_client(completions), "gpt-4o-mini")

    reply = await service.request_corrections("نص")

    assert reply.raw.text == '{"corrections": ['
    assert "truncated" in caplog.text


@pytest.mark.asyncio
async def test_missing_content_and_usage() -> None:
    completions = StubCompletions(content=None, usage=False)
    service = OpenAICorrectionService(stub_client(completions), "gpt-4o-mini")

    reply = await service.request_corrections("نص")

    assert not reply.raw
    assert reply.input_tokens == 0
    assert reply.output_tokens == 0


@pytest.mark.asyncio
async def test_openai_error_wrapped() -> None:
    completions = StubCompletions(error=OpenAIError("connection reset"))
    service = OpenAICorrectionService(stub_client(completions), "gpt-4o")

    with pytest.raises(CorrectionServiceError, match="connection reset") as exc_info:
        await service.request_corrections("نص")
    assert exc_info.value.model == "gpt-4o"


def test_create_requires_api_key() -> None:
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        create_openai_service(ServiceConfig(api_key=None))


def test_create_from_config() -> None:
    service = create_openai_service(
        ServiceConfig(api_key="sk-test", model="gpt-4o-mini", temperature=0.2)
    )
    assert isinstance(service, OpenAICorrectionService)
    assert service.model == "gpt-4o-mini"


def test_create_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("CINEARCHIVE_MODEL", "gpt-4-turbo-preview")
    assert create_openai_service().model == "gpt-4-turbo-preview"
