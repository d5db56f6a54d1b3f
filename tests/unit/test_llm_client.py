"""
Tests for the LiteLLM client wrapper and JSON helpers.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from config.settings import Settings
from core import LLMServiceError
from utils.json_utils import extract_json_object
from utils.llm_client import LLMClient


def _response(content):
    response = MagicMock()
    response.choices[0].message.content = content
    response.choices[0].finish_reason = "stop"
    response.usage.total_tokens = 42
    return response


@pytest.fixture
def client():
    return LLMClient(api_key="test-key", model="gemini/test-chat", analysis_model="gemini/test-analysis", timeout=0.5)


class TestGenerate:
    async def test_returns_stripped_text(self, client):
        with patch("utils.llm_client.litellm.acompletion", new=AsyncMock(return_value=_response("  Hi!  "))) as mock:
            text = await client.generate("Say hi")

        assert text == "Hi!"
        kwargs = mock.call_args.kwargs
        assert kwargs["model"] == "gemini/test-chat"
        assert kwargs["messages"] == [{"role": "user", "content": "Say hi"}]
        assert kwargs["api_key"] == "test-key"
        assert kwargs["temperature"] == 0.7

    async def test_empty_reply_is_an_error(self, client):
        with patch("utils.llm_client.litellm.acompletion", new=AsyncMock(return_value=_response(""))):
            with pytest.raises(LLMServiceError):
                await client.generate("Say hi")

    async def test_timeout_is_not_retried(self, client):
        async def hang(**kwargs):
            await asyncio.sleep(5)

        mock = AsyncMock(side_effect=hang)
        with patch("utils.llm_client.litellm.acompletion", new=mock):
            with pytest.raises(LLMServiceError) as exc_info:
                await client.generate("Say hi")

        assert mock.await_count == 1
        assert "timed out" in exc_info.value.context["details"]

    async def test_provider_error_is_retried_once(self, client):
        mock = AsyncMock(side_effect=[RuntimeError("503 overloaded"), _response("ok")])
        with patch("utils.llm_client.litellm.acompletion", new=mock):
            text = await client.generate("Say hi")

        assert text == "ok"
        assert mock.await_count == 2

    async def test_persistent_provider_error(self, client):
        mock = AsyncMock(side_effect=RuntimeError("401 invalid key"))
        with patch("utils.llm_client.litellm.acompletion", new=mock):
            with pytest.raises(LLMServiceError):
                await client.generate("Say hi")

        assert mock.await_count == 2


class TestGenerateJson:
    async def test_uses_analysis_model(self, client):
        reply = _response('Sure! ```json\n{"emotion": "happy", "sentiment": 0.8}\n```')
        with patch("utils.llm_client.litellm.acompletion", new=AsyncMock(return_value=reply)) as mock:
            data = await client.generate_json("classify")

        assert data == {"emotion": "happy", "sentiment": 0.8}
        assert mock.call_args.kwargs["model"] == "gemini/test-analysis"
        assert mock.call_args.kwargs["temperature"] == 0.2

    async def test_no_object_is_an_error(self, client):
        with patch("utils.llm_client.litellm.acompletion", new=AsyncMock(return_value=_response("no idea"))):
            with pytest.raises(LLMServiceError):
                await client.generate_json("classify")


class TestFromSettings:
    def test_without_key_returns_none(self, test_settings):
        assert LLMClient.from_settings(test_settings) is None

    def test_with_key(self):
        settings = Settings(_env_file=None, LLM_API_KEY="abc", MODEL_CONVERSATION="gpt-4o-mini")
        client = LLMClient.from_settings(settings)
        assert client is not None
        assert client.model == "gpt-4o-mini"


class TestJsonUtils:
    @pytest.mark.parametrize("text,expected", [
        ('{"a": 1}', {"a": 1}),
        ('```json\n{"a": 1}\n```', {"a": 1}),
        ('```\n{"a": 1}```', {"a": 1}),
        ('Here you go: {"a": {"b": 2}} hope it helps', {"a": {"b": 2}}),
        ("[1, 2]", None),
        ("{broken", None),
        ("", None),
    ])
    def test_extract_object(self, text, expected):
        assert extract_json_object(text) == expected
