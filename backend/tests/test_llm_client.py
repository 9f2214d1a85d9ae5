"""
LLMClient 테스트 (genai.Client는 MagicMock으로 대체)
"""

import sys
from pathlib import Path

# backend 디렉토리를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from invest_friends.core.exceptions import LLMAPIError, LLMRateLimitError
from invest_friends.services.llm_client import LLMClient, NOT_CONFIGURED_MESSAGE, to_gemini_contents


@pytest.fixture
def genai_client():
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(
        text="  반도체 섹터는 회복 국면입니다.  ",
        usage_metadata=SimpleNamespace(prompt_token_count=120, candidates_token_count=30),
    )
    return client


def test_to_gemini_contents_roles():
    contents = to_gemini_contents([
        {"role": "system", "content": "무시됨"},
        {"role": "user", "content": "안녕하세요"},
        {"role": "assistant", "content": "무엇을 도와드릴까요?"},
        {"role": "user", "content": ""},
    ])

    assert [content.role for content in contents] == ["user", "model"]
    assert contents[1].parts[0].text == "무엇을 도와드릴까요?"


def test_to_gemini_contents_string():
    assert to_gemini_contents("프롬프트") == "프롬프트"


def test_disabled_without_key():
    llm = LLMClient(api_key="")
    assert llm.enabled is False


@pytest.mark.asyncio
async def test_generate_disabled():
    llm = LLMClient(api_key="")

    with pytest.raises(LLMAPIError, match=NOT_CONFIGURED_MESSAGE):
        await llm.generate("질문")


@pytest.mark.asyncio
async def test_generate(genai_client):
    llm = LLMClient(api_key="", model_name="gemini-test", client=genai_client)

    text, tokens = await llm.generate("반도체 전망", system="애널리스트", temperature=0.1, max_tokens=200)

    assert text == "반도체 섹터는 회복 국면입니다."
    assert tokens == 150
    assert llm.cost_tracker.total_requests == 1

    kwargs = genai_client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-test"
    assert kwargs["contents"] == "반도체 전망"
    assert kwargs["config"].system_instruction == "애널리스트"
    assert kwargs["config"].temperature == 0.1
    assert kwargs["config"].max_output_tokens == 200


@pytest.mark.asyncio
async def test_generate_without_usage(genai_client):
    genai_client.models.generate_content.return_value = SimpleNamespace(text=None, usage_metadata=None)
    llm = LLMClient(api_key="", client=genai_client)

    assert await llm.generate("질문") == ("", 0)


@pytest.mark.asyncio
async def test_generate_api_error_is_not_retried(genai_client):
    genai_client.models.generate_content.side_effect = RuntimeError("400 INVALID_ARGUMENT")
    llm = LLMClient(api_key="", client=genai_client)

    with pytest.raises(LLMAPIError) as exc_info:
        await llm.generate("질문")

    assert not isinstance(exc_info.value, LLMRateLimitError)
    assert genai_client.models.generate_content.call_count == 1
