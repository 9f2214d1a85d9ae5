"""
LLM 클라이언트 (Gemini)

채팅, 섹터 분석, 자연어 질의 라우팅에서 공통으로 사용하는 텍스트 생성 래퍼
"""

import asyncio
import logging
from typing import Dict, List, Optional, Union

from google import genai
from google.genai import types
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    wait_random,
    retry_if_exception_type
)

from invest_friends.core.config import settings
from invest_friends.core.exceptions import LLMAPIError, LLMRateLimitError
from invest_friends.utils.llm_utils import RateLimiter, CostTracker

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "LLM API가 설정되지 않았습니다."

# 대화 role → Gemini role
ROLE_MAP = {
    'user': 'user',
    'assistant': 'model',
    'model': 'model',
}

Contents = Union[str, List[Dict[str, str]]]


def to_gemini_contents(contents: Contents):
    """
    문자열 또는 [{role, content}] 대화 목록을 Gemini contents로 변환

    system role 메시지는 system_instruction으로 따로 전달하므로 건너뜁니다.
    """
    if isinstance(contents, str):
        return contents

    converted = []
    for message in contents:
        role = ROLE_MAP.get(message.get('role', 'user'))
        text = message.get('content') or ''
        if role is None or not text:
            continue
        converted.append(types.Content(role=role, parts=[types.Part(text=text)]))
    return converted


class LLMClient:
    """Gemini 텍스트 생성 클라이언트"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        client=None,
    ):
        """
        Args:
            api_key: Gemini API 키 (기본값: settings.GEMINI_API_KEY, 비어 있으면 비활성)
            model_name: 모델명 (기본값: settings.GEMINI_MODEL)
            client: genai.Client 대체 객체 (테스트용)
        """
        api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self.model_name = model_name or settings.GEMINI_MODEL

        if client is not None:
            self.client = client
        elif api_key:
            self.client = genai.Client(api_key=api_key)
        else:
            self.client = None
            logger.warning("⚠️ GEMINI_API_KEY가 없어 LLM 기능이 비활성화됩니다")

        # Rate Limiter (분당 60회)
        self.rate_limiter = RateLimiter(max_requests=60, time_window=60)
        self.cost_tracker = CostTracker()

        if self.client is not None:
            logger.info(f"LLMClient initialized with model: {self.model_name}")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    @retry(
        retry=retry_if_exception_type(LLMRateLimitError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=2, min=4, max=60) + wait_random(0, 3),
        before_sleep=lambda retry_state: logger.warning(
            f"Retry attempt {retry_state.attempt_number}/3 - waiting before retry..."
        ),
        reraise=True,
    )
    async def generate(
        self,
        contents: Contents,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> tuple[str, int]:
        """
        텍스트 생성

        Args:
            contents: 프롬프트 문자열 또는 [{role, content}] 대화 목록
            system: 시스템 지시문
            temperature: 생성 온도 (기본값: settings)
            max_tokens: 최대 토큰 수 (기본값: settings)

        Returns:
            tuple[str, int]: (생성된 텍스트, 토큰 사용량)

        Raises:
            LLMAPIError: 미설정 또는 API 호출 실패
            LLMRateLimitError: Rate limit / 일시적 장애 (재시도 후에도 실패)

        Example:
            >>> text, tokens = await llm.generate("반도체 섹터 전망을 알려줘")
        """
        if not self.enabled:
            raise LLMAPIError(NOT_CONFIGURED_MESSAGE)

        await self.rate_limiter.acquire()

        config = types.GenerateContentConfig(
            system_instruction=system,
            temperature=temperature if temperature is not None else settings.GEMINI_TEMPERATURE,
            top_p=0.9,
            max_output_tokens=max_tokens if max_tokens is not None else settings.GEMINI_MAX_TOKENS,
        )

        try:
            response = await asyncio.to_thread(
                self.client.models.generate_content,
                model=self.model_name,
                contents=to_gemini_contents(contents),
                config=config
            )
        except Exception as e:
            error_str = str(e).lower()
            if (
                '429' in error_str or
                '503' in error_str or
                'unavailable' in error_str or
                'overloaded' in error_str or
                'rate limit' in error_str or
                'quota' in error_str
            ):
                logger.warning(f"Service temporarily unavailable (will retry): {e}")
                raise LLMRateLimitError(str(e)) from e

            logger.error(f"LLM API error: {e}")
            raise LLMAPIError(str(e)) from e

        result_text = response.text or ""

        tokens_used = 0
        usage = getattr(response, 'usage_metadata', None)
        if usage is not None:
            input_tokens = getattr(usage, 'prompt_token_count', 0) or 0
            output_tokens = getattr(usage, 'candidates_token_count', 0) or 0
            tokens_used = input_tokens + output_tokens
            self.cost_tracker.record_usage(input_tokens, output_tokens)
            logger.debug(f"Token usage - Input: {input_tokens}, Output: {output_tokens}, Total: {tokens_used}")

        return result_text.strip(), tokens_used
