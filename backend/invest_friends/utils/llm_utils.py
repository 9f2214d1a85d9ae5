"""
LLM 공통 유틸리티

RateLimiter, CostTracker, 응답 JSON 추출 등 LLM 호출에서 공통으로 사용하는 컴포넌트
"""

import asyncio
import json
import logging
import re
from collections import deque
from datetime import datetime, timedelta
from typing import Any, Optional

logger = logging.getLogger(__name__)


# ============= Rate Limiter =============

class RateLimiter:
    """
    Rate Limiting 관리 클래스

    Gemini API 호출 제한을 관리하여 과도한 요청 방지
    """

    def __init__(self, max_requests: int, time_window: int):
        """
        Args:
            max_requests: 최대 요청 수
            time_window: 시간 윈도우 (초)
        """
        self.max_requests = max_requests
        self.time_window = time_window
        self.requests = deque()
        self.lock = asyncio.Lock()

    async def acquire(self):
        """Rate limit 체크 및 대기"""
        async with self.lock:
            now = datetime.now()

            while self.requests and (now - self.requests[0]) > timedelta(seconds=self.time_window):
                self.requests.popleft()

            if len(self.requests) >= self.max_requests:
                wait_until = self.requests[0] + timedelta(seconds=self.time_window)
                wait_seconds = (wait_until - now).total_seconds()

                if wait_seconds > 0:
                    logger.warning(f"Rate limit reached, waiting {wait_seconds:.1f}s")
                    await asyncio.sleep(wait_seconds)
                self.requests.popleft()

            self.requests.append(datetime.now())


# ============= Cost Tracker =============

class CostTracker:
    """
    LLM 비용 추적 클래스

    토큰 사용량 및 예상 비용을 모니터링
    """

    # Gemini 2.5 Flash 가격 (USD / 1K tokens)
    INPUT_COST_PER_1K = 0.0003
    OUTPUT_COST_PER_1K = 0.0025

    def __init__(self):
        self.total_input_tokens = 0
        self.total_output_tokens = 0
        self.total_requests = 0

    def record_usage(self, input_tokens: int, output_tokens: int):
        """토큰 사용량 기록"""
        self.total_input_tokens += input_tokens or 0
        self.total_output_tokens += output_tokens or 0
        self.total_requests += 1

    def get_total_cost(self) -> float:
        """총 비용 계산 (USD)"""
        input_cost = (self.total_input_tokens / 1000) * self.INPUT_COST_PER_1K
        output_cost = (self.total_output_tokens / 1000) * self.OUTPUT_COST_PER_1K
        return input_cost + output_cost

    def get_daily_report(self) -> dict:
        """일일 사용량 리포트"""
        return {
            "date": datetime.now().date().isoformat(),
            "requests": self.total_requests,
            "input_tokens": self.total_input_tokens,
            "output_tokens": self.total_output_tokens,
            "total_cost_usd": self.get_total_cost(),
            "total_cost_krw": self.get_total_cost() * 1320  # 환율 적용
        }


# ============= JSON 추출 =============

def extract_json(text: Optional[str]) -> Optional[Any]:
    """
    LLM 응답에서 JSON 객체 추출

    ```json 코드블록 → 본문 중 첫 {...} → 전체 문자열 순서로 시도합니다.

    Returns:
        파싱된 객체 (실패 시 None)

    Example:
        >>> extract_json('```json\\n{"operation": "get_price"}\\n```')
        {'operation': 'get_price'}
    """
    if not text:
        return None

    candidates = []
    code_block_match = re.search(r'```(?:json)?\s*(\{[\s\S]*?\})\s*```', text)
    if code_block_match:
        candidates.append(code_block_match.group(1))
    json_match = re.search(r'\{.*\}', text, re.DOTALL)
    if json_match:
        candidates.append(json_match.group(0))
    candidates.append(text.strip())

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue

    logger.debug(f"JSON 파싱 실패: {text[:200]}")
    return None
