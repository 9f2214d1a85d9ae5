"""
AI 채팅 서비스

한국 주식시장 애널리스트 페르소나로 일반 채팅 / 종목 채팅 / 섹터 코멘트를 생성합니다.
"""

import logging
from typing import Dict, List, Optional

from invest_friends.core.exceptions import LLMAPIError
from invest_friends.services.llm_client import LLMClient, NOT_CONFIGURED_MESSAGE

logger = logging.getLogger(__name__)

ANALYST_PERSONA = """당신은 한국 주식시장 전문 AI 애널리스트입니다.
투자자들에게 정확하고 유용한 정보를 제공하며, 리스크도 함께 설명합니다.
답변은 전문적이면서도 이해하기 쉽게 작성합니다."""

CHAT_PERSONA = ANALYST_PERSONA + "\n친절하고 도움이 되는 AI 어시스턴트로서 한국어로 자연스럽게 대화합니다."

SECTOR_ANALYST_PERSONA = "한국 주식시장 섹터 분석 전문가입니다. 간결하고 통찰력 있는 분석을 제공합니다."
TREND_ANALYST_PERSONA = "한국 주식시장 기술적 분석 전문가입니다. 시장 트렌드를 간결하게 설명합니다."

CHAT_CONTEXT_LIMIT = 10
STOCK_HISTORY_LIMIT = 6
NOT_AVAILABLE = "미제공"
EMPTY_REPLY = "응답을 생성할 수 없습니다."


def build_stock_system_prompt(stock_context: Optional[Dict]) -> str:
    """
    종목 채팅 시스템 프롬프트

    Args:
        stock_context: {code, name, sector, currentPrice, changeRate} (일부 누락 가능)

    Example:
        >>> print(build_stock_system_prompt({'code': '005930', 'currentPrice': 71500}))
        ...
        - 현재가: 71,500원
        - 등락률: 미제공
    """
    if not stock_context:
        return ANALYST_PERSONA

    price = stock_context.get('currentPrice')
    change_rate = stock_context.get('changeRate')

    return ANALYST_PERSONA + (
        "\n\n현재 분석 중인 종목:\n"
        f"- 종목코드: {stock_context.get('code') or NOT_AVAILABLE}\n"
        f"- 종목명: {stock_context.get('name') or NOT_AVAILABLE}\n"
        f"- 섹터: {stock_context.get('sector') or NOT_AVAILABLE}\n"
        f"- 현재가: {f'{price:,.0f}원' if price is not None else NOT_AVAILABLE}\n"
        f"- 등락률: {f'{change_rate}%' if change_rate is not None else NOT_AVAILABLE}"
    )


class ChatService:
    """LLM 채팅 서비스"""

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or LLMClient()
        if self.llm.enabled:
            logger.info("✅ Chat agent initialized successfully")
        else:
            logger.warning("⚠️ LLM API key not found. Chat features will be disabled.")

    async def chat(self, message: str, context: Optional[List[Dict]] = None) -> Dict:
        """
        일반 채팅

        Args:
            message: 사용자 메시지
            context: 이전 대화 [{role, content}] (최근 10개만 사용)

        Returns:
            {success, message, usage?}
        """
        if not self.llm.enabled:
            return {'success': False, 'message': NOT_CONFIGURED_MESSAGE}

        conversation = list((context or [])[-CHAT_CONTEXT_LIMIT:])
        conversation.append({'role': 'user', 'content': message})

        try:
            reply, tokens_used = await self.llm.generate(conversation, system=CHAT_PERSONA)
        except LLMAPIError as e:
            logger.error(f"❌ Chat error: {e}")
            return {'success': False, 'message': '채팅 처리 중 오류가 발생했습니다.'}

        return {
            'success': True,
            'message': reply or EMPTY_REPLY,
            'usage': {'totalTokens': tokens_used},
        }

    async def stock_chat(
        self,
        message: str,
        stock_context: Optional[Dict] = None,
        history: Optional[List[Dict]] = None,
    ) -> Dict:
        """
        종목 채팅 (현재 보고 있는 종목 정보를 시스템 프롬프트에 포함)

        Args:
            message: 사용자 메시지
            stock_context: {code, name, sector, currentPrice, changeRate}
            history: 이전 대화 (최근 6개만 사용)
        """
        if not self.llm.enabled:
            return {'success': False, 'message': NOT_CONFIGURED_MESSAGE}

        conversation = list((history or [])[-STOCK_HISTORY_LIMIT:])
        conversation.append({'role': 'user', 'content': message})

        try:
            reply, _ = await self.llm.generate(
                conversation, system=build_stock_system_prompt(stock_context)
            )
        except LLMAPIError as e:
            logger.error(f"❌ Stock chat error: {e}")
            return {'success': False, 'message': '주식 분석 중 오류가 발생했습니다.'}

        return {'success': True, 'message': reply or EMPTY_REPLY}

    async def generate_sector_analysis(self, sector: str) -> str:
        """섹터 현황/전망 2-3문장 (실패 시 고정 문구)"""
        fallback = f"{sector} 섹터는 시장 상황에 따라 변동성이 있습니다."
        if not self.llm.enabled:
            return fallback

        try:
            text, _ = await self.llm.generate(
                f"{sector} 섹터의 현재 시장 상황과 전망을 2-3문장으로 분석해주세요.",
                system=SECTOR_ANALYST_PERSONA,
                max_tokens=200,
            )
        except LLMAPIError as e:
            logger.error(f"❌ Failed to generate sector analysis: {e}")
            return fallback
        return text or fallback

    async def generate_market_trend(self, sector: str) -> str:
        """섹터 기술적 트렌드 1-2문장 (실패 시 고정 문구)"""
        fallback = f"{sector} 섹터는 현재 박스권 흐름을 보이고 있습니다."
        if not self.llm.enabled:
            return fallback

        try:
            text, _ = await self.llm.generate(
                f"{sector} 섹터의 현재 기술적 트렌드와 단기 전망을 1-2문장으로 설명해주세요.",
                system=TREND_ANALYST_PERSONA,
                max_tokens=150,
            )
        except LLMAPIError as e:
            logger.error(f"❌ Failed to generate market trend: {e}")
            return fallback
        return text or fallback
