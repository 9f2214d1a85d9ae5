"""
API 의존성 주입 (Dependency Injection)

FastAPI의 Depends를 사용하여 클라이언트/서비스 싱글톤을 주입합니다.
"""

import logging
from datetime import datetime
from functools import lru_cache

from fastapi import HTTPException

from invest_friends.clients.dart_client import DartClient
from invest_friends.clients.kis_client import KISClient
from invest_friends.services.chart_service import ChartService
from invest_friends.services.chat_service import ChatService
from invest_friends.services.llm_client import LLMClient
from invest_friends.services.query_router import QueryRouter
from invest_friends.services.recommendation_service import RecommendationService

logger = logging.getLogger(__name__)


# 싱글톤 패턴으로 인스턴스 생성
@lru_cache()
def get_kis_client() -> KISClient:
    """
    KISClient 의존성 주입

    토큰 캐시와 지수 캐시를 공유하기 위해 프로세스당 하나만 생성합니다.
    """
    return KISClient()


@lru_cache()
def get_dart_client() -> DartClient:
    return DartClient()


@lru_cache()
def get_llm_client() -> LLMClient:
    return LLMClient()


@lru_cache()
def get_chat_service() -> ChatService:
    return ChatService(llm=get_llm_client())


@lru_cache()
def get_chart_service() -> ChartService:
    return ChartService(kis=get_kis_client(), dart=get_dart_client())


@lru_cache()
def get_recommendation_service() -> RecommendationService:
    return RecommendationService(kis=get_kis_client(), chat=get_chat_service())


@lru_cache()
def get_query_router() -> QueryRouter:
    """
    QueryRouter 의존성 주입

    Returns:
        QueryRouter: 자연어 질의 라우터 (LLM + 시세/공시 서비스)
    """
    return QueryRouter(
        llm=get_llm_client(),
        kis=get_kis_client(),
        dart=get_dart_client(),
        chart=get_chart_service(),
        recommendation=get_recommendation_service(),
    )


async def close_clients():
    """HTTP 클라이언트 종료 (생성된 것만)"""
    if get_kis_client.cache_info().currsize:
        await get_kis_client().close()
    if get_dart_client.cache_info().currsize:
        await get_dart_client().close()
    logger.info("🛑 HTTP clients closed")


def validate_date(value: str, name: str) -> str:
    """YYYYMMDD 날짜 검증 (패턴은 맞지만 존재하지 않는 날짜는 422)"""
    try:
        datetime.strptime(value, "%Y%m%d")
    except ValueError:
        raise HTTPException(status_code=422, detail=f"{name}: 존재하지 않는 날짜입니다 ({value})")
    return value
