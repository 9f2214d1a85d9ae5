"""
자연어 질의 API 엔드포인트

"삼성전자 주가 알려줘" 같은 요청을 해석하여 시세/차트/재무/추천 작업을 실행합니다.
"""

from fastapi import APIRouter, Depends

from invest_friends.api.dependencies import get_query_router
from invest_friends.models import AgenticaMessage, AgenticaResponse, AgenticaStatus
from invest_friends.services.query_router import QueryRouter

router = APIRouter(prefix="/agentica", tags=["agentica"])


@router.post("/chat", response_model=AgenticaResponse)
async def process_message(request: AgenticaMessage, query_router: QueryRouter = Depends(get_query_router)):
    """
    자연어로 API 호출

    지원 예시:
    - 주가 조회: "삼성전자 주가 알려줘"
    - 차트: "005930 최근 한달 차트 보여줘"
    - 재무제표: "SK하이닉스 재무제표 조회해줘"
    - 지수: "KOSPI 지수 현재 얼마야?"
    """
    return await query_router.process_message(request.message)


@router.get("/status", response_model=AgenticaStatus)
async def get_status(query_router: QueryRouter = Depends(get_query_router)):
    """질의 라우터 초기화 여부"""
    initialized = query_router.is_initialized()
    return {
        'initialized': initialized,
        'message': (
            'Agentica service is ready'
            if initialized
            else 'Agentica service is not initialized. Please check GEMINI_API_KEY.'
        ),
    }
