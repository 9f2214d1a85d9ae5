"""
AI 채팅 API 엔드포인트
"""

from fastapi import APIRouter, Depends

from invest_friends.api.dependencies import get_chat_service
from invest_friends.models import ChatRequest, ChatResponse, SectorAnalysisRequest, StockChatRequest
from invest_friends.services.chat_service import ChatService

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
async def chat(request: ChatRequest, chat_service: ChatService = Depends(get_chat_service)):
    """일반 채팅"""
    context = [message.model_dump() for message in request.context or []]
    return await chat_service.chat(request.message, context)


@router.post("/stock", response_model=ChatResponse)
async def stock_chat(request: StockChatRequest, chat_service: ChatService = Depends(get_chat_service)):
    """현재 보고 있는 종목 정보를 포함한 채팅"""
    stock_context = request.stockContext.model_dump() if request.stockContext else None
    history = [message.model_dump() for message in request.chatHistory or []]
    return await chat_service.stock_chat(request.message, stock_context, history)


@router.post("/sector-analysis", response_model=ChatResponse)
async def generate_sector_analysis(
    request: SectorAnalysisRequest,
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    섹터 시장 상황/전망 분석 (2-3문장)

    LLM 호출 실패 시에도 고정 문구로 응답합니다.
    """
    analysis = await chat_service.generate_sector_analysis(request.sector.strip())
    return {'success': True, 'message': analysis}
