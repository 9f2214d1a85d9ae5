"""
채팅 요청/응답 모델
"""

from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class ChatMessage(BaseModel):
    role: Literal['user', 'assistant', 'system']
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, description="사용자 메시지")
    context: Optional[List[ChatMessage]] = Field(None, description="이전 대화 (최근 10개 사용)")


class StockContext(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    sector: Optional[str] = None
    currentPrice: Optional[float] = None
    changeRate: Optional[float] = None


class StockChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    stockContext: Optional[StockContext] = None
    chatHistory: Optional[List[ChatMessage]] = Field(None, description="이전 대화 (최근 6개 사용)")

    class Config:
        json_schema_extra = {
            "example": {
                "message": "지금 매수해도 괜찮을까요?",
                "stockContext": {
                    "code": "005930",
                    "name": "삼성전자",
                    "sector": "반도체",
                    "currentPrice": 71500,
                    "changeRate": 1.2,
                },
            }
        }


class ChatResponse(BaseModel):
    success: bool
    message: str
    usage: Optional[dict] = None


class SectorAnalysisRequest(BaseModel):
    sector: str = Field(..., min_length=1, pattern=r"\S", description="분석할 섹터명", examples=["반도체"])
