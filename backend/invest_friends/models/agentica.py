"""
자연어 질의 요청/응답 모델
"""

from pydantic import BaseModel, Field
from typing import Any, List, Optional


class AgenticaMessage(BaseModel):
    message: str = Field(..., min_length=1, description="자연어 요청", examples=["삼성전자 주가 알려줘"])


class AgenticaResponse(BaseModel):
    success: bool
    message: str
    operation: Optional[str] = None
    data: Optional[Any] = None
    error: Optional[str] = None
    examples: Optional[List[str]] = None


class AgenticaStatus(BaseModel):
    initialized: bool
    message: str
