"""
섹터 추천 응답 모델
"""

from pydantic import BaseModel, Field
from typing import List, Literal


class RecommendedStock(BaseModel):
    code: str = Field(..., description="종목 코드")
    name: str = Field(..., description="종목명")
    reason: str = Field(..., description="추천 이유")
    currentPrice: int = Field(..., description="현재가")
    targetPrice: int = Field(..., description="목표가")
    expectedReturn: int = Field(..., description="예상 수익률 (%)")
    riskLevel: Literal['low', 'medium', 'high']


class SectorRecommendationResponse(BaseModel):
    sector: str
    stocks: List[RecommendedStock]
    sectorAnalysis: str
    marketTrend: str


class AvailableSectorsResponse(BaseModel):
    sectors: List[str]
