"""
차트 / 재무 응답 모델
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class Candle(BaseModel):
    """OHLCV 한 봉"""

    date: str = Field(..., description="YYYYMMDD (분봉은 HHMMSS)")
    open: float
    high: float
    low: float
    close: float
    volume: int


class ChartResponse(BaseModel):
    ticker: str
    period: str = Field(..., description="1d / 1w / 1m / 1y")
    startDate: str
    endDate: str
    data: List[Candle]


class FinancialDataResponse(BaseModel):
    """재무 요약 (금액: 억원)"""

    corpCode: str
    year: Optional[int] = None
    revenue: int = Field(0, description="매출액 (억원)")
    operatingProfit: int = Field(0, description="영업이익 (억원)")
    netIncome: int = Field(0, description="당기순이익 (억원)")
    totalAssets: int = Field(0, description="자산총계 (억원)")
    totalEquity: int = Field(0, description="자본총계 (억원)")
    eps: int = Field(0, description="EPS (원)")
    roe: float = Field(0, description="ROE (%)")
    roa: float = Field(0, description="ROA (%)")

    class Config:
        json_schema_extra = {
            "example": {
                "corpCode": "00126380",
                "year": 2023,
                "revenue": 2589355,
                "operatingProfit": 65670,
                "netIncome": 154871,
                "totalAssets": 4559060,
                "totalEquity": 3636779,
                "eps": 2594,
                "roe": 4.26,
                "roa": 3.4,
            }
        }
