"""
차트 API 엔드포인트
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from invest_friends.api.dependencies import get_chart_service, validate_date
from invest_friends.models import ChartResponse, FinancialDataResponse
from invest_friends.services.chart_service import ChartService

router = APIRouter(prefix="/chart", tags=["chart"])


@router.get("/stock", response_model=ChartResponse)
async def get_stock_chart(
    ticker: str = Query(..., pattern=r"^[0-9A-Z]{6,12}$", examples=["005930"]),
    period: str = Query("1m", pattern=r"^(1d|1w|1m|1y)$", description="1d / 1w / 1m / 1y"),
    start_date: str = Query(..., alias="startDate", pattern=r"^\d{8}$"),
    end_date: str = Query(..., alias="endDate", pattern=r"^\d{8}$"),
    chart_service: ChartService = Depends(get_chart_service),
):
    """
    주식 차트 데이터 (1d는 당일 분봉)

    Example:
        GET /api/v1/chart/stock?ticker=005930&period=1m&startDate=20250101&endDate=20250131
    """
    validate_date(start_date, "startDate")
    validate_date(end_date, "endDate")
    return await chart_service.get_stock_chart(ticker, period, start_date, end_date)


@router.get("/financial", response_model=FinancialDataResponse)
async def get_financial_data(
    corp_code: str = Query(..., alias="corpCode", pattern=r"^\d{1,8}$"),
    year: Optional[int] = Query(None, ge=2015, le=2100),
    chart_service: ChartService = Depends(get_chart_service),
):
    """재무 요약 (조회 실패 시 0으로 채운 결과)"""
    return await chart_service.get_financial_data(corp_code, year)
