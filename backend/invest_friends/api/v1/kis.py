"""
KIS 시세 API 엔드포인트

현재가, 분봉, 지수 일별 시세, 토큰 상태 조회
"""

import logging

from fastapi import APIRouter, Depends, Query

from invest_friends.api.dependencies import get_kis_client, validate_date
from invest_friends.clients.kis_client import KISClient
from invest_friends.models import (
    IndexChartResponse,
    MinuteChartResponse,
    PriceResponse,
    TokenStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/kis", tags=["kis"])

MARKET_PATTERN = r"^(J|NX|UN)$"
TICKER_PATTERN = r"^[0-9A-Z]{6,12}$"
DATE_PATTERN = r"^\d{8}$"
HOUR_PATTERN = r"^\d{6}$"


@router.get("/price", response_model=PriceResponse)
async def get_price(
    market_code: str = Query("J", alias="FID_COND_MRKT_DIV_CODE", pattern=MARKET_PATTERN,
                             description="시장 구분 (J: KRX, NX: NXT, UN: 통합)"),
    ticker: str = Query(..., alias="FID_INPUT_ISCD", pattern=TICKER_PATTERN,
                        description="종목코드", examples=["005930"]),
    kis: KISClient = Depends(get_kis_client),
):
    """
    주식 현재가 조회

    Example:
        GET /api/v1/kis/price?FID_COND_MRKT_DIV_CODE=J&FID_INPUT_ISCD=005930
    """
    return await kis.get_price(market_code, ticker)


@router.get("/time-daily-chart", response_model=MinuteChartResponse)
async def get_time_daily_chart(
    market_code: str = Query("J", alias="FID_COND_MRKT_DIV_CODE", pattern=MARKET_PATTERN),
    ticker: str = Query(..., alias="FID_INPUT_ISCD", pattern=TICKER_PATTERN),
    date: str = Query(..., alias="FID_INPUT_DATE_1", pattern=DATE_PATTERN, description="조회 일자 (YYYYMMDD)"),
    hour: str = Query("153000", alias="FID_INPUT_HOUR_1", pattern=HOUR_PATTERN, description="기준 시간 (HHMMSS)"),
    adj_price: str = Query("0", alias="FID_ORG_ADJ_PRC", pattern=r"^[01]$"),
    kis: KISClient = Depends(get_kis_client),
):
    """일별 분봉 조회"""
    validate_date(date, "FID_INPUT_DATE_1")
    return await kis.get_time_daily_chart(market_code, ticker, date, hour=hour, adj_price=adj_price)


@router.get("/time-item-chart", response_model=MinuteChartResponse)
async def get_time_item_chart(
    market_code: str = Query("J", alias="FID_COND_MRKT_DIV_CODE", pattern=MARKET_PATTERN),
    ticker: str = Query(..., alias="FID_INPUT_ISCD", pattern=TICKER_PATTERN),
    hour: str = Query("090000", alias="FID_INPUT_HOUR_1", pattern=HOUR_PATTERN),
    adj_price: str = Query("0", alias="FID_ORG_ADJ_PRC", pattern=r"^[01]$"),
    include_past: str = Query("Y", alias="FID_PW_DATA_INCU_YN", pattern=r"^[YN]$", description="과거 데이터 포함 여부"),
    kis: KISClient = Depends(get_kis_client),
):
    """당일 분봉 조회"""
    return await kis.get_time_item_chart(
        market_code, ticker, hour=hour, adj_price=adj_price, include_past=include_past
    )


@router.get("/index-chart", response_model=IndexChartResponse)
async def get_index_chart(
    index_code: str = Query(..., alias="FID_INPUT_ISCD", pattern=r"^\d{4}$",
                            description="지수 코드 (0001: KOSPI, 1001: KOSDAQ, 2001: KOSPI200)"),
    start_date: str = Query(..., alias="FID_INPUT_DATE_1", pattern=DATE_PATTERN),
    end_date: str = Query(..., alias="FID_INPUT_DATE_2", pattern=DATE_PATTERN),
    period_code: str = Query("D", alias="FID_PERIOD_DIV_CODE", pattern=r"^[DWM]$"),
    kis: KISClient = Depends(get_kis_client),
):
    """
    지수 일별 시세 조회 (오래된 날짜부터 정렬)

    upstream 실패 시 msg_cd가 'MOCK'인 샘플 데이터가 반환될 수 있습니다.
    """
    validate_date(start_date, "FID_INPUT_DATE_1")
    validate_date(end_date, "FID_INPUT_DATE_2")
    return await kis.get_index_chart(index_code, start_date, end_date, period_code)


@router.get("/token/status", response_model=TokenStatusResponse)
async def get_token_status(kis: KISClient = Depends(get_kis_client)):
    """토큰 캐시 상태 (토큰 값은 노출하지 않음)"""
    return kis.token_status()
