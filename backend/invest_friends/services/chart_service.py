"""
차트 서비스

KIS 시세를 차트용 OHLCV 형식으로 변환하고, DART 재무 요약을 조회합니다.
"""

import logging
from typing import Dict, List, Optional

from invest_friends.clients.dart_client import DartClient
from invest_friends.clients.kis_client import KISClient
from invest_friends.core.config import settings
from invest_friends.utils.mock_data import generate_daily_chart, generate_intraday_chart

logger = logging.getLogger(__name__)

DEFAULT_MARKET = "J"

# 조회 기간 → KIS 기간 분류 코드
PERIOD_CODES = {
    '1w': 'W',
    '1m': 'M',
    '1y': 'Y',
}

FINANCIAL_FIELDS = (
    'revenue', 'operatingProfit', 'netIncome', 'totalAssets', 'totalEquity', 'eps', 'roe', 'roa',
)


def _to_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def daily_rows_to_candles(rows: List[Dict]) -> List[Dict]:
    """기간별 시세(output2) → [{date, open, high, low, close, volume}]"""
    return [
        {
            'date': row['stck_bsop_date'],
            'open': _to_float(row['stck_oprc']),
            'high': _to_float(row['stck_hgpr']),
            'low': _to_float(row['stck_lwpr']),
            'close': _to_float(row['stck_clpr']),
            'volume': _to_int(row['acml_vol']),
        }
        for row in rows
    ]


def minute_rows_to_candles(rows: List[Dict]) -> List[Dict]:
    """분봉(output2) → 차트 형식 (date는 HHMMSS, 종가는 현재가)"""
    return [
        {
            'date': row['stck_cntg_hour'],
            'open': _to_float(row['stck_oprc']),
            'high': _to_float(row['stck_hgpr']),
            'low': _to_float(row['stck_lwpr']),
            'close': _to_float(row['stck_prpr']),
            'volume': _to_int(row['cntg_vol']),
        }
        for row in rows
    ]


class ChartService:
    """주식 차트 / 재무 데이터 서비스"""

    def __init__(self, kis: KISClient, dart: DartClient, mock_fallback: Optional[bool] = None):
        self.kis = kis
        self.dart = dart
        self.mock_fallback = settings.MOCK_FALLBACK_ENABLED if mock_fallback is None else mock_fallback

    async def get_stock_chart(
        self,
        ticker: str,
        period: str,
        start_date: str,
        end_date: str,
    ) -> Dict:
        """
        주식 차트 데이터

        Args:
            ticker: 종목코드
            period: 1d(당일 분봉) / 1w(주봉) / 1m(월봉) / 1y(년봉)
            start_date: 시작일 (YYYYMMDD)
            end_date: 종료일 (YYYYMMDD)

        Returns:
            {ticker, period, startDate, endDate, data: [{date, open, high, low, close, volume}]}

        Raises:
            Exception: KIS 조회 실패 (MOCK_FALLBACK_ENABLED=False일 때)
        """
        if period == '1d':
            return await self._get_intraday_chart(ticker, start_date)

        try:
            chart = await self.kis.get_daily_chart(
                DEFAULT_MARKET,
                ticker,
                start_date,
                end_date,
                period_code=PERIOD_CODES.get(period, 'D'),
            )
            data = daily_rows_to_candles(chart['output2'])
        except Exception as e:
            logger.error(f"❌ Failed to get chart data ({ticker}, {period}): {e}")
            if not self.mock_fallback:
                raise
            logger.warning(f"⚠️ Using mock data for {ticker} ({period})")
            data = generate_daily_chart(start_date, end_date)

        return {
            'ticker': ticker,
            'period': period,
            'startDate': start_date,
            'endDate': end_date,
            'data': data,
        }

    async def _get_intraday_chart(self, ticker: str, date: str) -> Dict:
        """당일 분봉 → 일별 분봉 → 샘플 순서로 시도"""
        try:
            chart = await self.kis.get_time_item_chart(DEFAULT_MARKET, ticker, hour="090000")
            data = minute_rows_to_candles(chart['output2'])
        except Exception as e:
            logger.error(f"❌ Failed to get intraday chart data ({ticker}): {e}")
            try:
                chart = await self.kis.get_time_daily_chart(DEFAULT_MARKET, ticker, date)
                data = minute_rows_to_candles(chart['output2'])
            except Exception as fallback_error:
                logger.error(f"❌ Daily chart fallback also failed ({ticker}): {fallback_error}")
                if not self.mock_fallback:
                    raise
                logger.warning(f"⚠️ Using mock intraday data for {ticker}")
                data = generate_intraday_chart()

        return {
            'ticker': ticker,
            'period': '1d',
            'startDate': date,
            'endDate': date,
            'data': data,
        }

    async def get_financial_data(self, corp_code: str, year: Optional[int] = None) -> Dict:
        """
        재무 요약 (실패 시 0으로 채운 결과)

        Returns:
            {corpCode, year, revenue, operatingProfit, netIncome, totalAssets, totalEquity, eps, roe, roa}
        """
        try:
            financial = await self.dart.get_financial_statements(corp_code, year)
            logger.info(f"Financial data retrieved for {corp_code} ({year})")
        except Exception as e:
            logger.error(f"❌ Failed to get financial data ({corp_code}): {e}")
            financial = {}

        result = {'corpCode': corp_code, 'year': year}
        for field in FINANCIAL_FIELDS:
            result[field] = financial.get(field, 0)
        return result
