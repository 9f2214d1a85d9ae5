"""
KIS REST API Client

한국투자증권 국내주식 시세 API 클라이언트

Features:
- 모든 요청에 KISTokenManager 토큰 사용 (토큰 거부 시 1회 재발급 후 재시도)
- 현재가 / 기간별 차트 / 분봉 / 지수 일별 시세
- 지수 데이터 캐싱 (장중 INDEX_CACHE_TTL, 장마감 후 다음 장 시작까지)
- 네트워크 오류 재시도 (tenacity, 3회 지수 백오프)
"""

import logging
import time
from typing import Dict, List, Optional, Tuple

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception

from invest_friends.clients.kis_token import KISTokenManager
from invest_friends.core.config import settings
from invest_friends.core.error_strategy import ApiClient
from invest_friends.core.exceptions import ApiError, KISAPIError
from invest_friends.utils.market_hours import is_market_open, time_until_market_open
from invest_friends.utils.mock_data import generate_index_chart

logger = logging.getLogger(__name__)

INQUIRE_PRICE = "/uapi/domestic-stock/v1/quotations/inquire-price"
INQUIRE_DAILY_CHART = "/uapi/domestic-stock/v1/quotations/inquire-daily-itemchartprice"
INQUIRE_TIME_DAILY_CHART = "/uapi/domestic-stock/v1/quotations/inquire-time-dailychartprice"
INQUIRE_TIME_ITEM_CHART = "/uapi/domestic-stock/v1/quotations/inquire-time-itemchartprice"
INQUIRE_INDEX_CHART = "/uapi/domestic-stock/v1/quotations/inquire-index-daily-price"

TR_PRICE = "FHKST01010100"
TR_DAILY_CHART = "FHKST03010100"
TR_TIME_DAILY_CHART = "FHKST03010200"
TR_TIME_ITEM_CHART = "FHKST03010300"
TR_INDEX_CHART = "FHPUP02100000"

# 만료/무효 토큰 응답 코드
TOKEN_REJECTED_CODES = ("EGW00123", "EGW00121")

PRICE_FIELDS = {
    'rprs_mrkt_kor_name': '',
    'stck_shrn_iscd': '',
    'stck_prpr': '0',
    'prdy_vrss': '0',
    'prdy_ctrt': '0.00',
    'per': '0.00',
    'pbr': '0.00',
    'lstn_stcn': '0',
    'hts_avls': '0',
    'acml_vol': '0',
    'acml_tr_pbmn': '0',
}

DAILY_FIELDS = {
    'stck_bsop_date': '',
    'stck_oprc': '0',
    'stck_hgpr': '0',
    'stck_lwpr': '0',
    'stck_clpr': '0',
    'acml_vol': '0',
}

MINUTE_FIELDS = {
    'stck_cntg_hour': '',
    'stck_oprc': '0',
    'stck_hgpr': '0',
    'stck_lwpr': '0',
    'stck_prpr': '0',
    'cntg_vol': '0',
    'acml_vol': '0',
}

INDEX_FIELDS = {
    'stck_bsop_date': '',
    'bsop_hour': '',
    'indx_prpr': '0',
    'indx_prdy_vrss': '0',
    'indx_prdy_ctrt': '0.00',
    'acml_vol': '0',
    'acml_tr_pbmn': '0',
}


def _pick(item: Dict, fields: Dict[str, str]) -> Dict[str, str]:
    """필요한 필드만 추출 (빈 값은 기본값)"""
    return {key: item.get(key) or default for key, default in fields.items()}


def _is_transient(error: BaseException) -> bool:
    """응답 없이 실패한 요청 (타임아웃, 연결 오류)만 재시도"""
    return isinstance(error, ApiError) and error.upstream_status is None


def is_token_rejected(text: Optional[str]) -> bool:
    """만료/무효 토큰으로 거부된 응답인지"""
    return any(code in (text or "") for code in TOKEN_REJECTED_CODES)


class KISClient:
    """KIS 시세 API 클라이언트"""

    def __init__(
        self,
        api: Optional[ApiClient] = None,
        token_manager: Optional[KISTokenManager] = None,
        base_url: Optional[str] = None,
        cache_ttl: Optional[int] = None,
        mock_fallback: Optional[bool] = None,
    ):
        self.base_url = base_url or settings.KIS_BASE_URL
        self.api = api or ApiClient(httpx.AsyncClient(timeout=settings.KIS_TIMEOUT))
        self.token_manager = token_manager or KISTokenManager(
            api=self.api,
            app_key=settings.KIS_APP_KEY,
            app_secret=settings.KIS_APP_SECRET,
            base_url=self.base_url,
            refresh_margin=settings.KIS_TOKEN_REFRESH_MARGIN,
            min_interval=settings.KIS_TOKEN_MIN_INTERVAL,
        )
        self.cache_ttl = settings.INDEX_CACHE_TTL if cache_ttl is None else cache_ttl
        self.mock_fallback = settings.MOCK_FALLBACK_ENABLED if mock_fallback is None else mock_fallback

        # cache_key → (만료 monotonic 시각, 결과)
        self._index_cache: Dict[str, Tuple[float, Dict]] = {}

    async def close(self):
        """Close HTTP client"""
        await self.api.aclose()

    def token_status(self) -> dict:
        return self.token_manager.status()

    # ============= 공통 요청 =============

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception(_is_transient),
        reraise=True,
    )
    async def _get(self, endpoint: str, tr_id: str, params: Dict, token: str) -> Dict:
        return await self.api.get(
            f"{self.base_url}{endpoint}",
            params=params,
            headers=self.token_manager.auth_headers(token, tr_id),
        )

    async def _request(self, endpoint: str, tr_id: str, params: Dict) -> Dict:
        """
        토큰을 붙여 GET 요청 후 rt_cd 검증

        토큰이 거부되면 캐시를 만료 처리하고 한 번만 다시 시도합니다.

        Raises:
            KISAPIError: rt_cd != '0' 또는 HTTP 오류
        """
        for attempt in range(2):
            token = await self.token_manager.get_valid_access_token()
            try:
                data = await self._get(endpoint, tr_id, params, token)
            except ApiError as e:
                if attempt == 0 and is_token_rejected(e.upstream_body):
                    logger.warning(f"⚠️ KIS 토큰 거부됨 ({tr_id}), 재발급 후 재시도")
                    self.token_manager.invalidate()
                    continue
                raise KISAPIError(f"KIS API Error: {e.message}") from e

            if data and data.get("rt_cd") == "0":
                return data

            error_msg = (data or {}).get("msg1") or "Unknown KIS API error"
            msg_cd = (data or {}).get("msg_cd") or ""
            if attempt == 0 and is_token_rejected(msg_cd):
                logger.warning(f"⚠️ KIS 토큰 거부됨 ({tr_id}: {msg_cd}), 재발급 후 재시도")
                self.token_manager.invalidate()
                continue

            logger.error(f"❌ KIS API Error [{tr_id}]: {(data or {}).get('rt_cd')} - {error_msg}")
            raise KISAPIError(f"KIS API Error: {error_msg}")

        raise KISAPIError("KIS API Error: token rejected after refresh")

    @staticmethod
    def _output2(data: Dict, fields: Dict[str, str], label: str) -> List[Dict]:
        rows = data.get("output2")
        if not isinstance(rows, list):
            logger.error(f"❌ KIS {label} API returned no data")
            raise KISAPIError(f"No {label} data available")
        return [_pick(row, fields) for row in rows]

    @staticmethod
    def _envelope(data: Dict, rows: List[Dict]) -> Dict:
        return {
            'rt_cd': data.get("rt_cd"),
            'msg_cd': data.get("msg_cd") or '',
            'msg1': data.get("msg1") or '',
            'output2': rows,
        }

    # ============= 시세 =============

    async def get_price(self, market_code: str, ticker: str) -> Dict[str, str]:
        """
        주식 현재가 시세

        Args:
            market_code: 시장 구분 (J: KRX, NX: NXT, UN: 통합)
            ticker: 종목코드 (예: '005930')

        Returns:
            {rprs_mrkt_kor_name, stck_shrn_iscd, stck_prpr, prdy_vrss, prdy_ctrt,
             per, pbr, lstn_stcn, hts_avls, acml_vol, acml_tr_pbmn}

        Raises:
            KISAPIError: 응답 오류 또는 output 없음
        """
        data = await self._request(
            INQUIRE_PRICE,
            TR_PRICE,
            {"FID_COND_MRKT_DIV_CODE": market_code, "FID_INPUT_ISCD": ticker},
        )

        output = data.get("output")
        if not output:
            logger.error(f"❌ KIS Price API returned no output data ({ticker})")
            raise KISAPIError("No price data available")

        price = _pick(output, PRICE_FIELDS)
        price['stck_shrn_iscd'] = output.get('stck_shrn_iscd') or ticker
        logger.debug(f"현재가 조회: {ticker} {price['stck_prpr']}원 ({price['prdy_ctrt']}%)")
        return price

    async def get_daily_chart(
        self,
        market_code: str,
        ticker: str,
        start_date: str,
        end_date: str,
        period_code: str = "D",
        adj_price: str = "0",
    ) -> Dict:
        """
        기간별 시세 (일/주/월/년봉)

        Args:
            period_code: D(일) / W(주) / M(월) / Y(년)
            adj_price: 0(수정주가) / 1(원주가)
        """
        data = await self._request(
            INQUIRE_DAILY_CHART,
            TR_DAILY_CHART,
            {
                "FID_COND_MRKT_DIV_CODE": market_code,
                "FID_INPUT_ISCD": ticker,
                "FID_INPUT_DATE_1": start_date,
                "FID_INPUT_DATE_2": end_date,
                "FID_PERIOD_DIV_CODE": period_code,
                "FID_ORG_ADJ_PRC": adj_price,
            },
        )
        return self._envelope(data, self._output2(data, DAILY_FIELDS, "chart"))

    async def get_time_daily_chart(
        self,
        market_code: str,
        ticker: str,
        date: str,
        hour: str = "153000",
        adj_price: str = "0",
    ) -> Dict:
        """일별 분봉 (특정 일자의 분봉)"""
        data = await self._request(
            INQUIRE_TIME_DAILY_CHART,
            TR_TIME_DAILY_CHART,
            {
                "FID_COND_MRKT_DIV_CODE": market_code,
                "FID_INPUT_ISCD": ticker,
                "FID_INPUT_DATE_1": date,
                "FID_INPUT_HOUR_1": hour,
                "FID_ORG_ADJ_PRC": adj_price,
            },
        )
        return self._envelope(data, self._output2(data, MINUTE_FIELDS, "time daily chart"))

    async def get_time_item_chart(
        self,
        market_code: str,
        ticker: str,
        hour: str = "090000",
        adj_price: str = "0",
        include_past: str = "Y",
    ) -> Dict:
        """당일 분봉"""
        data = await self._request(
            INQUIRE_TIME_ITEM_CHART,
            TR_TIME_ITEM_CHART,
            {
                "FID_COND_MRKT_DIV_CODE": market_code,
                "FID_INPUT_ISCD": ticker,
                "FID_INPUT_HOUR_1": hour,
                "FID_ORG_ADJ_PRC": adj_price,
                "FID_PW_DATA_INCU_YN": include_past,
                "FID_ETC_CLS_CODE": "",
            },
        )
        return self._envelope(data, self._output2(data, MINUTE_FIELDS, "time item chart"))

    # ============= 지수 =============

    def _cache_ttl_seconds(self) -> float:
        if is_market_open():
            return float(self.cache_ttl)
        return time_until_market_open().total_seconds()

    def clear_cache(self):
        self._index_cache.clear()

    async def get_index_chart(
        self,
        index_code: str,
        start_date: str,
        end_date: str,
        period_code: str = "D",
    ) -> Dict:
        """
        업종(지수) 일별 시세

        결과는 오래된 날짜 → 최근 날짜 순으로 정렬됩니다.
        장중에는 INDEX_CACHE_TTL 동안, 장마감 후에는 다음 장 시작까지 캐시합니다.

        Args:
            index_code: 지수 코드 (0001: KOSPI, 1001: KOSDAQ, 2001: KOSPI200)
            start_date: 시작일 (YYYYMMDD)
            end_date: 종료일 (YYYYMMDD)
            period_code: D / W / M

        Returns:
            {rt_cd, msg_cd, msg1, output2: [...]}
            upstream 실패 시 샘플 데이터 (msg_cd='MOCK', MOCK_FALLBACK_ENABLED일 때만)
        """
        cache_key = f"{index_code}_{start_date}_{end_date}_{period_code}"
        cached = self._index_cache.get(cache_key)
        if cached and time.monotonic() < cached[0]:
            logger.debug(f"지수 캐시 사용: {cache_key}")
            return cached[1]

        try:
            data = await self._request(
                INQUIRE_INDEX_CHART,
                TR_INDEX_CHART,
                {
                    "fid_cond_mrkt_div_code": "U",
                    "fid_input_iscd": index_code,
                    "fid_input_date_1": start_date,
                    "fid_input_date_2": end_date,
                    "fid_period_div_code": period_code,
                },
            )
            rows = self._output2(data, INDEX_FIELDS, "index chart")
        except Exception as e:
            logger.error(f"❌ 지수 차트 조회 실패 ({index_code}): {e}")
            if not self.mock_fallback:
                raise
            logger.warning(f"⚠️ 샘플 지수 데이터 사용: {index_code}")
            return {
                'rt_cd': '0',
                'msg_cd': 'MOCK',
                'msg1': 'Mock data for testing',
                'output2': generate_index_chart(index_code, start_date, end_date),
            }

        rows.sort(key=lambda row: row['stck_bsop_date'] + (row['bsop_hour'] or '000000'))
        result = self._envelope(data, rows)

        self._index_cache[cache_key] = (time.monotonic() + self._cache_ttl_seconds(), result)
        logger.info(f"✅ 지수 차트 조회: {index_code} {len(rows)}건")
        return result
