"""
DART OpenAPI 클라이언트

금융감독원 전자공시(DART) API 호출 및 기업 고유번호(corp_code) 테이블 관리

Features:
- corpCode.xml(zip) 다운로드 → 상장회사만 corp_code 테이블에 적재
- 종목코드/회사명으로 corp_code 조회
- 단일회사 주요 재무지표 / 주요계정 / 배당 조회
"""

import io
import logging
import xml.etree.ElementTree as ET
import zipfile
from datetime import date
from typing import Dict, List, Optional, Tuple

import httpx

from invest_friends.core.config import settings
from invest_friends.core.error_strategy import ApiClient
from invest_friends.core.exceptions import ApiError, DartAPIError
from invest_friends.db.database import get_db
from invest_friends.db.models import CorpCode
from invest_friends.utils.financial_processor import extract_financial_metrics, ratio_percent
from invest_friends.utils.mock_data import sample_financial_figures

logger = logging.getLogger(__name__)

CORP_CODE_XML = "CORPCODE.xml"
BATCH_SIZE = 1000
STATUS_OK = "000"

# 보고서 코드
REPORT_ANNUAL = "11011"   # 사업보고서
REPORT_HALF = "11012"     # 반기보고서
REPORT_Q1 = "11013"       # 1분기보고서
REPORT_Q3 = "11014"       # 3분기보고서

SINGLE_INDEX_DEFAULTS = {
    'corp_code': '00126380',
    'bsns_year': '2023',
    'reprt_code': REPORT_Q1,
    'idx_cl_code': 'M230000',
}


def select_report(year: Optional[int], today: Optional[date] = None) -> Tuple[int, str]:
    """
    조회 연도에 맞는 (사업연도, 보고서 코드) 선택

    - 과거 연도 → 해당 연도 사업보고서
    - 올해 1~3월 → 전년도 사업보고서
    - 올해 4~5월 → 1분기, 6~8월 → 반기, 9~12월 → 3분기

    Example:
        >>> select_report(2024, date(2025, 7, 1))
        (2024, '11011')
        >>> select_report(2025, date(2025, 7, 1))
        (2025, '11012')
    """
    today = today or date.today()
    year = year or today.year

    if year != today.year:
        return year, REPORT_ANNUAL

    month = today.month
    if month <= 3:
        return year - 1, REPORT_ANNUAL
    if month <= 5:
        return year, REPORT_Q1
    if month <= 8:
        return year, REPORT_HALF
    return year, REPORT_Q3


def _to_int(value: Optional[str]) -> int:
    cleaned = (value or "").replace(",", "").strip()
    if cleaned in ("", "-"):
        return 0
    try:
        return int(float(cleaned))
    except ValueError:
        return 0


def parse_corp_code_zip(content: bytes) -> List[Dict[str, str]]:
    """
    corpCode.xml 응답(zip) 파싱

    Returns:
        [{corp_code, corp_name, corp_eng_name, stock_code, modify_date}, ...]

    Raises:
        DartAPIError: zip이 아니거나 CORPCODE.xml이 없는 응답
    """
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            names = zf.namelist()
            xml_name = CORP_CODE_XML if CORP_CODE_XML in names else (names[0] if names else None)
            if xml_name is None:
                raise DartAPIError("corpCode.xml 응답에 파일이 없습니다")
            with zf.open(xml_name) as f:
                root = ET.parse(f).getroot()
    except zipfile.BadZipFile as e:
        snippet = content[:200].decode("utf-8", errors="replace")
        logger.error(f"❌ DART로부터 유효한 Zip 파일을 받지 못했습니다: {snippet}")
        raise DartAPIError("DART corpCode 응답이 zip 형식이 아닙니다") from e

    rows = []
    for item in root.iter("list"):
        rows.append({child.tag: (child.text or "").strip() for child in item})
    return rows


class DartClient:
    """DART API 클라이언트 + corp_code 저장소"""

    def __init__(
        self,
        api: Optional[ApiClient] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        session_factory=None,
        mock_fallback: Optional[bool] = None,
    ):
        self.api = api or ApiClient(httpx.AsyncClient(timeout=30.0))
        self.api_key = api_key if api_key is not None else settings.DART_API_KEY
        self.base_url = base_url or settings.DART_BASE_URL
        self.session_factory = session_factory
        self.mock_fallback = settings.MOCK_FALLBACK_ENABLED if mock_fallback is None else mock_fallback

    async def close(self):
        await self.api.aclose()

    # ============= 공통 =============

    def _params(self, **params) -> Dict[str, str]:
        if not self.api_key:
            raise DartAPIError("DART_API_KEY가 설정되지 않았습니다")
        return {'crtfc_key': self.api_key, **params}

    async def _get_json(self, endpoint: str, params: Dict) -> Dict:
        try:
            return await self.api.get(f"{self.base_url}/{endpoint}", params=params)
        except ApiError as e:
            raise DartAPIError(f"DART API Error: {e.message}") from e

    async def _get_list(self, endpoint: str, params: Dict) -> List[Dict]:
        """status '000'이 아닌 응답은 DartAPIError"""
        data = await self._get_json(endpoint, params)
        status = (data or {}).get("status")
        if status != STATUS_OK:
            message = (data or {}).get("message") or "DART API returned error"
            logger.warning(f"⚠️ DART API error [{endpoint}] {status}: {message}")
            raise DartAPIError(f"DART API Error [{status}]: {message}")
        return data.get("list") or []

    # ============= corp_code =============

    async def download_corp_codes(self) -> List[Dict[str, str]]:
        """corpCode.xml 다운로드 및 파싱 (전체 회사)"""
        logger.info("🚀 DART에 기업 고유번호 데이터 요청 중...")
        try:
            content = await self.api.get(
                f"{self.base_url}/corpCode.xml", params=self._params(), raw=True
            )
        except ApiError as e:
            raise DartAPIError(f"DART API Error: {e.message}") from e

        rows = parse_corp_code_zip(content)
        logger.info(f"✅ 데이터 파싱 완료. 총 {len(rows):,}개의 기업 정보")
        return rows

    async def fetch_and_store_corp_codes(self) -> int:
        """corpCode.xml 다운로드 후 적재"""
        return self.store_corp_codes(await self.download_corp_codes())

    def store_corp_codes(self, rows: List[Dict[str, str]]) -> int:
        """
        상장회사만 corp_code 테이블에 적재 (1000건 단위 merge)

        Returns:
            적재 건수
        """
        listed = [
            row for row in rows
            if row.get('stock_code') and row['stock_code'] != 'null'
        ]

        entities = [
            CorpCode(
                corp_code=str(row.get('corp_code', '')).zfill(8),
                corp_name=row.get('corp_name', ''),
                corp_eng_name=row.get('corp_eng_name') or '',
                stock_code=str(row['stock_code']).zfill(6),
                modify_date=_to_int(row.get('modify_date')),
            )
            for row in listed
        ]

        total_saved = 0
        for i in range(0, len(entities), BATCH_SIZE):
            batch = entities[i:i + BATCH_SIZE]
            with get_db(self.session_factory) as db:
                for entity in batch:
                    db.merge(entity)
            total_saved += len(batch)
            logger.info(f"상장회사 데이터 {total_saved}/{len(entities)}건 적재 중...")

        logger.info(f"✅ 상장회사 데이터 {len(entities)}건 적재 완료!")
        return len(entities)

    def count_corp_codes(self) -> int:
        with get_db(self.session_factory) as db:
            return db.query(CorpCode).count()

    async def ensure_corp_codes(self) -> int:
        """
        서버 시작 시 corp_code 테이블 확인 (비어 있을 때만 적재)

        Returns:
            테이블 건수
        """
        count = self.count_corp_codes()
        if count > 0:
            logger.info(f"corp_code 테이블에 데이터가 이미 존재합니다 ({count:,}건)")
            return count

        logger.info("corp_code 데이터가 없으므로 DART에서 받아와 적재합니다")
        return await self.fetch_and_store_corp_codes()

    async def refresh_corp_codes(self) -> Dict:
        """corp_code 테이블 비우고 다시 적재"""
        logger.info("🔄 Refreshing corp_code data...")

        # 다운로드가 성공한 뒤에 삭제
        rows_before = self.count_corp_codes()
        rows = await self.download_corp_codes()

        with get_db(self.session_factory) as db:
            db.query(CorpCode).delete()
        logger.info(f"Cleared existing corp_code data ({rows_before:,}건)")

        self.store_corp_codes(rows)

        count = self.count_corp_codes()
        message = f"Successfully refreshed corp_code data. Total: {count} records"
        logger.info(f"✅ {message}")
        return {'message': message, 'count': count}

    def get_corp_codes(self) -> List[Dict]:
        with get_db(self.session_factory) as db:
            return [corp.to_dict() for corp in db.query(CorpCode).all()]

    def get_by_corp_code(self, corp_code: str) -> Optional[Dict]:
        """corp_code로 조회 (8자리로 패딩)"""
        with get_db(self.session_factory) as db:
            corp = db.get(CorpCode, corp_code.zfill(8))
            return corp.to_dict() if corp else None

    def find_by_stock_code(self, stock_code: str) -> Optional[Dict]:
        with get_db(self.session_factory) as db:
            corp = db.query(CorpCode).filter_by(stock_code=stock_code.zfill(6)).first()
            return corp.to_dict() if corp else None

    def search_by_name(self, keyword: str, limit: int = 10) -> List[Dict]:
        """
        회사명 검색

        정확히 일치하는 회사가 먼저, 나머지는 이름이 짧은 순서로 반환합니다.
        """
        keyword = (keyword or "").strip()
        if not keyword:
            return []

        with get_db(self.session_factory) as db:
            exact = db.query(CorpCode).filter(CorpCode.corp_name == keyword).all()
            partial = (
                db.query(CorpCode)
                .filter(CorpCode.corp_name.contains(keyword), CorpCode.corp_name != keyword)
                .all()
            )
            partial.sort(key=lambda corp: (len(corp.corp_name), corp.corp_name))
            return [corp.to_dict() for corp in (exact + partial)[:limit]]

    # ============= 공시 데이터 =============

    async def get_single_index(self, params: Optional[Dict] = None) -> Dict:
        """
        단일회사 주요 재무지표 (fnlttSinglIndx)

        Args:
            params: corp_code, bsns_year, reprt_code, idx_cl_code (없으면 기본값)

        Returns:
            DART 응답 그대로
        """
        overrides = {key: value for key, value in (params or {}).items() if value is not None}
        request_params = self._params(**{**SINGLE_INDEX_DEFAULTS, **overrides})
        return await self._get_json("fnlttSinglIndx.json", request_params)

    async def get_total_shares(self, corp_code: str, year: int, reprt_code: str) -> int:
        """
        발행 보통주식 총수 (stockTotqySttus)

        Returns:
            주식수 (조회 실패 시 0)
        """
        try:
            rows = await self._get_list(
                "stockTotqySttus.json",
                self._params(corp_code=corp_code, bsns_year=str(year), reprt_code=reprt_code),
            )
        except DartAPIError as e:
            logger.warning(f"⚠️ 발행주식수 조회 실패 ({corp_code}): {e}")
            return 0

        for row in rows:
            if (row.get('se') or '').strip() == '보통주':
                return _to_int(row.get('istc_totqy'))
        return 0

    async def get_financial_statements(
        self,
        corp_code: str,
        year: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Dict:
        """
        단일회사 주요계정 기반 재무 요약

        Args:
            corp_code: DART 고유번호 (8자리로 패딩)
            year: 사업연도 (기본값: 올해)

        Returns:
            {corpCode, year, revenue, operatingProfit, netIncome, totalAssets,
             totalEquity, eps, roe, roa} (금액: 억원, eps: 원, roe/roa: %)

        Raises:
            DartAPIError: 조회 실패 (MOCK_FALLBACK_ENABLED=False일 때)
        """
        padded = corp_code.zfill(8)
        request_year, reprt_code = select_report(year, today)
        logger.info(f"📊 재무제표 조회: {padded} {request_year}년 (보고서 {reprt_code})")

        try:
            items = await self._get_list(
                "fnlttSinglAcnt.json",
                self._params(corp_code=padded, bsns_year=str(request_year), reprt_code=reprt_code),
            )
            total_shares = await self.get_total_shares(padded, request_year, reprt_code)
            metrics = extract_financial_metrics({'list': items}, total_shares)
        except (DartAPIError, ValueError) as e:
            logger.error(f"❌ 재무제표 조회 실패 ({padded}): {e}")
            if not self.mock_fallback:
                raise DartAPIError(f"Failed to get financial statements: {e}") from e
            logger.warning("⚠️ 샘플 재무 데이터 반환")
            return sample_financial_figures(corp_code, year)

        return {
            'corpCode': corp_code,
            'year': year,
            **metrics,
            'roe': ratio_percent(metrics['netIncome'], metrics['totalEquity']),
            'roa': ratio_percent(metrics['netIncome'], metrics['totalAssets']),
        }

    async def get_dividend_info(self, corp_code: str, year: Optional[int] = None) -> Dict:
        """
        배당에 관한 사항 (alotMatter, 사업보고서 기준)

        연도를 지정하지 않으면 공시가 끝난 직전 연도를 조회합니다.

        Returns:
            {corpCode, year, items: [{category, stockKind, current, previous, twoYearsAgo}]}
        """
        padded = corp_code.zfill(8)
        year = year or date.today().year - 1

        rows = await self._get_list(
            "alotMatter.json",
            self._params(corp_code=padded, bsns_year=str(year), reprt_code=REPORT_ANNUAL),
        )

        items = [
            {
                'category': row.get('se', ''),
                'stockKind': row.get('stock_knd') or '',
                'current': row.get('thstrm') or '-',
                'previous': row.get('frmtrm') or '-',
                'twoYearsAgo': row.get('lwfr') or '-',
            }
            for row in rows
        ]
        logger.info(f"✅ 배당 정보 조회: {padded} {year}년 {len(items)}건")
        return {'corpCode': padded, 'year': year, 'items': items}
