"""
자연어 질의 라우터

사용자의 자연어 요청("삼성전자 주가 알려줘")을 LLM으로 해석하여
등록된 서비스 작업(현재가, 차트, 지수, 재무, 섹터 추천, 회사 검색) 중 하나를 호출합니다.

동작 순서:
1. 작업 목록(이름/설명/파라미터)을 포함한 프롬프트로 LLM에 JSON 결정 요청
2. {"operation": ..., "arguments": {...}} 파싱 (```json 코드블록 허용)
3. 회사명 → 종목코드 / DART 고유번호 변환 (corp_code 테이블)
4. 작업 실행 후 {success, data, message, operation} 반환
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

from invest_friends.clients.dart_client import DartClient
from invest_friends.clients.kis_client import KISClient
from invest_friends.core.exceptions import LLMAPIError
from invest_friends.services.chart_service import ChartService
from invest_friends.services.llm_client import LLMClient, NOT_CONFIGURED_MESSAGE
from invest_friends.services.recommendation_service import RecommendationService, SECTOR_STOCKS
from invest_friends.utils.llm_utils import extract_json
from invest_friends.utils.market_hours import now_kst

logger = logging.getLogger(__name__)

EXAMPLES = [
    '삼성전자 주가 알려줘',
    '005930 최근 한달 차트 보여줘',
    'SK하이닉스 재무제표 조회해줘',
    'KOSPI 지수 현재 얼마야?',
]

INDEX_CODES = {
    'KOSPI': '0001',
    'KOSDAQ': '1001',
    'KOSPI200': '2001',
}

PERIOD_DAYS = {
    '1d': 0,
    '1w': 7,
    '1m': 30,
    '1y': 365,
}

TICKER_PATTERN = re.compile(r'^\d{6}$')

ROUTER_SYSTEM_PROMPT = """당신은 한국 주식 정보 서비스의 요청 분류기입니다.
사용자 요청을 읽고 아래 작업 중 정확히 하나를 골라 JSON으로만 답하세요.
적절한 작업이 없으면 operation을 "none"으로 답하세요.

응답 형식:
```json
{"operation": "<작업 이름>", "arguments": {"<파라미터>": "<값>"}}
```"""


@dataclass
class Operation:
    """라우팅 가능한 작업"""
    name: str
    description: str
    handler: Callable[..., Awaitable[Any]]
    parameters: Dict[str, str] = field(default_factory=dict)

    def describe(self) -> Dict:
        return {
            'name': self.name,
            'description': self.description,
            'parameters': self.parameters,
        }


class CompanyNotFoundError(ValueError):
    """회사명/종목코드를 찾을 수 없음"""
    pass


class QueryRouter:
    """자연어 → 서비스 작업 라우터"""

    def __init__(
        self,
        llm: LLMClient,
        kis: KISClient,
        dart: DartClient,
        chart: ChartService,
        recommendation: RecommendationService,
    ):
        self.llm = llm
        self.kis = kis
        self.dart = dart
        self.chart = chart
        self.recommendation = recommendation
        self.operations = self._build_operations()

        if self.llm.enabled:
            logger.info(f"✅ Query router initialized ({len(self.operations)} operations)")
        else:
            logger.warning("⚠️ LLM API key not found. Query router will not be available.")

    def is_initialized(self) -> bool:
        return self.llm.enabled

    # ============= 작업 등록 =============

    def _build_operations(self) -> Dict[str, Operation]:
        operations = [
            Operation(
                name='get_price',
                description='종목 현재가, 등락률, PER/PBR, 시가총액 조회',
                handler=self._get_price,
                parameters={'company': '회사명 또는 6자리 종목코드'},
            ),
            Operation(
                name='get_stock_chart',
                description='종목 차트(OHLCV) 조회',
                handler=self._get_stock_chart,
                parameters={
                    'company': '회사명 또는 6자리 종목코드',
                    'period': '1d(당일 분봉) | 1w | 1m | 1y, 기본값 1m',
                },
            ),
            Operation(
                name='get_index_chart',
                description='시장 지수 일별 시세 조회',
                handler=self._get_index_chart,
                parameters={
                    'index': 'KOSPI | KOSDAQ | KOSPI200',
                    'days': '조회 일수, 기본값 30',
                },
            ),
            Operation(
                name='get_financial_data',
                description='재무제표 요약(매출액, 영업이익, 당기순이익, ROE 등) 조회',
                handler=self._get_financial_data,
                parameters={'company': '회사명 또는 6자리 종목코드', 'year': '사업연도 (선택)'},
            ),
            Operation(
                name='get_sector_recommendations',
                description='섹터별 추천 종목 조회',
                handler=self._get_sector_recommendations,
                parameters={'sector': ', '.join(self.recommendation.get_available_sectors())},
            ),
            Operation(
                name='search_company',
                description='회사명으로 상장회사 검색',
                handler=self._search_company,
                parameters={'keyword': '검색어'},
            ),
        ]
        return {operation.name: operation for operation in operations}

    def build_prompt(self, message: str) -> str:
        catalog = json.dumps(
            [operation.describe() for operation in self.operations.values()],
            ensure_ascii=False,
            indent=2,
        )
        return f"작업 목록:\n{catalog}\n\n사용자 요청: {message}"

    # ============= 회사 식별 =============

    def resolve_company(self, company: str) -> Dict[str, str]:
        """
        회사명/종목코드 → {stock_code, corp_code, corp_name}

        Raises:
            CompanyNotFoundError: corp_code 테이블과 추천 종목 목록 어디에도 없음
        """
        company = (company or '').strip()
        if not company:
            raise CompanyNotFoundError("회사명이 비어 있습니다.")

        if TICKER_PATTERN.match(company):
            corp = self.dart.find_by_stock_code(company)
            if corp:
                return corp
            return {'stock_code': company, 'corp_code': '', 'corp_name': company}

        matches = self.dart.search_by_name(company, limit=1)
        if matches:
            return matches[0]

        for stocks in SECTOR_STOCKS.values():
            for stock in stocks:
                if stock['name'] == company:
                    return {'stock_code': stock['code'], 'corp_code': '', 'corp_name': stock['name']}

        raise CompanyNotFoundError(f"'{company}'에 해당하는 종목을 찾을 수 없습니다.")

    # ============= 작업 핸들러 =============

    async def _get_price(self, company: str) -> Dict:
        corp = self.resolve_company(company)
        return await self.kis.get_price('J', corp['stock_code'])

    async def _get_stock_chart(self, company: str, period: str = '1m') -> Dict:
        corp = self.resolve_company(company)
        period = period if period in PERIOD_DAYS else '1m'
        today = now_kst().date()
        start = today - timedelta(days=PERIOD_DAYS[period])
        return await self.chart.get_stock_chart(
            corp['stock_code'], period, start.strftime('%Y%m%d'), today.strftime('%Y%m%d')
        )

    async def _get_index_chart(self, index: str = 'KOSPI', days: int = 30) -> Dict:
        code = INDEX_CODES.get(str(index).upper().replace(' ', ''), INDEX_CODES['KOSPI'])
        today = now_kst().date()
        start = today - timedelta(days=int(days))
        return await self.kis.get_index_chart(code, start.strftime('%Y%m%d'), today.strftime('%Y%m%d'))

    async def _get_financial_data(self, company: str, year: Optional[int] = None) -> Dict:
        corp = self.resolve_company(company)
        if not corp.get('corp_code'):
            raise CompanyNotFoundError(f"'{company}'의 DART 고유번호를 찾을 수 없습니다.")
        return await self.chart.get_financial_data(corp['corp_code'], int(year) if year else None)

    async def _get_sector_recommendations(self, sector: str) -> Dict:
        return await self.recommendation.get_recommendations_by_sector(sector)

    async def _search_company(self, keyword: str) -> List[Dict]:
        return self.dart.search_by_name(keyword)

    # ============= 처리 =============

    def _failure(self, message: str, error: Optional[str] = None) -> Dict:
        result = {'success': False, 'message': message, 'examples': EXAMPLES}
        if error:
            result['error'] = error
        return result

    async def process_message(self, message: str) -> Dict:
        """
        자연어 메시지 처리

        Args:
            message: 사용자 요청 (예: '삼성전자 주가 알려줘')

        Returns:
            성공: {success: True, operation, data, message}
            실패: {success: False, message, error?, examples}
        """
        if not self.is_initialized():
            return self._failure(NOT_CONFIGURED_MESSAGE)

        try:
            response_text, _ = await self.llm.generate(
                self.build_prompt(message),
                system=ROUTER_SYSTEM_PROMPT,
                temperature=0.0,
                max_tokens=300,
            )
        except LLMAPIError as e:
            logger.error(f"❌ 질의 해석 실패: {e}")
            return self._failure('처리 중 오류가 발생했습니다.', str(e))

        decision = extract_json(response_text)
        if not isinstance(decision, dict):
            logger.warning(f"⚠️ JSON 결정 파싱 실패: {response_text[:200]}")
            return self._failure('요청을 이해하지 못했습니다.')

        name = decision.get('operation')
        arguments = decision.get('arguments') or {}
        operation = self.operations.get(name)
        if operation is None or not isinstance(arguments, dict):
            logger.info(f"지원하지 않는 요청: {message} → {name}")
            return self._failure('지원하지 않는 요청입니다.')

        # 정의되지 않은 파라미터는 무시
        arguments = {key: value for key, value in arguments.items() if key in operation.parameters}

        logger.info(f"🔀 {message} → {operation.name}({arguments})")
        try:
            data = await operation.handler(**arguments)
        except CompanyNotFoundError as e:
            return self._failure(str(e))
        except Exception as e:
            logger.error(f"❌ {operation.name} 실행 실패: {e}")
            return self._failure('처리 중 오류가 발생했습니다.', str(e))

        return {
            'success': True,
            'operation': operation.name,
            'data': data,
            'message': f"{operation.description} 완료",
        }
