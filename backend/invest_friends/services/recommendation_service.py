"""
섹터별 종목 추천 서비스

섹터별 대표 종목에 현재가를 붙이고, 순위별 위험도/기대수익률/목표가와
섹터 코멘트(LLM)를 함께 반환합니다.
"""

import asyncio
import logging
from typing import Dict, List

from invest_friends.clients.kis_client import KISClient
from invest_friends.core.exceptions import SectorNotFoundError
from invest_friends.services.chat_service import ChatService

logger = logging.getLogger(__name__)

AVAILABLE_SECTORS = [
    '2차전지',
    '반도체',
    'AI/클라우드',
    '바이오',
    '방산',
    '엔터',
    '게임',
    '신재생',
    '자동차',
    '화장품',
]

SECTOR_STOCKS: Dict[str, List[Dict[str, str]]] = {
    '2차전지': [
        {'code': '051910', 'name': 'LG화학', 'sector': '2차전지', 'subSector': '양극재'},
        {'code': '006400', 'name': '삼성SDI', 'sector': '2차전지', 'subSector': '배터리셀'},
        {'code': '373220', 'name': '에너지솔루션', 'sector': '2차전지', 'subSector': '전해액'},
    ],
    '반도체': [
        {'code': '005930', 'name': '삼성전자', 'sector': '반도체', 'subSector': '종합반도체'},
        {'code': '000660', 'name': 'SK하이닉스', 'sector': '반도체', 'subSector': '메모리반도체'},
        {'code': '058470', 'name': '리노공업', 'sector': '반도체', 'subSector': '반도체장비'},
    ],
    'AI/클라우드': [
        {'code': '035720', 'name': '카카오', 'sector': 'AI/클라우드', 'subSector': '플랫폼'},
        {'code': '035420', 'name': 'NAVER', 'sector': 'AI/클라우드', 'subSector': '포털/AI'},
        {'code': '053800', 'name': '안랩', 'sector': 'AI/클라우드', 'subSector': '보안SW'},
    ],
}

# 순위 → 위험도
RISK_LEVELS = ('low', 'medium', 'high')

EXPECTED_RETURNS = {
    'low': 10,
    'medium': 15,
    'high': 20,
}

RECOMMENDATION_REASONS = {
    'low': '우수한 재무구조와 안정적인 수익성, 업계 선도 기업',
    'medium': '양호한 재무상태와 성장 가능성, 섹터 내 경쟁력 보유',
    'high': '높은 성장 잠재력, 신기술 투자 활발',
}

FALLBACK_SECTOR_ANALYSIS = {
    '2차전지': '전기차 시장 성장과 ESS 수요 증가로 중장기 성장 전망이 밝습니다.',
    '반도체': 'AI와 데이터센터 수요 증가로 메모리 반도체 시장 회복이 예상됩니다.',
    'AI/클라우드': 'AI 혁명과 디지털 전환 가속화로 고성장이 지속되고 있습니다.',
}

FALLBACK_MARKET_TREND = {
    '2차전지': '단기 조정 후 중장기 상승 전망',
    '반도체': '바닥 통과 후 회복 국면 진입',
    'AI/클라우드': '강세 지속 전망',
}

DEFAULT_PRICE = 100000
MAX_RECOMMENDATIONS = 3


def fallback_sector_analysis(sector: str) -> str:
    return FALLBACK_SECTOR_ANALYSIS.get(sector, f"{sector} 섹터는 시장 상황에 따라 변동성이 있습니다.")


def fallback_market_trend(sector: str) -> str:
    return FALLBACK_MARKET_TREND.get(sector, f"{sector} 섹터는 박스권 흐름을 보이고 있습니다.")


class RecommendationService:
    """섹터별 종목 추천"""

    def __init__(self, kis: KISClient, chat: ChatService):
        self.kis = kis
        self.chat = chat

    def get_available_sectors(self) -> List[str]:
        return list(AVAILABLE_SECTORS)

    async def _with_price(self, stock: Dict[str, str]) -> Dict:
        """현재가 조회 (실패 시 기본값 100000원, 등락률 0)"""
        try:
            price = await self.kis.get_price('J', stock['code'])
            current_price = int(float(price['stck_prpr']))
            change_rate = float(price['prdy_ctrt'])
        except Exception as e:
            logger.warning(f"⚠️ 종목 데이터 조회 실패 ({stock['code']}): {e}")
            current_price = DEFAULT_PRICE
            change_rate = 0.0
        return {**stock, 'currentPrice': current_price, 'changeRate': change_rate}

    async def _sector_comments(self, sector: str) -> tuple[str, str]:
        """LLM 섹터 분석/트렌드 (LLM 미설정·실패 시 섹터별 기본 문구)"""
        if not self.chat.llm.enabled:
            return fallback_sector_analysis(sector), fallback_market_trend(sector)

        try:
            analysis, trend = await asyncio.gather(
                self.chat.generate_sector_analysis(sector),
                self.chat.generate_market_trend(sector),
            )
        except Exception as e:
            logger.error(f"❌ AI 분석 생성 실패: {e}")
            return fallback_sector_analysis(sector), fallback_market_trend(sector)
        return analysis, trend

    async def get_recommendations_by_sector(self, sector: str) -> Dict:
        """
        섹터별 종목 추천

        Args:
            sector: 섹터명 (예: '반도체')

        Returns:
            {sector, stocks: [{code, name, reason, currentPrice, targetPrice,
             expectedReturn, riskLevel}], sectorAnalysis, marketTrend}

        Raises:
            SectorNotFoundError: 종목 데이터가 없는 섹터
        """
        sector_stocks = SECTOR_STOCKS.get(sector, [])
        logger.info(f"{sector} 섹터에서 {len(sector_stocks)}개 종목을 조회했습니다")

        if not sector_stocks:
            raise SectorNotFoundError(
                f"섹터 '{sector}'에 해당하는 종목을 찾을 수 없습니다. "
                f"사용 가능한 섹터: {', '.join(self.get_available_sectors())}"
            )

        stocks_with_price = await asyncio.gather(
            *(self._with_price(stock) for stock in sector_stocks[:MAX_RECOMMENDATIONS])
        )

        recommendations = []
        for rank, stock in enumerate(stocks_with_price):
            risk_level = RISK_LEVELS[min(rank, len(RISK_LEVELS) - 1)]
            expected_return = EXPECTED_RETURNS[risk_level]
            recommendations.append({
                'code': stock['code'],
                'name': stock['name'],
                'reason': RECOMMENDATION_REASONS[risk_level],
                'currentPrice': stock['currentPrice'],
                'targetPrice': round(stock['currentPrice'] * (1 + expected_return / 100)),
                'expectedReturn': expected_return,
                'riskLevel': risk_level,
            })

        sector_analysis, market_trend = await self._sector_comments(sector)

        return {
            'sector': sector,
            'stocks': recommendations,
            'sectorAnalysis': sector_analysis,
            'marketTrend': market_trend,
        }
