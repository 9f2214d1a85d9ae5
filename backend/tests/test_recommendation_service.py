"""
RecommendationService 테스트
"""

import sys
from pathlib import Path

# backend 디렉토리를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from unittest.mock import AsyncMock, MagicMock

import pytest

from invest_friends.core.exceptions import KISAPIError, SectorNotFoundError
from invest_friends.services.recommendation_service import (
    AVAILABLE_SECTORS,
    RecommendationService,
)


@pytest.fixture
def kis():
    kis = MagicMock()
    kis.get_price = AsyncMock(return_value={"stck_prpr": "70000", "prdy_ctrt": "1.50"})
    return kis


@pytest.fixture
def chat():
    chat = MagicMock()
    chat.llm.enabled = False
    chat.generate_sector_analysis = AsyncMock(return_value="AI 섹터 분석")
    chat.generate_market_trend = AsyncMock(return_value="AI 트렌드")
    return chat


def test_available_sectors(kis, chat):
    service = RecommendationService(kis, chat)

    sectors = service.get_available_sectors()

    assert sectors == AVAILABLE_SECTORS
    assert len(sectors) == 10
    sectors.append("기타")
    assert "기타" not in service.get_available_sectors()


@pytest.mark.asyncio
async def test_recommendations(kis, chat):
    service = RecommendationService(kis, chat)

    result = await service.get_recommendations_by_sector("반도체")

    assert result["sector"] == "반도체"
    assert [stock["code"] for stock in result["stocks"]] == ["005930", "000660", "058470"]
    assert [stock["riskLevel"] for stock in result["stocks"]] == ["low", "medium", "high"]
    assert [stock["expectedReturn"] for stock in result["stocks"]] == [10, 15, 20]
    assert [stock["targetPrice"] for stock in result["stocks"]] == [77000, 80500, 84000]
    assert result["stocks"][0]["currentPrice"] == 70000
    assert result["stocks"][0]["reason"] == "우수한 재무구조와 안정적인 수익성, 업계 선도 기업"
    assert result["sectorAnalysis"] == "AI와 데이터센터 수요 증가로 메모리 반도체 시장 회복이 예상됩니다."
    assert result["marketTrend"] == "바닥 통과 후 회복 국면 진입"
    chat.generate_sector_analysis.assert_not_awaited()


@pytest.mark.asyncio
async def test_price_failure_uses_default(kis, chat):
    kis.get_price.side_effect = KISAPIError("No price data available")
    service = RecommendationService(kis, chat)

    result = await service.get_recommendations_by_sector("2차전지")

    stock = result["stocks"][0]
    assert stock["currentPrice"] == 100000
    assert stock["targetPrice"] == 110000


@pytest.mark.asyncio
async def test_llm_sector_comments(kis, chat):
    chat.llm.enabled = True
    service = RecommendationService(kis, chat)

    result = await service.get_recommendations_by_sector("AI/클라우드")

    assert result["sectorAnalysis"] == "AI 섹터 분석"
    assert result["marketTrend"] == "AI 트렌드"


@pytest.mark.asyncio
async def test_unknown_sector(kis, chat):
    service = RecommendationService(kis, chat)

    with pytest.raises(SectorNotFoundError) as exc_info:
        await service.get_recommendations_by_sector("바이오")

    message = str(exc_info.value)
    assert "섹터 '바이오'에 해당하는 종목을 찾을 수 없습니다." in message
    assert "2차전지, 반도체" in message
