"""
섹터 추천 API 엔드포인트
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from invest_friends.api.dependencies import get_recommendation_service
from invest_friends.core.exceptions import SectorNotFoundError
from invest_friends.models import AvailableSectorsResponse, SectorRecommendationResponse
from invest_friends.services.recommendation_service import RecommendationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommendation", tags=["recommendation"])


@router.get("/sector", response_model=SectorRecommendationResponse)
async def get_recommendations_by_sector(
    sector: Optional[str] = Query(None, description="섹터명 (예: 2차전지, 반도체, AI/클라우드)"),
    service: RecommendationService = Depends(get_recommendation_service),
):
    """
    섹터별 종목 추천 (3개 종목)

    Raises:
        HTTPException(400): 섹터 미입력 또는 데이터가 없는 섹터
    """
    if not sector or not sector.strip():
        raise HTTPException(status_code=400, detail="섹터를 입력해주세요")

    try:
        return await service.get_recommendations_by_sector(sector.strip())
    except SectorNotFoundError as e:
        logger.warning(f"⚠️ {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/sectors", response_model=AvailableSectorsResponse)
async def get_available_sectors(service: RecommendationService = Depends(get_recommendation_service)):
    """추천 가능한 섹터 목록"""
    return {'sectors': service.get_available_sectors()}
