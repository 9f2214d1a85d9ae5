"""
DART 공시 API 엔드포인트

corp_code 조회/갱신, 주요 재무지표, 재무 요약, 배당 정보
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from invest_friends.api.dependencies import get_dart_client
from invest_friends.clients.dart_client import DartClient
from invest_friends.models import CorpCodeItem, DividendResponse, FinancialDataResponse, RefreshResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dart", tags=["dart"])


@router.get("/corp-code", response_model=List[CorpCodeItem])
async def get_corp_codes(dart: DartClient = Depends(get_dart_client)):
    """상장회사 corp_code 전체 목록"""
    return dart.get_corp_codes()


@router.get("/corp-code/{corp_code}", response_model=CorpCodeItem)
async def get_by_corp_code(corp_code: str, dart: DartClient = Depends(get_dart_client)):
    """corp_code로 회사 조회 (8자리 미만이면 0 패딩)"""
    corp = dart.get_by_corp_code(corp_code)
    if corp is None:
        raise HTTPException(status_code=404, detail=f"corp_code {corp_code.zfill(8)}를 찾을 수 없습니다")
    return corp


@router.get("/single-index")
async def get_single_index(
    corp_code: Optional[str] = Query(None, pattern=r"^\d{8}$"),
    bsns_year: Optional[str] = Query(None, pattern=r"^\d{4}$"),
    reprt_code: Optional[str] = Query(None, pattern=r"^1101[1-4]$"),
    idx_cl_code: Optional[str] = Query(None, pattern=r"^M2[1-4]0000$"),
    dart: DartClient = Depends(get_dart_client),
):
    """
    단일회사 주요 재무지표 (DART 응답 그대로)

    지정하지 않은 파라미터는 기본값(삼성전자, 2023, 1분기, 수익성지표)을 사용합니다.
    """
    return await dart.get_single_index({
        'corp_code': corp_code,
        'bsns_year': bsns_year,
        'reprt_code': reprt_code,
        'idx_cl_code': idx_cl_code,
    })


@router.get("/refresh-corp-codes", response_model=RefreshResult)
async def refresh_corp_codes(dart: DartClient = Depends(get_dart_client)):
    """corp_code 테이블 재적재"""
    return await dart.refresh_corp_codes()


@router.get("/financial", response_model=FinancialDataResponse)
async def get_financial_data(
    corp_code: str = Query(..., alias="corpCode", pattern=r"^\d{1,8}$"),
    year: Optional[int] = Query(None, ge=2015, le=2100),
    dart: DartClient = Depends(get_dart_client),
):
    """재무 요약 (보고서는 조회 시점 기준으로 자동 선택)"""
    return await dart.get_financial_statements(corp_code, year)


@router.get("/dividend", response_model=DividendResponse)
async def get_dividend_info(
    corp_code: str = Query(..., alias="corpCode", pattern=r"^\d{1,8}$", examples=["00126380"]),
    year: Optional[int] = Query(None, ge=2015, le=2100, description="사업연도 (기본값: 작년)"),
    dart: DartClient = Depends(get_dart_client),
):
    """배당에 관한 사항 (사업보고서)"""
    return await dart.get_dividend_info(corp_code, year)
