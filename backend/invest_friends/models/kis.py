"""
KIS 시세 응답 모델

KIS API 필드명과 문자열 값을 그대로 노출합니다.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class PriceResponse(BaseModel):
    """주식 현재가"""

    rprs_mrkt_kor_name: str = Field("", description="대표 시장 한글명")
    stck_shrn_iscd: str = Field(..., description="종목코드")
    stck_prpr: str = Field("0", description="현재가")
    prdy_vrss: str = Field("0", description="전일 대비")
    prdy_ctrt: str = Field("0.00", description="전일 대비율 (%)")
    per: str = Field("0.00", description="PER")
    pbr: str = Field("0.00", description="PBR")
    lstn_stcn: str = Field("0", description="상장 주수")
    hts_avls: str = Field("0", description="시가총액 (억원)")
    acml_vol: str = Field("0", description="누적 거래량")
    acml_tr_pbmn: str = Field("0", description="누적 거래대금")

    class Config:
        json_schema_extra = {
            "example": {
                "rprs_mrkt_kor_name": "KOSPI200",
                "stck_shrn_iscd": "005930",
                "stck_prpr": "78900",
                "prdy_vrss": "1100",
                "prdy_ctrt": "1.41",
                "per": "15.20",
                "pbr": "1.35",
                "lstn_stcn": "5969782550",
                "hts_avls": "4710158",
                "acml_vol": "15234567",
                "acml_tr_pbmn": "1198765432100",
            }
        }


class DailyChartItem(BaseModel):
    stck_bsop_date: str
    stck_oprc: str
    stck_hgpr: str
    stck_lwpr: str
    stck_clpr: str
    acml_vol: str


class MinuteChartItem(BaseModel):
    stck_cntg_hour: str = Field(..., description="체결 시간 (HHMMSS)")
    stck_oprc: str
    stck_hgpr: str
    stck_lwpr: str
    stck_prpr: str
    cntg_vol: str = Field(..., description="체결 거래량")
    acml_vol: str


class IndexChartItem(BaseModel):
    stck_bsop_date: str = Field(..., description="영업 일자 (YYYYMMDD)")
    bsop_hour: str = Field("", description="영업 시간")
    indx_prpr: str = Field(..., description="지수 현재가")
    indx_prdy_vrss: str = Field(..., description="전일 대비")
    indx_prdy_ctrt: str = Field(..., description="전일 대비율 (%)")
    acml_vol: str
    acml_tr_pbmn: str


class MinuteChartResponse(BaseModel):
    rt_cd: str
    msg_cd: str = ""
    msg1: str = ""
    output2: List[MinuteChartItem]


class IndexChartResponse(BaseModel):
    rt_cd: str
    msg_cd: str = Field("", description="MOCK이면 샘플 데이터")
    msg1: str = ""
    output2: List[IndexChartItem]


class TokenStatusResponse(BaseModel):
    """토큰 상태 (토큰 값은 포함하지 않음)"""

    has_token: bool
    valid: bool
    expires_at: Optional[str] = None
    last_issue_attempt_at: Optional[str] = None
    refresh_in_progress: bool = False
