"""
DART 응답 모델
"""

from pydantic import BaseModel, Field
from typing import List


class CorpCodeItem(BaseModel):
    corp_code: str = Field(..., description="DART 고유번호 (8자리)")
    corp_name: str
    corp_eng_name: str = ""
    stock_code: str = Field("", description="종목코드 (6자리)")
    modify_date: int


class RefreshResult(BaseModel):
    message: str
    count: int


class DividendItem(BaseModel):
    category: str = Field(..., description="구분 (예: 주당 현금배당금(원))")
    stockKind: str = Field("", description="주식 종류")
    current: str = Field("-", description="당기")
    previous: str = Field("-", description="전기")
    twoYearsAgo: str = Field("-", description="전전기")


class DividendResponse(BaseModel):
    corpCode: str
    year: int
    items: List[DividendItem]
