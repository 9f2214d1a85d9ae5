"""
재무 데이터 처리 유틸리티

DART 단일회사 주요계정(fnlttSinglAcnt) 응답을 가공하여 억원 단위 지표로 변환합니다.
"""

import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

HUNDRED_MILLION = 100_000_000  # 1억원

# (계정명, 재무제표 구분) → 결과 키
ACCOUNT_MAP = {
    ('매출액', 'IS'): 'revenue',
    ('영업이익', 'IS'): 'operatingProfit',
    ('당기순이익', 'IS'): 'netIncome',
    ('자산총계', 'BS'): 'totalAssets',
    ('자본총계', 'BS'): 'totalEquity',
}


def to_hundred_million(amount_str: Optional[str]) -> int:
    """
    금액 문자열을 억원 단위로 변환

    Args:
        amount_str: "123,456,789,000,000" 형식 (원 단위)

    Returns:
        억원 단위 정수 (빈 값, '-'는 0)

    Example:
        >>> to_hundred_million("258,935,494,000,000")
        2589355
    """
    if amount_str is None:
        return 0
    cleaned = str(amount_str).replace(',', '').strip()
    if cleaned in ('', '-'):
        return 0
    try:
        return round(float(cleaned) / HUNDRED_MILLION)
    except ValueError:
        logger.warning(f"금액 변환 실패: {amount_str!r}")
        return 0


def process_financial_data(items: List[Dict]) -> Dict[str, int]:
    """
    계정 목록에서 주요 지표 추출

    연결재무제표(CFS)를 우선 사용하고, 없으면 개별재무제표(OFS)를 사용합니다.
    당기순이익은 처음 나온 값만 사용합니다.

    Returns:
        {revenue, operatingProfit, netIncome, totalAssets, totalEquity} (억원)
    """
    result = {key: 0 for key in ACCOUNT_MAP.values()}

    consolidated = [item for item in items if item.get('fs_div') == 'CFS']
    rows = consolidated or [item for item in items if item.get('fs_div') == 'OFS']

    seen = set()
    for item in rows:
        key = ACCOUNT_MAP.get((item.get('account_nm'), item.get('sj_div')))
        if key is None:
            continue
        if key == 'netIncome' and key in seen:
            continue
        result[key] = to_hundred_million(item.get('thstrm_amount'))
        seen.add(key)

    return result


def calculate_eps(net_income: int, total_shares: int) -> int:
    """
    EPS 계산

    Args:
        net_income: 당기순이익 (억원)
        total_shares: 발행주식수

    Returns:
        EPS (원), 주식수가 0이면 0
    """
    if not total_shares:
        return 0
    return round(net_income * HUNDRED_MILLION / total_shares)


def extract_financial_metrics(response: Dict, total_shares: int = 0) -> Dict[str, int]:
    """
    DART 응답 전체에서 지표 + EPS 추출

    Raises:
        ValueError: list 필드가 없는 응답
    """
    if not response or not isinstance(response.get('list'), list):
        raise ValueError("Invalid data structure")

    metrics = process_financial_data(response['list'])
    metrics['eps'] = calculate_eps(metrics['netIncome'], total_shares) if metrics['netIncome'] > 0 else 0

    logger.debug(
        f"재무 데이터: 매출액 {metrics['revenue']:,}억원, 영업이익 {metrics['operatingProfit']:,}억원, "
        f"당기순이익 {metrics['netIncome']:,}억원, 총자산 {metrics['totalAssets']:,}억원, "
        f"총자본 {metrics['totalEquity']:,}억원, EPS {metrics['eps']:,}원"
    )
    return metrics


def ratio_percent(numerator: float, denominator: float) -> float:
    """비율(%) 계산, 소수점 2자리 (분모가 0 이하이면 0)"""
    if denominator <= 0:
        return 0.0
    return round(numerator / denominator * 100, 2)
