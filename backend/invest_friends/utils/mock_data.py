"""
샘플 시세 데이터 생성

외부 API(KIS/DART) 장애 시 폴백으로만 사용합니다.
"""

from datetime import datetime
from typing import List, Dict, Optional

import numpy as np
import pandas as pd

# 지수 기준값
KOSPI_CODE = "0001"
KOSPI_BASE = 2500.0
OTHER_INDEX_BASE = 850.0

# 종목 기준가
BASE_PRICE = 75000.0


def _parse_yyyymmdd(value: str) -> datetime:
    return datetime.strptime(value, "%Y%m%d")


def generate_daily_chart(
    start_date: str,
    end_date: str,
    base_price: float = BASE_PRICE,
    seed: Optional[int] = None,
) -> List[Dict]:
    """
    일봉 샘플 데이터 (시작일 ~ 종료일 매일, ±2% 랜덤워크)

    Args:
        start_date: 시작일 (YYYYMMDD)
        end_date: 종료일 (YYYYMMDD)
        base_price: 시작 가격
        seed: 난수 시드 (테스트용)

    Returns:
        [{date, open, high, low, close, volume}, ...]
    """
    rng = np.random.default_rng(seed)
    dates = pd.date_range(_parse_yyyymmdd(start_date), _parse_yyyymmdd(end_date), freq="D")

    rows = []
    price = base_price
    for day in dates:
        change = (rng.random() - 0.5) * 0.04
        open_ = price
        close = price * (1 + change)
        high = max(open_, close) * (1 + rng.random() * 0.02)
        low = min(open_, close) * (1 - rng.random() * 0.02)
        rows.append({
            'date': day.strftime("%Y%m%d"),
            'open': round(open_),
            'high': round(high),
            'low': round(low),
            'close': round(close),
            'volume': int(rng.integers(5_000_000, 25_000_000)),
        })
        price = close
    return rows


def generate_intraday_chart(base_price: float = BASE_PRICE, seed: Optional[int] = None) -> List[Dict]:
    """
    분봉 샘플 데이터 (09:00 ~ 15:00, 30분 간격, ±0.5% 랜덤워크)

    date 필드는 HHMMSS 형식입니다.
    """
    rng = np.random.default_rng(seed)
    times = pd.date_range("09:00", "15:00", freq="30min")

    rows = []
    price = base_price
    for ts in times:
        change = (rng.random() - 0.5) * 0.01
        open_ = price
        close = price * (1 + change)
        high = max(open_, close) * (1 + rng.random() * 0.005)
        low = min(open_, close) * (1 - rng.random() * 0.005)
        rows.append({
            'date': ts.strftime("%H%M%S"),
            'open': round(open_),
            'high': round(high),
            'low': round(low),
            'close': round(close),
            'volume': int(rng.integers(100_000, 1_100_000)),
        })
        price = close
    return rows


def generate_index_chart(
    index_code: str,
    start_date: str,
    end_date: str,
    seed: Optional[int] = None,
) -> List[Dict]:
    """
    지수 일별 샘플 데이터 (영업일만, ±1% 랜덤워크)

    KIS 지수 일별 시세 응답(output2)과 같은 필드명/문자열 형식을 사용합니다.
    """
    rng = np.random.default_rng(seed)
    base = KOSPI_BASE if index_code == KOSPI_CODE else OTHER_INDEX_BASE
    dates = pd.bdate_range(_parse_yyyymmdd(start_date), _parse_yyyymmdd(end_date))

    rows = []
    previous = base
    for day in dates:
        change = (rng.random() - 0.5) * 0.02
        current = previous * (1 + change)
        diff = current - previous
        rate = diff / previous * 100 if previous > 0 else 0.0
        rows.append({
            'stck_bsop_date': day.strftime("%Y%m%d"),
            'bsop_hour': '',
            'indx_prpr': f"{current:.2f}",
            'indx_prdy_vrss': f"{diff:.2f}",
            'indx_prdy_ctrt': f"{rate:.2f}",
            'acml_vol': str(int(rng.integers(0, 10_000_000_000))),
            'acml_tr_pbmn': str(int(rng.integers(0, 100_000_000))),
        })
        previous = current
    return rows


def sample_financial_figures(corp_code: str, year: Optional[int]) -> Dict:
    """재무 데이터 샘플 (억원 단위, 삼성전자 2023 사업보고서 수준)"""
    return {
        'corpCode': corp_code,
        'year': year,
        'revenue': 2589355,
        'operatingProfit': 65670,
        'netIncome': 154871,
        'totalAssets': 4559060,
        'totalEquity': 3636779,
        'eps': 2594,
        'roe': 4.26,
        'roa': 3.4,
    }
