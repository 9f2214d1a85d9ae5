"""
financial_processor 테스트

금액 단위 변환, CFS/OFS 선택, EPS, 비율 계산
"""

import sys
from pathlib import Path

# backend 디렉토리를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from invest_friends.utils.financial_processor import (
    calculate_eps,
    extract_financial_metrics,
    process_financial_data,
    ratio_percent,
    to_hundred_million,
)


@pytest.mark.parametrize("amount,expected", [
    ("258,935,494,000,000", 2589355),
    ("-1,234,500,000,000", -12345),
    ("49,999,999", 0),
    ("50,000,000", 0),
    ("150,000,000", 2),
    ("", 0),
    ("-", 0),
    (None, 0),
    ("N/A", 0),
])
def test_to_hundred_million(amount, expected):
    assert to_hundred_million(amount) == expected


def test_process_prefers_consolidated():
    items = [
        {"fs_div": "OFS", "sj_div": "IS", "account_nm": "매출액", "thstrm_amount": "100,000,000,000"},
        {"fs_div": "CFS", "sj_div": "IS", "account_nm": "매출액", "thstrm_amount": "300,000,000,000"},
        {"fs_div": "CFS", "sj_div": "BS", "account_nm": "자산총계", "thstrm_amount": "900,000,000,000"},
    ]

    result = process_financial_data(items)

    assert result["revenue"] == 3000
    assert result["totalAssets"] == 9000
    assert result["operatingProfit"] == 0


def test_process_falls_back_to_separate():
    items = [
        {"fs_div": "OFS", "sj_div": "IS", "account_nm": "매출액", "thstrm_amount": "100,000,000,000"},
        {"fs_div": "OFS", "sj_div": "IS", "account_nm": "당기순이익", "thstrm_amount": "20,000,000,000"},
    ]

    result = process_financial_data(items)

    assert result["revenue"] == 1000
    assert result["netIncome"] == 200


def test_process_uses_first_net_income():
    items = [
        {"fs_div": "CFS", "sj_div": "IS", "account_nm": "당기순이익", "thstrm_amount": "20,000,000,000"},
        {"fs_div": "CFS", "sj_div": "IS", "account_nm": "당기순이익", "thstrm_amount": "15,000,000,000"},
    ]

    assert process_financial_data(items)["netIncome"] == 200


def test_process_ignores_wrong_statement():
    """같은 계정명이라도 재무제표 구분이 다르면 무시"""
    items = [
        {"fs_div": "CFS", "sj_div": "BS", "account_nm": "매출액", "thstrm_amount": "100,000,000,000"},
    ]

    assert process_financial_data(items)["revenue"] == 0


def test_calculate_eps():
    assert calculate_eps(154871, 5969782550) == 2594
    assert calculate_eps(154871, 0) == 0


def test_extract_financial_metrics():
    response = {"list": [
        {"fs_div": "CFS", "sj_div": "IS", "account_nm": "당기순이익", "thstrm_amount": "100,000,000,000"},
    ]}

    metrics = extract_financial_metrics(response, total_shares=1_000_000)

    assert metrics["netIncome"] == 1000
    assert metrics["eps"] == 100000


def test_extract_financial_metrics_loss_has_zero_eps():
    response = {"list": [
        {"fs_div": "CFS", "sj_div": "IS", "account_nm": "당기순이익", "thstrm_amount": "-100,000,000,000"},
    ]}

    assert extract_financial_metrics(response, total_shares=1_000_000)["eps"] == 0


@pytest.mark.parametrize("response", [None, {}, {"list": None}, {"list": "oops"}])
def test_extract_financial_metrics_invalid(response):
    with pytest.raises(ValueError, match="Invalid data structure"):
        extract_financial_metrics(response)


def test_ratio_percent():
    assert ratio_percent(154871, 3636779) == 4.26
    assert ratio_percent(100, 0) == 0.0
    assert ratio_percent(100, -5) == 0.0
