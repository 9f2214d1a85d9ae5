"""
장 운영 시간 유틸리티 테스트
"""

import sys
from pathlib import Path

# backend 디렉토리를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from datetime import datetime, timedelta, timezone

import pytest

from invest_friends.utils.market_hours import (
    KST,
    is_market_open,
    next_market_open,
    time_until_market_open,
)

# 2025-11-14 금요일
FRIDAY = datetime(2025, 11, 14)


@pytest.mark.parametrize("hour,minute,expected", [
    (8, 59, False),
    (9, 0, True),
    (12, 30, True),
    (15, 30, True),
    (15, 31, False),
    (20, 0, False),
])
def test_is_market_open_weekday(hour, minute, expected):
    assert is_market_open(FRIDAY.replace(hour=hour, minute=minute, tzinfo=KST)) is expected


def test_is_market_open_weekend():
    saturday = datetime(2025, 11, 15, 10, 0, tzinfo=KST)
    assert is_market_open(saturday) is False


def test_naive_datetime_is_kst():
    assert is_market_open(FRIDAY.replace(hour=10)) is True


def test_aware_datetime_converted_to_kst():
    """UTC 01:00 = KST 10:00"""
    utc = datetime(2025, 11, 14, 1, 0, tzinfo=timezone.utc)
    assert is_market_open(utc) is True


def test_next_market_open_before_open():
    now = FRIDAY.replace(hour=7, minute=30, tzinfo=KST)
    assert next_market_open(now) == FRIDAY.replace(hour=9, tzinfo=KST)


def test_next_market_open_after_close_friday():
    """금요일 장마감 후 → 월요일 09:00"""
    now = FRIDAY.replace(hour=16, tzinfo=KST)
    assert next_market_open(now) == datetime(2025, 11, 17, 9, 0, tzinfo=KST)


def test_next_market_open_weekend():
    sunday = datetime(2025, 11, 16, 8, 0, tzinfo=KST)
    assert next_market_open(sunday) == datetime(2025, 11, 17, 9, 0, tzinfo=KST)


def test_time_until_market_open():
    now = datetime(2025, 11, 13, 15, 30, tzinfo=KST)
    assert time_until_market_open(now) == timedelta(hours=17, minutes=30)
