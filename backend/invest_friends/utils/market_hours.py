"""
한국 주식시장 운영 시간 유틸리티 (KST)

정규장: 평일 09:00 ~ 15:30
"""

from datetime import datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

KST = ZoneInfo("Asia/Seoul")

MARKET_OPEN = time(9, 0)
MARKET_CLOSE = time(15, 30)


def now_kst() -> datetime:
    """현재 한국 시각"""
    return datetime.now(KST)


def _to_kst(now: Optional[datetime]) -> datetime:
    if now is None:
        return now_kst()
    if now.tzinfo is None:
        # naive datetime은 KST로 간주
        return now.replace(tzinfo=KST)
    return now.astimezone(KST)


def is_market_open(now: Optional[datetime] = None) -> bool:
    """
    정규장 운영 여부

    Args:
        now: 기준 시각 (기본값: 현재, naive면 KST로 간주)

    Returns:
        평일 09:00 ~ 15:30 (양 끝 포함) 이면 True
    """
    now = _to_kst(now)

    if now.weekday() >= 5:  # 5=토, 6=일
        return False

    current = now.time().replace(second=0, microsecond=0)
    return MARKET_OPEN <= current <= MARKET_CLOSE


def next_market_open(now: Optional[datetime] = None) -> datetime:
    """
    다음 장 시작 시각 (KST)

    - 평일 09:00 이전 → 오늘 09:00
    - 평일 장중/장마감 후 → 다음 평일 09:00
    - 주말 → 월요일 09:00
    """
    now = _to_kst(now)
    candidate = now.replace(hour=MARKET_OPEN.hour, minute=MARKET_OPEN.minute, second=0, microsecond=0)

    if now.weekday() < 5 and now < candidate:
        return candidate

    candidate += timedelta(days=1)
    while candidate.weekday() >= 5:
        candidate += timedelta(days=1)
    return candidate


def time_until_market_open(now: Optional[datetime] = None) -> timedelta:
    """다음 장 시작까지 남은 시간"""
    now = _to_kst(now)
    return next_market_open(now) - now
