"""
스케줄러 작업 정의

APScheduler를 사용하여 정기 작업을 자동으로 실행합니다.

- KIS 토큰 갱신: TOKEN_REFRESH_INTERVAL_MINUTES 간격 (만료 전에 미리 재발급)
- corp_code 갱신: 매주 CORP_CODE_REFRESH_DAY 03:00
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from invest_friends.api.dependencies import get_dart_client, get_kis_client
from invest_friends.core.config import settings

logger = logging.getLogger(__name__)

# 글로벌 스케줄러 인스턴스
scheduler = AsyncIOScheduler()


# ============= 작업 함수 =============

async def refresh_kis_token_job():
    """
    KIS 토큰 갱신

    토큰이 유효하면 upstream 호출 없이 끝나고, 만료(refresh_margin 이내)되었으면
    진행 중인 발급과 합류하거나 새로 발급합니다.
    """
    kis = get_kis_client()
    if kis.token_manager.is_token_valid():
        logger.debug("[토큰 갱신] 유효한 토큰 보유, 스킵")
        return

    logger.info("⏰ [토큰 갱신] 시작")
    if await kis.token_manager.warm_up():
        logger.info("✅ [토큰 갱신] 완료")


async def refresh_corp_codes_job():
    """corp_code 테이블 재적재 (주 1회)"""
    try:
        logger.info("⏰ [corp_code 갱신] 시작")
        result = await get_dart_client().refresh_corp_codes()
        logger.info(f"✅ [corp_code 갱신] 완료 - {result['count']:,}건")
    except Exception as e:
        logger.error(f"❌ [corp_code 갱신] 실패: {e}", exc_info=True)


# ============= 스케줄러 관리 =============

def start_scheduler():
    """스케줄러 시작 및 작업 등록"""

    # 1. KIS 토큰 갱신 (interval)
    scheduler.add_job(
        func=refresh_kis_token_job,
        trigger=IntervalTrigger(minutes=settings.TOKEN_REFRESH_INTERVAL_MINUTES),
        id='kis_token_refresh',
        name='KIS 토큰 갱신',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )

    # 2. corp_code 갱신 (매주, 03:00)
    scheduler.add_job(
        func=refresh_corp_codes_job,
        trigger=CronTrigger(
            day_of_week=settings.CORP_CODE_REFRESH_DAY,
            hour=3,
            minute=0
        ),
        id='corp_code_refresh',
        name='DART corp_code 갱신',
        replace_existing=True
    )

    scheduler.start()
    logger.info("📅 스케줄러 시작됨")

    jobs = scheduler.get_jobs()
    logger.info(f"📋 등록된 작업: {len(jobs)}개")
    for job in jobs:
        next_run = job.next_run_time.strftime("%Y-%m-%d %H:%M:%S") if job.next_run_time else "없음"
        logger.info(f"  - {job.name} (다음 실행: {next_run})")


def stop_scheduler():
    """스케줄러 정리"""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("📅 스케줄러 종료됨")
