"""
스케줄러 테스트

작업 등록과 토큰 갱신 / corp_code 갱신 작업 동작을 확인합니다.
"""

import sys
from pathlib import Path

# 프로젝트 루트를 sys.path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from invest_friends.scheduler import jobs
from invest_friends.scheduler import start_scheduler, stop_scheduler


@pytest.fixture
def kis():
    kis = MagicMock()
    kis.token_manager.warm_up = AsyncMock(return_value=True)
    return kis


@pytest.mark.asyncio
async def test_token_job_skips_valid_token(kis):
    kis.token_manager.is_token_valid.return_value = True

    with patch.object(jobs, "get_kis_client", return_value=kis):
        await jobs.refresh_kis_token_job()

    kis.token_manager.warm_up.assert_not_awaited()


@pytest.mark.asyncio
async def test_token_job_refreshes_expiring_token(kis):
    kis.token_manager.is_token_valid.return_value = False

    with patch.object(jobs, "get_kis_client", return_value=kis):
        await jobs.refresh_kis_token_job()

    kis.token_manager.warm_up.assert_awaited_once()


@pytest.mark.asyncio
async def test_corp_code_job_logs_failure():
    """갱신 실패는 작업 밖으로 전파되지 않음"""
    dart = MagicMock()
    dart.refresh_corp_codes = AsyncMock(side_effect=RuntimeError("download failed"))

    with patch.object(jobs, "get_dart_client", return_value=dart):
        await jobs.refresh_corp_codes_job()

    dart.refresh_corp_codes.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_scheduler_registers_jobs():
    start_scheduler()
    try:
        job_ids = {job.id for job in jobs.scheduler.get_jobs()}
        assert job_ids == {"kis_token_refresh", "corp_code_refresh"}

        token_job = jobs.scheduler.get_job("kis_token_refresh")
        assert token_job.max_instances == 1
        assert token_job.coalesce is True
    finally:
        stop_scheduler()

    assert jobs.scheduler.running is False
