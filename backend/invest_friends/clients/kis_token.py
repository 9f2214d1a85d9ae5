"""
KIS 접근 토큰 관리

한국투자증권 OAuth2 client-credentials 토큰을 발급/캐싱합니다.

- 유효한 토큰은 재사용 (만료 refresh_margin 전까지)
- 동시에 여러 요청이 갱신을 시도하면 진행 중인 발급 1건을 함께 기다림
- 토큰 발급은 upstream에서 1분당 1회로 제한되므로 min_interval 이내 재발급 시도는 하지 않음
- 발급 실패 시 기존 토큰(만료되었더라도)이 있으면 그 토큰을 사용
"""

import asyncio
import json
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from invest_friends.core.error_strategy import ApiClient
from invest_friends.core.exceptions import (
    ApiError,
    KISAPIError,
    KISAuthError,
    KISTokenRateLimitError,
)

logger = logging.getLogger(__name__)

TOKEN_ENDPOINT = "/oauth2/tokenP"
DEFAULT_EXPIRES_IN = 86400  # 24시간

# 토큰 발급 제한 응답 식별자
RATE_LIMIT_MARKERS = ("1분당 1회", "EGW00133")


def is_rate_limit_message(message: str) -> bool:
    """토큰 발급 제한(1분당 1회) 오류 메시지 여부"""
    return any(marker in (message or "") for marker in RATE_LIMIT_MARKERS)


class KISTokenManager:
    """KIS 접근 토큰 캐시 및 갱신 직렬화"""

    def __init__(
        self,
        api: ApiClient,
        app_key: Optional[str],
        app_secret: Optional[str],
        base_url: str,
        refresh_margin: int = 300,
        min_interval: int = 60,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            api: 외부 호출용 ApiClient
            app_key: KIS 앱 키
            app_secret: KIS 앱 시크릿
            base_url: KIS API Base URL
            refresh_margin: 만료 몇 초 전에 갱신할지
            min_interval: 토큰 발급 시도 간 최소 간격 (초)
            clock: 현재 시각 함수 (테스트에서 교체)
        """
        self.api = api
        self.app_key = app_key
        self.app_secret = app_secret
        self.base_url = base_url
        self.refresh_margin = refresh_margin
        self.min_interval = min_interval
        self.clock = clock

        self.access_token: Optional[str] = None
        self.expires_at: Optional[datetime] = None
        self.last_issue_attempt_at: Optional[datetime] = None

        self._refresh_task: Optional[asyncio.Task] = None

    # ============= 상태 =============

    def is_token_valid(self) -> bool:
        """캐시된 토큰이 아직 유효한지"""
        return bool(
            self.access_token
            and self.expires_at
            and self.clock() < self.expires_at
        )

    @property
    def refresh_in_progress(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def invalidate(self):
        """
        캐시된 토큰을 만료 처리

        토큰 문자열은 남겨두어 발급 실패 시 폴백으로 쓸 수 있게 합니다.
        """
        logger.info("🔑 KIS 토큰 만료 처리 (다음 요청 시 재발급)")
        self.expires_at = None

    def status(self) -> dict:
        """토큰 상태 (토큰 값은 노출하지 않음)"""
        return {
            'has_token': self.access_token is not None,
            'valid': self.is_token_valid(),
            'expires_at': self.expires_at.isoformat() if self.expires_at else None,
            'last_issue_attempt_at': (
                self.last_issue_attempt_at.isoformat() if self.last_issue_attempt_at else None
            ),
            'refresh_in_progress': self.refresh_in_progress,
        }

    def auth_headers(self, token: str, tr_id: str) -> Dict[str, str]:
        """KIS 시세 API 공통 헤더"""
        return {
            "authorization": f"Bearer {token}",
            "appkey": self.app_key or "",
            "appsecret": self.app_secret or "",
            "tr_id": tr_id,
            "custtype": "P",
            "Content-Type": "application/json; charset=utf-8",
        }

    # ============= 발급 =============

    async def fetch_access_token(self) -> str:
        """
        OAuth 토큰 발급 (upstream 1회 호출)

        Returns:
            발급된 액세스 토큰

        Raises:
            KISAuthError: 자격 증명 누락 또는 인증 거부(403)
            KISTokenRateLimitError: 발급 제한(1분당 1회) 초과
            KISAPIError: 그 외 발급 실패
        """
        if not self.app_key or not self.app_secret:
            raise KISAuthError(
                "KIS API credentials are not configured. "
                "Please check KIS_APP_KEY and KIS_APP_SECRET in .env file"
            )

        # .env에 따옴표/이스케이프 문자가 섞여 들어온 경우 제거
        app_key = self.app_key.replace('"', '').replace("'", '')
        app_secret = self.app_secret.replace('"', '').replace("'", '').replace('\\', '')

        self.last_issue_attempt_at = self.clock()
        logger.info("🔑 KIS OAuth 토큰 발급 중...")

        try:
            data = await self.api.post(
                f"{self.base_url}{TOKEN_ENDPOINT}",
                json={
                    "grant_type": "client_credentials",
                    "appkey": app_key,
                    "appsecret": app_secret,
                },
                headers={"Content-Type": "application/json"},
            )
        except ApiError as e:
            raise self._token_error(e) from e

        if not data or not data.get("access_token"):
            error_msg = (data or {}).get("error_description") or "Failed to get access token"
            logger.error(f"❌ KIS Token API Error: {error_msg}")
            if is_rate_limit_message(error_msg):
                raise KISTokenRateLimitError(f"Token Error: {error_msg}")
            raise KISAPIError(f"Token Error: {error_msg}")

        try:
            expires_in = int(data.get("expires_in") or DEFAULT_EXPIRES_IN)
        except (TypeError, ValueError):
            expires_in = DEFAULT_EXPIRES_IN

        self.access_token = data["access_token"]
        self.expires_at = self.clock() + timedelta(seconds=expires_in - self.refresh_margin)

        logger.info(f"✅ KIS 토큰 발급 완료 (만료 예정: {self.expires_at.strftime('%Y-%m-%d %H:%M:%S')})")
        return self.access_token

    def _token_error(self, error: ApiError) -> Exception:
        """토큰 API 실패 응답을 예외로 변환"""
        body = error.upstream_body or ""
        description = body
        code = error.upstream_status
        try:
            payload = json.loads(body) if body else {}
            description = payload.get("error_description") or body
            code = payload.get("error_code") or code
        except ValueError:
            pass

        logger.error(f"❌ KIS Token API Error [{code}]: {description or error.message}")

        if error.upstream_status == 403 and not is_rate_limit_message(description):
            return KISAuthError(
                f"KIS API Authentication Failed: {description}. "
                "Please check your KIS_APP_KEY and KIS_APP_SECRET in .env file"
            )
        if is_rate_limit_message(description):
            return KISTokenRateLimitError(f"Token Error: {description}")
        return KISAPIError(f"Token Error: {description or error.message}")

    def _issue_wait_seconds(self) -> float:
        """직전 발급 시도 후 min_interval까지 남은 시간 (0이면 발급 가능)"""
        if self.last_issue_attempt_at is None:
            return 0
        elapsed = (self.clock() - self.last_issue_attempt_at).total_seconds()
        return max(self.min_interval - elapsed, 0)

    def _on_refresh_done(self, task: asyncio.Task):
        if self._refresh_task is task:
            self._refresh_task = None
        # 대기자가 모두 취소된 뒤 실패해도 미확인 예외 경고가 남지 않도록 조회
        if not task.cancelled():
            task.exception()

    async def _refresh(self) -> str:
        """진행 중인 발급이 있으면 합류, 없으면 새로 시작"""
        task = self._refresh_task
        if task is None:
            task = asyncio.create_task(self.fetch_access_token())
            task.add_done_callback(self._on_refresh_done)
            self._refresh_task = task
        else:
            logger.debug("진행 중인 KIS 토큰 발급 대기")

        # 호출자가 취소되어도 발급 자체는 끝까지 진행
        await asyncio.shield(task)
        return self.access_token

    # ============= 조회 =============

    async def get_valid_access_token(self) -> str:
        """
        유효한 액세스 토큰 반환

        Returns:
            액세스 토큰 (발급 실패 시 기존 토큰)

        Raises:
            KISTokenRateLimitError: min_interval 이내라 발급하지 않았고 기존 토큰도 없음
            KISAuthError: 발급에 실패했고 기존 토큰도 없음
        """
        if self.is_token_valid():
            return self.access_token

        wait_seconds = 0 if self.refresh_in_progress else self._issue_wait_seconds()
        if wait_seconds > 0:
            if self.access_token:
                logger.warning("⚠️ 토큰 발급 간격 제한으로 기존 토큰 사용")
                return self.access_token
            logger.error("❌ KIS 토큰 발급 간격 제한 (기존 토큰 없음)")
            raise KISTokenRateLimitError(
                f"KIS 토큰 발급은 1분당 1회로 제한됩니다 "
                f"({wait_seconds:.0f}초 후 재시도 가능)"
            )

        try:
            return await self._refresh()
        except Exception as e:
            logger.error(f"❌ 유효한 KIS 토큰 확보 실패: {e}")
            if self.access_token:
                logger.warning("⚠️ 오류로 인해 기존 토큰 사용 (만료되었을 수 있음)")
                return self.access_token
            raise KISAuthError(
                "Unable to authenticate with KIS API. Please check your credentials."
            ) from e

    async def warm_up(self) -> bool:
        """
        서버 시작 시 토큰 미리 발급

        Returns:
            성공 여부 (실패해도 예외를 올리지 않음)
        """
        try:
            await self.get_valid_access_token()
            logger.info("✅ KIS access token initialized on startup")
            return True
        except Exception as e:
            logger.warning(f"⚠️ Failed to initialize KIS token on startup: {e}")
            return False
