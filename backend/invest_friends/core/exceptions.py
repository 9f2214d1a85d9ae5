"""
예외 클래스

외부 API(KIS, DART, LLM) 호출 및 응답 정규화에 사용하는 예외 정의
"""

from typing import Any, Optional


class ApiError(Exception):
    """
    정규화된 API 에러

    응답 본문은 {data, message, statusCode} 형태로 직렬화됩니다.
    upstream_status / upstream_body는 외부 API 응답이 있을 때만 채워집니다.
    """

    def __init__(
        self,
        data: Any,
        message: str,
        status_code: int = 500,
        upstream_status: Optional[int] = None,
        upstream_body: Optional[str] = None,
    ):
        super().__init__(message)
        self.data = data
        self.message = message
        self.status_code = status_code
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body

    def to_dict(self) -> dict:
        return {
            "data": self.data,
            "message": self.message,
            "statusCode": self.status_code,
        }


class ExternalAPIError(Exception):
    """외부 API 호출 중 일반 에러"""

    status_code = 502


class KISAPIError(ExternalAPIError):
    """KIS API 응답 오류 (rt_cd != '0', 데이터 없음 등)"""
    pass


class KISAuthError(ExternalAPIError):
    """KIS 인증 실패 (자격 증명 누락/거부, 토큰 발급 불가)"""

    status_code = 401


class KISTokenRateLimitError(KISAuthError):
    """KIS 토큰 발급 제한 (1분당 1회) 초과"""

    status_code = 429


class DartAPIError(ExternalAPIError):
    """DART API 응답 오류 (status != '000')"""
    pass


class LLMAPIError(ExternalAPIError):
    """LLM API 호출 중 일반 에러"""

    status_code = 503


class LLMRateLimitError(LLMAPIError):
    """LLM API Rate Limit 에러"""
    pass


class SectorNotFoundError(ValueError):
    """추천 데이터가 없는 섹터"""
    pass
