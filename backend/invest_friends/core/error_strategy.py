"""
URL 패턴 기반 에러 전략

요청 URL을 정규식 테이블에 대조하여 에러를 ApiError로 변환하는 핸들러를 고릅니다.

- EXTERNAL: 외부 API(httpx) 호출 실패 → 요청한 외부 URL 기준
- INTERNAL: 우리 엔드포인트에서 처리되지 않은 예외 → 들어온 요청 URL 기준

테이블은 위에서부터 순서대로 대조하며, 일치하는 패턴이 없으면 '.*' 항목을 사용합니다.
"""

import re
from typing import Callable, Dict, Literal

import httpx

from invest_friends.core.config import settings
from invest_friends.core.exceptions import ApiError

ErrorStrategy = Callable[[Exception], ApiError]
StrategyType = Literal["INTERNAL", "EXTERNAL"]

FALLBACK_PATTERN = ".*"


def request_url(error: Exception) -> str:
    """httpx 에러에서 요청 URL 추출 (요청 정보가 없으면 'unknown_url')"""
    try:
        return str(error.request.url)
    except (AttributeError, RuntimeError):
        return "unknown_url"


def _upstream(error: Exception) -> dict:
    response = getattr(error, "response", None)
    if response is None:
        return {"upstream_status": None, "upstream_body": None}
    return {"upstream_status": response.status_code, "upstream_body": response.text}


def _external(data: str, label: str, status_code: int) -> ErrorStrategy:
    def strategy(error: Exception) -> ApiError:
        return ApiError(
            data=data,
            message=f"{label} {request_url(error)}: {error}",
            status_code=status_code,
            **_upstream(error),
        )
    return strategy


def _internal(data: str, label: str, status_code: int) -> ErrorStrategy:
    def strategy(error: Exception) -> ApiError:
        return ApiError(
            data=data,
            message=f"{label} ({type(error).__name__}): {error}",
            status_code=status_code,
        )
    return strategy


def build_error_strategies() -> Dict[str, Dict[str, ErrorStrategy]]:
    """설정값(KIS/DART/프론트 URL)으로 전략 테이블 생성"""
    return {
        "INTERNAL": {
            f"^{re.escape(settings.FRONT_URL)}/.*": _internal(
                "Front Api Sending Error", "Front API Error", 404
            ),
            r"/api/v1/(kis|chart)/.*": _internal(
                "Market Data Unavailable", "Market data error", 502
            ),
            r"/api/v1/dart/.*": _internal(
                "Disclosure Data Unavailable", "Disclosure data error", 502
            ),
            FALLBACK_PATTERN: _internal("No matched api", "Unhandled error", 500),
        },
        "EXTERNAL": {
            r"^https://openapi(vts)?\.koreainvestment\.com(:\d+)?/oauth2/.*": _external(
                "KIS Token Api Error", "KIS Token API Error", 502
            ),
            r"^https://openapi(vts)?\.koreainvestment\.com(:\d+)?/.*": _external(
                "KIS Api Error", "KIS API Error", 502
            ),
            f"^{re.escape(settings.DART_BASE_URL)}/.*": _external(
                "Dart Api Error", "DART API Error", 502
            ),
            r"^https://generativelanguage\.googleapis\.com/.*": _external(
                "LLM Api Error", "LLM API Error", 503
            ),
            FALLBACK_PATTERN: _external("No matched api", "Unhandled error at", 500),
        },
    }


def resolve_error_strategy(type: StrategyType = "EXTERNAL") -> Callable[[str], ErrorStrategy]:
    """
    URL → 에러 전략 resolver 생성

    Args:
        type: 'INTERNAL' 또는 'EXTERNAL'

    Returns:
        URL을 받아 해당 에러 전략을 반환하는 함수 (패턴은 한 번만 컴파일)

    Example:
        >>> resolve = resolve_error_strategy("EXTERNAL")
        >>> api_error = resolve("https://opendart.fss.or.kr/api/list.json")(error)
    """
    strategies = build_error_strategies()[type]
    compiled = [(re.compile(pattern), handler) for pattern, handler in strategies.items()]

    def resolve(url: str) -> ErrorStrategy:
        for regex, handler in compiled:
            if regex.search(url):
                return handler
        return strategies[FALLBACK_PATTERN]

    return resolve


class ApiClient:
    """
    httpx.AsyncClient 래퍼

    외부 호출 실패(httpx.HTTPError)를 EXTERNAL 전략으로 ApiError로 변환합니다.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client
        self._resolve = resolve_error_strategy("EXTERNAL")

    async def get(self, url: str, params: dict = None, headers: dict = None, raw: bool = False):
        """GET 요청 (raw=True면 bytes, 아니면 JSON 반환)"""
        try:
            response = await self.client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.content if raw else response.json()
        except httpx.HTTPError as e:
            raise self.handle(e) from e

    async def post(self, url: str, json: dict = None, headers: dict = None):
        """POST 요청 (JSON 반환)"""
        try:
            response = await self.client.post(url, json=json, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise self.handle(e) from e

    def handle(self, error: httpx.HTTPError) -> ApiError:
        strategy = self._resolve(request_url(error))
        return strategy(error)

    async def aclose(self):
        await self.client.aclose()
