"""
URL 패턴 기반 에러 전략 테스트
"""

import sys
from pathlib import Path

# backend 디렉토리를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx
import pytest

from conftest import DART_BASE_URL, KIS_BASE_URL, make_api_client
from invest_friends.core.error_strategy import request_url, resolve_error_strategy
from invest_friends.core.exceptions import ApiError


# ============= EXTERNAL =============

@pytest.mark.parametrize("url,data,status_code", [
    (f"{KIS_BASE_URL}/oauth2/tokenP", "KIS Token Api Error", 502),
    ("https://openapivts.koreainvestment.com:29443/oauth2/tokenP", "KIS Token Api Error", 502),
    (f"{KIS_BASE_URL}/uapi/domestic-stock/v1/quotations/inquire-price", "KIS Api Error", 502),
    (f"{DART_BASE_URL}/corpCode.xml", "Dart Api Error", 502),
    ("https://generativelanguage.googleapis.com/v1beta/models", "LLM Api Error", 503),
    ("https://example.com/anything", "No matched api", 500),
])
def test_external_strategy(url, data, status_code):
    resolve = resolve_error_strategy("EXTERNAL")
    error = httpx.ConnectError("connection refused", request=httpx.Request("GET", url))

    api_error = resolve(url)(error)

    assert api_error.data == data
    assert api_error.status_code == status_code
    assert url in api_error.message
    assert api_error.upstream_status is None


# ============= INTERNAL =============

@pytest.mark.parametrize("url,data,status_code", [
    ("http://testserver/api/v1/kis/price", "Market Data Unavailable", 502),
    ("http://testserver/api/v1/chart/stock?ticker=005930", "Market Data Unavailable", 502),
    ("http://testserver/api/v1/dart/financial", "Disclosure Data Unavailable", 502),
    ("http://testserver/api/v1/chat", "No matched api", 500),
])
def test_internal_strategy(url, data, status_code):
    resolve = resolve_error_strategy("INTERNAL")

    api_error = resolve(url)(RuntimeError("boom"))

    assert api_error.data == data
    assert api_error.status_code == status_code
    assert "RuntimeError" in api_error.message
    assert api_error.to_dict() == {
        "data": data,
        "message": api_error.message,
        "statusCode": status_code,
    }


def test_request_url_without_request():
    assert request_url(httpx.ConnectError("no request")) == "unknown_url"
    assert request_url(ValueError("plain")) == "unknown_url"


# ============= ApiClient =============

@pytest.mark.asyncio
async def test_api_client_status_error_keeps_upstream():
    api = make_api_client(lambda request: httpx.Response(403, text='{"error_code": "EGW00103"}'))

    with pytest.raises(ApiError) as exc_info:
        await api.post(f"{KIS_BASE_URL}/oauth2/tokenP", json={})

    error = exc_info.value
    assert error.data == "KIS Token Api Error"
    assert error.upstream_status == 403
    assert "EGW00103" in error.upstream_body


@pytest.mark.asyncio
async def test_api_client_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    api = make_api_client(handler)

    with pytest.raises(ApiError) as exc_info:
        await api.get(f"{DART_BASE_URL}/list.json")

    assert exc_info.value.data == "Dart Api Error"
    assert exc_info.value.upstream_status is None


@pytest.mark.asyncio
async def test_api_client_raw_and_json():
    def handler(request):
        if request.url.path.endswith(".xml"):
            return httpx.Response(200, content=b"PK\x03\x04")
        return httpx.Response(200, json={"status": "000"})

    api = make_api_client(handler)

    assert await api.get(f"{DART_BASE_URL}/corpCode.xml", raw=True) == b"PK\x03\x04"
    assert await api.get(f"{DART_BASE_URL}/list.json") == {"status": "000"}
