"""
KISClient 테스트

httpx.MockTransport로 KIS 응답을 흉내 내어 요청 헤더/파라미터, rt_cd 검증,
토큰 거부 시 재발급, 지수 정렬/캐시, 샘플 데이터 폴백을 검증합니다.
"""

import sys
from pathlib import Path

# backend 디렉토리를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx
import pytest

from conftest import KIS_BASE_URL, make_api_client
from invest_friends.clients.kis_client import KISClient, is_token_rejected
from invest_friends.clients.kis_token import KISTokenManager
from invest_friends.core.exceptions import KISAPIError

PRICE_OUTPUT = {
    "rprs_mrkt_kor_name": "KOSPI200",
    "stck_shrn_iscd": "005930",
    "stck_prpr": "78900",
    "prdy_vrss": "1100",
    "prdy_ctrt": "1.41",
    "per": "15.20",
    "pbr": "1.35",
    "lstn_stcn": "5969782550",
    "hts_avls": "4710158",
    "acml_vol": "15234567",
    "acml_tr_pbmn": "1198765432100",
    "stck_mxpr": "102500",
}


class FakeKIS:
    """경로별 응답을 등록하는 KIS 서버 흉내"""

    def __init__(self):
        self.requests = []
        self.routes = {}
        self.token_count = 0

    def route(self, path_suffix: str, *responses):
        self.routes[path_suffix] = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path.endswith("/oauth2/tokenP"):
            self.token_count += 1
            return httpx.Response(
                200, json={"access_token": f"token-{self.token_count}", "expires_in": 86400}
            )

        for suffix, responses in self.routes.items():
            if request.url.path.endswith(suffix):
                response = responses.pop(0) if len(responses) > 1 else responses[0]
                return response
        return httpx.Response(404, text="not found")

    def data_requests(self):
        return [r for r in self.requests if not r.url.path.endswith("/oauth2/tokenP")]


@pytest.fixture
def fake_kis():
    return FakeKIS()


def build_client(fake_kis, mock_fallback=False) -> KISClient:
    api = make_api_client(fake_kis)
    token_manager = KISTokenManager(
        api=api,
        app_key="app-key",
        app_secret="app-secret",
        base_url=KIS_BASE_URL,
        min_interval=0,
    )
    return KISClient(
        api=api,
        token_manager=token_manager,
        base_url=KIS_BASE_URL,
        cache_ttl=300,
        mock_fallback=mock_fallback,
    )


def ok(**payload) -> httpx.Response:
    return httpx.Response(200, json={"rt_cd": "0", "msg_cd": "MCA00000", "msg1": "정상처리 되었습니다.", **payload})


# ============= 현재가 =============

@pytest.mark.asyncio
async def test_get_price(fake_kis):
    fake_kis.route("/inquire-price", ok(output=PRICE_OUTPUT))
    client = build_client(fake_kis)

    price = await client.get_price("J", "005930")

    assert price["stck_prpr"] == "78900"
    assert price["prdy_ctrt"] == "1.41"
    assert "stck_mxpr" not in price

    request = fake_kis.data_requests()[0]
    assert request.headers["authorization"] == "Bearer token-1"
    assert request.headers["tr_id"] == "FHKST01010100"
    assert request.url.params["FID_COND_MRKT_DIV_CODE"] == "J"
    assert request.url.params["FID_INPUT_ISCD"] == "005930"


@pytest.mark.asyncio
async def test_get_price_fills_missing_fields(fake_kis):
    fake_kis.route("/inquire-price", ok(output={"stck_prpr": "1000"}))
    client = build_client(fake_kis)

    price = await client.get_price("J", "000660")

    assert price["stck_shrn_iscd"] == "000660"
    assert price["per"] == "0.00"
    assert price["acml_vol"] == "0"


@pytest.mark.asyncio
async def test_get_price_without_output(fake_kis):
    fake_kis.route("/inquire-price", ok())
    client = build_client(fake_kis)

    with pytest.raises(KISAPIError, match="No price data available"):
        await client.get_price("J", "005930")


@pytest.mark.asyncio
async def test_rt_cd_error(fake_kis):
    """rt_cd != '0' → KISAPIError(msg1)"""
    fake_kis.route(
        "/inquire-price",
        httpx.Response(200, json={"rt_cd": "1", "msg_cd": "OPSQ0002", "msg1": "없는 서비스 코드 입니다"}),
    )
    client = build_client(fake_kis)

    with pytest.raises(KISAPIError, match="없는 서비스 코드 입니다"):
        await client.get_price("J", "005930")


@pytest.mark.asyncio
async def test_http_error_is_not_retried(fake_kis):
    """응답이 있는 HTTP 오류는 재시도하지 않음"""
    fake_kis.route("/inquire-price", httpx.Response(500, text="Internal Server Error"))
    client = build_client(fake_kis)

    with pytest.raises(KISAPIError, match="KIS API Error"):
        await client.get_price("J", "005930")

    assert len(fake_kis.data_requests()) == 1


# ============= 토큰 거부 =============

@pytest.mark.asyncio
async def test_token_rejected_body_triggers_reissue(fake_kis):
    """만료 토큰(EGW00123) 응답 → 토큰 재발급 후 1회 재시도"""
    fake_kis.route(
        "/inquire-price",
        httpx.Response(500, json={"rt_cd": "1", "msg_cd": "EGW00123", "msg1": "기간이 만료된 token 입니다."}),
        ok(output=PRICE_OUTPUT),
    )
    client = build_client(fake_kis)

    price = await client.get_price("J", "005930")

    assert price["stck_prpr"] == "78900"
    requests = fake_kis.data_requests()
    assert len(requests) == 2
    assert requests[0].headers["authorization"] == "Bearer token-1"
    assert requests[1].headers["authorization"] == "Bearer token-2"


@pytest.mark.asyncio
async def test_token_rejected_msg_cd_triggers_reissue(fake_kis):
    fake_kis.route(
        "/inquire-price",
        httpx.Response(200, json={"rt_cd": "1", "msg_cd": "EGW00121", "msg1": "유효하지 않은 token 입니다."}),
        ok(output=PRICE_OUTPUT),
    )
    client = build_client(fake_kis)

    await client.get_price("J", "005930")

    assert fake_kis.token_count == 2


@pytest.mark.asyncio
async def test_token_rejected_twice(fake_kis):
    """재발급 후에도 거부되면 KISAPIError"""
    fake_kis.route(
        "/inquire-price",
        httpx.Response(200, json={"rt_cd": "1", "msg_cd": "EGW00123", "msg1": "기간이 만료된 token 입니다."}),
    )
    client = build_client(fake_kis)

    with pytest.raises(KISAPIError, match="기간이 만료된 token"):
        await client.get_price("J", "005930")

    assert len(fake_kis.data_requests()) == 2


def test_is_token_rejected():
    assert is_token_rejected('{"msg_cd":"EGW00123"}')
    assert is_token_rejected("EGW00121")
    assert not is_token_rejected("EGW00133")
    assert not is_token_rejected(None)


# ============= 차트 =============

@pytest.mark.asyncio
async def test_get_daily_chart(fake_kis):
    fake_kis.route(
        "/inquire-daily-itemchartprice",
        ok(output2=[
            {"stck_bsop_date": "20250103", "stck_oprc": "53000", "stck_hgpr": "54000",
             "stck_lwpr": "52500", "stck_clpr": "53800", "acml_vol": "12000000", "flng_cls_code": "00"},
            {"stck_bsop_date": "20250102", "stck_oprc": "", "stck_hgpr": "53500",
             "stck_lwpr": "52000", "stck_clpr": "53000", "acml_vol": "11000000"},
        ]),
    )
    client = build_client(fake_kis)

    chart = await client.get_daily_chart("J", "005930", "20250101", "20250131", period_code="W")

    assert chart["rt_cd"] == "0"
    assert len(chart["output2"]) == 2
    assert chart["output2"][0] == {
        "stck_bsop_date": "20250103",
        "stck_oprc": "53000",
        "stck_hgpr": "54000",
        "stck_lwpr": "52500",
        "stck_clpr": "53800",
        "acml_vol": "12000000",
    }
    assert chart["output2"][1]["stck_oprc"] == "0"

    request = fake_kis.data_requests()[0]
    assert request.headers["tr_id"] == "FHKST03010100"
    assert request.url.params["FID_PERIOD_DIV_CODE"] == "W"
    assert request.url.params["FID_ORG_ADJ_PRC"] == "0"


@pytest.mark.asyncio
async def test_chart_without_output2(fake_kis):
    fake_kis.route("/inquire-time-itemchartprice", ok(output1={}))
    client = build_client(fake_kis)

    with pytest.raises(KISAPIError, match="No time item chart data available"):
        await client.get_time_item_chart("J", "005930")


@pytest.mark.asyncio
async def test_get_time_daily_chart_params(fake_kis):
    fake_kis.route(
        "/inquire-time-dailychartprice",
        ok(output2=[{"stck_cntg_hour": "153000", "stck_prpr": "53800", "cntg_vol": "1200"}]),
    )
    client = build_client(fake_kis)

    chart = await client.get_time_daily_chart("J", "005930", "20250103")

    assert chart["output2"][0]["stck_cntg_hour"] == "153000"
    assert chart["output2"][0]["stck_oprc"] == "0"
    request = fake_kis.data_requests()[0]
    assert request.headers["tr_id"] == "FHKST03010200"
    assert request.url.params["FID_INPUT_DATE_1"] == "20250103"
    assert request.url.params["FID_INPUT_HOUR_1"] == "153000"


# ============= 지수 =============

INDEX_ROWS = [
    {"stck_bsop_date": "20250103", "indx_prpr": "2441.92", "indx_prdy_vrss": "42.98",
     "indx_prdy_ctrt": "1.79", "acml_vol": "380000", "acml_tr_pbmn": "8900000"},
    {"stck_bsop_date": "20250102", "indx_prpr": "2398.94", "indx_prdy_vrss": "-0.55",
     "indx_prdy_ctrt": "-0.02", "acml_vol": "350000", "acml_tr_pbmn": "8100000"},
]


@pytest.mark.asyncio
async def test_index_chart_sorted_and_cached(fake_kis):
    fake_kis.route("/inquire-index-daily-price", ok(output2=INDEX_ROWS))
    client = build_client(fake_kis)

    first = await client.get_index_chart("0001", "20250101", "20250103")
    second = await client.get_index_chart("0001", "20250101", "20250103")

    dates = [row["stck_bsop_date"] for row in first["output2"]]
    assert dates == ["20250102", "20250103"]
    assert second == first
    assert len(fake_kis.data_requests()) == 1

    request = fake_kis.data_requests()[0]
    assert request.headers["tr_id"] == "FHPUP02100000"
    assert request.url.params["fid_cond_mrkt_div_code"] == "U"
    assert request.url.params["fid_input_iscd"] == "0001"


@pytest.mark.asyncio
async def test_index_chart_cache_key_includes_period(fake_kis):
    fake_kis.route("/inquire-index-daily-price", ok(output2=INDEX_ROWS))
    client = build_client(fake_kis)

    await client.get_index_chart("0001", "20250101", "20250103", "D")
    await client.get_index_chart("0001", "20250101", "20250103", "W")
    client.clear_cache()
    await client.get_index_chart("0001", "20250101", "20250103", "D")

    assert len(fake_kis.data_requests()) == 3


@pytest.mark.asyncio
async def test_index_chart_mock_fallback(fake_kis):
    """upstream 실패 + 폴백 허용 → msg_cd 'MOCK' 샘플 데이터"""
    fake_kis.route("/inquire-index-daily-price", httpx.Response(200, json={"rt_cd": "1", "msg1": "error"}))
    client = build_client(fake_kis, mock_fallback=True)

    result = await client.get_index_chart("1001", "20250106", "20250110")

    assert result["rt_cd"] == "0"
    assert result["msg_cd"] == "MOCK"
    assert result["msg1"] == "Mock data for testing"
    assert [row["stck_bsop_date"] for row in result["output2"]] == [
        "20250106", "20250107", "20250108", "20250109", "20250110",
    ]


@pytest.mark.asyncio
async def test_index_chart_failure_without_fallback(fake_kis):
    fake_kis.route("/inquire-index-daily-price", httpx.Response(200, json={"rt_cd": "1", "msg1": "error"}))
    client = build_client(fake_kis, mock_fallback=False)

    with pytest.raises(KISAPIError):
        await client.get_index_chart("0001", "20250101", "20250103")


def test_token_status_hides_token(fake_kis):
    client = build_client(fake_kis)
    client.token_manager.access_token = "secret-token"

    status = client.token_status()

    assert status["has_token"] is True
    assert "secret-token" not in str(status)
