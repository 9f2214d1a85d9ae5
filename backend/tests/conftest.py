"""
pytest 공통 설정

설정(Settings)은 import 시점에 환경 변수를 읽으므로 invest_friends를 import 하기 전에
테스트용 환경 변수를 지정합니다.
"""

import os
import sys
import tempfile
from pathlib import Path

# backend 디렉토리를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

TEST_DATA_DIR = Path(tempfile.mkdtemp(prefix="invest_friends_test_"))

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DATA_DIR / 'test.db'}"
os.environ["LOG_FILE"] = ""
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["MOCK_FALLBACK_ENABLED"] = "true"
os.environ["GEMINI_API_KEY"] = ""
os.environ["DART_API_KEY"] = ""
os.environ["KIS_APP_KEY"] = ""
os.environ["KIS_APP_SECRET"] = ""

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from invest_friends.core.error_strategy import ApiClient
from invest_friends.db.models import Base

KIS_BASE_URL = "https://openapi.koreainvestment.com:9443"
DART_BASE_URL = "https://opendart.fss.or.kr/api"


def make_api_client(handler) -> ApiClient:
    """httpx.MockTransport 기반 ApiClient (handler: Request → Response)"""
    return ApiClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.fixture
def session_factory(tmp_path):
    """테스트마다 새로 만드는 SQLite 세션 팩토리"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'corp_code.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()
