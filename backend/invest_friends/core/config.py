"""
환경 설정 관리

Pydantic Settings를 사용하여 .env 파일에서 환경 변수를 로드합니다.
"""

from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path

# 프로젝트 루트 디렉토리 경로 (backend/의 상위)
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent
ENV_FILE = PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 기본 설정
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "./data/logs/app.log"

    # 데이터베이스
    DATABASE_URL: str = "sqlite:///./data/invest_friends.db"

    # KIS API
    KIS_APP_KEY: Optional[str] = None
    KIS_APP_SECRET: Optional[str] = None
    KIS_IS_MOCK: bool = False
    KIS_TIMEOUT: float = 10.0
    KIS_TOKEN_REFRESH_MARGIN: int = 300   # 만료 5분 전 갱신 (초)
    KIS_TOKEN_MIN_INTERVAL: int = 60      # 토큰 발급 1분당 1회 제한 (초)

    @property
    def KIS_BASE_URL(self) -> str:
        """KIS API Base URL (Mock or Real)"""
        if self.KIS_IS_MOCK:
            return "https://openapivts.koreainvestment.com:29443"  # 모의투자
        return "https://openapi.koreainvestment.com:9443"  # 실전투자

    # DART API
    DART_API_KEY: Optional[str] = None
    DART_BASE_URL: str = "https://opendart.fss.or.kr/api"

    # LLM 설정
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_MAX_TOKENS: int = 1000
    GEMINI_TEMPERATURE: float = 0.7

    # 캐시 / 폴백
    INDEX_CACHE_TTL: int = 300            # 장중 지수 캐시 5분 (초)
    MOCK_FALLBACK_ENABLED: bool = True    # 외부 API 실패 시 샘플 데이터 반환

    # 스케줄러
    SCHEDULER_ENABLED: bool = True
    TOKEN_REFRESH_INTERVAL_MINUTES: int = 10
    CORP_CODE_REFRESH_DAY: str = "sun"

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"
    FRONT_URL: str = "https://localhost:3000"

    class Config:
        env_file = str(ENV_FILE)
        case_sensitive = True
        extra = "ignore"


# 전역 설정 인스턴스
settings = Settings()
