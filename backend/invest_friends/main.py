"""
Invest Friends FastAPI 애플리케이션

투자 친구들 - 한국 주식시장 시세/차트, DART 재무제표, AI 채팅 및 섹터 추천 API 서버
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from invest_friends import __version__
from invest_friends.core.config import settings
from invest_friends.core.error_strategy import resolve_error_strategy
from invest_friends.core.exceptions import ApiError, ExternalAPIError
from invest_friends.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI 앱의 생명주기 관리

    시작 시: 로깅 → 테이블 생성 → KIS 토큰 선발급 → corp_code 확인 → 스케줄러 시작
    종료 시: 스케줄러 정리 → HTTP 클라이언트 종료
    """
    from invest_friends.api.dependencies import close_clients, get_dart_client, get_kis_client
    from invest_friends.db.database import init_db
    from invest_friends.scheduler import start_scheduler, stop_scheduler

    setup_logging()
    logger.info("🚀 Invest Friends 애플리케이션 시작")

    init_db()

    # 실패해도 서버는 계속 시작 (요청 시점에 다시 발급 시도)
    await get_kis_client().token_manager.warm_up()

    if settings.DART_API_KEY:
        try:
            await get_dart_client().ensure_corp_codes()
        except Exception as e:
            logger.error(f"❌ corp_code 적재 실패: {e}")
    else:
        logger.warning("⚠️ DART_API_KEY가 없어 corp_code 적재를 건너뜁니다")

    if settings.SCHEDULER_ENABLED:
        start_scheduler()
    else:
        logger.warning("⚠️ 스케줄러가 비활성화되어 있습니다 (SCHEDULER_ENABLED=False)")

    yield  # 앱 실행 중

    logger.info("🛑 Invest Friends 애플리케이션 종료")
    if settings.SCHEDULER_ENABLED:
        stop_scheduler()
    await close_clients()


def create_app() -> FastAPI:
    """
    FastAPI 애플리케이션 생성 및 설정

    Returns:
        FastAPI: 설정된 FastAPI 인스턴스
    """
    app = FastAPI(
        title="Invest Friends API",
        description="투자 친구들 - 한국 주식시장 분석 및 재무제표 시각화 API",
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan
    )

    setup_middleware(app)
    setup_exception_handlers(app)
    setup_routers(app)

    logger.info("FastAPI application initialized")

    return app


def setup_middleware(app: FastAPI) -> None:
    """
    미들웨어 설정 (CORS)

    Args:
        app: FastAPI 인스턴스
    """
    origins = [origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",") if origin.strip()]
    if settings.FRONT_URL and settings.FRONT_URL not in origins:
        origins.append(settings.FRONT_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"]
    )

    logger.info("Middleware configured")


def setup_exception_handlers(app: FastAPI) -> None:
    """
    전역 예외 처리

    - ApiError: {data, message, statusCode}
    - ExternalAPIError: 예외 클래스의 status_code + detail
    - 그 외: 요청 URL 기준 INTERNAL 전략으로 변환
    """
    resolve_internal = resolve_error_strategy("INTERNAL")

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        logger.error(f"❌ {request.method} {request.url.path} → {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(ExternalAPIError)
    async def external_api_error_handler(request: Request, exc: ExternalAPIError):
        logger.error(f"❌ {request.method} {request.url.path} → {exc.status_code}: {exc}")
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        api_error = resolve_internal(str(request.url))(exc)
        logger.error(
            f"❌ Unhandled error {request.method} {request.url.path}: {exc}",
            exc_info=exc
        )
        return JSONResponse(status_code=api_error.status_code, content=api_error.to_dict())


def setup_routers(app: FastAPI) -> None:
    """
    API 라우터 등록

    Args:
        app: FastAPI 인스턴스
    """
    from invest_friends.api.v1 import api_router
    app.include_router(api_router)

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return {
            "message": "Invest Friends API",
            "version": __version__,
            "docs": "/docs"
        }

    @app.get("/health")
    async def health_check():
        """헬스 체크 엔드포인트"""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT
        }

    logger.info("Routers registered")


# 앱 인스턴스 생성
app = create_app()
