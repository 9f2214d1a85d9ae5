"""API v1 router"""

from fastapi import APIRouter
from .kis import router as kis_router
from .chart import router as chart_router
from .dart import router as dart_router
from .chat import router as chat_router
from .recommendation import router as recommendation_router
from .agentica import router as agentica_router

# v1 라우터 생성
api_router = APIRouter(prefix="/api/v1")

# 서브 라우터 등록
api_router.include_router(kis_router)
api_router.include_router(chart_router)
api_router.include_router(dart_router)
api_router.include_router(chat_router)
api_router.include_router(recommendation_router)
api_router.include_router(agentica_router)

__all__ = ["api_router"]
