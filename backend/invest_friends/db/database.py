"""
데이터베이스 연결 및 세션 관리
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session

from invest_friends.core.config import settings
from invest_friends.db.models import Base

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL


def _create_engine(url: str):
    parsed = make_url(url)
    connect_args = {}
    if parsed.drivername.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # SQLite용
        # 파일 DB라면 상위 디렉토리 생성
        if parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        url,
        connect_args=connect_args,
        echo=False  # SQL 로그 출력 (개발 시 True)
    )


# Engine 생성
engine = _create_engine(DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    """데이터베이스 초기화 (테이블 생성)"""
    Base.metadata.create_all(bind=engine)
    logger.info(f"✅ Database initialized ({engine.url.render_as_string(hide_password=True)})")


@contextmanager
def get_db(session_factory=None) -> Session:
    """
    데이터베이스 세션 컨텍스트 매니저

    Args:
        session_factory: 세션 팩토리 (기본값: SessionLocal)

    Example:
        >>> with get_db() as db:
        ...     corp = db.query(CorpCode).filter_by(stock_code='005930').first()
    """
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

