"""
로깅 설정

콘솔 + 회전 파일 핸들러를 루트 로거에 등록합니다.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from invest_friends.core.config import settings

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5


def setup_logging(level: str = None, log_file: str = None) -> logging.Logger:
    """
    루트 로거 설정

    Args:
        level: 로그 레벨 (기본값: settings.LOG_LEVEL)
        log_file: 로그 파일 경로 (기본값: settings.LOG_FILE, 빈 문자열이면 파일 로그 생략)

    Returns:
        logging.Logger: 설정된 루트 로거
    """
    root = logging.getLogger()
    level = (level or settings.LOG_LEVEL).upper()
    root.setLevel(getattr(logging, level))

    # 이미 설정되어 있으면 재설정하지 않음 (중복 방지)
    if getattr(root, "_invest_friends_configured", False):
        return root

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    log_file = settings.LOG_FILE if log_file is None else log_file
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # httpx 로그 레벨을 WARNING으로 설정 (HTTP 요청 로그 숨기기)
    logging.getLogger('httpx').setLevel(logging.WARNING)

    root._invest_friends_configured = True
    return root
