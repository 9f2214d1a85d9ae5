"""
테이블 생성 + DART corp_code 적재 스크립트

실행 방법:
    python backend/scripts/init_corp_codes.py            # 비어 있을 때만 적재
    python backend/scripts/init_corp_codes.py --refresh  # 전체 재적재
"""

import asyncio
import sys
from pathlib import Path

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from invest_friends.clients.dart_client import DartClient
from invest_friends.core.logging_config import setup_logging
from invest_friends.db.database import init_db


async def main(refresh: bool) -> int:
    dart = DartClient()
    try:
        if refresh:
            result = await dart.refresh_corp_codes()
            return result['count']
        return await dart.ensure_corp_codes()
    finally:
        await dart.close()


if __name__ == "__main__":
    setup_logging(log_file="")

    print("🔧 테이블 생성 중...")
    init_db()

    print("🚀 corp_code 적재 중...")
    count = asyncio.run(main(refresh="--refresh" in sys.argv[1:]))
    print(f"✅ 완료! corp_code {count:,}건")
