"""
데이터베이스 모델 정의
"""

from sqlalchemy import Column, String, Integer
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CorpCode(Base):
    """DART 기업 고유번호 테이블 (상장회사만 적재)"""
    __tablename__ = 'corp_code'

    corp_code = Column(String(8), primary_key=True)  # 고유번호 (8자리, 0 패딩)
    corp_name = Column(String(200), nullable=False, index=True)  # 한글 회사명
    corp_eng_name = Column(String(200), nullable=True)  # 영문 회사명
    stock_code = Column(String(6), nullable=True, index=True)  # 종목코드 (6자리, 0 패딩)
    modify_date = Column(Integer, nullable=False)  # 최종변경일자 (YYYYMMDD)

    def __repr__(self):
        return f"<CorpCode(corp_code={self.corp_code}, corp_name={self.corp_name}, stock_code={self.stock_code})>"

    def to_dict(self):
        """딕셔너리 변환"""
        return {
            'corp_code': self.corp_code,
            'corp_name': self.corp_name,
            'corp_eng_name': self.corp_eng_name or '',
            'stock_code': self.stock_code or '',
            'modify_date': self.modify_date,
        }
