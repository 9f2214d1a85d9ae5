"""Invest Friends backend - 한국 주식시장 분석 및 재무제표 시각화 API"""

__version__ = "1.0.0"
