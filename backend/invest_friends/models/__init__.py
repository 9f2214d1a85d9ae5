"""API request/response models"""

from .kis import PriceResponse, MinuteChartResponse, IndexChartResponse, TokenStatusResponse
from .chart import Candle, ChartResponse, FinancialDataResponse
from .dart import CorpCodeItem, RefreshResult, DividendResponse
from .chat import ChatRequest, StockChatRequest, SectorAnalysisRequest, ChatResponse
from .recommendation import SectorRecommendationResponse, AvailableSectorsResponse
from .agentica import AgenticaMessage, AgenticaResponse, AgenticaStatus

__all__ = [
    "PriceResponse",
    "MinuteChartResponse",
    "IndexChartResponse",
    "TokenStatusResponse",
    "Candle",
    "ChartResponse",
    "FinancialDataResponse",
    "CorpCodeItem",
    "RefreshResult",
    "DividendResponse",
    "ChatRequest",
    "StockChatRequest",
    "SectorAnalysisRequest",
    "ChatResponse",
    "SectorRecommendationResponse",
    "AvailableSectorsResponse",
    "AgenticaMessage",
    "AgenticaResponse",
    "AgenticaStatus",
]
