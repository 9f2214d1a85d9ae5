"""Services"""

from .llm_client import LLMClient
from .chat_service import ChatService
from .chart_service import ChartService
from .recommendation_service import RecommendationService
from .query_router import QueryRouter

__all__ = [
    'LLMClient',
    'ChatService',
    'ChartService',
    'RecommendationService',
    'QueryRouter',
]
