"""External API clients (KIS, DART)"""

from .kis_token import KISTokenManager
from .kis_client import KISClient
from .dart_client import DartClient

__all__ = ['KISTokenManager', 'KISClient', 'DartClient']
