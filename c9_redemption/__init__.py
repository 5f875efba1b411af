"""
C9 Liquidity Receipt Redemption Calculator

Radix 원장의 현재/과거 상태에서 C9 집중화 유동성 풀의 영수증 NFT가
상환 시 받을 토큰 수량을 계산하는 라이브러리.
"""

__version__ = "0.1.0"

from .errors import (
    RedemptionError,
    ValidationError,
    ComponentError,
    NFTError,
    DataError,
    MalformedData,
    GatewayError,
)
from .data.types import Bin, Claim, PoolSnapshot, RedemptionAmounts
from .service import RedemptionService, calculate_redemption_value, calculate_redemption_values
