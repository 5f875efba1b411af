"""
Math layer for the redemption calculator

- redemption_math: bin_map 비례 지분 기반 상환 수량 계산
"""

from .redemption_math import (
    calculate_redemption,
    calculate_amounts,
    claim_share,
    format_decimal,
)
