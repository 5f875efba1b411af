"""
C9 풀 / Radix Gateway 상수 정의

- GATEWAY_URLS: 네트워크별 Babylon Gateway API 엔드포인트
- 페이지네이션/청크 기본값: Gateway 요청 한도 이내로 유지
- 컴포넌트 상태 필드 이름: C9 풀 컴포넌트의 Scrypto 구조체 필드
"""

from typing import Dict, Tuple

# 지원되는 네트워크 및 Gateway 엔드포인트
GATEWAY_URLS: Dict[str, str] = {
    "mainnet": "https://mainnet.radixdlt.com",
    "stokenet": "https://stokenet.radixdlt.com",
}

# 네트워크별 컴포넌트 주소 접두사 (Bech32m HRP)
COMPONENT_ADDRESS_PREFIXES: Tuple[str, ...] = (
    "component_rdx1",
    "component_tdx_",
    "component_sim1",
)

# 페이지네이션 / 청크 기본값
DEFAULT_PAGE_SIZE: int = 100    # key-value store 키 목록 페이지 크기
DEFAULT_CHUNK_SIZE: int = 100   # 한 번에 조회할 키 / NFT 개수
DEFAULT_CHUNK_DELAY: float = 1.0  # NFT 청크 사이 대기 (초, rate limit 회피)

# C9 풀 컴포넌트 상태 필드
FIELD_BIN_MAP = "bin_map"
FIELD_TICK_INDEX = "tick_index"
FIELD_CURRENT_TICK = "current"
FIELD_RECEIPT_MANAGER = "liquidity_receipt_manager"
FIELD_ACTIVE_X = "active_x"
FIELD_ACTIVE_Y = "active_y"
FIELD_ACTIVE_TOTAL_CLAIM = "active_total_claim"
FIELD_BIN_SPAN = "bin_span"

# bin_map 값 필드
FIELD_BIN_AMOUNT = "amount"
FIELD_BIN_TOTAL_CLAIM = "total_claim"

# 유동성 영수증 NFT 데이터 필드
FIELD_LIQUIDITY_CLAIMS = "liquidity_claims"

# Decimal 연산 정밀도 (Scrypto Decimal: 192-bit, 소수점 18자리)
DECIMAL_PRECISION: int = 100
