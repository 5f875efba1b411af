"""
Data layer for the redemption calculator

Gateway API 클라이언트, 원장 조회 인터페이스, 스냅샷 조립 및 데이터 타입 정의
"""

from .types import Bin, Claim, LiquidityReceipt, PoolSnapshot, RedemptionAmounts
from .ledger import LedgerQuery, EntityDetails, KeyPage, StoreKey, StoreEntry, NonFungibleItem
from .gateway_client import GatewayClient
from .snapshot import SnapshotAssembler
